"""
User and group management endpoints.
"""

from typing import TYPE_CHECKING
from urllib.parse import quote

from ..objects import Group, User

if TYPE_CHECKING:
    from .client import NuxeoClient


class UserManager:
    """Create, fetch, update and delete users and groups."""

    def __init__(self, client: "NuxeoClient"):
        self.client = client

    def _user(self, username: str = "") -> str:
        return self.client.api_path(f"user/{quote(username, safe='')}" if username else "user")

    def _group(self, group_name: str = "") -> str:
        return self.client.api_path(f"group/{quote(group_name, safe='')}" if group_name else "group")

    def create_user(self, user: User) -> User:
        return self.client.call("POST", self._user(), target=User, json_data=user.to_dict())

    def fetch_user(self, username: str) -> User:
        return self.client.call("GET", self._user(username), target=User)

    def update_user(self, user: User) -> User:
        return self.client.call(
            "PUT", self._user(user.username), target=User, json_data=user.to_dict()
        )

    def delete_user(self, username: str) -> None:
        self.client.send("DELETE", self._user(username))

    def create_group(self, group: Group) -> Group:
        return self.client.call("POST", self._group(), target=Group, json_data=group.to_dict())

    def fetch_group(self, group_name: str) -> Group:
        return self.client.call("GET", self._group(group_name), target=Group)

    def delete_group(self, group_name: str) -> None:
        self.client.send("DELETE", self._group(group_name))
