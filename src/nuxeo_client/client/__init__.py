"""
Nuxeo REST API Client.

Provides:
- Repository: fetch/create/update/delete documents, queries, blobs, workflows
- UserManager: users and groups
- Operation: automation calls with JSON or blob input
- Basic, token and portal SSO authentication
"""

from .auth import BasicAuth, PortalSSOAuth, TokenAuth
from .client import NuxeoClient
from .operation import Operation
from .repository import Repository
from .user_manager import UserManager

__all__ = [
    "BasicAuth",
    "NuxeoClient",
    "Operation",
    "PortalSSOAuth",
    "Repository",
    "TokenAuth",
    "UserManager",
]
