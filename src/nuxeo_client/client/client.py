"""
Nuxeo REST API client implementation.
"""

import json
import logging
from typing import Any, Optional

import requests
from requests.auth import AuthBase

from .. import __version__
from ..config import AuthConfig, Config, ConfigValidationError
from ..errors import NuxeoConnectionError, NuxeoError, NuxeoRemoteError
from ..marshaller import UNKNOWN, EntityTypeRegistry, RawResponse, ResponseConverter
from ..objects import NuxeoVersion
from .auth import BasicAuth, PortalSSOAuth, TokenAuth
from .operation import Operation
from .repository import Repository
from .user_manager import UserManager

logger = logging.getLogger(__name__)

API_PATH = "/api/v1/"
SERVER_VERSION_PATH = "/json/cmis"
PROPERTIES_HEADER = "X-NXproperties"


def _error_message(body: Optional[str]) -> Optional[str]:
    """Pull ``message`` out of the server's JSON exception entity."""
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return None


def build_auth(auth: AuthConfig) -> AuthBase:
    """Create the ``requests`` auth hook for an auth configuration."""
    if auth.method == "token":
        return TokenAuth(auth.token or "")
    if auth.method == "portal_sso":
        return PortalSSOAuth(auth.username, auth.secret or "")
    return BasicAuth(auth.username, auth.password or "")


class NuxeoClient:
    """
    Client for the Nuxeo REST API.

    Features:
    - Repository, user manager and automation operation entry points
    - Pluggable authentication (basic, token, portal SSO)
    - Automatic conversion of responses to entities or blobs
    """

    DEFAULT_TIMEOUT = 60

    def __init__(
        self,
        base_url: str,
        auth: Optional[AuthBase] = None,
        timeout: int = DEFAULT_TIMEOUT,
        repository_name: Optional[str] = None,
        schemas: Optional[list[str]] = None,
        registry: Optional[EntityTypeRegistry] = None,
    ):
        """
        Initialize Nuxeo client.

        Args:
            base_url: Server URL including context path (e.g., "http://localhost:8080/nuxeo")
            auth: Authentication hook (see ``nuxeo_client.client.auth``)
            timeout: Request timeout in seconds
            repository_name: Default repository (None for the server default)
            schemas: Document schemas to fetch (e.g., ["dublincore"] or ["*"])
            registry: Entity type registry used for automation results
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.repository_name = repository_name
        self.converter = ResponseConverter(registry if registry is not None else EntityTypeRegistry())

        self.session = requests.Session()
        self.session.auth = auth
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"{requests.utils.default_user_agent()} NuxeoPythonClient/{__version__}",
        })
        if schemas:
            self.schemas(*schemas)

    @classmethod
    def from_config(cls, config: Config) -> "NuxeoClient":
        """Build a client from validated configuration."""
        errors = config.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))
        return cls(
            base_url=config.server.base_url,
            auth=build_auth(config.auth),
            timeout=config.server.timeout,
            repository_name=config.server.repository,
            schemas=config.server.schemas,
        )

    @property
    def registry(self) -> EntityTypeRegistry:
        return self.converter.registry

    def register_entity(self, entity_type: str, entity_class: type) -> None:
        """Teach automation result decoding about a server-defined entity."""
        self.registry.register(entity_type, entity_class)

    def schemas(self, *names: str) -> "NuxeoClient":
        """Set the document schemas returned by the server."""
        self.session.headers[PROPERTIES_HEADER] = ",".join(names)
        return self

    def repository(self, name: Optional[str] = None) -> Repository:
        return Repository(self, name or self.repository_name)

    def user_manager(self) -> UserManager:
        return UserManager(self)

    def operation(self, operation_id: str) -> Operation:
        return Operation(self, operation_id)

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[Any] = None,
        data: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> requests.Response:
        """Make a streamed request with error handling."""
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                data=data,
                headers=headers,
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.ConnectionError as e:
            raise NuxeoConnectionError(f"Failed to connect to Nuxeo at {self.base_url}: {e}")
        except requests.exceptions.Timeout as e:
            raise NuxeoConnectionError(f"Request to Nuxeo timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise NuxeoError(f"Request failed: {e}")

        if not response.ok:
            try:
                error_body = response.text
            except requests.exceptions.RequestException:
                error_body = None
            finally:
                response.close()
            raise NuxeoRemoteError(
                status_code=response.status_code,
                message=_error_message(error_body) or response.reason or "",
                response_body=error_body,
            )

        return response

    def call(self, method: str, endpoint: str, target: Any = UNKNOWN, **kwargs: Any) -> Any:
        """Make a request and convert its response to ``target``."""
        response = self._request(method, endpoint, **kwargs)
        try:
            return self.converter.convert(RawResponse.from_requests(response), target)
        finally:
            response.close()

    def send(self, method: str, endpoint: str, **kwargs: Any) -> None:
        """Make a request whose response body is ignored (e.g. DELETE)."""
        self._request(method, endpoint, **kwargs).close()

    @staticmethod
    def api_path(path: str) -> str:
        return f"{API_PATH}{path}"

    def server_version(self) -> NuxeoVersion:
        """Fetch the server version from the CMIS repository info."""
        data = self.call("GET", SERVER_VERSION_PATH, target=dict)
        info = data.get("default") or next(iter(data.values()), {})
        version = info.get("productVersion")
        if not version:
            raise NuxeoError("Server did not report a product version")
        return NuxeoVersion.parse(version)

    def test_connection(self) -> bool:
        """Test connection to the Nuxeo API."""
        try:
            self.repository().fetch_document_root()
            return True
        except NuxeoError:
            return False
