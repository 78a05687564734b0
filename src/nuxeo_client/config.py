"""
Configuration management.

All client configuration keys are defined here. Values come from a YAML file,
with environment variables taking precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

AUTH_METHODS = ("basic", "token", "portal_sso")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ServerConfig:
    """Nuxeo server connection settings."""

    base_url: str = "http://localhost:8080/nuxeo"
    # Request timeout (seconds)
    timeout: int = 60
    # Repository name (None = server default)
    repository: Optional[str] = None
    # Document schemas to fetch, e.g. ["dublincore", "file"] or ["*"]
    schemas: list[str] = field(default_factory=list)


@dataclass
class AuthConfig:
    """Authentication settings.

    - basic: username + password
    - token: token (X-Authentication-Token)
    - portal_sso: username + secret shared with the server
    """

    method: str = "basic"
    username: str = "Administrator"
    password: Optional[str] = None
    token: Optional[str] = None
    secret: Optional[str] = None


@dataclass
class Config:
    """Client configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.server.base_url:
            errors.append("server.base_url is required")
        elif not self.server.base_url.startswith(("http://", "https://")):
            errors.append("server.base_url must start with http:// or https://")
        if self.server.timeout <= 0:
            errors.append("server.timeout must be positive")

        if self.auth.method not in AUTH_METHODS:
            errors.append(f"auth.method must be one of {', '.join(AUTH_METHODS)}")
        elif self.auth.method == "token" and not self.auth.token:
            errors.append("auth.token is required for token authentication")
        elif self.auth.method == "portal_sso" and not self.auth.secret:
            errors.append("auth.secret is required for portal_sso authentication")
        elif self.auth.method == "basic" and self.auth.password is None:
            errors.append("auth.password is required for basic authentication")

        return errors


def _split_schemas(value: object) -> list[str]:
    if isinstance(value, str):
        return [s.strip() for s in value.split(",") if s.strip()]
    if isinstance(value, list):
        return [str(s) for s in value]
    return []


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - NUXEO_URL
    - NUXEO_TIMEOUT (seconds)
    - NUXEO_REPOSITORY
    - NUXEO_SCHEMAS (comma separated)
    - NUXEO_AUTH_METHOD (basic/token/portal_sso)
    - NUXEO_USERNAME
    - NUXEO_PASSWORD
    - NUXEO_TOKEN
    - NUXEO_PORTAL_SECRET
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    server_data = data.get("server", {})
    server = ServerConfig(
        base_url=os.environ.get(
            "NUXEO_URL", server_data.get("base_url", "http://localhost:8080/nuxeo")
        ),
        timeout=int(os.environ.get("NUXEO_TIMEOUT", server_data.get("timeout", 60))),
        repository=os.environ.get("NUXEO_REPOSITORY", server_data.get("repository")),
        schemas=_split_schemas(os.environ.get("NUXEO_SCHEMAS", server_data.get("schemas"))),
    )

    auth_data = data.get("auth", {})
    auth = AuthConfig(
        method=os.environ.get("NUXEO_AUTH_METHOD", auth_data.get("method", "basic")),
        username=os.environ.get("NUXEO_USERNAME", auth_data.get("username", "Administrator")),
        password=os.environ.get("NUXEO_PASSWORD", auth_data.get("password")),
        token=os.environ.get("NUXEO_TOKEN", auth_data.get("token")),
        secret=os.environ.get("NUXEO_PORTAL_SECRET", auth_data.get("secret")),
    )

    return Config(server=server, auth=auth)
