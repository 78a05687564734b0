"""
Authentication schemes, as ``requests`` auth hooks.
"""

import base64
import hashlib
import random
import time

import requests
from requests.auth import AuthBase, HTTPBasicAuth


class BasicAuth(HTTPBasicAuth):
    """HTTP basic authentication with login and password."""

    pass


class TokenAuth(AuthBase):
    """Authentication token previously acquired from the server."""

    HEADER = "X-Authentication-Token"

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers[self.HEADER] = self.token
        return request


class PortalSSOAuth(AuthBase):
    """
    Portal SSO authentication.

    The server shares ``secret`` with the portal and checks
    ``NX_TOKEN = base64(md5("<ts>:<random>:<secret>:<user>"))``.
    """

    def __init__(self, username: str, secret: str):
        self.username = username
        self.secret = secret

    def sign(self, timestamp: str, nonce: str) -> str:
        clear = f"{timestamp}:{nonce}:{self.secret}:{self.username}"
        digest = hashlib.md5(clear.encode("utf-8")).digest()
        return base64.b64encode(digest).decode("ascii")

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        timestamp = str(int(time.time() * 1000))
        nonce = str(random.randint(0, 2**31 - 1))
        request.headers["NX_TS"] = timestamp
        request.headers["NX_RD"] = nonce
        request.headers["NX_TOKEN"] = self.sign(timestamp, nonce)
        request.headers["NX_USER"] = self.username
        return request
