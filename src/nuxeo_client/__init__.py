"""
Nuxeo Platform REST client.

A small, testable client for a Nuxeo document repository: document CRUD,
user and group management, workflow queries and automation operations,
with automatic marshalling of JSON entities and file blobs.
"""

__version__ = "0.1.0"
