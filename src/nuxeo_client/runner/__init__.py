"""
CLI runner module.

Provides commands:
- version: Show the server version
- root: Fetch the repository root
- fetch: Fetch a document by id or path
- query: Run an NXQL query
- operation: Execute an automation operation
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
