"""HTTP API for pgbrowse."""

from pgbrowse.server.app import create_app

__all__ = ["create_app"]
