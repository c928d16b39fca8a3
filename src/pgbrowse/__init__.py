"""pgbrowse - browse and edit PostgreSQL tables over HTTP."""

from pgbrowse.__about__ import __version__

__all__ = ["__version__"]
