"""Lockfile inspection services."""

from .revision_resolver_service import (
    RevisionResolverService,
    parse_lockfile_entry,
    parse_source_uri,
    resolve,
)

__all__ = [
    "RevisionResolverService",
    "parse_lockfile_entry",
    "parse_source_uri",
    "resolve",
]
