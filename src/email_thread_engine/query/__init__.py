"""Listing filter resolution."""

from .planner import (
    DefaultQuery,
    DeletedQuery,
    DirectionQuery,
    Folder,
    ImportantQuery,
    ResolvedQuery,
    SearchQuery,
    ThreadedQuery,
    filters_for_folder,
    resolve_query,
)

__all__ = [
    "DefaultQuery",
    "DeletedQuery",
    "DirectionQuery",
    "Folder",
    "ImportantQuery",
    "ResolvedQuery",
    "SearchQuery",
    "ThreadedQuery",
    "filters_for_folder",
    "resolve_query",
]
