"""Email Thread Engine - threaded query engine for a local email store.

This package groups stored email rows into conversation threads, resolves
the representative message per thread, implements soft deletion with
thread-level cascade, and paginates every listing with stable id cursors.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from email_thread_engine.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
