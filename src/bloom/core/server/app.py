"""Bloom tracker MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import sqlite3

from fastmcp import FastMCP

from bloom.core.config.settings import Settings, get_settings
from bloom.core.storage import KeyValueStore
from bloom.core.storage.database import DatabaseError, TrackerDatabase
from bloom.core.storage.encryption import EncryptionError, ValueEncryptor
from bloom.core.storage.kv import InMemoryKeyValueStore, SQLiteKeyValueStore
from bloom.domains.wellness.session import TrackerSession
from bloom.domains.wellness.tools.log_tools import register_log_tools
from bloom.domains.wellness.tools.tracker_tools import register_tracker_tools

logger = logging.getLogger(__name__)


def _open_store(settings: Settings) -> KeyValueStore:
    """SQLite-backed store, encrypted when ENCRYPTION_KEY is set.

    Falls back to an in-memory store when the database or the key is unusable.
    """
    try:
        encryptor = ValueEncryptor(settings.encryption_key) if settings.encryption_key else None
        database = TrackerDatabase(settings.db_path)
        database.initialize()
    except (EncryptionError, DatabaseError, sqlite3.Error, OSError) as exc:
        logger.error("Failed to initialize storage: %s", exc)
        logger.warning("Continuing without persistence; tracker data will not be stored")
        return InMemoryKeyValueStore()

    logger.info(
        "Tracker store initialized: %s (schema v%d, encrypted=%s)",
        settings.db_path,
        database.get_schema_version(),
        encryptor is not None,
    )
    return SQLiteKeyValueStore(database, encryptor)


def create_app(
    *,
    store_override: KeyValueStore | None = None,
    session_override: TrackerSession | None = None,
) -> FastMCP:
    """Create and configure the Bloom tracker MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Opens the key-value store (or uses the override)
    3. Builds and loads the tracker session
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Bloom Trackers",
        instructions=(
            "Pregnancy wellness trackers. Swipe between the trackers enabled for "
            "the user's stage, log moods, symptoms and medicines, and complete "
            "tracker pages to create appointment, test and reminder tasks."
        ),
    )

    # --- Storage and session ---
    if session_override is not None:
        session = session_override
        storage = "override"
    else:
        store = store_override if store_override is not None else _open_store(settings)
        storage = type(store).__name__
        session = TrackerSession.from_settings(store, settings)
        session.load()

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Bloom Trackers",
            "version": "0.1.0",
            "storage": storage,
            "stage": session.stage.current.value,
            "visible_pages": list(session.stage.visible_pages()),
            "route": session.router.current,
        }

    register_tracker_tools(server, session)
    logger.info("Tracker navigation tools registered")

    register_log_tools(server, session)
    logger.info("Tracker log tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
