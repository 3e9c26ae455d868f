"""SQLite database connection and schema initialization."""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

# Global connection holder
_db_connection: aiosqlite.Connection | None = None

# Serializes multi-statement writes issued on the shared connection
_write_lock = asyncio.Lock()


async def init_database(db_path: str) -> None:
    """Initialize the database connection and create schema."""
    global _db_connection, _write_lock

    # Ensure the data directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    _db_connection = await aiosqlite.connect(db_path)
    _write_lock = asyncio.Lock()
    _db_connection.row_factory = aiosqlite.Row

    # Enable foreign keys
    await _db_connection.execute("PRAGMA foreign_keys = ON")

    # Create schema
    await _create_schema(_db_connection)


async def close_database() -> None:
    """Close the database connection."""
    global _db_connection
    if _db_connection:
        await _db_connection.close()
        _db_connection = None


async def get_db() -> aiosqlite.Connection:
    """Get the database connection."""
    if _db_connection is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _db_connection


async def _create_schema(db: aiosqlite.Connection) -> None:
    """Create database tables and indexes."""
    # =========================================================================
    # Flows
    # =========================================================================
    await db.execute("""
        CREATE TABLE IF NOT EXISTS flows (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            version INTEGER NOT NULL DEFAULT 1,
            is_deployed INTEGER NOT NULL DEFAULT 0,
            is_running INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            created_by TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            last_updated_by TEXT,
            CHECK (is_running = 0 OR is_deployed = 1)
        )
    """)

    # Each version keeps a snapshot of the structure it was taken from
    await db.execute("""
        CREATE TABLE IF NOT EXISTS flow_versions (
            id TEXT PRIMARY KEY,
            flow_id TEXT NOT NULL,
            version INTEGER NOT NULL,
            description TEXT,
            is_active INTEGER NOT NULL DEFAULT 0,
            snapshot_json TEXT NOT NULL DEFAULT '{"flow_nodes": [], "edges": []}',
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            created_by TEXT NOT NULL,
            FOREIGN KEY (flow_id) REFERENCES flows(id) ON DELETE CASCADE,
            UNIQUE(flow_id, version)
        )
    """)

    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_flow_versions_one_active
        ON flow_versions(flow_id) WHERE is_active = 1
    """)

    # =========================================================================
    # Node families
    # =========================================================================
    await db.execute("""
        CREATE TABLE IF NOT EXISTS node_families (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            node_type TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            created_by TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS node_versions (
            id TEXT PRIMARY KEY,
            family_id TEXT NOT NULL,
            version INTEGER NOT NULL,
            state TEXT NOT NULL DEFAULT 'draft',
            changelog TEXT NOT NULL DEFAULT '',
            parameters_json TEXT NOT NULL DEFAULT '[]',
            subnodes_json TEXT NOT NULL DEFAULT '[]',
            script TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (family_id) REFERENCES node_families(id) ON DELETE CASCADE,
            UNIQUE(family_id, version),
            CHECK (state IN ('draft', 'published'))
        )
    """)

    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_node_versions_one_published
        ON node_versions(family_id) WHERE state = 'published'
    """)

    # Highest version number ever issued per family, so deleted numbers are
    # never handed out again
    await db.execute("""
        CREATE TABLE IF NOT EXISTS version_counters (
            owner_id TEXT PRIMARY KEY,
            last_version INTEGER NOT NULL DEFAULT 0
        )
    """)

    # Single-row table: the globally active node family
    await db.execute("""
        CREATE TABLE IF NOT EXISTS active_node (
            slot INTEGER PRIMARY KEY CHECK (slot = 1),
            family_id TEXT NOT NULL,
            version INTEGER NOT NULL,
            activated_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (family_id) REFERENCES node_families(id) ON DELETE CASCADE
        )
    """)

    # =========================================================================
    # Subnodes
    # =========================================================================
    await db.execute("""
        CREATE TABLE IF NOT EXISTS subnodes (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            node_family TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (node_family) REFERENCES node_families(id) ON DELETE CASCADE
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS subnode_versions (
            id TEXT PRIMARY KEY,
            subnode_id TEXT NOT NULL,
            version INTEGER NOT NULL,
            version_comment TEXT NOT NULL DEFAULT '',
            is_deployed INTEGER NOT NULL DEFAULT 0,
            is_editable INTEGER NOT NULL DEFAULT 1,
            parameter_values_json TEXT NOT NULL DEFAULT '[]',
            by_nodeversion_json TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (subnode_id) REFERENCES subnodes(id) ON DELETE CASCADE,
            UNIQUE(subnode_id, version)
        )
    """)

    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_subnode_versions_one_deployed
        ON subnode_versions(subnode_id) WHERE is_deployed = 1
    """)

    # =========================================================================
    # Flow structure
    # =========================================================================
    await db.execute("""
        CREATE TABLE IF NOT EXISTS flow_nodes (
            id TEXT PRIMARY KEY,
            flow_id TEXT NOT NULL,
            node_family TEXT NOT NULL,
            node_order INTEGER NOT NULL DEFAULT 1,
            from_node TEXT,
            selected_subnode TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (flow_id) REFERENCES flows(id) ON DELETE CASCADE,
            FOREIGN KEY (node_family) REFERENCES node_families(id),
            FOREIGN KEY (from_node) REFERENCES flow_nodes(id) ON DELETE SET NULL,
            FOREIGN KEY (selected_subnode) REFERENCES subnodes(id) ON DELETE SET NULL
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS edges (
            id TEXT PRIMARY KEY,
            flow_id TEXT NOT NULL,
            from_node TEXT NOT NULL,
            to_node TEXT NOT NULL,
            condition TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (flow_id) REFERENCES flows(id) ON DELETE CASCADE,
            FOREIGN KEY (from_node) REFERENCES flow_nodes(id) ON DELETE CASCADE,
            FOREIGN KEY (to_node) REFERENCES flow_nodes(id) ON DELETE CASCADE,
            UNIQUE(flow_id, from_node, to_node)
        )
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_flow_nodes_flow
        ON flow_nodes(flow_id, node_order)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_edges_flow_from
        ON edges(flow_id, from_node)
    """)

    # =========================================================================
    # Parameters
    # =========================================================================
    await db.execute("""
        CREATE TABLE IF NOT EXISTS parameters (
            id TEXT PRIMARY KEY,
            key TEXT NOT NULL,
            default_value TEXT NOT NULL DEFAULT '',
            datatype TEXT NOT NULL DEFAULT 'string',
            required INTEGER NOT NULL DEFAULT 0,
            description TEXT NOT NULL DEFAULT '',
            node_version TEXT,
            is_deployed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (node_version) REFERENCES node_versions(id) ON DELETE SET NULL
        )
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_parameters_key
        ON parameters(key)
    """)

    await db.commit()


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Run a group of statements as one commit, rolling back on error."""
    db = await get_db()
    async with _write_lock:
        try:
            yield db
        except BaseException:
            await db.rollback()
            raise
        await db.commit()


async def next_version(db: aiosqlite.Connection, owner_id: str) -> int:
    """Issue the next version number for an entity.

    Numbers are monotonic per owner and never reused, even after the
    version that held them is deleted.
    """
    await db.execute(
        """
        INSERT INTO version_counters (owner_id, last_version) VALUES (?, 1)
        ON CONFLICT(owner_id) DO UPDATE SET last_version = last_version + 1
        """,
        (owner_id,),
    )
    cursor = await db.execute(
        "SELECT last_version FROM version_counters WHERE owner_id = ?",
        (owner_id,),
    )
    row = await cursor.fetchone()
    return row["last_version"]


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(UTC).isoformat()
