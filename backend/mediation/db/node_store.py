"""NodeStore - node families, their versions and the globally active node."""

import json
import logging

import aiosqlite

from mediation.db.database import generate_id, get_db, next_version, transaction, utc_now
from mediation.errors import ActiveNodeConflict, LifecycleError
from mediation.models import (
    ActiveNode,
    CloneRequest,
    NodeFamily,
    NodeFamilyCreate,
    NodeVersion,
    NodeVersionCreate,
    NodeVersionState,
    NodeVersionUpdate,
)
from mediation.services.lifecycle import (
    check_node_version_deletable,
    check_node_version_editable,
)

logger = logging.getLogger(__name__)


def script_url(family_id: str, version: int) -> str:
    return f"/api/node-families/{family_id}/versions/{version}/script/"


class NodeStore:
    """Storage abstraction for node families and node versions."""

    # ==================== Families ====================

    async def create_family(self, data: NodeFamilyCreate) -> NodeFamily:
        """Create a node family with no versions yet."""
        family_id = generate_id()
        now = utc_now()

        async with transaction() as db:
            await db.execute(
                """
                INSERT INTO node_families (id, name, description, node_type, created_at, created_by, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (family_id, data.name, data.description, data.node_type, now, data.created_by, now),
            )

        logger.info(f"Created node family '{data.name}' ({family_id})")
        family = await self.get_family(family_id)
        assert family is not None
        return family

    async def list_families(self) -> list[NodeFamily]:
        """List all node families with their versions."""
        db = await get_db()
        cursor = await db.execute("SELECT * FROM node_families ORDER BY name")
        rows = await cursor.fetchall()
        return [await self._build_family(db, row) for row in rows]

    async def get_family(self, family_id: str) -> NodeFamily | None:
        db = await get_db()
        cursor = await db.execute("SELECT * FROM node_families WHERE id = ?", (family_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return await self._build_family(db, row)

    async def delete_family(self, family_id: str) -> bool:
        """Delete a node family that is neither published nor placed in a flow."""
        async with transaction() as db:
            family = await self.get_family(family_id)
            if family is None:
                return False
            if family.is_deployed:
                raise LifecycleError(
                    f"Node '{family.name}' has a published version and cannot be deleted",
                    entity="node_family",
                )

            cursor = await db.execute(
                "SELECT COUNT(*) AS placements FROM flow_nodes WHERE node_family = ?",
                (family_id,),
            )
            placements = (await cursor.fetchone())["placements"]
            if placements:
                raise LifecycleError(
                    f"Node '{family.name}' is used by {placements} flow node(s)",
                    entity="node_family",
                )
            cursor = await db.execute("DELETE FROM node_families WHERE id = ?", (family_id,))

        logger.info(f"Deleted node family '{family.name}' ({family_id})")
        return cursor.rowcount > 0

    async def clone_family(self, family_id: str, request: CloneRequest) -> NodeFamily | None:
        """Copy a family and its latest version into a new family.

        Subnodes are not copied; the clone starts with a single draft version.
        """
        source = await self.get_family(family_id)
        if source is None:
            return None

        new_id = generate_id()
        now = utc_now()
        name = request.name or f"{source.name} (Copy)"
        description = request.description if request.description is not None else source.description

        async with transaction() as db:
            await db.execute(
                """
                INSERT INTO node_families (id, name, description, node_type, created_at, created_by, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (new_id, name, description, source.node_type, now, request.created_by, now),
            )
            if source.versions:
                latest = source.versions[0]
                version = await next_version(db, new_id)
                await db.execute(
                    """
                    INSERT INTO node_versions (id, family_id, version, state, changelog,
                                               parameters_json, subnodes_json, script, created_at)
                    SELECT ?, ?, ?, 'draft', ?, parameters_json, '[]', script, ?
                    FROM node_versions WHERE family_id = ? AND version = ?
                    """,
                    (
                        generate_id(),
                        new_id,
                        version,
                        f"Cloned from '{source.name}' version {latest.version}",
                        now,
                        family_id,
                        latest.version,
                    ),
                )

        logger.info(f"Cloned node family '{source.name}' into '{name}' ({new_id})")
        return await self.get_family(new_id)

    # ==================== Versions ====================

    async def list_versions(self, family_id: str) -> list[NodeVersion]:
        """List a family's versions, newest first."""
        db = await get_db()
        return await self._load_versions(db, family_id)

    async def get_version(self, family_id: str, version: int) -> NodeVersion | None:
        for node_version in await self.list_versions(family_id):
            if node_version.version == version:
                return node_version
        return None

    async def create_version(self, family_id: str, data: NodeVersionCreate) -> NodeVersion | None:
        """Add an empty draft version bound to the family's current subnodes."""
        family = await self.get_family(family_id)
        if family is None:
            return None

        async with transaction() as db:
            cursor = await db.execute(
                "SELECT id FROM subnodes WHERE node_family = ? ORDER BY created_at, name",
                (family_id,),
            )
            subnode_ids = [row["id"] for row in await cursor.fetchall()]
            version = await next_version(db, family_id)
            await db.execute(
                """
                INSERT INTO node_versions (id, family_id, version, state, changelog,
                                           parameters_json, subnodes_json, created_at)
                VALUES (?, ?, ?, 'draft', ?, ?, ?, ?)
                """,
                (
                    generate_id(),
                    family_id,
                    version,
                    data.changelog,
                    json.dumps(data.parameters),
                    json.dumps(subnode_ids),
                    utc_now(),
                ),
            )
            await self._touch(db, family_id)

        logger.info(f"Created version {version} of node family '{family.name}'")
        return await self.get_version(family_id, version)

    async def create_new_version(
        self, family_id: str, from_version: int, changelog: str | None = None
    ) -> NodeVersion | None:
        """Copy a version's parameters and subnode bindings into a new draft."""
        source = await self.get_version(family_id, from_version)
        if source is None:
            return None

        async with transaction() as db:
            version = await next_version(db, family_id)
            await db.execute(
                """
                INSERT INTO node_versions (id, family_id, version, state, changelog,
                                           parameters_json, subnodes_json, script, created_at)
                SELECT ?, family_id, ?, 'draft', ?, parameters_json, subnodes_json, script, ?
                FROM node_versions WHERE family_id = ? AND version = ?
                """,
                (
                    generate_id(),
                    version,
                    changelog or f"Copied from version {from_version}",
                    utc_now(),
                    family_id,
                    from_version,
                ),
            )
            await self._touch(db, family_id)

        logger.info(f"Created version {version} of node family {family_id} from version {from_version}")
        return await self.get_version(family_id, version)

    async def update_version(
        self, family_id: str, version: int, update: NodeVersionUpdate
    ) -> NodeVersion | None:
        """Edit a draft version."""
        async with transaction() as db:
            current = await self.get_version(family_id, version)
            if current is None:
                return None
            check_node_version_editable(current)
            await db.execute(
                """
                UPDATE node_versions SET changelog = ?, parameters_json = ?
                WHERE family_id = ? AND version = ?
                """,
                (
                    update.changelog if update.changelog is not None else current.changelog,
                    json.dumps(update.parameters if update.parameters is not None else current.parameters),
                    family_id,
                    version,
                ),
            )
            await self._touch(db, family_id)
        return await self.get_version(family_id, version)

    async def delete_version(self, family_id: str, version: int) -> bool:
        async with transaction() as db:
            current = await self.get_version(family_id, version)
            if current is None:
                return False
            check_node_version_deletable(current)
            cursor = await db.execute(
                "DELETE FROM node_versions WHERE family_id = ? AND version = ?",
                (family_id, version),
            )
            await self._touch(db, family_id)
        return cursor.rowcount > 0

    async def set_script(self, family_id: str, version: int, content: str) -> NodeVersion | None:
        """Attach script text to a draft version."""
        async with transaction() as db:
            current = await self.get_version(family_id, version)
            if current is None:
                return None
            check_node_version_editable(current)
            await db.execute(
                "UPDATE node_versions SET script = ? WHERE family_id = ? AND version = ?",
                (content, family_id, version),
            )
        return await self.get_version(family_id, version)

    async def get_script(self, family_id: str, version: int) -> str | None:
        db = await get_db()
        cursor = await db.execute(
            "SELECT script FROM node_versions WHERE family_id = ? AND version = ?",
            (family_id, version),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return row["script"]

    # ==================== Deployment ====================

    async def get_active_node(self) -> ActiveNode | None:
        """Get the globally active node family, if any."""
        db = await get_db()
        return await self._read_active(db)

    async def deploy_version(
        self, family_id: str, version: int, replace_active: bool = False
    ) -> NodeFamily | None:
        """Publish a version and make its family the active node.

        Any other published version of the family goes back to draft. When a
        different family is active, the call is refused unless
        ``replace_active`` is set, in which case that family's published
        version is demoted in the same transaction.

        Raises:
            ActiveNodeConflict: Another family is active and replace_active is False
        """
        target = await self.get_version(family_id, version)
        if target is None:
            return None

        async with transaction() as db:
            active = await self._read_active(db)
            if active is not None and active.family_id != family_id:
                if not replace_active:
                    raise ActiveNodeConflict(
                        f"Node '{active.name}' is currently active. Activating this node "
                        f"will deactivate '{active.name}'.",
                        active_node=active.model_dump(),
                    )
                await db.execute(
                    "UPDATE node_versions SET state = 'draft' WHERE family_id = ? AND state = 'published'",
                    (active.family_id,),
                )
                logger.info(f"Deactivated node '{active.name}' ({active.family_id})")

            # Demote before publishing: one published version per family
            await db.execute(
                """
                UPDATE node_versions SET state = 'draft'
                WHERE family_id = ? AND state = 'published' AND version != ?
                """,
                (family_id, version),
            )
            await db.execute(
                "UPDATE node_versions SET state = 'published' WHERE family_id = ? AND version = ?",
                (family_id, version),
            )
            await db.execute(
                """
                INSERT INTO active_node (slot, family_id, version, activated_at) VALUES (1, ?, ?, ?)
                ON CONFLICT(slot) DO UPDATE SET
                    family_id = excluded.family_id,
                    version = excluded.version,
                    activated_at = excluded.activated_at
                """,
                (family_id, version, utc_now()),
            )
            await self._touch(db, family_id)

        logger.info(f"Published version {version} of node family {family_id}")
        return await self.get_family(family_id)

    async def undeploy_version(self, family_id: str, version: int) -> NodeFamily | None:
        """Return a published version to draft and clear the active node."""
        async with transaction() as db:
            target = await self.get_version(family_id, version)
            if target is None:
                return None
            if not target.is_published:
                raise LifecycleError(f"Node version {version} is not published", entity="node_version")
            await db.execute(
                "UPDATE node_versions SET state = 'draft' WHERE family_id = ? AND version = ?",
                (family_id, version),
            )
            await db.execute("DELETE FROM active_node WHERE family_id = ?", (family_id,))
            await self._touch(db, family_id)

        logger.info(f"Undeployed version {version} of node family {family_id}")
        return await self.get_family(family_id)

    # ==================== Helpers ====================

    async def _touch(self, db: aiosqlite.Connection, family_id: str) -> None:
        await db.execute(
            "UPDATE node_families SET updated_at = ? WHERE id = ?", (utc_now(), family_id)
        )

    async def _read_active(self, db: aiosqlite.Connection) -> ActiveNode | None:
        cursor = await db.execute(
            """
            SELECT a.family_id, a.version, a.activated_at, f.name
            FROM active_node a JOIN node_families f ON f.id = a.family_id
            WHERE a.slot = 1
            """
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return ActiveNode(
            family_id=row["family_id"],
            name=row["name"],
            version=row["version"],
            activated_at=row["activated_at"],
        )

    async def _load_versions(self, db: aiosqlite.Connection, family_id: str) -> list[NodeVersion]:
        cursor = await db.execute(
            "SELECT * FROM node_versions WHERE family_id = ? ORDER BY version DESC",
            (family_id,),
        )
        rows = await cursor.fetchall()

        cursor = await db.execute("SELECT id, name FROM subnodes WHERE node_family = ?", (family_id,))
        subnode_names = {row["id"]: row["name"] for row in await cursor.fetchall()}

        versions = []
        for row in rows:
            bound = [sid for sid in json.loads(row["subnodes_json"]) if sid in subnode_names]
            versions.append(
                NodeVersion(
                    id=row["id"],
                    family_id=row["family_id"],
                    version=row["version"],
                    state=NodeVersionState(row["state"]),
                    changelog=row["changelog"],
                    parameters=json.loads(row["parameters_json"]),
                    subnodes=[{"id": sid, "name": subnode_names[sid]} for sid in bound],
                    script_url=script_url(family_id, row["version"]) if row["script"] else None,
                    created_at=row["created_at"],
                )
            )
        return versions

    async def _build_family(self, db: aiosqlite.Connection, row: aiosqlite.Row) -> NodeFamily:
        versions = await self._load_versions(db, row["id"])
        published = next((v for v in versions if v.is_published), None)
        return NodeFamily(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            node_type=row["node_type"],
            is_deployed=published is not None,
            published_version=published.version if published else None,
            total_versions=len(versions),
            versions=versions,
            created_at=row["created_at"],
            created_by=row["created_by"],
            updated_at=row["updated_at"],
        )


node_store = NodeStore()
