"""SubnodeStore - subnodes and their parameter-value versions."""

import json
import logging

import aiosqlite

from mediation.db.database import generate_id, get_db, next_version, transaction, utc_now
from mediation.errors import InvalidReference, LifecycleError
from mediation.models import (
    CloneRequest,
    ParameterValue,
    Subnode,
    SubnodeCreate,
    SubnodeImport,
    SubnodeUpdate,
    SubnodeVersion,
    SubnodeVersionData,
    SubnodeVersionUpdate,
)
from mediation.services.lifecycle import check_subnode_version_editable

logger = logging.getLogger(__name__)


def _row_to_version(row: aiosqlite.Row) -> SubnodeVersion:
    """Convert a database row to a SubnodeVersion model."""
    by_nodeversion = json.loads(row["by_nodeversion_json"])
    return SubnodeVersion(
        id=row["id"],
        subnode_id=row["subnode_id"],
        version=row["version"],
        version_comment=row["version_comment"],
        is_deployed=bool(row["is_deployed"]),
        is_editable=bool(row["is_editable"]),
        parameter_values=[ParameterValue(**v) for v in json.loads(row["parameter_values_json"])],
        parameter_values_by_nodeversion={
            key: [ParameterValue(**v) for v in values] for key, values in by_nodeversion.items()
        },
        created_at=row["created_at"],
    )


def _dump_values(values: list[ParameterValue]) -> str:
    return json.dumps([v.model_dump() for v in values])


def _dump_by_nodeversion(values: dict[str, list[ParameterValue]]) -> str:
    return json.dumps({key: [v.model_dump() for v in vals] for key, vals in values.items()})


class SubnodeStore:
    """Storage abstraction for subnodes."""

    # ==================== Subnodes ====================

    async def create_subnode(self, data: SubnodeCreate) -> Subnode:
        """Create a subnode with an editable version 1.

        The subnode is bound to every draft version of its node family.

        Raises:
            InvalidReference: The node family does not exist
        """
        return await self._create(
            name=data.name,
            description=data.description,
            node_family=data.node_family,
            versions=[
                SubnodeVersionData(
                    version_comment="Initial version",
                    parameter_values=data.parameter_values,
                )
            ],
        )

    async def import_subnode(self, payload: SubnodeImport) -> Subnode:
        """Create a subnode from an exported document.

        Every imported version becomes an editable draft; nothing is deployed.
        """
        versions = payload.versions or [SubnodeVersionData(version_comment="Imported")]
        subnode = await self._create(
            name=payload.name,
            description=payload.description,
            node_family=payload.node_family,
            versions=versions,
        )
        logger.info(f"Imported subnode '{payload.name}' with {len(versions)} version(s)")
        return subnode

    async def list_subnodes(self, node_family: str | None = None) -> list[Subnode]:
        db = await get_db()
        if node_family is None:
            cursor = await db.execute("SELECT * FROM subnodes ORDER BY name")
        else:
            cursor = await db.execute(
                "SELECT * FROM subnodes WHERE node_family = ? ORDER BY name", (node_family,)
            )
        rows = await cursor.fetchall()
        return [await self._build_subnode(db, row) for row in rows]

    async def get_subnode(self, subnode_id: str) -> Subnode | None:
        db = await get_db()
        cursor = await db.execute("SELECT * FROM subnodes WHERE id = ?", (subnode_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return await self._build_subnode(db, row)

    async def update_subnode(self, subnode_id: str, update: SubnodeUpdate) -> Subnode | None:
        current = await self.get_subnode(subnode_id)
        if current is None:
            return None

        async with transaction() as db:
            await db.execute(
                "UPDATE subnodes SET name = ?, description = ?, updated_at = ? WHERE id = ?",
                (
                    update.name if update.name is not None else current.name,
                    update.description if update.description is not None else current.description,
                    utc_now(),
                    subnode_id,
                ),
            )
        return await self.get_subnode(subnode_id)

    async def delete_subnode(self, subnode_id: str) -> bool:
        """Delete a subnode.

        Refused while one of its versions is deployed or while a deployed
        flow has it selected. Draft flows that select it lose the selection.
        """
        async with transaction() as db:
            current = await self.get_subnode(subnode_id)
            if current is None:
                return False
            if current.active_version is not None:
                raise LifecycleError(
                    f"Subnode '{current.name}' has deployed version {current.active_version}; "
                    "undeploy it before deleting",
                    entity="subnode",
                )

            cursor = await db.execute(
                """
                SELECT DISTINCT f.name FROM flow_nodes fn JOIN flows f ON f.id = fn.flow_id
                WHERE fn.selected_subnode = ? AND f.is_deployed = 1
                ORDER BY f.name
                """,
                (subnode_id,),
            )
            flows = [row["name"] for row in await cursor.fetchall()]
            if flows:
                raise LifecycleError(
                    f"Subnode '{current.name}' is used by deployed flow(s): {', '.join(flows)}",
                    entity="subnode",
                )

            cursor = await db.execute("DELETE FROM subnodes WHERE id = ?", (subnode_id,))

        logger.info(f"Deleted subnode '{current.name}' ({subnode_id})")
        return cursor.rowcount > 0

    async def clone_subnode(self, subnode_id: str, request: CloneRequest) -> Subnode | None:
        """Copy a subnode; every copied version is an editable draft."""
        source = await self.get_subnode(subnode_id)
        if source is None:
            return None

        # Oldest first so the copies keep their relative numbering
        versions = [
            SubnodeVersionData(
                version_comment=v.version_comment,
                parameter_values=v.parameter_values,
                parameter_values_by_nodeversion=v.parameter_values_by_nodeversion,
            )
            for v in sorted(source.versions, key=lambda v: v.version)
        ]
        clone = await self._create(
            name=request.name or f"{source.name}_clone",
            description=request.description if request.description is not None else source.description,
            node_family=source.node_family,
            versions=versions,
        )
        logger.info(f"Cloned subnode '{source.name}' into '{clone.name}' ({clone.id})")
        return clone

    # ==================== Versions ====================

    async def create_editable_version(self, subnode_id: str, version_comment: str = "") -> Subnode | None:
        """Open a new editable version seeded from the active or latest version."""
        current = await self.get_subnode(subnode_id)
        if current is None:
            return None

        base = next(
            (v for v in current.versions if v.version == current.active_version),
            current.versions[0] if current.versions else None,
        )

        async with transaction() as db:
            version = await next_version(db, subnode_id)
            await self._insert_version(
                db,
                subnode_id,
                version,
                SubnodeVersionData(
                    version_comment=version_comment,
                    parameter_values=base.parameter_values if base else [],
                    parameter_values_by_nodeversion=base.parameter_values_by_nodeversion if base else {},
                ),
            )
            await self._touch(db, subnode_id)

        logger.info(f"Created editable version {version} of subnode '{current.name}'")
        return await self.get_subnode(subnode_id)

    async def update_version(
        self, subnode_id: str, version: int, update: SubnodeVersionUpdate
    ) -> SubnodeVersion | None:
        """Edit an editable, undeployed version."""
        async with transaction() as db:
            current = await self._get_version(subnode_id, version)
            if current is None:
                return None
            check_subnode_version_editable(current)

            parameter_values = (
                update.parameter_values if update.parameter_values is not None else current.parameter_values
            )
            by_nodeversion = (
                update.parameter_values_by_nodeversion
                if update.parameter_values_by_nodeversion is not None
                else current.parameter_values_by_nodeversion
            )

            await db.execute(
                """
                UPDATE subnode_versions
                SET version_comment = ?, parameter_values_json = ?, by_nodeversion_json = ?
                WHERE subnode_id = ? AND version = ?
                """,
                (
                    update.version_comment if update.version_comment is not None else current.version_comment,
                    _dump_values(parameter_values),
                    _dump_by_nodeversion(by_nodeversion),
                    subnode_id,
                    version,
                ),
            )
            await self._touch(db, subnode_id)
        return await self._get_version(subnode_id, version)

    async def activate_version(self, subnode_id: str, version: int) -> Subnode | None:
        """Deploy a version, undeploying the others, and freeze it."""
        if await self._get_version(subnode_id, version) is None:
            return None

        async with transaction() as db:
            await db.execute(
                "UPDATE subnode_versions SET is_deployed = 0 WHERE subnode_id = ? AND version != ?",
                (subnode_id, version),
            )
            await db.execute(
                """
                UPDATE subnode_versions SET is_deployed = 1, is_editable = 0
                WHERE subnode_id = ? AND version = ?
                """,
                (subnode_id, version),
            )
            await self._touch(db, subnode_id)

        logger.info(f"Activated version {version} of subnode {subnode_id}")
        return await self.get_subnode(subnode_id)

    async def undeploy_version(self, subnode_id: str, version: int) -> Subnode | None:
        async with transaction() as db:
            current = await self._get_version(subnode_id, version)
            if current is None:
                return None
            if not current.is_deployed:
                raise LifecycleError(f"Subnode version {version} is not deployed", entity="subnode_version")
            await db.execute(
                "UPDATE subnode_versions SET is_deployed = 0 WHERE subnode_id = ? AND version = ?",
                (subnode_id, version),
            )
            await self._touch(db, subnode_id)

        logger.info(f"Undeployed version {version} of subnode {subnode_id}")
        return await self.get_subnode(subnode_id)

    # ==================== Helpers ====================

    async def _create(
        self,
        name: str,
        description: str,
        node_family: str,
        versions: list[SubnodeVersionData],
    ) -> Subnode:
        subnode_id = generate_id()
        now = utc_now()

        async with transaction() as db:
            cursor = await db.execute("SELECT id FROM node_families WHERE id = ?", (node_family,))
            if await cursor.fetchone() is None:
                raise InvalidReference(f"Node family {node_family} does not exist", entity="subnode")

            await db.execute(
                """
                INSERT INTO subnodes (id, name, description, node_family, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (subnode_id, name, description, node_family, now, now),
            )
            for data in versions:
                version = await next_version(db, subnode_id)
                await self._insert_version(db, subnode_id, version, data)
            await self._bind_to_drafts(db, node_family, subnode_id)

        logger.info(f"Created subnode '{name}' ({subnode_id}) in node family {node_family}")
        subnode = await self.get_subnode(subnode_id)
        assert subnode is not None
        return subnode

    async def _insert_version(
        self, db: aiosqlite.Connection, subnode_id: str, version: int, data: SubnodeVersionData
    ) -> None:
        await db.execute(
            """
            INSERT INTO subnode_versions (id, subnode_id, version, version_comment, is_deployed,
                                          is_editable, parameter_values_json, by_nodeversion_json,
                                          created_at)
            VALUES (?, ?, ?, ?, 0, 1, ?, ?, ?)
            """,
            (
                generate_id(),
                subnode_id,
                version,
                data.version_comment,
                _dump_values(data.parameter_values),
                _dump_by_nodeversion(data.parameter_values_by_nodeversion),
                utc_now(),
            ),
        )

    async def _bind_to_drafts(self, db: aiosqlite.Connection, family_id: str, subnode_id: str) -> None:
        """Attach a new subnode to every draft version of its family."""
        cursor = await db.execute(
            "SELECT id, subnodes_json FROM node_versions WHERE family_id = ? AND state = 'draft'",
            (family_id,),
        )
        for row in await cursor.fetchall():
            bound = json.loads(row["subnodes_json"])
            if subnode_id not in bound:
                bound.append(subnode_id)
                await db.execute(
                    "UPDATE node_versions SET subnodes_json = ? WHERE id = ?",
                    (json.dumps(bound), row["id"]),
                )

    async def _touch(self, db: aiosqlite.Connection, subnode_id: str) -> None:
        await db.execute("UPDATE subnodes SET updated_at = ? WHERE id = ?", (utc_now(), subnode_id))

    async def _get_version(self, subnode_id: str, version: int) -> SubnodeVersion | None:
        db = await get_db()
        cursor = await db.execute(
            "SELECT * FROM subnode_versions WHERE subnode_id = ? AND version = ?",
            (subnode_id, version),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_version(row)

    async def _build_subnode(self, db: aiosqlite.Connection, row: aiosqlite.Row) -> Subnode:
        cursor = await db.execute(
            "SELECT * FROM subnode_versions WHERE subnode_id = ? ORDER BY version DESC",
            (row["id"],),
        )
        versions = [_row_to_version(r) for r in await cursor.fetchall()]
        deployed = next((v for v in versions if v.is_deployed), None)
        return Subnode(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            node_family=row["node_family"],
            active_version=deployed.version if deployed else None,
            versions=versions,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


subnode_store = SubnodeStore()
