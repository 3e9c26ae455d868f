"""FlowStore - storage and lifecycle for flows, their versions and structure."""

import json
import logging
from typing import Any

import aiosqlite

from mediation.db.database import generate_id, get_db, next_version, transaction, utc_now
from mediation.errors import FlowValidationError, InvalidReference
from mediation.models import (
    CloneRequest,
    Edge,
    EdgeCreate,
    Flow,
    FlowCreate,
    FlowNode,
    FlowNodeCreate,
    FlowStructure,
    FlowUpdate,
    FlowVersion,
    FlowVersionCreate,
    FlowVersionUpdate,
    NodeSummary,
    ParameterValue,
    SelectedSubnode,
    SubnodeOption,
    ValidationResult,
)
from mediation.services.flow_validator import FlowValidator
from mediation.services.lifecycle import (
    FlowAction,
    check_flow_deletable,
    check_flow_editable,
    check_flow_version_editable,
    flow_transition,
)

logger = logging.getLogger(__name__)

EMPTY_SNAPSHOT: dict[str, list] = {"flow_nodes": [], "edges": []}


def _row_to_flow(row: aiosqlite.Row) -> Flow:
    """Convert a database row to a Flow model."""
    return Flow(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        version=row["version"],
        is_deployed=bool(row["is_deployed"]),
        is_running=bool(row["is_running"]),
        created_at=row["created_at"],
        created_by=row["created_by"],
        updated_at=row["updated_at"],
        last_updated_by=row["last_updated_by"],
    )


def _row_to_version(row: aiosqlite.Row) -> FlowVersion:
    """Convert a database row to a FlowVersion model."""
    return FlowVersion(
        id=row["id"],
        flow_id=row["flow_id"],
        version=row["version"],
        created_at=row["created_at"],
        created_by=row["created_by"],
        is_active=bool(row["is_active"]),
        description=row["description"],
    )


def _row_to_edge(row: aiosqlite.Row) -> Edge:
    """Convert a database row to an Edge model."""
    return Edge(
        id=row["id"],
        flow_id=row["flow_id"],
        from_node=row["from_node"],
        to_node=row["to_node"],
        condition=row["condition"],
        created_at=row["created_at"],
    )


def _placeholders(values: list[Any]) -> str:
    return ",".join("?" for _ in values)


class FlowStore:
    """Storage abstraction for flows and their lifecycle."""

    def __init__(self, validator: FlowValidator | None = None):
        self._validator = validator or FlowValidator()

    # ==================== Flows ====================

    async def create_flow(self, data: FlowCreate) -> Flow:
        """Create a new flow with an empty, active version 1."""
        flow_id = generate_id()
        now = utc_now()

        async with transaction() as db:
            version = await next_version(db, flow_id)
            await db.execute(
                """
                INSERT INTO flows (id, name, description, version, is_deployed, is_running,
                                   created_at, created_by, updated_at, last_updated_by)
                VALUES (?, ?, ?, ?, 0, 0, ?, ?, ?, ?)
                """,
                (flow_id, data.name, data.description, version, now, data.created_by, now, data.created_by),
            )
            await db.execute(
                """
                INSERT INTO flow_versions (id, flow_id, version, description, is_active,
                                           snapshot_json, created_at, created_by)
                VALUES (?, ?, ?, ?, 1, ?, ?, ?)
                """,
                (
                    generate_id(),
                    flow_id,
                    version,
                    "Initial flow version",
                    json.dumps(EMPTY_SNAPSHOT),
                    now,
                    data.created_by,
                ),
            )

        logger.info(f"Created flow '{data.name}' ({flow_id})")
        flow = await self.get_flow(flow_id)
        assert flow is not None
        return flow

    async def list_flows(self) -> list[Flow]:
        """List all flows, most recently updated first."""
        db = await get_db()
        cursor = await db.execute("SELECT * FROM flows ORDER BY updated_at DESC")
        rows = await cursor.fetchall()
        return [_row_to_flow(row) for row in rows]

    async def get_flow(self, flow_id: str) -> Flow | None:
        """Get a flow by ID."""
        db = await get_db()
        cursor = await db.execute("SELECT * FROM flows WHERE id = ?", (flow_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_flow(row)

    async def update_flow(self, flow_id: str, update: FlowUpdate) -> Flow | None:
        """Update a flow's name or description."""
        async with transaction() as db:
            current = await self.get_flow(flow_id)
            if current is None:
                return None
            check_flow_editable(current)
            await db.execute(
                """
                UPDATE flows SET name = ?, description = ?, last_updated_by = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    update.name if update.name is not None else current.name,
                    update.description if update.description is not None else current.description,
                    update.last_updated_by or current.last_updated_by,
                    utc_now(),
                    flow_id,
                ),
            )
        return await self.get_flow(flow_id)

    async def delete_flow(self, flow_id: str) -> bool:
        """Delete a flow and all its versions and structure."""
        async with transaction() as db:
            current = await self.get_flow(flow_id)
            if current is None:
                return False
            check_flow_deletable(current)
            cursor = await db.execute("DELETE FROM flows WHERE id = ?", (flow_id,))
        logger.info(f"Deleted flow '{current.name}' ({flow_id})")
        return cursor.rowcount > 0

    async def clone_flow(self, flow_id: str, request: CloneRequest) -> Flow | None:
        """Copy a flow's structure into a brand new, undeployed flow."""
        source = await self.get_flow(flow_id)
        if source is None:
            return None

        new_id = generate_id()
        now = utc_now()
        name = request.name or f"{source.name} (Copy)"
        description = request.description if request.description is not None else source.description

        db = await get_db()
        snapshot = await self._snapshot(db, flow_id)

        async with transaction() as db:
            version = await next_version(db, new_id)
            await db.execute(
                """
                INSERT INTO flows (id, name, description, version, is_deployed, is_running,
                                   created_at, created_by, updated_at, last_updated_by)
                VALUES (?, ?, ?, ?, 0, 0, ?, ?, ?, ?)
                """,
                (new_id, name, description, version, now, request.created_by, now, request.created_by),
            )
            await self._write_structure(db, new_id, snapshot, fresh_ids=True)
            await db.execute(
                """
                INSERT INTO flow_versions (id, flow_id, version, description, is_active,
                                           snapshot_json, created_at, created_by)
                VALUES (?, ?, ?, ?, 1, ?, ?, ?)
                """,
                (
                    generate_id(),
                    new_id,
                    version,
                    f"Cloned from '{source.name}' version {source.version}",
                    json.dumps(await self._snapshot(db, new_id)),
                    now,
                    request.created_by,
                ),
            )

        logger.info(f"Cloned flow '{source.name}' ({flow_id}) into '{name}' ({new_id})")
        return await self.get_flow(new_id)

    # ==================== Lifecycle ====================

    async def validate(self, flow_id: str) -> ValidationResult | None:
        """Validate a flow's live structure."""
        structure = await self.get_structure(flow_id)
        if structure is None:
            return None
        return self._validator.validate(structure)

    async def deploy(self, flow_id: str) -> Flow | None:
        """Deploy a flow after its structure passes validation.

        The state check, the validation and the flag update share one
        transaction, so no structural edit can land between them.
        """
        async with transaction() as db:
            structure = await self.get_structure(flow_id)
            if structure is None:
                return None
            flags = flow_transition(structure, FlowAction.DEPLOY)

            result = self._validator.validate(structure)
            if not result.valid:
                logger.warning(f"Deploy of flow {flow_id} refused: {result.errors}")
                raise FlowValidationError(result.errors)

            await self._write_flags(db, flow_id, flags)

        logger.info(f"Flow '{structure.name}' ({flow_id}): {FlowAction.DEPLOY.value}")
        return await self.get_flow(flow_id)

    async def undeploy(self, flow_id: str) -> Flow | None:
        return await self._transition(flow_id, FlowAction.UNDEPLOY)

    async def start(self, flow_id: str) -> Flow | None:
        return await self._transition(flow_id, FlowAction.START)

    async def stop(self, flow_id: str) -> Flow | None:
        return await self._transition(flow_id, FlowAction.STOP)

    async def _transition(self, flow_id: str, action: FlowAction) -> Flow | None:
        async with transaction() as db:
            flow = await self.get_flow(flow_id)
            if flow is None:
                return None
            flags = flow_transition(flow, action)
            await self._write_flags(db, flow_id, flags)

        logger.info(f"Flow '{flow.name}' ({flow_id}): {action.value}")
        return await self.get_flow(flow_id)

    async def _write_flags(self, db: aiosqlite.Connection, flow_id: str, flags: dict[str, bool]) -> None:
        await db.execute(
            "UPDATE flows SET is_deployed = ?, is_running = ?, updated_at = ? WHERE id = ?",
            (int(flags["is_deployed"]), int(flags["is_running"]), utc_now(), flow_id),
        )

    # ==================== Versions ====================

    async def list_versions(self, flow_id: str) -> list[FlowVersion]:
        """List a flow's versions, newest first."""
        db = await get_db()
        cursor = await db.execute(
            "SELECT * FROM flow_versions WHERE flow_id = ? ORDER BY version DESC",
            (flow_id,),
        )
        rows = await cursor.fetchall()
        return [_row_to_version(row) for row in rows]

    async def get_version(self, flow_id: str, version: int) -> FlowVersion | None:
        db = await get_db()
        cursor = await db.execute(
            "SELECT * FROM flow_versions WHERE flow_id = ? AND version = ?",
            (flow_id, version),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_version(row)

    async def create_version(self, flow_id: str, data: FlowVersionCreate) -> FlowVersion | None:
        """Snapshot the live structure as a new, inactive version."""
        flow = await self.get_flow(flow_id)
        if flow is None:
            return None

        async with transaction() as db:
            snapshot = await self._snapshot(db, flow_id)
            version = await next_version(db, flow_id)
            await db.execute(
                """
                INSERT INTO flow_versions (id, flow_id, version, description, is_active,
                                           snapshot_json, created_at, created_by)
                VALUES (?, ?, ?, ?, 0, ?, ?, ?)
                """,
                (
                    generate_id(),
                    flow_id,
                    version,
                    data.description,
                    json.dumps(snapshot),
                    utc_now(),
                    data.created_by,
                ),
            )

        logger.info(f"Created version {version} of flow '{flow.name}'")
        return await self.get_version(flow_id, version)

    async def update_version(
        self, flow_id: str, version: int, update: FlowVersionUpdate
    ) -> FlowVersion | None:
        """Edit a version's description unless it is the deployed one."""
        async with transaction() as db:
            flow = await self.get_flow(flow_id)
            if flow is None or await self.get_version(flow_id, version) is None:
                return None
            check_flow_version_editable(flow, version, flow.version)
            await db.execute(
                "UPDATE flow_versions SET description = ? WHERE flow_id = ? AND version = ?",
                (update.description, flow_id, version),
            )
        return await self.get_version(flow_id, version)

    async def activate_version(self, flow_id: str, version: int) -> Flow | None:
        """Make ``version`` the only active version and load its structure.

        The live structure is saved back into the previously active version
        first, so nothing edited since that version was taken is lost.
        """
        async with transaction() as db:
            flow = await self.get_flow(flow_id)
            if flow is None or await self.get_version(flow_id, version) is None:
                return None
            check_flow_editable(flow)

            live = await self._snapshot(db, flow_id)
            await db.execute(
                "UPDATE flow_versions SET snapshot_json = ? WHERE flow_id = ? AND is_active = 1",
                (json.dumps(live), flow_id),
            )

            cursor = await db.execute(
                "SELECT snapshot_json FROM flow_versions WHERE flow_id = ? AND version = ?",
                (flow_id, version),
            )
            row = await cursor.fetchone()
            snapshot = json.loads(row["snapshot_json"])

            # Single statement, so no two versions are ever active together
            await db.execute(
                "UPDATE flow_versions SET is_active = (version = ?) WHERE flow_id = ?",
                (version, flow_id),
            )
            await db.execute("DELETE FROM flow_nodes WHERE flow_id = ?", (flow_id,))
            await self._write_structure(db, flow_id, snapshot, fresh_ids=False)
            await db.execute(
                "UPDATE flows SET version = ?, updated_at = ? WHERE id = ?",
                (version, utc_now(), flow_id),
            )

        logger.info(f"Activated version {version} of flow '{flow.name}'")
        return await self.get_flow(flow_id)

    # ==================== Structure ====================

    async def get_structure(self, flow_id: str) -> FlowStructure | None:
        """Get a flow with its placed nodes and edges."""
        flow = await self.get_flow(flow_id)
        if flow is None:
            return None

        flow_nodes = await self._load_flow_nodes(flow_id)
        edges = await self.list_edges(flow_id)
        return FlowStructure(**flow.model_dump(), flow_nodes=flow_nodes, edges=edges)

    async def get_flow_node(self, flow_node_id: str) -> FlowNode | None:
        db = await get_db()
        cursor = await db.execute("SELECT flow_id FROM flow_nodes WHERE id = ?", (flow_node_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        for flow_node in await self._load_flow_nodes(row["flow_id"]):
            if flow_node.id == flow_node_id:
                return flow_node
        return None

    async def create_flow_node(self, data: FlowNodeCreate) -> FlowNode | None:
        """Place a node family in a flow.

        Without an explicit subnode the family's first subnode is selected.
        Giving ``from_node`` also connects the predecessor to the new node.
        """
        flow_node_id = generate_id()
        now = utc_now()
        async with transaction() as db:
            flow = await self.get_flow(data.flow_id)
            if flow is None:
                return None
            check_flow_editable(flow)

            if not await self._family_exists(db, data.node_id):
                raise InvalidReference(f"Node family {data.node_id} does not exist", entity="node_family")
            if data.from_node is not None:
                await self._check_in_flow(db, data.flow_id, data.from_node)

            selected = data.selected_subnode
            if selected is not None:
                await self._check_subnode_of_family(db, selected, data.node_id)
            else:
                cursor = await db.execute(
                    "SELECT id FROM subnodes WHERE node_family = ? ORDER BY created_at, name LIMIT 1",
                    (data.node_id,),
                )
                row = await cursor.fetchone()
                selected = row["id"] if row else None

            order = data.order
            if order is None:
                cursor = await db.execute(
                    "SELECT COALESCE(MAX(node_order), 0) AS max_order FROM flow_nodes WHERE flow_id = ?",
                    (data.flow_id,),
                )
                order = (await cursor.fetchone())["max_order"] + 1

            await db.execute(
                """
                INSERT INTO flow_nodes (id, flow_id, node_family, node_order, from_node,
                                        selected_subnode, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (flow_node_id, data.flow_id, data.node_id, order, data.from_node, selected, now),
            )
            if data.from_node is not None:
                await self._insert_edge(db, data.flow_id, data.from_node, flow_node_id, None)
            await self._touch(db, data.flow_id)

        return await self.get_flow_node(flow_node_id)

    async def update_flow_node(self, flow_node_id: str, changes: dict[str, Any]) -> FlowNode | None:
        """Patch a flow node's order, predecessor or selected subnode.

        ``changes`` holds only the fields the caller sent; a ``None`` value
        clears ``from_node`` or ``selected_subnode``.
        """
        async with transaction() as db:
            current = await self.get_flow_node(flow_node_id)
            if current is None:
                return None
            await self._check_editable(current.flow_id)

            if changes.get("from_node") is not None:
                if changes["from_node"] == flow_node_id:
                    raise InvalidReference("A node cannot follow itself", entity="flow_node")
                await self._check_in_flow(db, current.flow_id, changes["from_node"])
            if changes.get("selected_subnode") is not None:
                await self._check_subnode_of_family(db, changes["selected_subnode"], current.node.id)

            if "order" in changes and changes["order"] is not None:
                await db.execute(
                    "UPDATE flow_nodes SET node_order = ? WHERE id = ?",
                    (changes["order"], flow_node_id),
                )
            if "selected_subnode" in changes:
                await db.execute(
                    "UPDATE flow_nodes SET selected_subnode = ? WHERE id = ?",
                    (changes["selected_subnode"], flow_node_id),
                )
            if "from_node" in changes and changes["from_node"] != current.from_node:
                if current.from_node is not None:
                    await db.execute(
                        "DELETE FROM edges WHERE flow_id = ? AND from_node = ? AND to_node = ?",
                        (current.flow_id, current.from_node, flow_node_id),
                    )
                await db.execute(
                    "UPDATE flow_nodes SET from_node = ? WHERE id = ?",
                    (changes["from_node"], flow_node_id),
                )
                if changes["from_node"] is not None:
                    await self._insert_edge(db, current.flow_id, changes["from_node"], flow_node_id, None)
            await self._touch(db, current.flow_id)

        return await self.get_flow_node(flow_node_id)

    async def delete_flow_node(self, flow_node_id: str) -> bool:
        """Remove a node from its flow, along with its edges."""
        async with transaction() as db:
            current = await self.get_flow_node(flow_node_id)
            if current is None:
                return False
            await self._check_editable(current.flow_id)
            cursor = await db.execute("DELETE FROM flow_nodes WHERE id = ?", (flow_node_id,))
            await self._touch(db, current.flow_id)
        return cursor.rowcount > 0

    # ==================== Edges ====================

    async def list_edges(self, flow_id: str) -> list[Edge]:
        db = await get_db()
        cursor = await db.execute(
            "SELECT * FROM edges WHERE flow_id = ? ORDER BY created_at, id",
            (flow_id,),
        )
        rows = await cursor.fetchall()
        return [_row_to_edge(row) for row in rows]

    async def get_edge(self, edge_id: str) -> Edge | None:
        db = await get_db()
        cursor = await db.execute("SELECT * FROM edges WHERE id = ?", (edge_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_edge(row)

    async def create_edge(self, data: EdgeCreate) -> Edge | None:
        """Connect two nodes of a flow.

        Connecting a pair that is already connected returns the existing edge.
        """
        async with transaction() as db:
            flow = await self.get_flow(data.flow_id)
            if flow is None:
                return None
            check_flow_editable(flow)

            if data.from_node == data.to_node:
                raise InvalidReference("A node cannot be connected to itself", entity="edge")
            await self._check_in_flow(db, data.flow_id, data.from_node)
            await self._check_in_flow(db, data.flow_id, data.to_node)

            edge_id = await self._insert_edge(db, data.flow_id, data.from_node, data.to_node, data.condition)
            # The first connection into a node also becomes its predecessor
            await db.execute(
                "UPDATE flow_nodes SET from_node = ? WHERE id = ? AND from_node IS NULL",
                (data.from_node, data.to_node),
            )
            await self._touch(db, data.flow_id)

        return await self.get_edge(edge_id)

    async def delete_edge(self, edge_id: str) -> bool:
        async with transaction() as db:
            edge = await self.get_edge(edge_id)
            if edge is None:
                return False
            await self._check_editable(edge.flow_id)
            cursor = await db.execute("DELETE FROM edges WHERE id = ?", (edge_id,))
            await db.execute(
                "UPDATE flow_nodes SET from_node = NULL WHERE id = ? AND from_node = ?",
                (edge.to_node, edge.from_node),
            )
            await self._touch(db, edge.flow_id)
        return cursor.rowcount > 0

    # ==================== Helpers ====================

    async def _insert_edge(
        self,
        db: aiosqlite.Connection,
        flow_id: str,
        from_node: str,
        to_node: str,
        condition: str | None,
    ) -> str:
        """Insert an edge unless the pair is already connected; return its ID."""
        cursor = await db.execute(
            "SELECT id FROM edges WHERE flow_id = ? AND from_node = ? AND to_node = ?",
            (flow_id, from_node, to_node),
        )
        existing = await cursor.fetchone()
        if existing is not None:
            return existing["id"]

        edge_id = generate_id()
        await db.execute(
            """
            INSERT INTO edges (id, flow_id, from_node, to_node, condition, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (edge_id, flow_id, from_node, to_node, condition, utc_now()),
        )
        return edge_id

    async def _check_editable(self, flow_id: str) -> None:
        """Re-read a flow inside the current transaction and refuse if deployed."""
        flow = await self.get_flow(flow_id)
        assert flow is not None
        check_flow_editable(flow)

    async def _touch(self, db: aiosqlite.Connection, flow_id: str) -> None:
        await db.execute("UPDATE flows SET updated_at = ? WHERE id = ?", (utc_now(), flow_id))

    async def _family_exists(self, db: aiosqlite.Connection, family_id: str) -> bool:
        cursor = await db.execute("SELECT 1 FROM node_families WHERE id = ?", (family_id,))
        return await cursor.fetchone() is not None

    async def _check_in_flow(self, db: aiosqlite.Connection, flow_id: str, flow_node_id: str) -> None:
        cursor = await db.execute(
            "SELECT 1 FROM flow_nodes WHERE id = ? AND flow_id = ?",
            (flow_node_id, flow_id),
        )
        if await cursor.fetchone() is None:
            raise InvalidReference(
                f"Flow node {flow_node_id} is not part of flow {flow_id}", entity="flow_node"
            )

    async def _check_subnode_of_family(
        self, db: aiosqlite.Connection, subnode_id: str, family_id: str
    ) -> None:
        cursor = await db.execute("SELECT node_family FROM subnodes WHERE id = ?", (subnode_id,))
        row = await cursor.fetchone()
        if row is None or row["node_family"] != family_id:
            raise InvalidReference(
                f"Subnode {subnode_id} is not attached to node family {family_id}",
                entity="subnode",
            )

    async def _load_flow_nodes(self, flow_id: str) -> list[FlowNode]:
        """Load a flow's nodes with their family, subnodes and outgoing edges."""
        db = await get_db()
        cursor = await db.execute(
            """
            SELECT fn.*, nf.name AS family_name, nf.node_type AS family_type
            FROM flow_nodes fn JOIN node_families nf ON nf.id = fn.node_family
            WHERE fn.flow_id = ?
            ORDER BY fn.node_order, fn.created_at
            """,
            (flow_id,),
        )
        rows = await cursor.fetchall()
        if not rows:
            return []

        family_ids = list({row["node_family"] for row in rows})
        cursor = await db.execute(
            f"""
            SELECT id, name, node_family FROM subnodes
            WHERE node_family IN ({_placeholders(family_ids)})
            ORDER BY created_at, name
            """,
            family_ids,
        )
        subnodes_by_family: dict[str, list[tuple[str, str]]] = {}
        subnode_names: dict[str, str] = {}
        for sub in await cursor.fetchall():
            subnodes_by_family.setdefault(sub["node_family"], []).append((sub["id"], sub["name"]))
            subnode_names[sub["id"]] = sub["name"]

        # Parameter values come from the deployed version, else the latest one
        selected_ids = list({row["selected_subnode"] for row in rows if row["selected_subnode"]})
        values_by_subnode: dict[str, list[ParameterValue]] = {}
        if selected_ids:
            cursor = await db.execute(
                f"""
                SELECT subnode_id, parameter_values_json FROM subnode_versions
                WHERE subnode_id IN ({_placeholders(selected_ids)})
                ORDER BY is_deployed DESC, version DESC
                """,
                selected_ids,
            )
            for version_row in await cursor.fetchall():
                if version_row["subnode_id"] not in values_by_subnode:
                    values_by_subnode[version_row["subnode_id"]] = [
                        ParameterValue(**v) for v in json.loads(version_row["parameter_values_json"])
                    ]

        outgoing: dict[str, list[Edge]] = {}
        for edge in await self.list_edges(flow_id):
            outgoing.setdefault(edge.from_node, []).append(edge)

        flow_nodes = []
        for row in rows:
            selected_id = row["selected_subnode"]
            selected = None
            if selected_id:
                selected = SelectedSubnode(
                    id=selected_id,
                    name=subnode_names.get(selected_id, selected_id),
                    parameter_values=values_by_subnode.get(selected_id, []),
                )
            flow_nodes.append(
                FlowNode(
                    id=row["id"],
                    flow_id=row["flow_id"],
                    order=row["node_order"],
                    node=NodeSummary(
                        id=row["node_family"],
                        name=row["family_name"],
                        node_type=row["family_type"],
                        subnodes=[
                            SubnodeOption(id=sid, name=name, is_selected=sid == selected_id)
                            for sid, name in subnodes_by_family.get(row["node_family"], [])
                        ],
                    ),
                    selected_subnode=selected,
                    from_node=row["from_node"],
                    outgoing_edges=outgoing.get(row["id"], []),
                )
            )
        return flow_nodes

    async def _snapshot(self, db: aiosqlite.Connection, flow_id: str) -> dict[str, list]:
        """Capture the live structure of a flow as plain data."""
        cursor = await db.execute(
            """
            SELECT id, node_family, node_order, from_node, selected_subnode
            FROM flow_nodes WHERE flow_id = ? ORDER BY node_order, created_at
            """,
            (flow_id,),
        )
        nodes = [dict(row) for row in await cursor.fetchall()]
        cursor = await db.execute(
            "SELECT id, from_node, to_node, condition FROM edges WHERE flow_id = ? ORDER BY created_at, id",
            (flow_id,),
        )
        edges = [dict(row) for row in await cursor.fetchall()]
        return {"flow_nodes": nodes, "edges": edges}

    async def _write_structure(
        self,
        db: aiosqlite.Connection,
        flow_id: str,
        snapshot: dict[str, list],
        fresh_ids: bool,
    ) -> None:
        """Recreate a snapshot's nodes and edges inside ``flow_id``.

        Nodes whose family no longer exists are skipped together with their
        edges; a selected subnode that no longer exists is cleared.
        """
        cursor = await db.execute("SELECT id FROM node_families")
        families = {row["id"] for row in await cursor.fetchall()}
        cursor = await db.execute("SELECT id FROM subnodes")
        subnodes = {row["id"] for row in await cursor.fetchall()}

        now = utc_now()
        id_map: dict[str, str] = {}
        for node in snapshot.get("flow_nodes", []):
            if node["node_family"] not in families:
                logger.warning(
                    f"Skipping flow node {node['id']}: node family {node['node_family']} no longer exists"
                )
                continue
            new_id = generate_id() if fresh_ids else node["id"]
            id_map[node["id"]] = new_id
            selected = node.get("selected_subnode")
            await db.execute(
                """
                INSERT INTO flow_nodes (id, flow_id, node_family, node_order, from_node,
                                        selected_subnode, created_at)
                VALUES (?, ?, ?, ?, NULL, ?, ?)
                """,
                (
                    new_id,
                    flow_id,
                    node["node_family"],
                    node["node_order"],
                    selected if selected in subnodes else None,
                    now,
                ),
            )

        # Predecessors are linked once every node row exists
        for node in snapshot.get("flow_nodes", []):
            from_node = node.get("from_node")
            if node["id"] in id_map and from_node in id_map:
                await db.execute(
                    "UPDATE flow_nodes SET from_node = ? WHERE id = ?",
                    (id_map[from_node], id_map[node["id"]]),
                )

        for edge in snapshot.get("edges", []):
            if edge["from_node"] not in id_map or edge["to_node"] not in id_map:
                continue
            await db.execute(
                """
                INSERT OR IGNORE INTO edges (id, flow_id, from_node, to_node, condition, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    generate_id() if fresh_ids else edge["id"],
                    flow_id,
                    id_map[edge["from_node"]],
                    id_map[edge["to_node"]],
                    edge.get("condition"),
                    now,
                ),
            )


flow_store = FlowStore()
