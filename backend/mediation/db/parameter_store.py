"""ParameterStore - typed configuration parameters."""

import logging

import aiosqlite

from mediation.db.database import generate_id, get_db, transaction, utc_now
from mediation.errors import InvalidReference, LifecycleError
from mediation.models import Parameter, ParameterCreate, ParameterDatatype, ParameterUpdate
from mediation.models.parameter import check_value

logger = logging.getLogger(__name__)


def _row_to_parameter(row: aiosqlite.Row) -> Parameter:
    """Convert a database row to a Parameter model."""
    return Parameter(
        id=row["id"],
        key=row["key"],
        default_value=row["default_value"],
        datatype=ParameterDatatype(row["datatype"]),
        required=bool(row["required"]),
        description=row["description"],
        node_version=row["node_version"],
        is_deployed=bool(row["is_deployed"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ParameterStore:
    """Storage abstraction for parameters."""

    async def create_parameter(self, data: ParameterCreate) -> Parameter:
        parameter_id = generate_id()
        now = utc_now()

        async with transaction() as db:
            if data.node_version is not None:
                await self._check_node_version(db, data.node_version)
            await db.execute(
                """
                INSERT INTO parameters (id, key, default_value, datatype, required, description,
                                        node_version, is_deployed, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    parameter_id,
                    data.key,
                    data.default_value,
                    data.datatype.value,
                    int(data.required),
                    data.description,
                    data.node_version,
                    now,
                    now,
                ),
            )

        logger.info(f"Created parameter '{data.key}' ({parameter_id})")
        parameter = await self.get_parameter(parameter_id)
        assert parameter is not None
        return parameter

    async def list_parameters(self) -> list[Parameter]:
        db = await get_db()
        cursor = await db.execute("SELECT * FROM parameters ORDER BY key")
        rows = await cursor.fetchall()
        return [_row_to_parameter(row) for row in rows]

    async def get_parameter(self, parameter_id: str) -> Parameter | None:
        db = await get_db()
        cursor = await db.execute("SELECT * FROM parameters WHERE id = ?", (parameter_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_parameter(row)

    async def update_parameter(self, parameter_id: str, update: ParameterUpdate) -> Parameter | None:
        """Update an undeployed parameter.

        Raises:
            LifecycleError: The parameter is deployed
            ValueError: The resulting default value does not parse as the datatype
        """
        async with transaction() as db:
            current = await self.get_parameter(parameter_id)
            if current is None:
                return None
            if current.is_deployed:
                raise LifecycleError(
                    f"Parameter '{current.key}' is deployed; undeploy it before editing",
                    entity="parameter",
                )

            default_value = update.default_value if update.default_value is not None else current.default_value
            datatype = update.datatype if update.datatype is not None else current.datatype
            if default_value != "":
                check_value(default_value, datatype)

            await db.execute(
                """
                UPDATE parameters
                SET default_value = ?, datatype = ?, required = ?, description = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    default_value,
                    datatype.value,
                    int(update.required if update.required is not None else current.required),
                    update.description if update.description is not None else current.description,
                    utc_now(),
                    parameter_id,
                ),
            )
        return await self.get_parameter(parameter_id)

    async def delete_parameter(self, parameter_id: str) -> bool:
        async with transaction() as db:
            current = await self.get_parameter(parameter_id)
            if current is None:
                return False
            if current.is_deployed:
                raise LifecycleError(
                    f"Parameter '{current.key}' is deployed and cannot be deleted", entity="parameter"
                )
            cursor = await db.execute("DELETE FROM parameters WHERE id = ?", (parameter_id,))
        return cursor.rowcount > 0

    async def deploy_parameter(self, parameter_id: str) -> Parameter | None:
        return await self._set_deployed(parameter_id, True)

    async def undeploy_parameter(self, parameter_id: str) -> Parameter | None:
        return await self._set_deployed(parameter_id, False)

    async def _set_deployed(self, parameter_id: str, deployed: bool) -> Parameter | None:
        async with transaction() as db:
            current = await self.get_parameter(parameter_id)
            if current is None:
                return None
            if current.is_deployed == deployed:
                state = "deployed" if deployed else "not deployed"
                raise LifecycleError(f"Parameter '{current.key}' is already {state}", entity="parameter")
            await db.execute(
                "UPDATE parameters SET is_deployed = ?, updated_at = ? WHERE id = ?",
                (int(deployed), utc_now(), parameter_id),
            )

        logger.info(f"Parameter '{current.key}' {'deployed' if deployed else 'undeployed'}")
        return await self.get_parameter(parameter_id)

    async def _check_node_version(self, db: aiosqlite.Connection, node_version_id: str) -> None:
        cursor = await db.execute("SELECT 1 FROM node_versions WHERE id = ?", (node_version_id,))
        if await cursor.fetchone() is None:
            raise InvalidReference(
                f"Node version {node_version_id} does not exist", entity="node_version"
            )


parameter_store = ParameterStore()
