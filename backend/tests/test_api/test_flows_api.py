"""Tests for the flows API: CRUD, lifecycle and version history."""

import asyncio

import pytest
from httpx import AsyncClient

from mediation.db import flow_store
from mediation.errors import FlowValidationError, LifecycleError
from mediation.models import Flow


async def _deployable_flow(client: AsyncClient, make_family, make_flow) -> dict:
    family = await make_family()
    return await make_flow(families=[family])


class TestFlowCrud:
    @pytest.mark.asyncio
    async def test_create_flow_starts_as_draft_with_version_one(self, client: AsyncClient):
        response = await client.post(
            "/api/flows/", json={"name": "Roaming CDRs", "description": "TAP in", "created_by": "ops"}
        )

        assert response.status_code == 201
        flow = response.json()
        assert flow["name"] == "Roaming CDRs"
        assert flow["version"] == 1
        assert flow["is_deployed"] is False
        assert flow["is_running"] is False
        assert flow["created_by"] == "ops"

        versions = (await client.get(f"/api/flows/{flow['id']}/versions/")).json()
        assert len(versions) == 1
        assert versions[0]["version"] == 1
        assert versions[0]["is_active"] is True

    @pytest.mark.asyncio
    async def test_create_flow_requires_name(self, client: AsyncClient):
        response = await client.post("/api/flows/", json={"name": ""})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_get(self, client: AsyncClient, make_flow):
        first = await make_flow(name="First")
        await make_flow(name="Second")

        listed = (await client.get("/api/flows/")).json()
        assert {f["name"] for f in listed} == {"First", "Second"}

        response = await client.get(f"/api/flows/{first['id']}/")
        assert response.status_code == 200
        assert response.json()["name"] == "First"

    @pytest.mark.asyncio
    async def test_get_missing_flow(self, client: AsyncClient):
        response = await client.get("/api/flows/does-not-exist/")
        assert response.status_code == 404
        assert response.json()["detail"] == "Flow not found"

    @pytest.mark.asyncio
    async def test_update_flow(self, client: AsyncClient, make_flow):
        flow = await make_flow()

        response = await client.put(
            f"/api/flows/{flow['id']}/",
            json={"description": "Voice and SMS", "last_updated_by": "jane"},
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["name"] == flow["name"]
        assert updated["description"] == "Voice and SMS"
        assert updated["last_updated_by"] == "jane"

    @pytest.mark.asyncio
    async def test_delete_flow(self, client: AsyncClient, make_flow):
        flow = await make_flow()

        response = await client.delete(f"/api/flows/{flow['id']}/")
        assert response.status_code == 200
        assert response.json()["status"] == "deleted"

        assert (await client.get(f"/api/flows/{flow['id']}/")).status_code == 404


class TestFlowLifecycle:
    @pytest.mark.asyncio
    async def test_deploy_empty_flow_is_rejected_with_errors(self, client: AsyncClient, make_flow):
        flow = await make_flow()

        response = await client.post(f"/api/flows/{flow['id']}/deploy/")

        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Flow validation failed"
        assert "Flow has no nodes" in body["errors"]
        assert (await client.get(f"/api/flows/{flow['id']}/")).json()["is_deployed"] is False

    @pytest.mark.asyncio
    async def test_validate_reports_valid_flow(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)

        response = await client.post(f"/api/flows/{flow['id']}/validate/")

        assert response.status_code == 200
        assert response.json() == {"valid": True, "errors": []}

    @pytest.mark.asyncio
    async def test_deploy_start_stop_undeploy(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"

        deployed = (await client.post(f"{base}/deploy/")).json()
        assert deployed["is_deployed"] is True
        assert deployed["is_running"] is False

        running = (await client.post(f"{base}/start/")).json()
        assert running["is_deployed"] is True
        assert running["is_running"] is True

        stopped = (await client.post(f"{base}/stop/")).json()
        assert stopped["is_running"] is False
        assert stopped["is_deployed"] is True

        undeployed = (await client.post(f"{base}/undeploy/")).json()
        assert undeployed["is_deployed"] is False

    @pytest.mark.asyncio
    async def test_undeploy_running_flow_also_stops_it(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"
        await client.post(f"{base}/deploy/")
        await client.post(f"{base}/start/")

        undeployed = (await client.post(f"{base}/undeploy/")).json()

        assert undeployed["is_deployed"] is False
        assert undeployed["is_running"] is False

    @pytest.mark.asyncio
    async def test_refused_transitions(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"

        # Draft flows can be neither started, stopped nor undeployed
        assert (await client.post(f"{base}/start/")).status_code == 409
        assert (await client.post(f"{base}/stop/")).status_code == 409
        assert (await client.post(f"{base}/undeploy/")).status_code == 409

        await client.post(f"{base}/deploy/")
        response = await client.post(f"{base}/deploy/")
        assert response.status_code == 409
        assert response.json()["entity"] == "flow"

        await client.post(f"{base}/start/")
        assert (await client.post(f"{base}/start/")).status_code == 409

    @pytest.mark.asyncio
    async def test_deployed_flow_is_read_only(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"
        await client.post(f"{base}/deploy/")

        assert (await client.put(f"{base}/", json={"name": "Renamed"})).status_code == 409
        assert (await client.delete(f"{base}/")).status_code == 409

        current = (await client.get(f"{base}/")).json()
        assert current["name"] == flow["name"]


class TestConcurrentLifecycle:
    @pytest.mark.asyncio
    async def test_deploy_and_node_removal_do_not_interleave(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        structure = (await client.get(f"/api/flows/{flow['id']}/structure/")).json()
        flow_node_id = structure["flow_nodes"][0]["id"]

        deployed, removed = await asyncio.gather(
            flow_store.deploy(flow["id"]),
            flow_store.delete_flow_node(flow_node_id),
            return_exceptions=True,
        )

        # Exactly one side wins; the other is refused
        if isinstance(deployed, Flow):
            assert isinstance(removed, LifecycleError)
        else:
            assert isinstance(deployed, FlowValidationError)
            assert removed is True

        current = await flow_store.get_structure(flow["id"])
        if current.is_deployed:
            assert len(current.flow_nodes) == 1
            assert (await flow_store.validate(flow["id"])).valid

    @pytest.mark.asyncio
    async def test_deploy_and_subnode_clear_do_not_interleave(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        structure = (await client.get(f"/api/flows/{flow['id']}/structure/")).json()
        flow_node_id = structure["flow_nodes"][0]["id"]

        await asyncio.gather(
            flow_store.deploy(flow["id"]),
            flow_store.update_flow_node(flow_node_id, {"selected_subnode": None}),
            return_exceptions=True,
        )

        current = await flow_store.get_structure(flow["id"])
        if current.is_deployed:
            assert current.flow_nodes[0].selected_subnode is not None

    @pytest.mark.asyncio
    async def test_concurrent_deploys(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)

        results = await asyncio.gather(
            flow_store.deploy(flow["id"]),
            flow_store.deploy(flow["id"]),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Flow) for r in results) == 1
        assert sum(isinstance(r, LifecycleError) for r in results) == 1


class TestFlowVersions:
    @pytest.mark.asyncio
    async def test_create_version_is_inactive_and_numbered(self, client: AsyncClient, make_flow):
        flow = await make_flow()

        response = await client.post(
            f"/api/flows/{flow['id']}/versions/", json={"description": "Add decoder", "created_by": "jane"}
        )

        assert response.status_code == 201
        version = response.json()
        assert version["version"] == 2
        assert version["is_active"] is False
        assert version["created_by"] == "jane"

        versions = (await client.get(f"/api/flows/{flow['id']}/versions/")).json()
        assert [v["version"] for v in versions] == [2, 1]
        assert sum(v["is_active"] for v in versions) == 1

    @pytest.mark.asyncio
    async def test_activate_version_swaps_structure(
        self, client: AsyncClient, make_family, make_flow
    ):
        collector = await make_family(name="Collector")
        decoder = await make_family(name="Decoder")
        flow = await make_flow(families=[collector])
        base = f"/api/flows/{flow['id']}"

        # Version 2 captures the single-node structure
        await client.post(f"{base}/versions/", json={"description": "one node"})
        await client.post("/api/flownodes/", json={"flow_id": flow["id"], "node_id": decoder["id"]})
        assert len((await client.get(f"{base}/structure/")).json()["flow_nodes"]) == 2

        activated = (await client.post(f"{base}/activate-version/", json={"version": 2})).json()
        assert activated["version"] == 2
        structure = (await client.get(f"{base}/structure/")).json()
        assert [n["node"]["name"] for n in structure["flow_nodes"]] == ["Collector"]

        # The edits made under version 1 were saved back into it
        await client.post(f"{base}/activate-version/", json={"version": 1})
        structure = (await client.get(f"{base}/structure/")).json()
        assert sorted(n["node"]["name"] for n in structure["flow_nodes"]) == ["Collector", "Decoder"]

        versions = (await client.get(f"{base}/versions/")).json()
        assert [v["version"] for v in versions if v["is_active"]] == [1]

    @pytest.mark.asyncio
    async def test_activate_missing_version(self, client: AsyncClient, make_flow):
        flow = await make_flow()
        response = await client.post(f"/api/flows/{flow['id']}/activate-version/", json={"version": 9})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_activate_refused_while_deployed(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"
        await client.post(f"{base}/versions/", json={"description": "snapshot"})
        await client.post(f"{base}/deploy/")

        response = await client.post(f"{base}/activate-version/", json={"version": 2})

        assert response.status_code == 409
        assert (await client.get(f"{base}/")).json()["version"] == 1

    @pytest.mark.asyncio
    async def test_edit_version_description(self, client: AsyncClient, make_family, make_flow):
        flow = await _deployable_flow(client, make_family, make_flow)
        base = f"/api/flows/{flow['id']}"
        await client.post(f"{base}/versions/", json={"description": "draft"})

        response = await client.patch(f"{base}/versions/2/", json={"description": "Decoder tuning"})
        assert response.status_code == 200
        assert response.json()["description"] == "Decoder tuning"

        # The active version of a deployed flow is frozen, others are not
        await client.post(f"{base}/deploy/")
        assert (await client.patch(f"{base}/versions/1/", json={"description": "x"})).status_code == 409
        assert (await client.patch(f"{base}/versions/2/", json={"description": "y"})).status_code == 200


class TestFlowClone:
    @pytest.mark.asyncio
    async def test_clone_copies_structure_but_not_state(
        self, client: AsyncClient, make_family, make_flow
    ):
        collector = await make_family(name="Collector")
        decoder = await make_family(name="Decoder")
        flow = await make_flow(name="Voice", families=[collector, decoder])
        base = f"/api/flows/{flow['id']}"
        await client.post(f"{base}/deploy/")
        await client.post(f"{base}/start/")

        response = await client.post(f"{base}/clone/")

        assert response.status_code == 201
        clone = response.json()
        assert clone["id"] != flow["id"]
        assert clone["name"] == "Voice (Copy)"
        assert clone["version"] == 1
        assert clone["is_deployed"] is False
        assert clone["is_running"] is False

        source = (await client.get(f"{base}/structure/")).json()
        copied = (await client.get(f"/api/flows/{clone['id']}/structure/")).json()
        assert [n["node"]["name"] for n in copied["flow_nodes"]] == ["Collector", "Decoder"]
        assert len(copied["edges"]) == 1
        source_ids = {n["id"] for n in source["flow_nodes"]}
        assert not source_ids & {n["id"] for n in copied["flow_nodes"]}

    @pytest.mark.asyncio
    async def test_clone_with_explicit_name(self, client: AsyncClient, make_flow):
        flow = await make_flow()
        response = await client.post(f"/api/flows/{flow['id']}/clone/", json={"name": "Data Flow"})
        assert response.json()["name"] == "Data Flow"
