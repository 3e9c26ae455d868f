"""Tests for FlowClient against the in-process service."""

import httpx
import pytest

from mediation.client import ApiClient, DataSource, FlowClient, NodeClient, ValidationFailed
from mediation.models import FlowUpdate


async def _place_family(api: ApiClient, name: str = "SFTP Collector") -> str:
    nodes = NodeClient(api)
    family = await nodes.create_node(name, f"{name} node", "def run(record):\n    return record\n")
    await api.post("subnodes/", json={"name": "Connection Handler", "node_family": family.id})
    return family.id


class TestFlowClientReads:
    @pytest.mark.asyncio
    async def test_list_and_get(self, api: ApiClient):
        flows = FlowClient(api)
        created = await flows.create_flow("  Voice CDRs  ", "voice")

        listed = await flows.list_flows()
        fetched = await flows.get_flow(created.id)

        assert created.name == "Voice CDRs"
        assert listed.source == DataSource.BACKEND
        assert [f.id for f in listed.data] == [created.id]
        assert fetched.data.description == "voice"

    @pytest.mark.asyncio
    async def test_graph_of_placed_nodes(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")
        collector = await _place_family(api, "SFTP Collector")
        decoder = await _place_family(api, "ASN.1 Decoder")
        first = await flows.add_node(flow.id, collector)
        await flows.add_node(flow.id, decoder, from_node=first.id)

        graph = (await flows.get_graph(flow.id)).data

        assert [n.type for n in graph.nodes] == ["sftp_collector", "asn1_decoder"]
        assert len(graph.edges) == 1
        assert graph.edges[0].source == first.id

    @pytest.mark.asyncio
    async def test_versions_newest_first(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")
        await flows.create_version(flow.id, "Added decoder")

        versions = (await flows.list_versions(flow.id)).data

        assert [v.version for v in versions] == [2, 1]
        assert versions[0].description == "Added decoder"


class TestFlowClientWrites:
    @pytest.mark.asyncio
    async def test_blank_inputs_are_rejected_before_sending(self, api: ApiClient):
        flows = FlowClient(api)
        with pytest.raises(ValueError, match="Please enter a flow name"):
            await flows.create_flow("   ")
        with pytest.raises(ValueError, match="Please enter a version description"):
            await flows.create_version("any", " ")
        with pytest.raises(ValueError, match="Please choose a subnode"):
            await flows.select_subnode("any", "")
        assert (await flows.list_flows()).data == []

    @pytest.mark.asyncio
    async def test_deploy_invalid_flow_raises_with_errors(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Empty")

        with pytest.raises(ValidationFailed) as exc_info:
            await flows.deploy(flow.id)

        assert exc_info.value.errors == ["Flow has no nodes"]
        assert (await flows.get_flow(flow.id)).data.is_deployed is False

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")
        await flows.add_node(flow.id, await _place_family(api))

        assert (await flows.validate(flow.id)).valid is True
        assert (await flows.deploy(flow.id)).is_deployed is True
        assert (await flows.start(flow.id)).is_running is True
        assert (await flows.stop(flow.id)).is_running is False
        assert (await flows.undeploy(flow.id)).is_deployed is False

    @pytest.mark.asyncio
    async def test_update_clone_and_delete(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")

        updated = await flows.update_flow(flow.id, FlowUpdate(description="Voice and SMS"))
        clone = await flows.clone_flow(flow.id)
        await flows.delete_flow(flow.id)

        assert updated.description == "Voice and SMS"
        assert clone.name == "Voice (Copy)"
        assert [f.id for f in (await flows.list_flows()).data] == [clone.id]

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")
        family = await _place_family(api)
        a = await flows.add_node(flow.id, family)
        b = await flows.add_node(flow.id, family)

        edge = await flows.connect(flow.id, a.id, b.id, condition="ok")
        assert [e.id for e in (await flows.list_edges(flow.id)).data] == [edge.id]

        await flows.disconnect(edge.id)
        assert (await flows.list_edges(flow.id)).data == []

    @pytest.mark.asyncio
    async def test_activate_version(self, api: ApiClient):
        flows = FlowClient(api)
        flow = await flows.create_flow("Voice")
        await flows.create_version(flow.id, "snapshot")

        activated = await flows.activate_version(flow.id, 2)
        renamed = await flows.update_version(flow.id, 1, "Original layout")

        assert activated.version == 2
        assert renamed.description == "Original layout"


class TestFlowClientValidate:
    @pytest.mark.asyncio
    async def test_bad_request_body_becomes_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"errors": ["Node 'A' (position 1) has no subnode selected"]})

        async with ApiClient("http://mediation.test/api/", transport=httpx.MockTransport(handler)) as api:
            result = await FlowClient(api).validate("flow-1")

        assert result.valid is False
        assert result.errors == ["Node 'A' (position 1) has no subnode selected"]

    @pytest.mark.asyncio
    async def test_bad_request_without_errors(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"detail": "nope"})

        async with ApiClient("http://mediation.test/api/", transport=httpx.MockTransport(handler)) as api:
            result = await FlowClient(api).validate("flow-1")

        assert result.errors == ["Flow validation failed"]


class TestFlowClientFallback:
    @pytest.mark.asyncio
    async def test_mock_data_when_service_is_down(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with ApiClient(
            "http://mediation.test/api/", transport=httpx.MockTransport(handler), allow_fallback=True
        ) as api:
            flows = FlowClient(api)
            versions = await flows.list_versions("f1")
            flow = await flows.get_flow("f1")
            listed = await flows.list_flows()
            graph = await flows.get_graph("f1")

        assert versions.is_fallback
        assert [v.version for v in versions.data] == [3, 2, 1]
        assert [v.is_active for v in versions.data] == [True, False, False]
        assert [v.created_by for v in versions.data] == ["john.doe", "jane.smith", "john.doe"]
        assert flow.data.name == "Flow f1"
        assert listed.data == []
        assert graph.is_fallback
        assert graph.data.nodes == []
