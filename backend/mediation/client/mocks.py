"""Sample data served by the clients when fallback is enabled and the service is down."""

from datetime import UTC, datetime, timedelta

from mediation.models import Flow, FlowStructure, FlowVersion, NodeSummary, SubnodeOption


def _timestamp(days_ago: int = 0) -> str:
    return (datetime.now(UTC) - timedelta(days=days_ago)).isoformat()


def mock_deployed_nodes() -> list[NodeSummary]:
    return [
        NodeSummary(
            id="node-1",
            name="SFTP Collector Node",
            subnodes=[
                SubnodeOption(id="sub1", name="Connection Handler", is_selected=True),
                SubnodeOption(id="sub2", name="File Scanner"),
            ],
        ),
        NodeSummary(
            id="node-2",
            name="ASN.1 Decoder Node",
            subnodes=[
                SubnodeOption(id="sub3", name="Schema Loader", is_selected=True),
                SubnodeOption(id="sub4", name="Data Parser"),
            ],
        ),
        NodeSummary(
            id="node-3",
            name="Validation BLN Node",
            subnodes=[
                SubnodeOption(id="sub5", name="Rule Engine", is_selected=True),
                SubnodeOption(id="sub6", name="Quality Check"),
            ],
        ),
    ]


def mock_flow(flow_id: str) -> Flow:
    now = _timestamp()
    return Flow(
        id=flow_id,
        name=f"Flow {flow_id}",
        description="Mock flow for development",
        created_at=now,
        created_by="user",
        updated_at=now,
    )


def mock_structure(flow_id: str) -> FlowStructure:
    return FlowStructure(**mock_flow(flow_id).model_dump())


def mock_flow_versions(flow_id: str) -> list[FlowVersion]:
    return [
        FlowVersion(
            id=f"{flow_id}-v3",
            flow_id=flow_id,
            version=3,
            created_at=_timestamp(days_ago=1),
            created_by="john.doe",
            is_active=True,
            description="Added new validation node",
        ),
        FlowVersion(
            id=f"{flow_id}-v2",
            flow_id=flow_id,
            version=2,
            created_at=_timestamp(days_ago=2),
            created_by="jane.smith",
            description="Updated data processing logic",
        ),
        FlowVersion(
            id=f"{flow_id}-v1",
            flow_id=flow_id,
            version=1,
            created_at=_timestamp(days_ago=3),
            created_by="john.doe",
            description="Initial flow version",
        ),
    ]
