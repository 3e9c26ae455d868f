#!/usr/bin/env python3
"""Operator command line for the mediation service.

Usage:
    mediation-console [--api-url URL] [--fallback] <entity> <action> [options]

Examples:
    # List flows whose name contains "charging"
    mediation-console flows list --search charging

    # Deploy a flow (validates first and prints every problem found)
    mediation-console flows deploy 4f6c...

    # Publish node version 3, replacing the active node without asking
    mediation-console nodes deploy 81ab... 3 --yes

    # Import a subnode exported from another environment
    mediation-console subnodes import ./Rule\\ Engine.json

    # Run the service
    mediation-console serve --port 8000
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mediation import config
from mediation.client import (
    ApiClient,
    ApiError,
    FlowClient,
    NodeClient,
    ParameterClient,
    SubnodeClient,
    ValidationFailed,
    activation_warning,
    user_message,
)
from mediation.console.export import export_entity, load_export
from mediation.console.listing import (
    STATUS_LABELS,
    ViewMode,
    deployment_label,
    paginate,
    search,
    status_counts,
    status_label,
)
from mediation.console.resources import Resource
from mediation.models import ActiveNode, ParameterCreate, ParameterDatatype, ParameterValue


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{color}{text}{Colors.RESET}"


def out(text: str = "") -> None:
    """Print with immediate flush for non-TTY environments."""
    print(text, flush=True)


@dataclass
class Clients:
    flows: FlowClient
    nodes: NodeClient
    subnodes: SubnodeClient
    parameters: ParameterClient

    @classmethod
    def over(cls, api: ApiClient) -> "Clients":
        return cls(
            flows=FlowClient(api),
            nodes=NodeClient(api),
            subnodes=SubnodeClient(api),
            parameters=ParameterClient(api),
        )


class CommandFailed(Exception):
    """A command could not complete; the message is shown to the operator."""

    pass


async def load(fetch: Callable[[], Awaitable[Any]], initial: Any = None) -> Any:
    """Run one read through a Resource and return its data."""
    resource = Resource(fetch, initial=initial)
    try:
        await resource.refetch()
    finally:
        await resource.close()
    if resource.error:
        raise CommandFailed(resource.error)
    if resource.notice:
        out(colorize(f"Showing sample data, the service is unreachable: {resource.notice}", Colors.YELLOW))
    return resource.data


def print_page(args: argparse.Namespace, items: list[Any], render: Callable[[Any], list[str]]) -> None:
    rows, total_pages = paginate(items, args.page, args.page_size)
    for item in rows:
        lines = render(item)
        if args.view == ViewMode.GRID.value:
            out(colorize("┌ " + lines[0], Colors.BOLD))
            for line in lines[1:]:
                out("│ " + line)
            out("└")
        else:
            out("  ".join(lines))
    out(colorize(f"Page {args.page} of {total_pages} ({len(items)} total)", Colors.DIM))


# ==================== Flows ====================


async def flows_list(clients: Clients, args: argparse.Namespace) -> None:
    flows = search(await load(clients.flows.list_flows, []), args.search or "")
    counts = status_counts(flows)
    out(colorize(f"Flows: {len(flows)}", Colors.BOLD) + "  " + "  ".join(
        f"{STATUS_LABELS[status]} {count}" for status, count in counts.items()
    ))
    print_page(args, flows, lambda f: [f.name, status_label(f), f"v{f.version}", colorize(f.id, Colors.DIM)])


async def flows_show(clients: Clients, args: argparse.Namespace) -> None:
    structure = await load(lambda: clients.flows.get_structure(args.id))
    out(colorize(structure.name, Colors.BOLD) + f"  {status_label(structure)}  v{structure.version}")
    if structure.description:
        out(structure.description)
    for flow_node in sorted(structure.flow_nodes, key=lambda n: n.order):
        selected = flow_node.selected_subnode.name if flow_node.selected_subnode else "no subnode"
        out(f"  {flow_node.order}. {flow_node.node.name} [{selected}]  {colorize(flow_node.id, Colors.DIM)}")
    for edge in structure.edges:
        label = f" ({edge.condition})" if edge.condition else ""
        out(colorize(f"  {edge.from_node} -> {edge.to_node}{label}", Colors.DIM))


async def flows_create(clients: Clients, args: argparse.Namespace) -> None:
    flow = await clients.flows.create_flow(args.name, args.description or "")
    out(colorize(f"Created flow '{flow.name}' ({flow.id})", Colors.GREEN))


async def flows_clone(clients: Clients, args: argparse.Namespace) -> None:
    flow = await clients.flows.clone_flow(args.id, args.name, args.description)
    out(colorize(f"Cloned into '{flow.name}' ({flow.id})", Colors.GREEN))


async def flows_delete(clients: Clients, args: argparse.Namespace) -> None:
    await clients.flows.delete_flow(args.id)
    out(colorize("Flow deleted", Colors.GREEN))


async def flows_deploy(clients: Clients, args: argparse.Namespace) -> None:
    try:
        flow = await clients.flows.deploy(args.id)
    except ValidationFailed as e:
        out(colorize("Flow validation failed:", Colors.RED + Colors.BOLD))
        for error in e.errors:
            out(colorize(f"  • {error}", Colors.RED))
        raise CommandFailed("Fix the errors above and deploy again") from e
    out(colorize(f"Flow '{flow.name}' deployed", Colors.GREEN))


async def flows_lifecycle(clients: Clients, args: argparse.Namespace) -> None:
    action = getattr(clients.flows, args.action)
    flow = await action(args.id)
    out(colorize(f"Flow '{flow.name}': {status_label(flow)}", Colors.GREEN))


async def flows_validate(clients: Clients, args: argparse.Namespace) -> None:
    result = await clients.flows.validate(args.id)
    if result.valid:
        out(colorize("✓ Flow is valid", Colors.GREEN))
        return
    out(colorize(f"✗ {len(result.errors)} problem(s):", Colors.RED + Colors.BOLD))
    for error in result.errors:
        out(colorize(f"  • {error}", Colors.RED))
    raise CommandFailed("Flow validation failed")


async def flows_versions(clients: Clients, args: argparse.Namespace) -> None:
    versions = await load(lambda: clients.flows.list_versions(args.id), [])
    for v in versions:
        marker = colorize("● active", Colors.GREEN) if v.is_active else "        "
        out(f"v{v.version}  {marker}  {v.created_by}  {v.created_at}  {v.description or ''}")


async def flows_new_version(clients: Clients, args: argparse.Namespace) -> None:
    version = await clients.flows.create_version(args.id, args.description)
    out(colorize(f"Created version {version.version}", Colors.GREEN))


async def flows_activate(clients: Clients, args: argparse.Namespace) -> None:
    await clients.flows.activate_version(args.id, args.version)
    out(colorize(f"Flow version {args.version} activated successfully", Colors.GREEN))


async def flows_graph(clients: Clients, args: argparse.Namespace) -> None:
    graph = await load(lambda: clients.flows.get_graph(args.id))
    if args.json:
        out(json.dumps(graph.model_dump(), indent=2))
        return
    for node in graph.nodes:
        out(f"{node.data.get('label')}  [{node.type}]  ({node.position.x}, {node.position.y})")
    for edge in graph.edges:
        label = f"  {edge.label}" if edge.label else ""
        out(colorize(f"{edge.source} -> {edge.target}{label}", Colors.DIM))


async def flows_export(clients: Clients, args: argparse.Namespace) -> None:
    structure = await load(lambda: clients.flows.get_structure(args.id))
    path = export_entity(structure, args.dir)
    out(colorize(f"Exported to {path}", Colors.GREEN))


# ==================== Nodes ====================


def confirm_replace(args: argparse.Namespace) -> Callable[[ActiveNode], Awaitable[bool]]:
    async def ask(active: ActiveNode) -> bool:
        if args.yes:
            return True
        # Prompt off the event loop
        answer = await asyncio.to_thread(input, colorize(activation_warning(active), Colors.YELLOW) + " [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return ask


async def nodes_list(clients: Clients, args: argparse.Namespace) -> None:
    families = search(await load(clients.nodes.list_families, []), args.search or "")
    print_page(
        args,
        families,
        lambda f: [
            f.name,
            deployment_label(f.is_deployed),
            f"published v{f.published_version}" if f.published_version else "unpublished",
            f"{f.total_versions} version(s)",
            colorize(f.id, Colors.DIM),
        ],
    )


async def nodes_show(clients: Clients, args: argparse.Namespace) -> None:
    family = await load(lambda: clients.nodes.get_family(args.id))
    out(colorize(family.name, Colors.BOLD) + f"  {deployment_label(family.is_deployed)}")
    if family.description:
        out(family.description)
    _print_node_versions(family.versions)


async def nodes_create(clients: Clients, args: argparse.Namespace) -> None:
    try:
        with open(args.script, encoding="utf-8") as f:
            script = f.read()
    except OSError as e:
        raise CommandFailed(f"Cannot read script file: {e}") from e
    family = await clients.nodes.create_node(args.name, args.description, script, node_type=args.type)
    out(colorize(f"Node created and script uploaded ({family.id})", Colors.GREEN))


async def nodes_versions(clients: Clients, args: argparse.Namespace) -> None:
    _print_node_versions(await load(lambda: clients.nodes.list_versions(args.id), []))


def _print_node_versions(versions: list[Any]) -> None:
    for v in versions:
        state = colorize(v.state.value, Colors.GREEN if v.is_published else Colors.DIM)
        subnodes = ", ".join(s["name"] for s in v.subnodes) or "no subnodes"
        out(f"  v{v.version}  {state}  {v.changelog}  [{subnodes}]")


async def nodes_new_version(clients: Clients, args: argparse.Namespace) -> None:
    version = await clients.nodes.new_version(args.id, args.from_version, args.changelog)
    out(colorize(f"Created draft version {version.version}", Colors.GREEN))


async def nodes_deploy(clients: Clients, args: argparse.Namespace) -> None:
    family = await clients.nodes.deploy_version(args.id, args.version, confirm=confirm_replace(args))
    if family is None:
        out(colorize("Deployment cancelled", Colors.YELLOW))
        return
    out(colorize(f"Node '{family.name}' version {args.version} is now active", Colors.GREEN))


async def nodes_undeploy(clients: Clients, args: argparse.Namespace) -> None:
    family = await clients.nodes.undeploy_version(args.id, args.version)
    out(colorize(f"Node '{family.name}' version {args.version} undeployed", Colors.GREEN))


async def nodes_active(clients: Clients, args: argparse.Namespace) -> None:
    active = await load(clients.nodes.get_active)
    if active is None:
        out("No node is active")
        return
    out(f"{colorize(active.name, Colors.BOLD)}  v{active.version}  since {active.activated_at}")


async def nodes_clone(clients: Clients, args: argparse.Namespace) -> None:
    family = await clients.nodes.clone_family(args.id, args.name)
    out(colorize(f"Cloned into '{family.name}' ({family.id})", Colors.GREEN))


async def nodes_delete(clients: Clients, args: argparse.Namespace) -> None:
    await clients.nodes.delete_family(args.id)
    out(colorize("Node deleted", Colors.GREEN))


async def nodes_export(clients: Clients, args: argparse.Namespace) -> None:
    family = await load(lambda: clients.nodes.get_family(args.id))
    out(colorize(f"Exported to {export_entity(family, args.dir)}", Colors.GREEN))


# ==================== Subnodes ====================


def parse_values(pairs: list[str]) -> list[ParameterValue]:
    values = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{pair}'")
        values.append(ParameterValue(parameter_key=key, value=value))
    return values


async def subnodes_list(clients: Clients, args: argparse.Namespace) -> None:
    subnodes = search(
        await load(lambda: clients.subnodes.list_subnodes(args.family), []),
        args.search or "",
        fields=lambda s: [s.name, s.node_family],
    )
    print_page(
        args,
        subnodes,
        lambda s: [
            s.name,
            f"active v{s.active_version}" if s.active_version else "not deployed",
            f"{len(s.versions)} version(s)",
            colorize(s.id, Colors.DIM),
        ],
    )


async def subnodes_show(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await load(lambda: clients.subnodes.get_subnode(args.id))
    out(colorize(subnode.name, Colors.BOLD) + f"  node family {subnode.node_family}")
    for v in subnode.versions:
        flags = []
        if v.is_deployed:
            flags.append(colorize("deployed", Colors.GREEN))
        if v.is_editable:
            flags.append("editable")
        values = ", ".join(f"{p.parameter_key}={p.value}" for p in v.parameter_values)
        out(f"  v{v.version}  {' '.join(flags) or 'frozen'}  {v.version_comment}  {values}")


async def subnodes_create(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.create_subnode(
        args.name, args.family, args.description or "", parse_values(args.param or [])
    )
    out(colorize(f"Created subnode '{subnode.name}' ({subnode.id})", Colors.GREEN))


async def subnodes_new_version(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.create_editable_version(args.id, args.comment or "")
    out(colorize(f"Created editable version {subnode.versions[0].version}", Colors.GREEN))


async def subnodes_activate(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.activate_version(args.id, args.version)
    out(colorize(f"Subnode '{subnode.name}' version {args.version} deployed", Colors.GREEN))


async def subnodes_undeploy(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.undeploy_version(args.id, args.version)
    out(colorize(f"Subnode '{subnode.name}' version {args.version} undeployed", Colors.GREEN))


async def subnodes_clone(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.clone_subnode(args.id, args.name)
    out(colorize(f"Cloned into '{subnode.name}' ({subnode.id})", Colors.GREEN))


async def subnodes_import(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await clients.subnodes.import_subnode(load_export(args.file))
    out(colorize(f"Imported subnode '{subnode.name}' ({subnode.id})", Colors.GREEN))


async def subnodes_export(clients: Clients, args: argparse.Namespace) -> None:
    subnode = await load(lambda: clients.subnodes.get_subnode(args.id))
    out(colorize(f"Exported to {export_entity(subnode, args.dir)}", Colors.GREEN))


async def subnodes_delete(clients: Clients, args: argparse.Namespace) -> None:
    await clients.subnodes.delete_subnode(args.id)
    out(colorize("Subnode deleted", Colors.GREEN))


# ==================== Parameters ====================


async def parameters_list(clients: Clients, args: argparse.Namespace) -> None:
    parameters = search(
        await load(clients.parameters.list_parameters, []),
        args.search or "",
        fields=lambda p: [p.key, p.description],
    )
    print_page(
        args,
        parameters,
        lambda p: [
            p.key,
            p.datatype.value,
            repr(p.default_value),
            deployment_label(p.is_deployed),
            colorize(p.id, Colors.DIM),
        ],
    )


async def parameters_show(clients: Clients, args: argparse.Namespace) -> None:
    parameter = await load(lambda: clients.parameters.get_parameter(args.id))
    out(json.dumps(parameter.model_dump(mode="json"), indent=2))


async def parameters_create(clients: Clients, args: argparse.Namespace) -> None:
    data = ParameterCreate(
        key=args.key,
        default_value=args.default or "",
        datatype=ParameterDatatype(args.datatype),
        required=args.required,
        description=args.description or "",
    )
    parameter = await clients.parameters.create_parameter(data)
    out(colorize(f"Created parameter '{parameter.key}' ({parameter.id})", Colors.GREEN))


async def parameters_deploy(clients: Clients, args: argparse.Namespace) -> None:
    action = clients.parameters.deploy if args.action == "deploy" else clients.parameters.undeploy
    parameter = await action(args.id)
    out(colorize(f"Parameter '{parameter.key}': {deployment_label(parameter.is_deployed)}", Colors.GREEN))


async def parameters_delete(clients: Clients, args: argparse.Namespace) -> None:
    await clients.parameters.delete_parameter(args.id)
    out(colorize("Parameter deleted", Colors.GREEN))


Handler = Callable[[Clients, argparse.Namespace], Awaitable[None]]

HANDLERS: dict[tuple[str, str], Handler] = {
    ("flows", "list"): flows_list,
    ("flows", "show"): flows_show,
    ("flows", "create"): flows_create,
    ("flows", "clone"): flows_clone,
    ("flows", "delete"): flows_delete,
    ("flows", "deploy"): flows_deploy,
    ("flows", "undeploy"): flows_lifecycle,
    ("flows", "start"): flows_lifecycle,
    ("flows", "stop"): flows_lifecycle,
    ("flows", "validate"): flows_validate,
    ("flows", "versions"): flows_versions,
    ("flows", "new-version"): flows_new_version,
    ("flows", "activate"): flows_activate,
    ("flows", "graph"): flows_graph,
    ("flows", "export"): flows_export,
    ("nodes", "list"): nodes_list,
    ("nodes", "show"): nodes_show,
    ("nodes", "create"): nodes_create,
    ("nodes", "versions"): nodes_versions,
    ("nodes", "new-version"): nodes_new_version,
    ("nodes", "deploy"): nodes_deploy,
    ("nodes", "undeploy"): nodes_undeploy,
    ("nodes", "active"): nodes_active,
    ("nodes", "clone"): nodes_clone,
    ("nodes", "delete"): nodes_delete,
    ("nodes", "export"): nodes_export,
    ("subnodes", "list"): subnodes_list,
    ("subnodes", "show"): subnodes_show,
    ("subnodes", "create"): subnodes_create,
    ("subnodes", "new-version"): subnodes_new_version,
    ("subnodes", "activate"): subnodes_activate,
    ("subnodes", "undeploy"): subnodes_undeploy,
    ("subnodes", "clone"): subnodes_clone,
    ("subnodes", "import"): subnodes_import,
    ("subnodes", "export"): subnodes_export,
    ("subnodes", "delete"): subnodes_delete,
    ("parameters", "list"): parameters_list,
    ("parameters", "show"): parameters_show,
    ("parameters", "create"): parameters_create,
    ("parameters", "deploy"): parameters_deploy,
    ("parameters", "undeploy"): parameters_deploy,
    ("parameters", "delete"): parameters_delete,
}


def _add_listing_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--search", "-s", help="Case-insensitive name filter")
    parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    parser.add_argument("--page-size", type=int, default=20, help="Items per page (default: 20)")
    parser.add_argument(
        "--view",
        choices=[m.value for m in ViewMode],
        default=ViewMode.LIST.value,
        help="Output layout (default: list)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediation-console",
        description="Manage mediation flows, nodes, subnodes and parameters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--api-url", default=None, help=f"Service base URL (default: {config.API_URL})")
    parser.add_argument(
        "--fallback",
        action="store_true",
        default=config.MOCK_FALLBACK,
        help="Show sample data when the service is unreachable",
    )
    entities = parser.add_subparsers(dest="entity", required=True)

    # flows
    flows = entities.add_parser("flows", help="Mediation flows").add_subparsers(dest="action", required=True)
    _add_listing_options(flows.add_parser("list", help="List flows"))
    for action in ("show", "delete", "deploy", "undeploy", "start", "stop", "validate", "versions"):
        flows.add_parser(action).add_argument("id")
    p = flows.add_parser("create")
    p.add_argument("--name", required=True)
    p.add_argument("--description")
    p = flows.add_parser("clone")
    p.add_argument("id")
    p.add_argument("--name")
    p.add_argument("--description")
    p = flows.add_parser("new-version", help="Snapshot the current structure")
    p.add_argument("id")
    p.add_argument("--description", required=True)
    p = flows.add_parser("activate", help="Activate a flow version")
    p.add_argument("id")
    p.add_argument("version", type=int)
    p = flows.add_parser("graph", help="Show the assembled canvas graph")
    p.add_argument("id")
    p.add_argument("--json", action="store_true")
    p = flows.add_parser("export", help="Write the flow to <name>.json")
    p.add_argument("id")
    p.add_argument("--dir", default=None)

    # nodes
    nodes = entities.add_parser("nodes", help="Node families").add_subparsers(dest="action", required=True)
    _add_listing_options(nodes.add_parser("list"))
    for action in ("show", "versions", "delete"):
        nodes.add_parser(action).add_argument("id")
    nodes.add_parser("active", help="Show the active node")
    p = nodes.add_parser("create")
    p.add_argument("--name", required=True)
    p.add_argument("--description", required=True)
    p.add_argument("--script", required=True, help="Path to the script file")
    p.add_argument("--type", help="Explicit display type")
    p = nodes.add_parser("new-version", help="Copy a version into a new draft")
    p.add_argument("id")
    p.add_argument("--from", dest="from_version", type=int, required=True)
    p.add_argument("--changelog")
    for action in ("deploy", "undeploy"):
        p = nodes.add_parser(action)
        p.add_argument("id")
        p.add_argument("version", type=int)
        if action == "deploy":
            p.add_argument("--yes", "-y", action="store_true", help="Replace the active node without asking")
    p = nodes.add_parser("clone")
    p.add_argument("id")
    p.add_argument("--name")
    p = nodes.add_parser("export")
    p.add_argument("id")
    p.add_argument("--dir", default=None)

    # subnodes
    subnodes = entities.add_parser("subnodes", help="Subnodes").add_subparsers(dest="action", required=True)
    p = subnodes.add_parser("list")
    _add_listing_options(p)
    p.add_argument("--family", help="Only subnodes of this node family")
    for action in ("show", "delete"):
        subnodes.add_parser(action).add_argument("id")
    p = subnodes.add_parser("create")
    p.add_argument("--name", required=True)
    p.add_argument("--family", required=True)
    p.add_argument("--description")
    p.add_argument("--param", action="append", metavar="KEY=VALUE")
    p = subnodes.add_parser("new-version", help="Open an editable version")
    p.add_argument("id")
    p.add_argument("--comment")
    for action in ("activate", "undeploy"):
        p = subnodes.add_parser(action)
        p.add_argument("id")
        p.add_argument("version", type=int)
    p = subnodes.add_parser("clone")
    p.add_argument("id")
    p.add_argument("--name")
    subnodes.add_parser("import").add_argument("file")
    p = subnodes.add_parser("export")
    p.add_argument("id")
    p.add_argument("--dir", default=None)

    # parameters
    parameters = entities.add_parser("parameters", help="Parameters").add_subparsers(dest="action", required=True)
    p = parameters.add_parser("list")
    _add_listing_options(p)
    for action in ("show", "deploy", "undeploy", "delete"):
        parameters.add_parser(action).add_argument("id")
    p = parameters.add_parser("create")
    p.add_argument("--key", required=True)
    p.add_argument("--default")
    p.add_argument("--datatype", choices=[d.value for d in ParameterDatatype], default="string")
    p.add_argument("--required", action="store_true")
    p.add_argument("--description")

    # serve
    p = entities.add_parser("serve", help="Run the mediation service")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")

    return parser


async def run(args: argparse.Namespace, api: ApiClient | None = None) -> int:
    """Execute a parsed command. Returns the process exit code."""
    handler = HANDLERS[(args.entity, args.action)]
    owned = api is None
    api = api or ApiClient(args.api_url, allow_fallback=args.fallback)
    try:
        await handler(Clients.over(api), args)
        return 0
    except (ApiError, CommandFailed, ValueError) as e:
        out(colorize(f"Error: {user_message(e)}", Colors.RED))
        return 1
    finally:
        if owned:
            await api.close()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.entity == "serve":
        import uvicorn

        uvicorn.run("mediation.main:app", host=args.host, port=args.port, reload=args.reload)
        return

    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        out(colorize("\nCancelled by user", Colors.YELLOW))
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
