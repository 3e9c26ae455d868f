"""Navigation table of the console.

Paths use ``:name`` placeholders. When several patterns match a path the
most specific one wins (static segments beat placeholders), so
``/subnodes/create`` is the create page and not a subnode with id "create".
"""

from dataclasses import dataclass, field

NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Route:
    pattern: str
    page: str

    @property
    def segments(self) -> list[str]:
        return [s for s in self.pattern.split("/") if s]


@dataclass
class RouteMatch:
    page: str
    params: dict[str, str] = field(default_factory=dict)
    pattern: str | None = None


ROUTES: list[Route] = [
    Route("/", "home"),
    Route("/flows", "flows"),
    Route("/flows/:id", "flow_detail"),
    Route("/flows/:id/edit", "flow_editor"),
    Route("/nodes", "nodes"),
    Route("/nodes/new", "create_node"),
    Route("/nodes/:id", "node_detail"),
    Route("/nodes/:id/edit", "edit_node"),
    Route("/nodes/:id/edit-version", "edit_node_version"),
    Route("/nodes/:id/test", "test_node"),
    Route("/subnodes", "subnodes"),
    Route("/subnodes/create", "create_subnode"),
    Route("/subnodes/:id", "subnode_detail"),
    Route("/subnodes/:id/edit", "edit_subnode"),
    Route("/subnodes/:id/edit-version", "edit_subnode_version"),
    Route("/parameters", "parameters"),
    Route("/parameters/new", "create_parameter"),
    Route("/parameters/:id", "parameter_detail"),
    Route("/parameters/:id/edit", "edit_parameter"),
    Route("/edges", "edges"),
    Route("/reports/flows", "flow_report"),
    Route("/reports/nodes", "node_report"),
    Route("/alerts/flows", "flow_alert"),
    Route("/alerts/nodes", "node_alert"),
]

# Sidebar groups: (section title, [(item title, url)])
SECTIONS: list[tuple[str, list[tuple[str, str]]]] = [
    (
        "Configuration",
        [
            ("Flows", "/flows"),
            ("Nodes", "/nodes"),
            ("Subnodes", "/subnodes"),
            ("Parameters", "/parameters"),
        ],
    ),
    ("Alert", [("Flow Alert", "/alerts/flows"), ("Node Alert", "/alerts/nodes")]),
    ("Report", [("Flow Report", "/reports/flows"), ("Node Report", "/reports/nodes")]),
]


def _split(path: str) -> list[str]:
    return [s for s in path.split("?", 1)[0].split("/") if s]


def _match(route: Route, parts: list[str]) -> dict[str, str] | None:
    segments = route.segments
    if len(segments) != len(parts):
        return None
    params = {}
    for segment, part in zip(segments, parts):
        if segment.startswith(":"):
            params[segment[1:]] = part
        elif segment != part:
            return None
    return params


def match_route(path: str) -> RouteMatch:
    """Resolve a path to its page and placeholder values."""
    parts = _split(path)
    best: tuple[int, Route, dict[str, str]] | None = None
    for route in ROUTES:
        params = _match(route, parts)
        if params is None:
            continue
        static = len(route.segments) - len(params)
        if best is None or static > best[0]:
            best = (static, route, params)

    if best is None:
        return RouteMatch(page=NOT_FOUND)
    _, route, params = best
    return RouteMatch(page=route.page, params=params, pattern=route.pattern)


def build_path(page: str, **params: str) -> str:
    """Build the path of a page, filling its placeholders.

    Raises:
        KeyError: Unknown page or missing placeholder value
    """
    for route in ROUTES:
        if route.page != page:
            continue
        parts = []
        for segment in route.segments:
            if segment.startswith(":"):
                parts.append(str(params[segment[1:]]))
            else:
                parts.append(segment)
        return "/" + "/".join(parts)
    raise KeyError(page)


def section_for(path: str) -> str | None:
    """Sidebar item title that should be highlighted for a path."""
    parts = _split(path)
    for _, items in SECTIONS:
        for title, url in items:
            prefix = _split(url)
            if parts[: len(prefix)] == prefix:
                return title
    return None
