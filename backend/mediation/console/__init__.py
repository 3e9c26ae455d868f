"""Operator console: resources, listing helpers, routes and the command line."""

from mediation.console.export import export_entity, load_export
from mediation.console.listing import ViewMode, paginate, search, status_counts, status_label
from mediation.console.resources import Resource
from mediation.console.routes import SECTIONS, build_path, match_route, section_for

__all__ = [
    "Resource",
    "ViewMode",
    "paginate",
    "search",
    "status_counts",
    "status_label",
    "export_entity",
    "load_export",
    "SECTIONS",
    "build_path",
    "match_route",
    "section_for",
]
