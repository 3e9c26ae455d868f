"""Tests for the console route table."""

import pytest

from mediation.console.routes import NOT_FOUND, ROUTES, SECTIONS, build_path, match_route, section_for


class TestMatchRoute:
    @pytest.mark.parametrize(
        "path,page,params",
        [
            ("/", "home", {}),
            ("/flows", "flows", {}),
            ("/flows/abc", "flow_detail", {"id": "abc"}),
            ("/flows/abc/edit", "flow_editor", {"id": "abc"}),
            ("/nodes/new", "create_node", {}),
            ("/nodes/n1/edit-version", "edit_node_version", {"id": "n1"}),
            ("/nodes/n1/test", "test_node", {"id": "n1"}),
            ("/subnodes/create", "create_subnode", {}),
            ("/subnodes/create/edit", "edit_subnode", {"id": "create"}),
            ("/parameters/new", "create_parameter", {}),
            ("/parameters/p1/edit", "edit_parameter", {"id": "p1"}),
            ("/reports/nodes", "node_report", {}),
            ("/alerts/flows", "flow_alert", {}),
        ],
    )
    def test_pages(self, path: str, page: str, params: dict):
        match = match_route(path)
        assert match.page == page
        assert match.params == params

    def test_static_segment_beats_placeholder(self):
        assert match_route("/nodes/new").page == "create_node"
        assert match_route("/nodes/newer").page == "node_detail"

    def test_query_string_and_trailing_slash_are_ignored(self):
        match = match_route("/flows/abc/?tab=versions")
        assert match.page == "flow_detail"
        assert match.params == {"id": "abc"}

    def test_unknown_path(self):
        match = match_route("/flows/abc/versions/3")
        assert match.page == NOT_FOUND
        assert match.pattern is None

    def test_page_names_are_unique(self):
        pages = [r.page for r in ROUTES]
        assert len(pages) == len(set(pages))


class TestBuildPath:
    def test_fills_placeholders(self):
        assert build_path("flow_editor", id="f1") == "/flows/f1/edit"
        assert build_path("subnodes") == "/subnodes"
        assert build_path("home") == "/"

    def test_round_trip_through_match(self):
        for route in ROUTES:
            path = build_path(route.page, id="x1")
            assert match_route(path).page == route.page

    def test_unknown_page_or_missing_param(self):
        with pytest.raises(KeyError):
            build_path("settings")
        with pytest.raises(KeyError):
            build_path("node_detail")


class TestSections:
    def test_sidebar_groups(self):
        assert [title for title, _ in SECTIONS] == ["Configuration", "Alert", "Report"]
        assert [item for item, _ in SECTIONS[0][1]] == ["Flows", "Nodes", "Subnodes", "Parameters"]

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/flows/abc/edit", "Flows"),
            ("/subnodes/create", "Subnodes"),
            ("/alerts/nodes", "Node Alert"),
            ("/reports/flows?range=7d", "Flow Report"),
            ("/", None),
            ("/edges", None),
        ],
    )
    def test_section_for(self, path: str, expected: str | None):
        assert section_for(path) == expected
