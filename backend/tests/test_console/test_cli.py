"""Tests for the operator command line."""

import json
import threading

import pytest

from mediation.client import ApiClient, NodeClient
from mediation.console.cli import build_parser, confirm_replace, parse_values, run
from mediation.models import ActiveNode

SCRIPT = "def run(record):\n    return record\n"


async def invoke(api: ApiClient, *argv: str) -> int:
    return await run(build_parser().parse_args(list(argv)), api=api)


class TestParser:
    def test_listing_defaults(self):
        args = build_parser().parse_args(["flows", "list"])
        assert (args.entity, args.action) == ("flows", "list")
        assert args.page == 1
        assert args.page_size == 20
        assert args.view == "list"

    def test_node_deploy_options(self):
        args = build_parser().parse_args(["nodes", "deploy", "f1", "3", "--yes"])
        assert args.id == "f1"
        assert args.version == 3
        assert args.yes is True

    def test_entity_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestParseValues:
    def test_pairs(self):
        values = parse_values(["host=sftp.local", "filter=a=b"])
        assert [(v.parameter_key, v.value) for v in values] == [("host", "sftp.local"), ("filter", "a=b")]

    def test_missing_separator(self):
        with pytest.raises(ValueError, match="Expected key=value"):
            parse_values(["host"])


class TestRun:
    @pytest.mark.asyncio
    async def test_create_and_list_flows(self, api: ApiClient, capsys):
        assert await invoke(api, "flows", "create", "--name", "Voice CDRs") == 0
        assert await invoke(api, "flows", "create", "--name", "SMS") == 0
        capsys.readouterr()

        assert await invoke(api, "flows", "list", "--search", "voice") == 0

        output = capsys.readouterr().out
        assert "Flows: 1" in output
        assert "Voice CDRs" in output
        assert "SMS" not in output
        assert "Page 1 of 1 (1 total)" in output

    @pytest.mark.asyncio
    async def test_deploy_invalid_flow_prints_every_error(self, api: ApiClient, capsys):
        await invoke(api, "flows", "create", "--name", "Empty")
        flow_id = (await api.get("flows/"))[0]["id"]
        capsys.readouterr()

        code = await invoke(api, "flows", "deploy", flow_id)

        output = capsys.readouterr().out
        assert code == 1
        assert "Flow validation failed:" in output
        assert "Flow has no nodes" in output
        assert "Error: Fix the errors above and deploy again" in output

    @pytest.mark.asyncio
    async def test_service_errors_are_reported(self, api: ApiClient, capsys):
        code = await invoke(api, "flows", "show", "missing")

        assert code == 1
        assert "Error: Flow not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_node_deploy_with_yes_replaces_active(self, api: ApiClient, capsys):
        nodes = NodeClient(api)
        first = await nodes.create_node("Collector", "c", SCRIPT)
        second = await nodes.create_node("Decoder", "d", SCRIPT)
        await nodes.deploy_version(first.id, 1)

        code = await invoke(api, "nodes", "deploy", second.id, "1", "--yes")

        assert code == 0
        assert "Node 'Decoder' version 1 is now active" in capsys.readouterr().out
        assert (await nodes.get_active()).data.family_id == second.id

    @pytest.mark.asyncio
    async def test_node_deploy_declined(self, api: ApiClient, capsys, monkeypatch):
        nodes = NodeClient(api)
        first = await nodes.create_node("Collector", "c", SCRIPT)
        second = await nodes.create_node("Decoder", "d", SCRIPT)
        await nodes.deploy_version(first.id, 1)
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        code = await invoke(api, "nodes", "deploy", second.id, "1")

        assert code == 0
        assert "Deployment cancelled" in capsys.readouterr().out
        assert (await nodes.get_active()).data.family_id == first.id

    @pytest.mark.asyncio
    async def test_subnode_export_and_import(self, api: ApiClient, capsys, tmp_path):
        family = await NodeClient(api).create_node("Validator", "v", SCRIPT)
        await invoke(api, "subnodes", "create", "--name", "Rule Engine", "--family", family.id, "--param", "mode=strict")
        subnode_id = (await api.get("subnodes/"))[0]["id"]

        assert await invoke(api, "subnodes", "export", subnode_id, "--dir", str(tmp_path)) == 0
        exported = tmp_path / "Rule Engine.json"
        document = json.loads(exported.read_text(encoding="utf-8"))
        assert document["versions"][0]["parameter_values"] == [{"parameter_key": "mode", "value": "strict"}]

        document["name"] = "Rule Engine Staging"
        exported.write_text(json.dumps(document), encoding="utf-8")
        assert await invoke(api, "subnodes", "import", str(exported)) == 0

        names = sorted(s["name"] for s in await api.get("subnodes/"))
        assert names == ["Rule Engine", "Rule Engine Staging"]

    @pytest.mark.asyncio
    async def test_parameter_commands(self, api: ApiClient, capsys):
        code = await invoke(api, "parameters", "create", "--key", "retries", "--default", "3", "--datatype", "int")
        assert code == 0
        parameter_id = (await api.get("parameters/"))[0]["id"]

        assert await invoke(api, "parameters", "deploy", parameter_id) == 0
        assert await invoke(api, "parameters", "delete", parameter_id) == 1

        output = capsys.readouterr().out
        assert "Parameter 'retries': Deployed" in output
        assert "is deployed and cannot be deleted" in output

    @pytest.mark.asyncio
    async def test_invalid_parameter_default_is_reported(self, api: ApiClient, capsys):
        code = await invoke(api, "parameters", "create", "--key", "retries", "--default", "many", "--datatype", "int")

        assert code == 1
        assert "Error:" in capsys.readouterr().out


class TestConfirmReplace:
    @pytest.mark.asyncio
    async def test_prompt_runs_off_the_event_loop(self, monkeypatch):
        active = ActiveNode(family_id="f1", name="Collector", version=1, activated_at="2024-01-01T00:00:00+00:00")
        prompts = []

        def answer(prompt: str) -> str:
            prompts.append((prompt, threading.get_ident()))
            return "yes"

        monkeypatch.setattr("builtins.input", answer)
        ask = confirm_replace(build_parser().parse_args(["nodes", "deploy", "f2", "1"]))

        assert await ask(active) is True
        [(prompt, thread_id)] = prompts
        assert 'Node "Collector" is currently active' in prompt
        assert thread_id != threading.get_ident()

    @pytest.mark.asyncio
    async def test_yes_flag_skips_prompt(self, monkeypatch):
        active = ActiveNode(family_id="f1", name="Collector", version=1, activated_at="2024-01-01T00:00:00+00:00")
        monkeypatch.setattr("builtins.input", lambda prompt: pytest.fail("prompted"))
        ask = confirm_replace(build_parser().parse_args(["nodes", "deploy", "f2", "1", "--yes"]))

        assert await ask(active) is True
