import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from chaoscraft import __version__
from chaoscraft.cli import app, build_orchestrator
from chaoscraft.utils.config import Config

runner = CliRunner()

@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("chaoscraft.cli.setup_logging") as mock:
        yield mock

@pytest.fixture
def fake_orchestrator(make_orchestrator, tmp_path):
    """Route `run` through an orchestrator backed by the fake mock server."""
    def _patch(server=None):
        orchestrator = make_orchestrator(server=server)
        orchestrator.reporter.output_path = tmp_path / "reports"

        def _build(cfg, per_request_random=False, output_path=None):
            if output_path:
                orchestrator.reporter.output_path = tmp_path / output_path
            return orchestrator

        return patch("chaoscraft.cli.build_orchestrator", side_effect=_build), orchestrator

    return _patch

def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout

def test_templates_lists_status_codes():
    result = runner.invoke(app, ["templates"])
    assert result.exit_code == 0
    for code in ("500", "404", "429"):
        assert code in result.stdout

def test_endpoints_from_config(tmp_path):
    config = tmp_path / "chaoscraft.yaml"
    config.write_text("endpoints:\n  - /health\n", encoding="utf-8")
    result = runner.invoke(app, ["endpoints", "-c", str(config)])
    assert result.exit_code == 0
    assert "/health" in result.stdout
    assert "/login" not in result.stdout

def test_invalid_config_exits(tmp_path):
    config = tmp_path / "chaoscraft.yaml"
    config.write_text("endpoints: []\n", encoding="utf-8")
    result = runner.invoke(app, ["endpoints", "-c", str(config)])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.stdout

def test_explain():
    result = runner.invoke(app, ["explain", "-t", "Server Error", "-e", "/login"])
    assert result.exit_code == 0
    assert "Technical Details" in result.stdout
    assert "HTTP Status: 500" in result.stdout

def test_unknown_template_exits():
    result = runner.invoke(app, ["explain", "-t", "Meteor Strike", "-e", "/login"])
    assert result.exit_code == 1
    assert "Unknown template" in result.stdout

def test_config_export_to_file(tmp_path):
    target = tmp_path / "mapping.json"
    result = runner.invoke(app, ["config", "-t", "Rate Limited", "-e", "/orders", "-o", str(target)])
    assert result.exit_code == 0
    mapping = json.loads(target.read_text(encoding="utf-8"))["mappings"][0]
    assert mapping["request"] == {"method": "ANY", "url": "/orders"}
    assert mapping["response"]["status"] == 429

def test_init_creates_and_protects_file(tmp_path):
    target = tmp_path / "chaoscraft.yaml"
    result = runner.invoke(app, ["init", "--path", str(target)])
    assert result.exit_code == 0
    assert "per_request" in target.read_text(encoding="utf-8")

    result = runner.invoke(app, ["init", "--path", str(target)])
    assert result.exit_code == 1
    assert "already exists" in result.stdout

    result = runner.invoke(app, ["init", "--path", str(target), "--force"])
    assert result.exit_code == 0

def test_run_completes_and_writes_report(fake_orchestrator, tmp_path):
    patcher, orchestrator = fake_orchestrator()
    with patcher:
        result = runner.invoke(
            app,
            ["run", "-e", "/login", "-t", "Server Error", "-c", str(tmp_path / "none.yaml"), "-o", "out"],
        )

    assert result.exit_code == 0, result.stdout
    assert "Configured endpoint /login with Server Error" in result.stdout
    tests = orchestrator.list_tests()
    assert len(tests) == 1
    report = tmp_path / "out" / f"chaoscraft-{tests[0].id}.md"
    assert "Server Error" in report.read_text(encoding="utf-8")
    assert not orchestrator.controller.is_running

def test_run_failure_exits_nonzero(fake_orchestrator, fake_server_factory, tmp_path):
    patcher, orchestrator = fake_orchestrator(server=fake_server_factory(fail_start=True))
    with patcher:
        result = runner.invoke(app, ["run", "-e", "/login", "-t", "Not Found", "-c", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1
    assert "Error: Port 8080 already in use" in result.stdout

def test_build_orchestrator_flags_override_config(tmp_path):
    cfg = Config(tmp_path / "missing.yaml")
    orchestrator = build_orchestrator(cfg, per_request_random=True, output_path=str(tmp_path / "r"))
    assert orchestrator.planner.per_request_random is True
    assert orchestrator.reporter.output_path == tmp_path / "r"
    assert orchestrator.endpoints[0] == "/login"
