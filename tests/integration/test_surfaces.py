"""
Surface Tests

The HTTP API and the CLI answer exactly what the service answers.
"""

import asyncio
import io
import json
import logging

import pytest
from fastapi.testclient import TestClient

import promql_core
from promql_adapter.providers.mock import MockProvider
from promql_core import cli
from promql_core.api.server import app
from promql_core.examples import FALLBACK_EXAMPLES
from promql_core.service import QueryFormatterService

from .fixtures import END_TO_END_FORMATTED, END_TO_END_QUERY, failing_provider, service_with


# =============================================================================
# HTTP API
# =============================================================================

@pytest.fixture
def client_for():
    """Yields a factory: service -> TestClient bound to that service."""
    clients = []

    def build(service: QueryFormatterService) -> TestClient:
        promql_core.set_service(service)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.__exit__(None, None, None)
    promql_core.set_service(None)


class TestHttpApi:

    def test_health_reports_delegate_state(self, client_for):
        """Health must report delegate kind and state."""
        client = client_for(service_with(None))

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "online"
        assert body["delegate"]["kind"] == "none"
        assert body["delegate"]["state"] == "uninitialized"
        assert body["delegate"]["engine"] is None

    def test_health_names_ready_engine(self, client_for):
        """Once the delegate is ready, health names its engine."""
        client = client_for(service_with(MockProvider()))
        client.post("/api/v1/format", json={"query": "up"})

        body = client.get("/health").json()

        assert body["delegate"]["state"] == "ready"
        assert body["delegate"]["engine"] == "mock-deterministic-v1"

    def test_format_falls_back_locally(self, client_for):
        """Format endpoint must return the local fallback."""
        client = client_for(service_with(failing_provider()))

        response = client.post("/api/v1/format", json={"query": END_TO_END_QUERY})

        assert response.status_code == 200
        assert response.json() == {
            "formatted": END_TO_END_FORMATTED,
            "error": None,
            "error_code": None,
            "engine": "local",
        }

    def test_format_without_fallback_reports_delegate_error(self, client_for):
        """Disabled fallback must surface the delegate error."""
        client = client_for(service_with(None))

        body = client.post(
            "/api/v1/format", json={"query": "up", "fallback_to_local": False}
        ).json()

        assert body["error"] == "no delegate engine configured"
        assert body["error_code"] == "delegate_unavailable"

    def test_delegate_mode_uses_delegate(self, client_for):
        """Delegate mode must use the delegate."""
        client = client_for(service_with(MockProvider()))

        body = client.post("/api/v1/format", json={"query": "sum(  x )", "mode": "delegate"}).json()

        assert body["formatted"] == "sum( x )"
        assert body["engine"] == "delegate"

    def test_validate(self, client_for):
        """Validate endpoint must report error and position."""
        client = client_for(service_with(None))

        body = client.post("/api/v1/validate", json={"query": "sum(x))", "mode": "local"}).json()

        assert body["is_valid"] is False
        assert body["error"] == "unmatched closing bracket"
        assert body["error_code"] == "unmatched_closing_bracket"
        assert body["position"] == 6

    def test_explain(self, client_for):
        """Explain endpoint must return the stub."""
        client = client_for(service_with(None))

        body = client.post("/api/v1/explain", json={"query": "up", "mode": "local"}).json()

        assert body["success"] is True
        assert body["ast"]["type"] == "SimpleQuery"
        assert body["performance"]["timeRange"] == "unspecified"

    def test_examples(self, client_for):
        """Examples endpoint must return the corpus."""
        client = client_for(service_with(None))

        body = client.get("/api/v1/examples").json()

        assert body["examples"] == list(FALLBACK_EXAMPLES)

    def test_examples_without_fallback_are_empty(self, client_for):
        """Examples without fallback must be empty."""
        client = client_for(service_with(None))

        body = client.get("/api/v1/examples", params={"fallback_to_local": "false"}).json()

        assert body["examples"] == []

    def test_unknown_mode_is_rejected(self, client_for):
        """Unknown mode must be a 400."""
        client = client_for(service_with(None))

        response = client.post("/api/v1/format", json={"query": "up", "mode": "turbo"})

        assert response.status_code == 400


# =============================================================================
# CLI
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """No delegate from the environment; root logging restored afterwards."""
    for key in ("PROMFMT_DELEGATE", "PROMFMT_DELEGATE_URL"):
        monkeypatch.delenv(key, raising=False)

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCli:

    def test_format_local(self, clean_env, capsys):
        """Local format must print the layout."""
        code = cli.main(["--local", "format", END_TO_END_QUERY])

        assert code == 0
        assert capsys.readouterr().out == END_TO_END_FORMATTED + "\n"

    def test_format_falls_back_without_delegate(self, clean_env, capsys):
        """Format must fall back with no delegate."""
        assert cli.main(["format", "up"]) == 0
        assert capsys.readouterr().out == "up\n"

    def test_format_without_fallback_fails(self, clean_env, capsys):
        """Disabled fallback must exit 1."""
        code = cli.main(["--no-fallback", "format", "up"])

        assert code == 1
        assert "no delegate engine configured" in capsys.readouterr().err

    def test_query_from_stdin(self, clean_env, capsys, monkeypatch):
        """Missing query must be read from stdin."""
        monkeypatch.setattr("sys.stdin", io.StringIO("sum(rate(http_requests_total[5m])) by (job)\n"))

        assert cli.main(["--local", "format"]) == 0
        assert capsys.readouterr().out == END_TO_END_FORMATTED + "\n"

    def test_validate_exit_codes(self, clean_env, capsys):
        """Validate exit code must follow the verdict."""
        assert cli.main(["--local", "validate", "sum(x)"]) == 0
        assert cli.main(["--local", "validate", "sum(x))"]) == 1
        out = capsys.readouterr().out
        assert "[VALID]" in out
        assert "[INVALID] unmatched closing bracket at position 6" in out

    def test_explain_prints_json(self, clean_env, capsys):
        """Explain must print JSON."""
        assert cli.main(["--local", "explain", "up"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["ast"]["value"] == "up"

    def test_examples_print_json(self, clean_env, capsys):
        """Examples must print JSON."""
        assert cli.main(["examples"]) == 0
        assert json.loads(capsys.readouterr().out) == list(FALLBACK_EXAMPLES)

    def test_invalid_configuration_exits_2(self, clean_env, monkeypatch, capsys):
        """Bad configuration must exit 2."""
        monkeypatch.setenv("PROMFMT_DELEGATE", "carrier-pigeon")

        assert cli.main(["format", "up"]) == 2
        assert "Unknown delegate kind" in capsys.readouterr().err

    def test_no_command_prints_help(self, clean_env, capsys):
        """No command must print help."""
        assert cli.main([]) == 2
        assert "promfmt" in capsys.readouterr().out


# =============================================================================
# DEFAULT SERVICE
# =============================================================================

class TestDefaultService:

    @pytest.fixture(autouse=True)
    def reset_default(self):
        yield
        promql_core.set_service(None)

    def test_helpers_use_injected_service(self):
        """Module helpers must use the injected service."""
        service = service_with(MockProvider())
        promql_core.set_service(service)

        async def run_all():
            return (
                await promql_core.format_query("sum(  x )"),
                await promql_core.validate_query("sum(x)"),
                await promql_core.explain_query("up"),
                await promql_core.list_example_queries(),
            )

        result, valid, explained, examples = asyncio.run(run_all())

        assert result.formatted == "sum( x )"
        assert valid.is_valid
        assert explained.ast.type == "MockQuery"
        assert examples == ("up", "rate(http_requests_total[5m])")
        assert len(service.get_traces()) == 4

    def test_default_built_from_environment(self, monkeypatch):
        """Default service must be built once from the environment."""
        monkeypatch.setenv("PROMFMT_DELEGATE", "none")
        promql_core.set_service(None)

        service = promql_core.get_service()

        assert service is promql_core.get_service()
        assert service.config.delegate.kind == "none"
