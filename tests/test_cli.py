"""Tests for the CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from authflow.cli.main import cli
from authflow.core.errors import ConfigurationFetchError
from authflow.core.oidc import AuthorizationServiceConfiguration, HttpConfigurationFetcher

AUTHORIZE_URL = "https://idp.example.com/authorize"


def test_cli_version() -> None:
    """Test CLI version command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_cli_help() -> None:
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "OAuth2/OIDC Redirect Flow Client" in result.output


def test_cli_init_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["init", "--help"])
    assert result.exit_code == 0
    assert "Initialize AuthFlow configuration" in result.output


class TestFlowCommands:
    """Tests for authorize/complete/discover with an isolated store."""

    @pytest.fixture(autouse=True)
    def isolated(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self.runner = CliRunner()
        self.config_path = tmp_path / "missing.yaml"
        monkeypatch.setenv("AUTHFLOW_DB_PATH", str(tmp_path / "store.db"))
        monkeypatch.setenv("AUTHFLOW_CLIENT_ID", "cli-client")
        monkeypatch.setenv("AUTHFLOW_AUTHORIZE_URL", AUTHORIZE_URL)
        monkeypatch.delenv("AUTHFLOW_FLOW_TYPE", raising=False)
        monkeypatch.delenv("AUTHFLOW_USER_STORE", raising=False)

    def invoke(self, *args: str):
        return self.runner.invoke(
            cli, ["--config", str(self.config_path), "--log-level", "ERROR", *args]
        )

    def test_authorize_json(self) -> None:
        result = self.invoke("authorize", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["authorization_url"].startswith(AUTHORIZE_URL + "?")
        assert "client_id=cli-client" in data["authorization_url"]
        assert len(data["state"]) == 8
        assert len(data["nonce"]) == 8

    def test_authorize_explicit_state(self) -> None:
        result = self.invoke("authorize", "--state", "mystate", "--nonce", "mynonce")

        assert result.exit_code == 0, result.output
        assert "state: mystate" in result.stdout
        assert "nonce: mynonce" in result.stdout

    def test_authorize_then_complete(self) -> None:
        authorized = self.invoke("authorize", "--json")
        state = json.loads(authorized.stdout)["state"]

        result = self.invoke("complete", f"http://localhost:8080/app/#id_token=abc&state={state}", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["id_token"] == "abc"
        assert data["state"] == state

    def test_complete_error_response(self) -> None:
        authorized = self.invoke("authorize", "--json")
        state = json.loads(authorized.stdout)["state"]

        result = self.invoke(
            "complete", f"http://localhost:8080/app/#id_token=x&error=access_denied&state={state}"
        )

        assert result.exit_code == 1
        assert "Authorization failed: access_denied" in result.output

    def test_complete_without_pending_request(self) -> None:
        result = self.invoke("complete", "http://localhost:8080/app/#id_token=abc&state=xyz")

        assert result.exit_code == 1
        assert "No pending authorization request matches this URL" in result.output

    def test_authorize_pkce_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHFLOW_FLOW_TYPE", "PKCE")

        result = self.invoke("authorize")

        assert result.exit_code == 1
        assert "does not build authorization requests" in result.output

    def test_authorize_without_endpoint(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHFLOW_AUTHORIZE_URL", "")

        result = self.invoke("authorize", "--no-discover")

        assert result.exit_code == 1
        assert "No authorization endpoint configured" in result.output

    def test_discover(self, monkeypatch: pytest.MonkeyPatch) -> None:
        requested: list[str] = []

        async def fake_fetch(self, discovery_uri: str) -> AuthorizationServiceConfiguration:
            requested.append(discovery_uri)
            return AuthorizationServiceConfiguration(authorization_endpoint="https://issuer.example.com/auth")

        monkeypatch.setattr(HttpConfigurationFetcher, "fetch_from_issuer", fake_fetch)

        result = self.invoke("discover", "--issuer", "https://issuer.example.com", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["authorization_endpoint"] == "https://issuer.example.com/auth"
        assert requested == ["https://issuer.example.com"]

    def test_discover_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing_fetch(self, discovery_uri: str) -> AuthorizationServiceConfiguration:
            raise ConfigurationFetchError("Request error fetching OIDC config: refused")

        monkeypatch.setattr(HttpConfigurationFetcher, "fetch_from_issuer", failing_fetch)

        result = self.invoke("discover")

        assert result.exit_code == 1
        assert "Something bad happened Request error" in result.output

    def test_discover_malformed_issuer(self) -> None:
        result = self.invoke("discover", "--issuer", "http://[::1")

        assert result.exit_code == 1
        assert "Something bad happened Invalid discovery URL" in result.output

    def test_authorize_discovery_without_endpoint(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def empty_fetch(self, discovery_uri: str) -> AuthorizationServiceConfiguration:
            return AuthorizationServiceConfiguration(token_endpoint="https://issuer.example.com/token")

        monkeypatch.setenv("AUTHFLOW_AUTHORIZE_URL", "")
        monkeypatch.setattr(HttpConfigurationFetcher, "fetch_from_issuer", empty_fetch)

        result = self.invoke("authorize")

        assert result.exit_code == 1
        assert "No authorization endpoint configured" in result.output
        assert "Completed fetching configuration" not in result.output


class TestConfigCommands:
    """Tests for config CLI commands."""

    def test_config_init(self, tmp_path: Path) -> None:
        runner = CliRunner()
        path = tmp_path / "config.yaml"

        result = runner.invoke(cli, ["config", "init", "--path", str(path)])

        assert result.exit_code == 0
        assert path.exists()
        assert "flow_type" in path.read_text()

    def test_config_init_refuses_overwrite(self, tmp_path: Path) -> None:
        runner = CliRunner()
        path = tmp_path / "config.yaml"
        path.write_text("client: {}\n")

        result = runner.invoke(cli, ["config", "init", "--path", str(path)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert path.read_text() == "client: {}\n"

    def test_init_uses_config_option(self, tmp_path: Path) -> None:
        runner = CliRunner()
        path = tmp_path / "authflow.yaml"

        result = runner.invoke(cli, ["--config", str(path), "init"])

        assert result.exit_code == 0
        assert path.exists()
        assert "Next steps" in result.output

    def test_config_show_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        runner = CliRunner()
        path = tmp_path / "config.yaml"
        path.write_text("client:\n  client_id: shown-client\n  client_secret: hush\n")
        monkeypatch.delenv("AUTHFLOW_CLIENT_ID", raising=False)
        monkeypatch.delenv("AUTHFLOW_CLIENT_SECRET", raising=False)

        result = runner.invoke(cli, ["--config", str(path), "--log-level", "ERROR", "config", "show", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["client"]["client_id"] == "shown-client"
        assert data["client"]["client_secret"] == "[REDACTED]"
        assert data["config_path"] == str(path)
