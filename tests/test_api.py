"""API endpoint tests."""

import asyncio
import json
import os
import shlex
import sys

import httpx
import pytest
import yaml
from fastapi.testclient import TestClient

import api.main as main
from certweb.backend import CertsuiteRunner, LogBuffer
from certweb.errors import RunError
from config.settings import settings


class FakeRunner(CertsuiteRunner):
    """Records runs instead of starting certsuite."""

    def __init__(self, error: str | None = None):
        super().__init__("certsuite run", "results", LogBuffer())
        self.error = error
        self.calls = []

    async def execute(self, label_filter, config_path, kubeconfig_path=None):
        kubeconfig = None
        if kubeconfig_path:
            with open(kubeconfig_path) as f:
                kubeconfig = f.read()
        self.calls.append((label_filter, config_path, kubeconfig_path, kubeconfig))
        if self.error:
            raise RunError(self.error, exit_code=1)
        return 0


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "certsuite_config.yml"
    path.write_text("debugMode: true\n")
    monkeypatch.setattr(settings, "certsuite_config_path", str(path))
    return path


@pytest.fixture
def fake_runner(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(main, "runner", runner)
    return runner


@pytest.fixture
def client():
    return TestClient(main.app)


def run_payload(**fields) -> str:
    payload = {"selectedOptions": ["access-control-namespace", "lifecycle-liveness-probe"]}
    payload.update(fields)
    return json.dumps(payload)


class TestHealth:
    """Health and classification endpoint tests."""

    def test_root(self, client):
        """Test the health check."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_classification(self, client):
        """Test the classification table is served in id order."""
        response = client.get("/api/classification")

        assert response.status_code == 200
        data = response.json()
        ids = [t["id"] for t in data["tests"]]
        assert ids == sorted(ids)
        namespace = next(t for t in data["tests"] if t["id"] == "access-control-namespace")
        assert namespace["classification"]["Telco"] == "Mandatory"
        assert namespace["group"] == "access-control"


class TestRunFunction:
    """POST /runFunction tests."""

    def test_run_success(self, client, config_path, fake_runner):
        """Test a run writes the configuration and reports the labels."""
        response = client.post(
            "/runFunction",
            data={"jsonData": run_payload(targetNameSpaces=["tnf"], PartnerName="acme")},
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Succeeded to run access-control-namespace lifecycle-liveness-probe"
        }
        written = yaml.safe_load(config_path.read_text())
        assert written["debugMode"] is True
        assert written["targetNameSpaces"] == [{"name": "tnf"}]
        assert written["partnerName"] == "acme"
        label_filter, path, kubeconfig_path, _ = fake_runner.calls[0]
        assert label_filter == "access-control-namespace,lifecycle-liveness-probe"
        assert path == str(config_path)
        assert kubeconfig_path is None

    def test_kubeconfig_temp_file_removed(self, client, config_path, fake_runner):
        """Test the uploaded kubeconfig is passed on and deleted afterwards."""
        response = client.post(
            "/runFunction",
            data={"jsonData": run_payload()},
            files={"kubeConfigPath": ("kubeconfig", b"apiVersion: v1\n", "application/octet-stream")},
        )

        assert response.status_code == 200
        _, _, kubeconfig_path, content = fake_runner.calls[0]
        assert content == "apiVersion: v1\n"
        assert not os.path.exists(kubeconfig_path)

    def test_invalid_json(self, client, config_path, fake_runner):
        """Test malformed jsonData is rejected with 400."""
        response = client.post("/runFunction", data={"jsonData": "{not json"})

        assert response.status_code == 400
        assert fake_runner.calls == []

    def test_invalid_shape(self, client, config_path, fake_runner):
        """Test a wrongly shaped field is rejected with 400."""
        response = client.post(
            "/runFunction",
            data={"jsonData": run_payload(skipScalingTestDeployments=["web"])},
        )

        assert response.status_code == 400

    def test_busy(self, client, config_path, fake_runner):
        """Test a second run while one is active gets 409 and leaves the file alone."""
        with fake_runner.reserve():
            response = client.post("/runFunction", data={"jsonData": run_payload()})

        assert response.status_code == 409
        assert yaml.safe_load(config_path.read_text()) == {"debugMode": True}

    def test_runner_failure(self, client, config_path, monkeypatch):
        """Test a failed run gets 500 with the reason."""
        monkeypatch.setattr(main, "runner", FakeRunner(error="certsuite exited with code 1"))

        response = client.post("/runFunction", data={"jsonData": run_payload()})

        assert response.status_code == 500
        assert response.json()["detail"] == "certsuite exited with code 1"


class TestLogs:
    """Log endpoint tests."""

    def test_logs_from_offset(self, client, fake_runner, monkeypatch):
        """Test lines are returned from the requested offset."""
        buffer = main.LogBuffer()
        buffer.append("line one")
        buffer.append("line two")
        monkeypatch.setattr(main, "log_buffer", buffer)

        response = client.get("/api/logs", params={"offset": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["lines"] == ["line two"]
        assert data["next_offset"] == 2
        assert data["running"] is False

    def test_logstream(self, client, fake_runner, monkeypatch):
        """Test the websocket pushes buffered lines."""
        buffer = main.LogBuffer()
        buffer.append("streamed line")
        monkeypatch.setattr(main, "log_buffer", buffer)

        with client.websocket_connect("/logstream") as websocket:
            assert websocket.receive_text() == "streamed line"


class TestTrace:
    """Trace endpoint tests."""

    def test_trace_round_trip(self, client):
        """Test events can be listed and cleared."""
        client.delete("/trace")
        main.get_tracer().log("test", "api", "hello")

        events = client.get("/trace").json()["events"]
        assert events[-1]["message"] == "hello"

        client.delete("/trace")
        assert client.get("/trace").json()["events"] == []

    def test_run_records_events(self, client, config_path, fake_runner):
        """Test a run leaves config and run events in the trace."""
        client.delete("/trace")

        client.post("/runFunction", data={"jsonData": run_payload()})

        events = client.get("/trace").json()["events"]
        api_events = [(e["event_type"], e["message"]) for e in events if e["component"] == "api"]
        assert api_events[0][0] == "config"
        assert ("run", "Started certsuite") in api_events
        assert api_events[-1] == ("run", "Finished certsuite")


# Reads the namespace from the config file it is given, after a pause long
# enough for a competing request to arrive.
NAMESPACE_ECHO = """
import sys, time, yaml
path = next(a.split("=", 1)[1] for a in sys.argv if a.startswith("--config-file="))
time.sleep(1.0)
with open(path) as f:
    print("NS", yaml.safe_load(f)["targetNameSpaces"][0]["name"])
"""


class TestConcurrentRuns:
    """Overlapping /runFunction requests."""

    @pytest.mark.asyncio
    async def test_second_request_rejected_and_config_kept(self, tmp_path, config_path, monkeypatch):
        """Test only one overlapping run proceeds, with its own configuration."""
        buffer = LogBuffer()
        command = f"{shlex.quote(sys.executable)} -c {shlex.quote(NAMESPACE_ECHO)}"
        monkeypatch.setattr(main, "log_buffer", buffer)
        monkeypatch.setattr(
            main, "runner", CertsuiteRunner(command, str(tmp_path / "results"), buffer)
        )
        kubeconfig = b"#" * (1024 * 1024)

        async def post(client, namespace):
            return await client.post(
                "/runFunction",
                data={"jsonData": json.dumps({
                    "selectedOptions": [f"{namespace}-check"],
                    "targetNameSpaces": [namespace],
                })},
                files={"kubeConfigPath": ("kubeconfig", kubeconfig, "application/octet-stream")},
            )

        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://certweb.test") as client:
            responses = await asyncio.gather(post(client, "alpha"), post(client, "beta"))

        assert sorted(r.status_code for r in responses) == [200, 409]
        winner = next(r for r in responses if r.status_code == 200)
        loser = next(r for r in responses if r.status_code == 409)
        namespace = "alpha" if "alpha-check" in winner.json()["message"] else "beta"
        other = "beta" if namespace == "alpha" else "alpha"

        lines = buffer.read_from(0)[0]
        assert f"NS {namespace}" in lines
        assert f"NS {other}" not in lines
        assert loser.json()["detail"] == "A certsuite run is already in progress"
        assert yaml.safe_load(config_path.read_text())["targetNameSpaces"] == [{"name": namespace}]
        assert not main.runner.busy
