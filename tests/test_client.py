# tests/test_client.py

import threading

import pytest
import requests
from fastapi.testclient import TestClient

import config
from client import (
    ClientValidationError,
    JobSubmissionError,
    PollingError,
    VideoJobClient,
    build_payload,
    validate_payload,
)


class ExplodingSession:
    """Stands in for requests.Session when the server is unreachable."""

    def __init__(self):
        self.calls = 0

    def post(self, *args, **kwargs):
        self.calls += 1
        raise requests.ConnectionError("connection refused")

    get = post


def make_client(http, **kwargs):
    kwargs.setdefault("poll_interval", 0.01)
    kwargs.setdefault("max_attempts", 500)
    return VideoJobClient("http://testserver", session=http, **kwargs)


def test_build_payload_shape():
    payload = build_payload("Ocean exploration", ratio="9:16", duration=30, sora=False, platforms=["tiktok"])

    assert payload == {
        "topic": "Ocean exploration",
        "ratio": "9:16",
        "duration": 30,
        "providers": {"speechify": True, "sora": False, "veo": True},
        "platforms": ["tiktok"],
    }


@pytest.mark.parametrize(
    "overrides",
    [{"topic": ""}, {"topic": "   "}, {"duration": 0}, {"duration": 1000}, {"duration": "60"}, {"ratio": "4:3"}],
)
def test_local_validation_never_contacts_server(overrides):
    session = ExplodingSession()
    client = make_client(session)
    payload = {**build_payload("Ocean exploration", duration=120), **overrides}

    with pytest.raises(ClientValidationError):
        client.submit(payload)

    assert session.calls == 0
    assert client.logs[-1].startswith("Error:")


def test_validate_payload_accepts_bounds():
    validate_payload(build_payload("Ocean exploration", duration=1))
    validate_payload(build_payload("Ocean exploration", duration=600))


def test_transport_failure_on_submit():
    client = make_client(ExplodingSession())

    with pytest.raises(JobSubmissionError) as exc:
        client.submit(build_payload("Ocean exploration"))

    assert exc.value.status_code is None


def test_generate_ocean_exploration(api_client):
    """
    Submit through the client and follow the job to the end.
    """
    seen = []
    client = make_client(api_client, on_log=seen.append)

    result = client.generate(build_payload("Ocean exploration", ratio="16:9", duration=120))

    assert result.ok
    assert result.outcome == "done"
    for key in ("result_url", "thumbnail_url", "caption"):
        assert result.snapshot[key]
    assert seen == client.logs
    assert any("Job queued" in line for line in result.logs)
    # Each server log line is reported once.
    server_lines = [line for line in result.logs if line.startswith("[")]
    assert len(server_lines) == len(set(server_lines)) == len(result.snapshot["logs"])


def test_server_side_rejection_surfaces_status_and_body(api_client):
    client = make_client(api_client)

    with pytest.raises(JobSubmissionError) as exc:
        client.submit(build_payload("Gore in cinema"))

    assert exc.value.status_code == 422
    assert "blocked_term" in exc.value.body


def test_polling_unknown_job_is_fatal(api_client):
    client = make_client(api_client)

    with pytest.raises(PollingError) as exc:
        list(client.poll("never-created"))

    assert exc.value.status_code == 404
    assert exc.value.job_id == "never-created"


def test_timeout_cancels_the_server_job(monkeypatch, fast_config):
    monkeypatch.setattr(config, "STAGE_DELAY_SECONDS", 10)
    from main import app

    with TestClient(app) as http:
        client = make_client(http, max_attempts=2)

        result = client.generate(build_payload("Ocean exploration"))

        assert result.outcome == "timeout"
        assert result.snapshot["status"] == "failed"
        assert result.snapshot["error"] == "Cancelled"
        assert any(line.startswith("Warning: timed out") for line in result.logs)


def test_cancel_event_stops_polling(monkeypatch, fast_config):
    monkeypatch.setattr(config, "STAGE_DELAY_SECONDS", 10)
    from main import app

    with TestClient(app) as http:
        client = make_client(http)
        stop = threading.Event()
        stop.set()

        result = client.generate(build_payload("Ocean exploration"), cancel_event=stop)

        assert result.outcome == "cancelled"
        assert http.get(f"/task-status/{result.job_id}").json()["status"] == "failed"


def test_each_job_gets_its_own_log(api_client):
    client = make_client(api_client)

    first = client.generate(build_payload("Ocean exploration"))
    second = client.generate(build_payload("Mountain climbing"))

    assert second.logs[0] == f"Job submitted: {second.job_id}"
    assert not any(first.job_id in line for line in second.logs)
    server_lines = [line for line in second.logs if line.startswith("[")]
    assert len(server_lines) == len(second.snapshot["logs"])
    assert client.logs == second.logs


class DropsAfterFirstPoll:
    """Passes requests through to the app until the second status call."""

    def __init__(self, http):
        self.http = http
        self.status_calls = 0

    def post(self, *args, **kwargs):
        return self.http.post(*args, **kwargs)

    def get(self, *args, **kwargs):
        self.status_calls += 1
        if self.status_calls > 1:
            raise requests.ConnectionError("connection reset by peer")
        return self.http.get(*args, **kwargs)


def test_connection_lost_mid_poll_leaves_server_job_running(monkeypatch, fast_config):
    monkeypatch.setattr(config, "STAGE_DELAY_SECONDS", 10)
    from main import app

    with TestClient(app) as http:
        client = make_client(DropsAfterFirstPoll(http))

        with pytest.raises(PollingError) as exc:
            client.generate(build_payload("Ocean exploration"))

        job_id = exc.value.job_id
        assert exc.value.status_code is None
        assert client.logs[0] == f"Job submitted: {job_id}"
        assert client.logs[-1].startswith("Error: Status request")
        assert http.get(f"/task-status/{job_id}").json()["status"] in ("queued", "running")


class ServiceUnavailable:
    status_code = 503
    text = "upstream unavailable"

    def json(self):
        return {"detail": self.text}


class FailsAfterFirstPoll(DropsAfterFirstPoll):
    def get(self, *args, **kwargs):
        self.status_calls += 1
        if self.status_calls > 1:
            return ServiceUnavailable()
        return self.http.get(*args, **kwargs)


def test_server_error_mid_poll_is_fatal(monkeypatch, fast_config):
    monkeypatch.setattr(config, "STAGE_DELAY_SECONDS", 10)
    from main import app

    with TestClient(app) as http:
        session = FailsAfterFirstPoll(http)
        client = make_client(session)
        job_id = client.submit(build_payload("Ocean exploration"))

        with pytest.raises(PollingError) as exc:
            list(client.poll(job_id))

        assert session.status_calls == 2
        assert exc.value.job_id == job_id
        assert exc.value.status_code == 503
        assert exc.value.body == "upstream unavailable"
        assert client.logs[-1].startswith("Error:")
        assert http.get(f"/task-status/{job_id}").json()["status"] in ("queued", "running")
