import pytest
import redis
from fastapi.testclient import TestClient

from civrise.models.enums import ActionKind
from services.api import main as api
from services.sim_worker.worker import parse_action


# ---------- worker ----------


class TestParseAction:
    def test_valid(self):
        action = parse_action({"action": "assign_workers", "target": "farm", "amount": "-2"})
        assert action.action == ActionKind.ASSIGN_WORKERS
        assert action.target == "farm"
        assert action.amount == -2

    @pytest.mark.parametrize(
        "payload",
        [None, [], {}, {"action": "teleport"}, {"action": "recruit", "amount": "many"}],
    )
    def test_malformed(self, payload):
        assert parse_action(payload) is None


# ---------- api ----------


class FakeClient:
    def __init__(self):
        self.values = {}

    async def set(self, name, value, ex=None):
        self.values[name] = value
        return True


class FakeStreams:
    def __init__(self):
        self.actions = []
        self.snapshot = None
        self.events = []
        self.client = FakeClient()

    async def append_action(self, payload, maxlen=None):
        self.actions.append(payload)
        return f"{len(self.actions)}-0"

    async def load_snapshot(self):
        return self.snapshot

    async def read_events(self, last_id="0-0", count=100, block_ms=None):
        return self.events[:count]


class DownClient:
    async def ping(self):
        raise redis.exceptions.ConnectionError("connection refused")

    async def set(self, name, value, ex=None):
        raise redis.exceptions.ConnectionError("connection refused")


class DownStreams:
    client = DownClient()

    async def append_action(self, payload, maxlen=None):
        raise redis.exceptions.ConnectionError("connection refused")

    async def load_snapshot(self):
        raise redis.exceptions.ConnectionError("connection refused")

    async def read_events(self, last_id="0-0", count=100, block_ms=None):
        raise redis.exceptions.ConnectionError("connection refused")


@pytest.fixture
def client(monkeypatch):
    fake = FakeStreams()
    monkeypatch.setattr(api, "streams", fake)
    return TestClient(api.app), fake


@pytest.fixture
def down_client(monkeypatch):
    monkeypatch.setattr(api, "streams", DownStreams())
    return TestClient(api.app)


class TestActionsEndpoint:
    def test_accepts_actions(self, client):
        http, fake = client
        resp = http.post(
            "/actions",
            json={"actions": [{"action": "construct", "target": "tent"}, {"action": "gather"}]},
        )
        assert resp.status_code == 200
        assert resp.json() == {"ids": ["1-0", "2-0"]}
        assert fake.actions[0] == {"action": "construct", "target": "tent", "source": "api"}

    def test_unknown_action_kind(self, client):
        http, fake = client
        resp = http.post("/actions", json={"actions": [{"action": "teleport"}]})
        assert resp.status_code == 422
        assert fake.actions == []

    def test_missing_target(self, client):
        http, fake = client
        resp = http.post("/actions", json={"actions": [{"action": "attack"}]})
        assert resp.status_code == 422
        assert fake.actions == []


class TestSnapshotEndpoint:
    def test_no_snapshot_yet(self, client):
        http, _ = client
        assert http.get("/snapshot").status_code == 404

    def test_snapshot(self, client):
        http, fake = client
        fake.snapshot = {"game_time": 3}
        assert http.get("/snapshot").json() == {"game_time": 3}


class TestEventsEndpoint:
    def test_events_carry_stream_ids(self, client):
        http, fake = client
        fake.events = [("5-0", {"type": "tick", "tick": 1})]
        assert http.get("/events").json() == [{"type": "tick", "tick": 1, "id": "5-0"}]


class TestRestartEndpoint:
    def test_restart_queues_seed(self, client):
        http, fake = client
        resp = http.post("/admin/restart", params={"seed": "abc"})
        assert resp.status_code == 200
        assert fake.client.values[api._CONFIG.restart_key] == '{"seed": "abc"}'


class TestRedisDown:
    @pytest.mark.parametrize(
        "method, path, body",
        [
            ("get", "/health", None),
            ("get", "/snapshot", None),
            ("get", "/events", None),
            ("post", "/actions", {"actions": [{"action": "gather"}]}),
            ("post", "/admin/restart", None),
        ],
    )
    def test_redis_outage_is_503(self, down_client, method, path, body):
        if body is None:
            resp = getattr(down_client, method)(path)
        else:
            resp = down_client.post(path, json=body)
        assert resp.status_code == 503
