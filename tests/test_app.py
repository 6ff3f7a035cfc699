import asyncio

import pulsar
import pytest
from fastapi.testclient import TestClient

from textstream.message_producer import pulsar_client
from textstream.message_producer.app import app, get_publisher, get_transport
from textstream.message_producer.config import Settings
from textstream.message_producer.exceptions import PublishEnqueueError
from textstream.message_producer.models import WireRecord
from textstream.message_producer.publisher import MessagePublisher
from textstream.message_producer.pulsar_client import PulsarTransport

from conftest import FailingTransport, FakeClient


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def publisher(stub_transport):
    publisher = MessagePublisher(stub_transport)
    app.dependency_overrides[get_publisher] = lambda: publisher
    return publisher


def test_accepts_valid_message(client, publisher, stub_transport):
    response = client.post("/api/messages", json={
        "title": "Test",
        "body": "Test Body Content",
        "sender": "sender123",
        "receiver": "receiver456",
        "messageId": 1001,
        "isImportant": False,
    })

    assert response.status_code == 202
    assert response.json() == {"status": "Message sent to Pulsar topic", "messageId": "1001"}
    assert stub_transport.sent == [(
        "text_message",
        "1001",
        WireRecord(
            title="Test",
            body="Test Body Content",
            sender="sender123",
            receiver="receiver456",
            message_id=1001,
            is_important=False,
        ),
    )]


def test_accepts_snake_case_fields(client, publisher, stub_transport):
    response = client.post("/api/messages", json={"title": "Urgent", "message_id": 9999, "is_important": True})

    assert response.status_code == 202
    assert response.json()["messageId"] == "9999"
    assert stub_transport.sent[0][2].is_important is True


def test_missing_message_id_is_accepted(client, publisher, stub_transport):
    response = client.post("/api/messages", json={"title": "Test", "body": "Body"})

    assert response.status_code == 202
    assert response.json()["messageId"] == "N/A"
    destination, key, record = stub_transport.sent[0]
    assert key == "unknown"
    assert record.message_id is None
    assert record.is_important is False


def test_acknowledges_before_delivery(client, publisher, stub_transport):
    response = client.post("/api/messages", json={"messageId": 5})

    assert response.status_code == 202
    assert not stub_transport.futures[0].done()
    assert publisher.metrics.snapshot()["enqueued"] == 1


def test_invalid_json_returns_400(client, publisher, stub_transport):
    response = client.post(
        "/api/messages",
        content="{invalid json}",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_MESSAGE"
    assert stub_transport.sent == []


@pytest.mark.parametrize("payload", [
    {"messageId": "not-a-number"},
    {"messageId": 2 ** 31},
    {"isImportant": "maybe"},
])
def test_invalid_field_returns_400(client, publisher, payload):
    response = client.post("/api/messages", json=payload)

    assert response.status_code == 400


def test_enqueue_failure_returns_503(client):
    failing = MessagePublisher(FailingTransport(PublishEnqueueError("producer closed")))
    app.dependency_overrides[get_publisher] = lambda: failing

    response = client.post("/api/messages", json={"messageId": 1})

    assert response.status_code == 503
    body = response.json()
    assert body["error_code"] == "PUBLISH_UNAVAILABLE"
    assert "producer closed" in body["error_message"]


def test_publish_without_transport_returns_503(client):
    app.dependency_overrides[get_publisher] = lambda: None

    response = client.post("/api/messages", json={"messageId": 1})

    assert response.status_code == 503


def test_health_degraded_without_transport(client):
    app.dependency_overrides[get_transport] = lambda: None

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["pulsar"] == {"status": "not_connected"}


def test_health_healthy_with_connected_transport(client):
    class ConnectedTransport:
        def get_health_status(self):
            return {"connected": True, "circuit_breaker_state": "closed"}

    app.dependency_overrides[get_transport] = ConnectedTransport

    response = client.get("/health")

    assert response.json()["status"] == "healthy"


def test_readiness_follows_publisher(client, publisher):
    assert client.get("/health/ready").json() == {"status": "ready"}

    app.dependency_overrides[get_publisher] = lambda: None
    assert client.get("/health/ready").status_code == 503


def test_liveness(client):
    assert client.get("/health/live").json() == {"status": "alive"}


def test_metrics_report_publish_counters(client, publisher, stub_transport):
    client.post("/api/messages", json={"messageId": 1})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.json()["metrics"]["enqueued"] == 1
    assert response.json()["metrics"]["delivered"] == 0


def test_root_lists_endpoints(client):
    body = client.get("/").json()

    assert body["endpoints"]["publish_message"] == "/api/messages"


def test_queue_full_on_pulsar_returns_503(client, monkeypatch):
    monkeypatch.setattr(pulsar_client.pulsar, "Client", FakeClient)
    transport = PulsarTransport(Settings())
    asyncio.run(transport.connect())
    transport.producers["text_message"].inline_result = pulsar.Result.ProducerQueueIsFull
    pulsar_publisher = MessagePublisher(transport)
    app.dependency_overrides[get_publisher] = lambda: pulsar_publisher

    response = client.post("/api/messages", json={"messageId": 1001})

    assert response.status_code == 503
    assert response.json()["error_code"] == "PUBLISH_UNAVAILABLE"
    assert pulsar_publisher.metrics.snapshot()["enqueue_failed"] == 1
    assert transport.circuit_breaker.failure_count == 1
