import threading
from concurrent.futures import Future

import pytest

from textstream.message_producer.models import InboundMessage, PublishOutcome, WireRecord


def create_sample_message(**overrides) -> InboundMessage:
    fields = {
        "title": "Test",
        "body": "Test Body Content",
        "sender": "sender123",
        "receiver": "receiver456",
        "message_id": 1001,
        "is_important": False,
    }
    fields.update(overrides)
    return InboundMessage(**fields)


def create_sample_record(**overrides) -> WireRecord:
    fields = {
        "title": "Test",
        "body": "Test Body Content",
        "sender": "sender123",
        "receiver": "receiver456",
        "message_id": 1001,
        "is_important": False,
    }
    fields.update(overrides)
    return WireRecord(**fields)


def create_outcome(offset: int = 42, partition: int = 0) -> PublishOutcome:
    return PublishOutcome(topic="text_message", partition=partition, offset=offset, ledger_id=7)


class StubTransport:
    """Transporte en memoria: devuelve futures que el test resuelve a mano"""

    def __init__(self):
        self.sent = []
        self.futures = []
        self._lock = threading.Lock()

    def send(self, destination, key, record):
        future = Future()
        with self._lock:
            self.sent.append((destination, key, record))
            self.futures.append(future)
        return future


class FailingTransport:
    def __init__(self, error: Exception):
        self.error = error

    def send(self, destination, key, record):
        raise self.error


@pytest.fixture
def stub_transport():
    return StubTransport()


class FakeMessageId:
    def __init__(self, ledger_id=7, entry_id=42, partition=-1):
        self._ledger_id = ledger_id
        self._entry_id = entry_id
        self._partition = partition

    def ledger_id(self):
        return self._ledger_id

    def entry_id(self):
        return self._entry_id

    def partition(self):
        return self._partition


class FakeProducer:
    def __init__(self, topic, **kwargs):
        self.topic = topic
        self.kwargs = kwargs
        self.sent = []
        self.closed = False
        self.error = None
        # Resultado que Pulsar entrega dentro de send_async (cola llena, producer cerrado)
        self.inline_result = None

    def send_async(self, content, callback, partition_key=None):
        if self.error:
            raise self.error
        if self.inline_result is not None:
            callback(self.inline_result, None)
            return
        self.sent.append((content, callback, partition_key))

    def flush(self):
        pass

    def close(self):
        self.closed = True


class FakeClient:
    instances = []

    def __init__(self, service_url, **kwargs):
        self.service_url = service_url
        self.kwargs = kwargs
        self.producers = {}
        self.closed = False
        FakeClient.instances.append(self)

    def create_producer(self, topic, **kwargs):
        producer = FakeProducer(topic, **kwargs)
        self.producers[topic] = producer
        return producer

    def close(self):
        self.closed = True


