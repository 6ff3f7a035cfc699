"""
Publicación asíncrona de mensajes de texto en el topic

El caller recibe el control en cuanto el transporte encola el registro; la
confirmación del broker se observa en un callback que solo registra el resultado
(log + métricas) y nunca propaga errores al caller original.
"""
import logging
import threading
from concurrent.futures import Future
from functools import partial
from typing import Dict, Optional, Protocol

from .exceptions import PublishEnqueueError
from .models import PublishOutcome, WireRecord


logger = logging.getLogger(__name__)

TOPIC_NAME = "text_message"
UNKNOWN_KEY = "unknown"


def derive_publish_key(message_id: Optional[int]) -> str:
    """Clave de partición: el id en decimal o el centinela si no existe"""
    if message_id is None:
        return UNKNOWN_KEY
    return str(message_id)


class MessageTransport(Protocol):
    """Capacidad de envío del broker (thread-safe)"""

    def send(self, destination: str, key: str, record: WireRecord) -> "Future[PublishOutcome]":
        ...


class PublishMetrics:
    """Contadores de publicación, seguros para hilos"""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {
            "enqueued": 0,
            "delivered": 0,
            "delivery_failed": 0,
            "enqueue_failed": 0,
        }

    def increment(self, name: str):
        with self._lock:
            self._counters[name] += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)


class MessagePublisher:
    """Publica WireRecords en un único topic fijado en la construcción"""

    def __init__(
        self,
        transport: MessageTransport,
        topic: str = TOPIC_NAME,
        metrics: Optional[PublishMetrics] = None
    ):
        self._transport = transport
        self._topic = topic
        self.metrics = metrics or PublishMetrics()

    @property
    def topic(self) -> str:
        return self._topic

    def publish(self, record: WireRecord) -> None:
        """Encolar el registro y volver sin esperar la confirmación del broker.

        Raises:
            PublishEnqueueError: si el transporte no acepta el registro.
        """
        key = derive_publish_key(record.message_id)

        try:
            future = self._transport.send(self._topic, key, record)
        except PublishEnqueueError as e:
            self.metrics.increment("enqueue_failed")
            logger.error(f"Unable to enqueue message=[{record}] due to: {e}")
            raise
        except Exception as e:
            self.metrics.increment("enqueue_failed")
            logger.error(f"Unable to enqueue message=[{record}] due to: {e}")
            raise PublishEnqueueError(str(e)) from e

        self.metrics.increment("enqueued")
        logger.debug(f"Message enqueued on topic={self._topic} key={key}")
        future.add_done_callback(partial(self._on_send_complete, record))

    def _on_send_complete(self, record: WireRecord, future: "Future[PublishOutcome]") -> None:
        """Registrar exactamente un resultado (éxito o fallo) por envío"""
        if future.cancelled():
            self.metrics.increment("delivery_failed")
            logger.error(f"Unable to send message=[{record}] due to: send cancelled")
            return

        error = future.exception()
        if error is not None:
            self.metrics.increment("delivery_failed")
            logger.error(f"Unable to send message=[{record}] due to: {error}")
            return

        outcome = future.result()
        self.metrics.increment("delivered")
        logger.info(
            f"Sent message=[{record}] with offset=[{outcome.offset}] "
            f"partition=[{outcome.partition}] topic=[{outcome.topic}]"
        )
