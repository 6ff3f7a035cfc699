"""
Transporte Apache Pulsar con schema Avro y circuit breaker
"""
import pulsar
from pulsar.schema import AvroSchema, Boolean, Integer, Record, String
import logging
import threading
import time
from concurrent.futures import Future
from enum import Enum
from typing import Optional, Dict, Any

from .config import Settings
from .exceptions import CircuitBreakerOpenError, PublishDeliveryError, PublishEnqueueError
from .models import PublishOutcome, WireRecord
from .publisher import TOPIC_NAME


logger = logging.getLogger(__name__)


class TextMessage(Record):
    """Schema Avro del topic text_message"""
    _avro_namespace = "textstream.avro"

    title = String()
    body = String()
    sender = String()
    receiver = String()
    message_id = Integer()
    is_important = Boolean(default=False, required=True)


def to_schema_record(record: WireRecord) -> TextMessage:
    """Convertir el registro canónico en el Record que serializa el producer"""
    return TextMessage(
        title=record.title,
        body=record.body,
        sender=record.sender,
        receiver=record.receiver,
        message_id=record.message_id,
        is_important=record.is_important,
    )


class CircuitBreakerState(Enum):
    """Estados del circuit breaker"""
    CLOSED = "closed"      # Funcionando normalmente
    OPEN = "open"          # Fallos detectados, requests rechazados
    HALF_OPEN = "half_open"  # Probando si el servicio se recuperó


class CircuitBreaker:
    """Circuit breaker simple para Pulsar (compartido entre hilos)"""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time = None
        self.state = CircuitBreakerState.CLOSED
        self._lock = threading.Lock()
        self._trial_in_flight = False

    def call(self, func, *args, **kwargs):
        """Ejecutar función con circuit breaker"""
        with self._lock:
            if self.state == CircuitBreakerState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitBreakerState.HALF_OPEN
                else:
                    raise CircuitBreakerOpenError("Circuit breaker is OPEN")
            if self.state == CircuitBreakerState.HALF_OPEN:
                # Una sola llamada de prueba mientras está medio abierto
                if self._trial_in_flight:
                    raise CircuitBreakerOpenError("Circuit breaker is HALF_OPEN (trial in progress)")
                self._trial_in_flight = True

        try:
            result = func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _should_attempt_reset(self) -> bool:
        """Verificar si debemos intentar resetear el circuit breaker"""
        return (time.time() - self.last_failure_time) > self.recovery_timeout

    def _on_success(self):
        with self._lock:
            self.failure_count = 0
            self.state = CircuitBreakerState.CLOSED
            self._trial_in_flight = False

    def _on_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.time()
            if self.state == CircuitBreakerState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitBreakerState.OPEN
            self._trial_in_flight = False


class PulsarTransport:
    """Cliente de Pulsar compartido por todo el proceso"""

    def __init__(self, settings: Settings, topics: tuple = (TOPIC_NAME,)):
        self.settings = settings
        self.topics = topics
        self.client: Optional[pulsar.Client] = None
        self.producers: Dict[str, pulsar.Producer] = {}
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.circuit_breaker_failure_threshold,
            recovery_timeout=settings.circuit_breaker_recovery_timeout
        )
        self._connected = False

    async def connect(self):
        """Conectar a Pulsar"""
        try:
            logger.info(f"Conectando a Pulsar: {self.settings.pulsar_url}")

            self.client = pulsar.Client(
                self.settings.pulsar_url,
                connection_timeout_ms=self.settings.pulsar_connection_timeout_ms,
                operation_timeout_seconds=self.settings.pulsar_operation_timeout_seconds,
                log_conf_file_path=None  # Deshabilitar logs verbose de Pulsar
            )

            await self._create_producers()

            self._connected = True
            logger.info("Conectado a Pulsar exitosamente")

        except Exception as e:
            logger.error(f"Error conectando a Pulsar: {e}")
            raise

    async def _create_producers(self):
        """Crear un producer con schema Avro por topic"""
        for topic in self.topics:
            producer = self.client.create_producer(
                topic,
                schema=AvroSchema(TextMessage),
                batching_enabled=True,
                batching_max_messages=self.settings.producer_batch_size,
                batching_max_allowed_size_in_bytes=1024*1024,  # 1MB
                batching_max_publish_delay_ms=self.settings.producer_batch_timeout_ms,
                send_timeout_millis=self.settings.producer_send_timeout_ms,
                max_pending_messages=self.settings.producer_max_pending_messages,
                block_if_queue_full=False
            )
            self.producers[topic] = producer
            logger.info(f"Producer creado para topic: {topic}")

    async def disconnect(self):
        """Desconectar de Pulsar"""
        if not self._connected:
            return

        for topic, producer in self.producers.items():
            try:
                producer.flush()
                producer.close()
                logger.info(f"Producer cerrado para topic: {topic}")
            except Exception as e:
                logger.error(f"Error cerrando producer {topic}: {e}")
        self.producers.clear()

        if self.client:
            try:
                self.client.close()
                logger.info("Cliente Pulsar cerrado")
            except Exception as e:
                logger.error(f"Error cerrando cliente Pulsar: {e}")

        self._connected = False

    def send(self, destination: str, key: str, record: WireRecord) -> "Future[PublishOutcome]":
        """Encolar un registro; el future se resuelve desde el hilo de IO de Pulsar

        Pulsar notifica los rechazos de encolado (cola llena, producer cerrado)
        invocando el callback dentro del propio send_async; esos resultados se
        convierten en PublishEnqueueError en lugar de resolver el future.
        """
        producer = self.producers.get(destination)
        if producer is None:
            raise PublishEnqueueError(f"Producer no encontrado para topic: {destination}")

        future: "Future[PublishOutcome]" = Future()
        caller_thread = threading.get_ident()
        enqueuing = True
        inline_results = []

        def resolve(result, message_id):
            if result == pulsar.Result.Ok:
                future.set_result(PublishOutcome(
                    topic=destination,
                    partition=message_id.partition(),
                    offset=message_id.entry_id(),
                    ledger_id=message_id.ledger_id()
                ))
            else:
                future.set_exception(PublishDeliveryError(f"Pulsar send failed: {result}"))

        def on_send(result, message_id):
            if enqueuing and threading.get_ident() == caller_thread:
                inline_results.append((result, message_id))
                return
            resolve(result, message_id)

        def enqueue():
            nonlocal enqueuing
            try:
                producer.send_async(to_schema_record(record), on_send, partition_key=key)
            finally:
                enqueuing = False

            if inline_results:
                result, message_id = inline_results[0]
                if result != pulsar.Result.Ok:
                    raise PublishEnqueueError(f"Pulsar rejected message for {destination}: {result}")
                resolve(result, message_id)

        try:
            self.circuit_breaker.call(enqueue)
        except PublishEnqueueError:
            raise
        except Exception as e:
            raise PublishEnqueueError(f"Error encolando mensaje en {destination}: {e}") from e

        return future

    def get_health_status(self) -> Dict[str, Any]:
        """Obtener estado de salud del cliente Pulsar"""
        return {
            "connected": self._connected,
            "circuit_breaker_state": self.circuit_breaker.state.value,
            "failure_count": self.circuit_breaker.failure_count,
            "producers_count": len(self.producers)
        }
