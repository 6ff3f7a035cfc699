"""
Message Producer
================

Microservicio Python (FastAPI) que recibe mensajes de texto por HTTP y los
publica de forma asíncrona en el topic 'text_message' de Apache Pulsar.

Responsabilidades:
- Recibir y validar requests HTTP de clientes externos
- Traducir el mensaje al registro canónico del schema Avro
- Derivar la clave de partición a partir del identificador del mensaje
- Encolar el registro sin esperar la confirmación del broker
- Registrar el resultado de la entrega (log + métricas)
"""

from .config import Settings
from .models import InboundMessage, WireRecord, PublishOutcome, PublishAcknowledgement
from .translator import translate
from .publisher import MessagePublisher, PublishMetrics, derive_publish_key, TOPIC_NAME, UNKNOWN_KEY
from .pulsar_client import PulsarTransport

__all__ = [
    'Settings',
    'InboundMessage',
    'WireRecord',
    'PublishOutcome',
    'PublishAcknowledgement',
    'translate',
    'MessagePublisher',
    'PublishMetrics',
    'derive_publish_key',
    'TOPIC_NAME',
    'UNKNOWN_KEY',
    'PulsarTransport'
]
