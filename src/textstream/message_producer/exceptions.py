"""
Excepciones del Message Producer
"""


class MessageProducerError(Exception):
    """Error base del servicio"""


class PublishEnqueueError(MessageProducerError):
    """El transporte no pudo aceptar el registro (se reporta de forma síncrona al caller)"""


class CircuitBreakerOpenError(PublishEnqueueError):
    """El circuit breaker está abierto y rechaza envíos"""


class PublishDeliveryError(MessageProducerError):
    """El broker rechazó o no confirmó un registro ya encolado"""
