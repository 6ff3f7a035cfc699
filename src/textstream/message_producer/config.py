"""
Configuración del Message Producer
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Configuración del Message Producer"""

    # Información del servicio
    service_name: str = "message-producer"
    service_version: str = "1.0.0"

    # FastAPI settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Pulsar configuration
    pulsar_url: str = "pulsar://localhost:6650"
    pulsar_connection_timeout_ms: int = 10000
    pulsar_operation_timeout_seconds: int = 30

    # Security
    allowed_origins: List[str] = ["*"]

    # Observability
    log_level: str = "INFO"

    # Pulsar producer settings
    producer_batch_size: int = 100
    producer_batch_timeout_ms: int = 10
    producer_send_timeout_ms: int = 30000
    producer_max_pending_messages: int = 1000

    # Circuit breaker settings
    circuit_breaker_failure_threshold: int = 5
    circuit_breaker_recovery_timeout: int = 60

    model_config = {
        "env_prefix": "MESSAGE_PRODUCER_",
        "case_sensitive": False
    }


# Instancia global de configuración
settings = Settings()


def get_settings() -> Settings:
    """Obtener configuración (útil para dependency injection en FastAPI)"""
    return settings
