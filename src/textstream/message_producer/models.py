"""
Modelos Pydantic para requests/responses y el registro canónico que viaja a Pulsar
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class HealthStatus(str, Enum):
    """Estados de salud del servicio"""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class InboundMessage(BaseModel):
    """Mensaje de texto recibido por HTTP (ningún campo es obligatorio en esta capa)"""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="Título del mensaje", examples=["Test"])
    body: Optional[str] = Field(None, description="Cuerpo del mensaje", examples=["This is a test message"])
    sender: Optional[str] = Field(None, description="Emisor del mensaje", examples=["user 1"])
    receiver: Optional[str] = Field(None, description="Receptor del mensaje", examples=["user 2"])
    message_id: Optional[int] = Field(
        None,
        alias="messageId",
        description="Identificador único del mensaje",
        ge=INT32_MIN,
        le=INT32_MAX,
        examples=[35],
    )
    is_important: Optional[bool] = Field(
        None,
        alias="isImportant",
        description="Indica si el mensaje es importante",
        examples=[False],
    )


class WireRecord(BaseModel):
    """Registro canónico ligado al schema Avro del topic; inmutable una vez construido"""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    body: Optional[str] = None
    sender: Optional[str] = None
    receiver: Optional[str] = None
    # null explícito en el schema cuando el cliente no envía identificador
    message_id: Optional[int] = None
    is_important: bool = False


class PublishOutcome(BaseModel):
    """Resultado de un envío confirmado por el broker"""
    model_config = ConfigDict(frozen=True)

    topic: str
    partition: int = Field(..., description="Partición asignada (-1 si el topic no está particionado)")
    offset: int = Field(..., description="Posición asignada dentro del ledger (entry id)")
    ledger_id: int


class PublishAcknowledgement(BaseModel):
    """Response al aceptar un mensaje: confirma el encolado, no la entrega"""
    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., description="Estado del procesamiento")
    message_id: str = Field(..., alias="messageId", description="Eco del identificador o 'N/A'")


class HealthCheckResponse(BaseModel):
    """Response del health check"""
    service_name: str
    status: HealthStatus
    version: str
    timestamp: datetime
    checks: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, str] = Field(default_factory=dict)


class MetricsResponse(BaseModel):
    """Response con métricas del servicio"""
    service_name: str
    timestamp: datetime
    metrics: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Response de error estándar"""
    error_code: str
    error_message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime
    trace_id: Optional[str] = None
