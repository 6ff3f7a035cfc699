"""
FastAPI Application - Message Producer
"""
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

# Importar módulos locales
from .config import get_settings
from .exceptions import PublishEnqueueError
from .models import (
    InboundMessage, PublishAcknowledgement,
    HealthCheckResponse, HealthStatus, MetricsResponse, ErrorResponse
)
from .publisher import MessagePublisher
from .pulsar_client import PulsarTransport
from .translator import translate

settings = get_settings()

# Configurar logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

ACCEPTED_STATUS = "Message sent to Pulsar topic"
MISSING_ID_ECHO = "N/A"

# Instancias globales (se inicializan en el lifespan)
pulsar_transport: Optional[PulsarTransport] = None
message_publisher: Optional[MessagePublisher] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestión del ciclo de vida de la aplicación"""
    global pulsar_transport, message_publisher

    # Startup
    logger.info("🚀 Iniciando Message Producer...")
    transport = PulsarTransport(settings)

    try:
        await transport.connect()
        pulsar_transport = transport
        message_publisher = MessagePublisher(transport)
        logger.info("✅ Message Producer iniciado correctamente")
    except Exception as e:
        logger.error(f"❌ Error iniciando Message Producer: {e}")
        if not settings.debug:
            raise
        logger.warning("⚠️ Continuando en modo debug sin Pulsar")

    yield

    # Shutdown
    logger.info("🛑 Cerrando Message Producer...")
    if pulsar_transport:
        await pulsar_transport.disconnect()
    pulsar_transport = None
    message_publisher = None
    logger.info("✅ Message Producer cerrado correctamente")


# Crear aplicación FastAPI
app = FastAPI(
    title="Text Message Producer",
    description="Publica mensajes de texto en el topic 'text_message' de Apache Pulsar",
    version=settings.service_version,
    lifespan=lifespan
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_publisher() -> Optional[MessagePublisher]:
    """Obtener el publisher compartido"""
    return message_publisher


def get_transport() -> Optional[PulsarTransport]:
    """Obtener el transporte Pulsar compartido"""
    return pulsar_transport


def _error_response(status_code: int, error_code: str, message: str, **extra) -> JSONResponse:
    error_response = ErrorResponse(
        error_code=error_code,
        error_message=message,
        timestamp=datetime.now(timezone.utc),
        **extra
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


def jsonable_errors(exc: RequestValidationError):
    """Errores de validación sin objetos no serializables (ctx puede traer excepciones)"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """JSON mal formado o tipos inválidos -> 400"""
    logger.warning(f"Invalid message payload: {exc.errors()}")
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "INVALID_MESSAGE",
        "Invalid message format",
        details={"errors": jsonable_errors(exc)}
    )


@app.exception_handler(PublishEnqueueError)
async def enqueue_exception_handler(request: Request, exc: PublishEnqueueError):
    """El transporte no aceptó el mensaje -> 503"""
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "PUBLISH_UNAVAILABLE",
        f"Message could not be enqueued: {exc}"
    )


# Exception handler global
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Manejo global de excepciones"""
    trace_id = str(uuid.uuid4())
    logger.error(f"Global exception [trace_id: {trace_id}]: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "Internal server error",
        trace_id=trace_id
    )


# Message Endpoints
@app.post(
    "/api/messages",
    response_model=PublishAcknowledgement,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid message format"},
        503: {"model": ErrorResponse, "description": "Message could not be enqueued"},
    },
    tags=["messages"]
)
async def publish_message(
    message: InboundMessage,
    publisher: Optional[MessagePublisher] = Depends(get_publisher)
):
    """
    Publicar un mensaje de texto en el topic 'text_message'

    La respuesta confirma que el mensaje fue encolado, no que el broker lo haya recibido.
    """
    if publisher is None:
        raise PublishEnqueueError("Pulsar transport not connected")

    publisher.publish(translate(message))

    return PublishAcknowledgement(
        status=ACCEPTED_STATUS,
        message_id=str(message.message_id) if message.message_id is not None else MISSING_ID_ECHO
    )


# Health Check Endpoints
@app.get("/health", response_model=HealthCheckResponse, tags=["health"])
async def health_check(transport: Optional[PulsarTransport] = Depends(get_transport)):
    """Health check endpoint"""
    checks = {}
    overall_status = HealthStatus.HEALTHY

    if transport:
        pulsar_health = transport.get_health_status()
        checks["pulsar"] = pulsar_health
        if not pulsar_health.get("connected", False):
            overall_status = HealthStatus.DEGRADED
    else:
        checks["pulsar"] = {"status": "not_connected"}
        overall_status = HealthStatus.DEGRADED

    return HealthCheckResponse(
        service_name=settings.service_name,
        status=overall_status,
        version=settings.service_version,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
        metadata={
            "environment": "development" if settings.debug else "production"
        }
    )


@app.get("/health/ready", tags=["health"])
async def readiness_check(publisher: Optional[MessagePublisher] = Depends(get_publisher)):
    """Readiness check para Kubernetes"""
    if publisher is None:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"status": "not_ready"})
    return {"status": "ready"}


@app.get("/health/live", tags=["health"])
async def liveness_check():
    """Liveness check para Kubernetes"""
    return {"status": "alive"}


@app.get("/metrics", response_model=MetricsResponse, tags=["health"])
async def metrics(publisher: Optional[MessagePublisher] = Depends(get_publisher)):
    """Contadores de publicación"""
    return MetricsResponse(
        service_name=settings.service_name,
        timestamp=datetime.now(timezone.utc),
        metrics=publisher.metrics.snapshot() if publisher else {}
    )


# Información de la aplicación
@app.get("/")
async def root():
    """Información básica del servicio"""
    return {
        "service": "Text Message Producer",
        "version": settings.service_version,
        "status": "running",
        "endpoints": {
            "publish_message": "/api/messages",
            "health": "/health",
            "metrics": "/metrics",
            "docs": "/docs"
        }
    }
