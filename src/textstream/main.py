import uvicorn

from .message_producer.app import app
from .message_producer.config import get_settings


def run():
    """Arrancar el servicio con uvicorn"""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
