"""
Traducción del mensaje HTTP al registro canónico del topic
"""
from typing import Optional

from .models import InboundMessage, WireRecord


# Sin identificador se publica null; la clave de partición pasa a ser el centinela
MESSAGE_ID_DEFAULT: Optional[int] = None
IS_IMPORTANT_DEFAULT = False


def translate(msg: InboundMessage) -> WireRecord:
    """Construir un WireRecord nuevo a partir del mensaje recibido.

    Copia los seis campos uno a uno y sustituye los opcionales ausentes por los
    defaults del schema. No valida ni modifica el mensaje de entrada.
    """
    message_id = msg.message_id if msg.message_id is not None else MESSAGE_ID_DEFAULT
    is_important = msg.is_important if msg.is_important is not None else IS_IMPORTANT_DEFAULT

    return WireRecord(
        title=msg.title,
        body=msg.body,
        sender=msg.sender,
        receiver=msg.receiver,
        message_id=message_id,
        is_important=is_important,
    )
