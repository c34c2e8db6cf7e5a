"""Push-update channel.

The service can stream ``{"data": [...], "filters": {...}}`` payloads over
a websocket. Each frame is parsed exactly like a fetch response body.
Connection problems surface as TransientError so the controller can
reconnect after a delay.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable

import websockets
from websockets.exceptions import WebSocketException

from vizsync.client import parse_data_payload
from vizsync.errors import ClientError, TransientError
from vizsync.record_types import DataResponse

logger = logging.getLogger(__name__)

PushSource = Callable[[str], AsyncIterator[str | bytes]]


def parse_push_message(message: str | bytes) -> DataResponse:
    """Decode one push frame into a data payload.

    Raises:
        ClientError: If the frame is not JSON or not a data payload.
    """
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ClientError(f"Push message is not UTF-8: {exc}") from exc
    try:
        body = json.loads(message)
    except json.JSONDecodeError as exc:
        raise ClientError(f"Push message is not valid JSON: {exc}") from exc
    return parse_data_payload(body)


async def websocket_messages(url: str) -> AsyncIterator[str | bytes]:
    """Yield frames from the push websocket until it closes.

    Raises:
        TransientError: On connection failure or abnormal closure.
    """
    try:
        async with websockets.connect(url) as ws:
            logger.info("Push channel connected: %s", url)
            async for message in ws:
                yield message
    except (OSError, WebSocketException) as exc:
        raise TransientError(f"Push channel {url} failed: {exc}") from exc
