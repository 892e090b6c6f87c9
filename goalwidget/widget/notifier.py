"""Best-effort "refresh now" signal to the native renderer."""

import asyncio
import json
import logging
from typing import Optional

import websockets

logger = logging.getLogger(__name__)


class WidgetNotifier:
    """Tells the renderer a new snapshot is ready over a websocket."""

    def __init__(self, notify_url: Optional[str] = None, timeout: float = 5.0):
        """
        Initialize notifier.

        Args:
            notify_url: Renderer websocket URL (e.g., ws://127.0.0.1:8765/refresh).
                Unset means the renderer has not registered a channel yet.
            timeout: Seconds to wait for the connection and send
        """
        self.notify_url = notify_url
        self.timeout = timeout

    async def notify(self, generated_at: Optional[int] = None) -> bool:
        """
        Send one refresh signal.

        Failures are logged and swallowed; the renderer polls the store anyway.

        Returns:
            True if the signal was delivered
        """
        if not self.notify_url:
            logger.debug("Widget notification skipped (no renderer channel)")
            return False

        message = {"type": "refresh", "generatedAt": generated_at}
        try:
            async with asyncio.timeout(self.timeout):
                async with websockets.connect(
                    self.notify_url, open_timeout=self.timeout
                ) as websocket:
                    await websocket.send(json.dumps(message))
        except Exception as e:
            logger.warning(f"Widget update notification failed: {e}")
            return False

        logger.debug(f"Widget update notification sent to {self.notify_url}")
        return True
