import asyncio
import contextlib

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from gradebook.services.sync_status import get_status

POLL_SECONDS = 3


class SyncStatusConsumer(AsyncJsonWebsocketConsumer):
    """
    Pushes the cloud sync status (idle / syncing / synced / error) to the
    browser whenever it changes, so the header badge needs no polling.
    """

    async def connect(self):
        await self.accept()
        self._running = True
        self._last = None
        await self.send_status()
        self._task = asyncio.create_task(self._loop())

    async def disconnect(self, close_code):
        self._running = False
        if hasattr(self, "_task"):
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def _loop(self):
        while self._running:
            await asyncio.sleep(POLL_SECONDS)
            await self.send_status()

    async def send_status(self):
        status = get_status()
        if status is None:
            status = {"status": "unknown", "error": None, "updated_at": None}
        if status == self._last:
            return
        self._last = status
        await self.send_json({"type": "sync_status", **status})
