import asyncio, contextlib, logging, threading
from typing import Any, Callable, List, Protocol, Set

from .state import StatusSnapshot, snapshot_payload

logger = logging.getLogger(__name__)

# Internal error, the client is expected to reconnect.
CLOSE_CODE_DROPPED = 1011

class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...

class Broadcaster:
    """
    Keeps the live subscribers and pushes snapshots to them.

    A subscriber that fails or times out on a send is dropped and its
    connection closed; the others still receive the snapshot. ``publish``
    returns immediately, so delivery never holds up the caller.
    """

    def __init__(self, snapshot_source: Callable[[], StatusSnapshot], send_timeout_s: float = 5.0):
        self._snapshot_source = snapshot_source
        self._send_timeout_s = send_timeout_s
        self._lock = threading.Lock()
        self._subscribers: Set[Subscriber] = set()
        self._deliveries: Set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def pending_deliveries(self) -> int:
        return len(self._deliveries)

    def _members(self) -> List[Subscriber]:
        with self._lock:
            return list(self._subscribers)

    async def subscribe(self, subscriber: Subscriber) -> bool:
        """Register ``subscriber`` and send it the current snapshot."""
        with self._lock:
            self._subscribers.add(subscriber)
        payload = snapshot_payload(self._snapshot_source())
        if await self._send(subscriber, payload):
            return True
        await self._drop(subscriber)
        return False

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.discard(subscriber)

    async def _drop(self, subscriber: Subscriber) -> None:
        self.unsubscribe(subscriber)
        # The socket may be half-written after a cancelled send; closing is best effort.
        with contextlib.suppress(Exception):
            await asyncio.wait_for(subscriber.close(code=CLOSE_CODE_DROPPED),
                                   timeout=self._send_timeout_s)

    async def _send(self, subscriber: Subscriber, payload: List[dict]) -> bool:
        try:
            await asyncio.wait_for(subscriber.send_json(payload), timeout=self._send_timeout_s)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Timed out writing to websocket after {self._send_timeout_s}s")
        except Exception as e:
            logger.warning(f"Error writing to websocket: {e}")
        return False

    async def broadcast(self, snapshot: StatusSnapshot) -> int:
        """Send ``snapshot`` to every subscriber and wait for all deliveries."""
        members = self._members()
        if not members:
            return 0
        payload = snapshot_payload(snapshot)
        sent = await asyncio.gather(*(self._send(s, payload) for s in members))
        failed = [s for s, ok in zip(members, sent) if not ok]
        if failed:
            await asyncio.gather(*(self._drop(s) for s in failed))
        return len(members) - len(failed)

    def publish(self, snapshot: StatusSnapshot) -> asyncio.Task:
        """Start delivering ``snapshot`` in the background and return the task."""
        task = asyncio.create_task(self.broadcast(snapshot), name="status-broadcast")
        self._deliveries.add(task)
        task.add_done_callback(self._delivery_done)
        return task

    def _delivery_done(self, task: asyncio.Task) -> None:
        self._deliveries.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Broadcast failed: {exc!r}")
        else:
            logger.debug(f"Broadcast delivered to {task.result()} subscribers")

    async def drain(self) -> None:
        """Wait for deliveries started by ``publish``."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)
