import asyncio, json, time, logging
from typing import List, Optional, Sequence

import httpx

from .broadcaster import Broadcaster
from .checker import Checker, ProbeResult
from .config import Settings
from .state import StateStore, StatusSnapshot

logger = logging.getLogger(__name__)

class RoundScheduler:
    """
    Runs probing rounds back to back with a fixed pause in between.

    Each round probes every endpoint concurrently, waits for all of them and
    only then publishes: apply to the store, persist, and hand the snapshot
    to the broadcaster without waiting for delivery.
    """

    def __init__(self, urls: Sequence[str], checker: Checker, store: StateStore,
                 broadcaster: Broadcaster, settings: Settings):
        self.urls = list(urls)
        self.checker = checker
        self.store = store
        self.broadcaster = broadcaster
        self.settings = settings
        self.rounds_completed = 0
        self.last_round_at: Optional[float] = None
        self._stopping = asyncio.Event()

    @property
    def concurrency(self) -> int:
        if self.settings.MAX_CONCURRENCY > 0:
            return min(self.settings.MAX_CONCURRENCY, max(1, len(self.urls)))
        return max(1, len(self.urls))

    async def run_round(self) -> List[ProbeResult]:
        sem = asyncio.Semaphore(self.concurrency)

        async def probe(client: httpx.AsyncClient, url: str) -> ProbeResult:
            async with sem:
                return await self.checker.check_one(client, url)

        async with self.checker.client(max_connections=self.concurrency) as client:
            return list(await asyncio.gather(*(probe(client, url) for url in self.urls)))

    async def publish(self, results: List[ProbeResult]) -> StatusSnapshot:
        snapshot = self.store.apply_round(results)
        await asyncio.to_thread(self.store.persist, snapshot, self.settings.state_file)
        self.broadcaster.publish(snapshot)
        self.rounds_completed += 1
        self.last_round_at = time.time()
        logger.info(f"Currently connected clients: {self.broadcaster.subscriber_count}")
        return snapshot

    async def tick(self) -> StatusSnapshot:
        started = time.monotonic()
        results = await self.run_round()
        snapshot = await self.publish(results)
        logger.info(json.dumps({
            "round": self.rounds_completed,
            "endpoints": len(results),
            "healthy": sum(1 for r in results if r.healthy),
            "unhealthy": sum(1 for r in results if not r.healthy),
            "elapsed_ms": int((time.monotonic() - started) * 1000),
        }))
        return snapshot

    async def run_forever(self) -> None:
        logger.info(f"Polling {len(self.urls)} endpoints every {self.settings.INTERVAL_S}s")
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Status round failed")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.settings.INTERVAL_S)
            except asyncio.TimeoutError:
                pass
        logger.info("Polling stopped")

    def stop(self) -> None:
        self._stopping.set()
