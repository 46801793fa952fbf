import asyncio
import logging
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

class PollingReconciler(Generic[T]):
    """
    Keeps a snapshot of a record list eventually consistent with its source.
    - start(): loads immediately, then re-loads every `interval` seconds.
    - stop(): cancels the interval; no task outlives the owner.
    Each reload fully replaces the snapshot.
    """

    def __init__(self,
                 loader: Callable[[], Awaitable[List[T]]],
                 interval: float = 5.0,
                 on_snapshot: Optional[Callable[[List[T]], None]] = None):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.loader = loader
        self.interval = interval
        self.on_snapshot = on_snapshot
        self.snapshot: List[T] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def reconcile(self) -> List[T]:
        self.snapshot = list(await self.loader())
        if self.on_snapshot:
            self.on_snapshot(self.snapshot)
        return self.snapshot

    async def _loop(self):
        while True:
            try:
                await self.reconcile()
            except Exception:
                # Keep the previous snapshot and try again next tick
                logger.exception("Polling reload failed")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *exc):
        await self.stop()
