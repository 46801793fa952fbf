import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from models.record import JobResult, RecordBase

logger = logging.getLogger(__name__)

class SimulatedJobRunner:
    """
    Stand-in for a real ingestion/crawl backend.
    - Waits a random delay inside the latency bounds, then returns a random result count.
    - Never touches the record store and never fails; the caller owns all state changes.
    """

    def __init__(self,
                 latency_ms: tuple[int, int] = (600, 1400),
                 result_range: tuple[int, int] = (5, 25),
                 rng: Optional[random.Random] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if latency_ms[0] > latency_ms[1] or result_range[0] > result_range[1]:
            raise ValueError("Range bounds must be ordered (min <= max)")
        self.latency_ms = latency_ms
        self.result_range = result_range
        self.rng = rng or random.Random()
        self._sleep = sleep

    async def run(self, record: RecordBase) -> JobResult:
        delay_ms = self.rng.randint(*self.latency_ms)
        logger.info(f"[sim] job for record {record.id} ({record.label}) takes {delay_ms}ms")
        await self._sleep(delay_ms / 1000)
        return JobResult(result_count=self.rng.randint(*self.result_range), elapsed_ms=delay_ms)
