import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional, Tuple

from .fleet import FleetStore
from .models import AmbulanceRead, AmbulanceStatus

logger = logging.getLogger(__name__)

OnTick = Callable[[List[AmbulanceRead]], Awaitable[None]]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class FleetSimulator:
    """Nudges idle ambulances around the service area on a fixed interval.

    Only available ambulances move. Busy and offline ones stay put, and the
    simulator never touches status.
    """

    def __init__(
        self,
        fleet: FleetStore,
        interval: float = 3.0,
        jitter: float = 0.001,
        service_area: Tuple[float, float, float, float] = (26.82, 26.98, 75.72, 75.88),
        rng: Optional[random.Random] = None,
        on_tick: Optional[OnTick] = None,
    ):
        self.fleet = fleet
        self.interval = interval
        self.jitter = jitter
        self.min_lat, self.max_lat, self.min_lon, self.max_lon = service_area
        self.rng = rng or random.Random()
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def tick(self) -> List[AmbulanceRead]:
        moved = []
        for a in self.fleet.list():
            if a.status != AmbulanceStatus.AVAILABLE:
                continue
            lat = clamp(a.latitude + self.rng.uniform(-self.jitter, self.jitter), self.min_lat, self.max_lat)
            lon = clamp(a.longitude + self.rng.uniform(-self.jitter, self.jitter), self.min_lon, self.max_lon)
            updated = self.fleet.set_position(a.id, lat, lon)
            if updated:
                moved.append(updated)
        logger.debug("Simulator moved %d ambulances", len(moved))
        return moved

    async def run(self):
        self._running = True
        logger.info("Fleet simulator started (every %.1fs)", self.interval)
        try:
            while self._running:
                moved = self.tick()
                if self.on_tick and moved:
                    await self.on_tick(moved)
                await asyncio.sleep(self.interval)
        finally:
            self._running = False
            logger.info("Fleet simulator stopped")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
