"""
Monitoring endpoints: run a tick on demand and inspect engine stats.
"""

from fastapi import APIRouter

from autobook.dependencies import Service
from autobook.models import MonitorStats, TransitionEvent

router = APIRouter(prefix="/api/monitor", tags=["monitor"])


@router.post(
    "/tick",
    response_model=list[TransitionEvent],
    operation_id="runMonitorTick",
    summary="Evaluate every live booking now",
)
async def run_monitor_tick(service: Service) -> list[TransitionEvent]:
    return service.tick()


@router.get(
    "/stats",
    response_model=MonitorStats,
    operation_id="getMonitorStats",
    summary="Monitoring engine statistics",
)
async def get_monitor_stats(service: Service) -> MonitorStats:
    return service.stats()
