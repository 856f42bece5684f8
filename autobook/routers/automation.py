"""
Automation policy endpoints (auto-cancel and auto-rebook settings).
"""

from fastapi import APIRouter

from autobook.dependencies import Service
from autobook.models import AutoCancelSettings

router = APIRouter(prefix="/api/automation", tags=["automation"])


@router.get(
    "",
    response_model=AutoCancelSettings,
    operation_id="getAutomationSettings",
    summary="Current auto-cancel / auto-rebook policy",
)
async def get_automation_settings(service: Service) -> AutoCancelSettings:
    return service.settings


@router.put(
    "",
    response_model=AutoCancelSettings,
    operation_id="putAutomationSettings",
    summary="Replace the auto-cancel / auto-rebook policy",
)
async def put_automation_settings(body: AutoCancelSettings, service: Service) -> AutoCancelSettings:
    return service.update_settings(body)
