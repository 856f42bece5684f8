"""
Connected booking-site accounts.
"""

from fastapi import APIRouter, status

from autobook.dependencies import Service
from autobook.models import ConnectedAccount

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get(
    "",
    response_model=list[ConnectedAccount],
    operation_id="listAccounts",
    summary="List connected accounts",
)
async def list_accounts(service: Service) -> list[ConnectedAccount]:
    return service.accounts.accounts()


@router.post(
    "",
    response_model=ConnectedAccount,
    status_code=status.HTTP_201_CREATED,
    operation_id="connectAccount",
    summary="Connect (or update) an account",
)
async def connect_account(body: ConnectedAccount, service: Service) -> ConnectedAccount:
    return service.connect_account(body)
