from typing import Any, Optional
from fastapi import APIRouter, Depends, Query

from diamondapi.core.auth_middleware import get_current_user
from diamondapi.deps import get_ledger_service
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.user import User as UserSchema
from diamondapi.services.ledger_service import LedgerService

router = APIRouter(prefix="/balance-logs", tags=["balance-logs"])


@router.get("", response_model=BaseResponse)
def list_balance_logs(
    supplier_id: Optional[int] = Query(None, description="SUPPLIER는 무시되고 본인 공급자로 고정"),
    limit: Optional[int] = Query(None),
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> Any:
    """잔액 원장 조회 (최신순)"""
    result = ledger_service.list_logs(current_user, supplier_id=supplier_id, limit=limit)
    return BaseResponse(success=True, data=result.model_dump(mode="json"))
