"""
관리자 전용 API

- GET /admin/stats: 주문 통계
- GET /admin/ledger/integrity: 전체 공급자 원장 정합성 검증
- GET /admin/ledger/integrity/{supplier_id}: 단일 공급자 원장 정합성 검증
- POST /admin/sweep: 선물 준비 스윕 즉시 실행
"""

from typing import Any
from fastapi import APIRouter, Depends, Path
import logging

from diamondapi.core.auth_middleware import require_admin
from diamondapi.deps import get_ledger_service, get_stats_service, get_sweeper
from diamondapi.schemas.admin import SweepResponse
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.user import User as UserSchema
from diamondapi.services.ledger_service import LedgerService
from diamondapi.services.stats_service import StatsService
from diamondapi.services.sweeper_service import ReadyForGiftingSweeper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=BaseResponse)
def get_stats(
    current_user: UserSchema = Depends(require_admin),
    stats_service: StatsService = Depends(get_stats_service),
) -> Any:
    stats = stats_service.get_admin_stats(current_user)
    return BaseResponse(success=True, data=stats.model_dump(mode="json"))


@router.get("/ledger/integrity", response_model=BaseResponse)
def verify_global_integrity(
    current_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> Any:
    result = ledger_service.verify_integrity(current_user)
    return BaseResponse(success=True, data=result.model_dump(mode="json"))


@router.get("/ledger/integrity/{supplier_id}", response_model=BaseResponse)
def verify_supplier_integrity(
    supplier_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> Any:
    result = ledger_service.verify_integrity(current_user, supplier_id)
    return BaseResponse(success=True, data=result.model_dump(mode="json"))


@router.post("/sweep", response_model=BaseResponse)
def run_sweep(
    current_user: UserSchema = Depends(require_admin),
    sweeper: ReadyForGiftingSweeper = Depends(get_sweeper),
) -> Any:
    promoted = sweeper.sweep()
    logger.info(f"Manual sweep by user {current_user.id}: promoted={promoted}")
    return BaseResponse(success=True, data=SweepResponse(promoted=promoted).model_dump())
