from typing import Optional, Tuple
from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.core.access_policy import Operation, Scope, enforce
from diamondapi.core.exceptions import InvalidStateError, NotFoundError
from diamondapi.database.transaction import run_atomic
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.repositories.supplier_repository import SupplierRepository
from diamondapi.repositories.user_repository import UserRepository
from diamondapi.schemas.balance_log import BalanceLogListResponse, LedgerIntegrityResponse
from diamondapi.schemas.supplier import BalanceAdjustmentRequest, BalanceAdjustmentResponse
from diamondapi.schemas.user import User as UserSchema
import logging

logger = logging.getLogger(__name__)


class LedgerService:
    """공급자 잔액 직접 조정, 원장 조회, 정합성 검증"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.ledger_repo = LedgerRepository(db)
        self.supplier_repo = SupplierRepository(db)
        self.user_repo = UserRepository(db)

    @staticmethod
    def compute_delta(current_balance: int, request: BalanceAdjustmentRequest) -> int:
        """목표 잔액(new_balance)이 있으면 우선, 없으면 증감량(change_amount)"""
        if request.new_balance is not None:
            return request.new_balance - current_balance
        if request.change_amount is not None:
            return request.change_amount
        raise InvalidStateError("Either change_amount or new_balance must be provided")

    def adjust_balance(
        self,
        current_user: UserSchema,
        supplier_id: int,
        request: BalanceAdjustmentRequest,
    ) -> BalanceAdjustmentResponse:
        """
        잔액 직접 조정 (수동 충전 등)

        Args:
            current_user: 요청 사용자 (ADMIN 또는 해당 공급자)
            supplier_id: 대상 공급자 ID
            request: 목표 잔액 또는 증감량 + 사유

        Returns:
            BalanceAdjustmentResponse: 조정 후 공급자 정보와 실제 적용된 증감량.
            증감량이 0이면 아무것도 기록하지 않고 현재 공급자를 그대로 반환합니다.
        """
        scope = enforce(current_user.role, Operation.BALANCE_ADJUST)
        if scope == Scope.OWN:
            owns = self.user_repo.get_linked_supplier_id(current_user.id) == supplier_id
            enforce(
                current_user.role,
                Operation.BALANCE_ADJUST,
                owns_resource=owns,
                resource="Supplier",
            )

        def work() -> Tuple[int, Optional[int]]:
            supplier = self.ledger_repo.lock_supplier(supplier_id)
            if supplier is None:
                raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})

            delta = self.compute_delta(supplier.diamond_balance, request)
            entry = self.ledger_repo.apply_delta(supplier_id, delta, request.reason)
            return delta, entry.id if entry else None

        delta, log_id = run_atomic(
            self.db,
            work,
            label=f"supplier {supplier_id} balance adjustment",
            max_attempts=self.settings.TX_MAX_ATTEMPTS,
        )

        if delta:
            logger.info(
                f"Balance adjusted for supplier {supplier_id} by user {current_user.id}: "
                f"delta={delta} reason={request.reason!r}"
            )
        else:
            logger.info(f"Balance adjustment for supplier {supplier_id} was a no-op")

        return BalanceAdjustmentResponse(
            supplier=self.supplier_repo.get_joined(supplier_id),
            change_amount=delta,
            log_id=log_id,
        )

    def list_logs(
        self,
        current_user: UserSchema,
        supplier_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> BalanceLogListResponse:
        """원장 조회 - SUPPLIER는 본인 공급자로 고정"""
        scope = enforce(current_user.role, Operation.BALANCE_LOG_READ)
        if scope == Scope.OWN:
            supplier_id = self.user_repo.get_linked_supplier_id(current_user.id)
            if supplier_id is None:
                return BalanceLogListResponse(logs=[], count=0)

        if limit is None:
            limit = self.settings.ORDER_LIST_DEFAULT_LIMIT
        limit = min(max(limit, 1), self.settings.ORDER_LIST_MAX_LIMIT)

        logs = self.ledger_repo.get_logs(supplier_id=supplier_id, limit=limit)
        return BalanceLogListResponse(logs=logs, count=len(logs))

    def verify_integrity(
        self, current_user: UserSchema, supplier_id: Optional[int] = None
    ) -> LedgerIntegrityResponse:
        """원장 정합성 검증 (공급자 지정 시 단일, 아니면 전체)"""
        enforce(current_user.role, Operation.ADMIN_TOOLS)
        if supplier_id is not None:
            return self.ledger_repo.verify_integrity_for_supplier(supplier_id)
        return self.ledger_repo.verify_global_integrity()
