"""
주문 변경 + 잔액 효과 엔진

주문 하나의 변경(상태, 공급자 재배정, 선물 준비 플래그, 메모, 출시일)과
그에 따른 모든 잔액/원장 효과를 하나의 트랜잭션으로 적용합니다.

잔액 효과 판단 (변경 전 주문 기준):
- should_deduct: 다음 상태가 FAILED/REFUNDED가 아니고 차감 내역이 없음
  → 대상 공급자에서 diamond_price 차감, balance_deducted_at 기록
- should_refund: 다음 상태가 FAILED/REFUNDED이고 차감 내역이 있음
  → 원래 공급자에게 diamond_price 환불, balance_deducted_at 해제
- 재배정 이전: 공급자가 바뀌고 차감 내역이 있으며 환불 중이 아님
  → 이전 공급자 환불(out) + 새 공급자 차감(in), balance_deducted_at 유지

balance_deducted_at이 이중 차감/이중 환불을 막는 유일한 가드입니다.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from diamondapi.core.exceptions import NotFoundError
from diamondapi.database.transaction import run_atomic
from diamondapi.models.order import Order as OrderModel, OrderStatus
from diamondapi.models.supplier import Supplier as SupplierModel
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.repositories.order_repository import OrderRepository
from diamondapi.schemas.order import OrderResponse, OrderUpdate
from diamondapi.utils.timezone_utils import get_utc_now

logger = logging.getLogger(__name__)


class BalanceEffectPlan(BaseModel):
    """변경 전 주문 상태로부터 계산된 적용 계획"""

    next_status: OrderStatus
    next_supplier_id: int
    next_ready: bool
    should_deduct: bool
    should_refund: bool
    should_transfer: bool
    is_reassigning: bool


class OrderMutationResult(BaseModel):
    order: OrderResponse
    changed: bool
    status_changed: bool
    previous_status: OrderStatus


def plan_balance_effects(order: OrderModel, changes: OrderUpdate) -> BalanceEffectPlan:
    """
    다음 상태와 세 가지 잔액 조건을 계산 (DB 접근 없음)

    선물 준비 플래그는 명시값이 우선이고, 없으면 READY_FOR_GIFTING/COMPLETED일 때 True,
    그 외에는 현재 값을 유지합니다.
    """
    next_status = changes.status if changes.status is not None else order.status
    next_supplier_id = (
        changes.supplier_id if changes.supplier_id is not None else order.supplier_id
    )
    is_reassigning = next_supplier_id != order.supplier_id

    if changes.ready_for_gifting is not None:
        next_ready = changes.ready_for_gifting
    elif next_status.implies_ready:
        next_ready = True
    else:
        next_ready = order.ready_for_gifting

    outstanding = order.has_outstanding_deduction
    should_deduct = not next_status.releases_balance and not outstanding
    should_refund = next_status.releases_balance and outstanding
    should_transfer = is_reassigning and outstanding and not should_refund

    return BalanceEffectPlan(
        next_status=next_status,
        next_supplier_id=next_supplier_id,
        next_ready=next_ready,
        should_deduct=should_deduct,
        should_refund=should_refund,
        should_transfer=should_transfer,
        is_reassigning=is_reassigning,
    )


class BalanceEffectEngine:
    """주문 변경과 공급자 잔액/원장 효과를 원자적으로 적용"""

    def __init__(self, db: Session, max_attempts: int = 2):
        self.db = db
        self.max_attempts = max_attempts
        self.order_repo = OrderRepository(db)
        self.ledger_repo = LedgerRepository(db)

    def _has_changes(self, order: OrderModel, changes: OrderUpdate, plan: BalanceEffectPlan) -> bool:
        return any(
            [
                plan.next_status != order.status,
                plan.is_reassigning,
                plan.next_ready != order.ready_for_gifting,
                changes.notes is not None and changes.notes != order.notes,
                changes.release_date is not None and changes.release_date != order.release_date,
            ]
        )

    def apply_in_transaction(
        self,
        order_id: int,
        changes: OrderUpdate,
        now: Optional[datetime] = None,
        supplier_id: Optional[int] = None,
    ) -> OrderMutationResult:
        """
        현재 트랜잭션 안에서 변경 적용 (커밋하지 않음)

        Args:
            order_id: 주문 ID
            changes: 변경 요청 (None 필드는 현재 값 유지)
            now: 타임스탬프 기준 시각
            supplier_id: 지정 시 해당 공급자에 배정된 주문만 변경 (SUPPLIER 범위)

        Raises:
            NotFoundError: 주문이 없거나 범위 밖인 경우, 재배정 대상 공급자가 없는 경우
        """
        order = self.order_repo.get_for_update(order_id, supplier_id=supplier_id)
        if order is None:
            raise NotFoundError("Order not found", details={"order_id": order_id})

        previous_status = order.status
        plan = plan_balance_effects(order, changes)

        if not self._has_changes(order, changes, plan):
            logger.debug(f"Order {order_id}: no changes requested")
            return OrderMutationResult(
                order=self.order_repo.get_joined(order_id),
                changed=False,
                status_changed=False,
                previous_status=previous_status,
            )

        if plan.is_reassigning and self.db.get(SupplierModel, plan.next_supplier_id) is None:
            raise NotFoundError(
                "Supplier not found", details={"supplier_id": plan.next_supplier_id}
            )

        now = now or get_utc_now()
        price = order.diamond_price
        skin = order.skin_name
        original_supplier_id = order.supplier_id

        if plan.should_deduct:
            self.ledger_repo.apply_delta(
                plan.next_supplier_id, -price, f"Order assigned: {skin}", order.id
            )
            order.balance_deducted_at = now

        if plan.should_refund:
            self.ledger_repo.apply_delta(
                original_supplier_id, price, f"Order refunded: {skin}", order.id
            )
            order.balance_deducted_at = None

        if plan.should_transfer:
            self.ledger_repo.apply_delta(
                original_supplier_id, price, f"Order reassigned (out): {skin}", order.id
            )
            self.ledger_repo.apply_delta(
                plan.next_supplier_id, -price, f"Order reassigned (in): {skin}", order.id
            )

        if plan.next_status == OrderStatus.FOLLOWED and order.followed_at is None:
            order.followed_at = now
        if plan.next_status == OrderStatus.COMPLETED and order.completed_at is None:
            order.completed_at = now

        order.status = plan.next_status
        order.supplier_id = plan.next_supplier_id
        order.ready_for_gifting = plan.next_ready
        if changes.notes is not None:
            order.notes = changes.notes
        if changes.release_date is not None:
            order.release_date = changes.release_date

        self.db.flush()

        logger.info(
            f"Order {order.id} updated: status {previous_status.value} -> {plan.next_status.value}, "
            f"supplier {original_supplier_id} -> {plan.next_supplier_id}, "
            f"deduct={plan.should_deduct} refund={plan.should_refund} transfer={plan.should_transfer}"
        )

        return OrderMutationResult(
            order=self.order_repo.get_joined(order.id),
            changed=True,
            status_changed=plan.next_status != previous_status,
            previous_status=previous_status,
        )

    def mutate(
        self, order_id: int, changes: OrderUpdate, supplier_id: Optional[int] = None
    ) -> OrderMutationResult:
        """변경 적용 + 커밋 (동시성 충돌 시 전체 작업 재시도)"""
        return run_atomic(
            self.db,
            lambda: self.apply_in_transaction(order_id, changes, supplier_id=supplier_id),
            label=f"order {order_id} update",
            max_attempts=self.max_attempts,
        )
