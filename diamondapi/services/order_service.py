from typing import Optional, Tuple
from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.core.access_policy import Operation, Scope, enforce
from diamondapi.core.exceptions import NotFoundError
from diamondapi.database.transaction import run_atomic
from diamondapi.models.order import OrderStatus
from diamondapi.models.supplier import Supplier as SupplierModel
from diamondapi.providers.sheets.google_sheets import SheetSyncAdapter
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.repositories.order_repository import OrderRepository
from diamondapi.repositories.user_repository import UserRepository
from diamondapi.schemas.order import (
    OrderCreate,
    OrderDeleteResponse,
    OrderListResponse,
    OrderResponse,
    OrderSheetRow,
    OrderSortField,
    OrderUpdate,
    SortDirection,
)
from diamondapi.schemas.user import User as UserSchema
from diamondapi.services.balance_effect_engine import BalanceEffectEngine
from diamondapi.services.sweeper_service import ReadyForGiftingSweeper
from diamondapi.utils.timezone_utils import get_utc_now
import logging

logger = logging.getLogger(__name__)


class OrderService:
    """주문 생성/조회/변경/삭제 비즈니스 로직

    모든 쓰기는 run_atomic 트랜잭션 하나로 커밋되며,
    스프레드시트 동기화는 커밋이 끝난 뒤에만 호출됩니다.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        sheet_sync: Optional[SheetSyncAdapter] = None,
    ):
        self.db = db
        self.settings = settings
        self.sheet_sync = sheet_sync
        self.order_repo = OrderRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.user_repo = UserRepository(db)
        self.engine = BalanceEffectEngine(db, max_attempts=settings.TX_MAX_ATTEMPTS)
        self.sweeper = ReadyForGiftingSweeper(db, settings)

    def _caller_supplier_id(self, current_user: UserSchema) -> Optional[int]:
        return self.user_repo.get_linked_supplier_id(current_user.id)

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.settings.ORDER_LIST_DEFAULT_LIMIT
        return min(max(limit, 1), self.settings.ORDER_LIST_MAX_LIMIT)

    def _sync_target(self, supplier_id: int) -> Optional[str]:
        supplier = self.db.get(SupplierModel, supplier_id)
        return supplier.sync_target if supplier else None

    def list_orders(
        self,
        current_user: UserSchema,
        status: Optional[OrderStatus] = None,
        exclude_status: Optional[OrderStatus] = None,
        supplier_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: OrderSortField = OrderSortField.CREATED_AT,
        sort_dir: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> OrderListResponse:
        """주문 목록 조회

        SUPPLIER는 항상 본인 공급자의 주문만 조회합니다 (supplier_id 파라미터 무시).
        status가 지정되면 exclude_status는 무시됩니다.
        """
        scope = enforce(current_user.role, Operation.ORDER_READ)

        if self.settings.SWEEP_ON_ORDER_LIST:
            self.sweeper.sweep()

        if scope == Scope.OWN:
            supplier_id = self._caller_supplier_id(current_user)
            if supplier_id is None:
                return OrderListResponse(orders=[], count=0)

        if status is not None:
            exclude_status = None

        orders = self.order_repo.list_orders(
            status=status,
            exclude_status=exclude_status,
            supplier_id=supplier_id,
            search=search,
            sort_by=sort_by,
            sort_dir=sort_dir,
            limit=self._clamp_limit(limit),
        )
        return OrderListResponse(orders=orders, count=len(orders))

    def get_order(self, current_user: UserSchema, order_id: int) -> OrderResponse:
        """주문 단건 조회 - 범위 밖의 주문은 존재하지 않는 것과 동일하게 처리"""
        scope = enforce(current_user.role, Operation.ORDER_READ, resource="Order")

        scoped_supplier_id = None
        if scope == Scope.OWN:
            scoped_supplier_id = self._caller_supplier_id(current_user)
            if scoped_supplier_id is None:
                raise NotFoundError("Order not found")

        order = self.order_repo.get_joined(order_id, supplier_id=scoped_supplier_id)
        if order is None:
            raise NotFoundError("Order not found", details={"order_id": order_id})
        return order

    def create_order(self, current_user: UserSchema, data: OrderCreate) -> OrderResponse:
        """주문 생성 + 배정 공급자 잔액 차감 (FAILED/REFUNDED로 생성하면 차감 없음)"""
        enforce(current_user.role, Operation.ORDER_CREATE)

        def work() -> Tuple[OrderResponse, Optional[str]]:
            supplier = self.db.get(SupplierModel, data.supplier_id)
            if supplier is None:
                raise NotFoundError("Supplier not found", details={"supplier_id": data.supplier_id})

            now = get_utc_now()
            should_deduct = not data.status.releases_balance

            order = self.order_repo.add(
                player_account_id=data.player_account_id,
                server_id=data.server_id,
                in_game_name=data.in_game_name,
                skin_name=data.skin_name,
                diamond_price=data.diamond_price,
                supplier_id=supplier.id,
                assigned_by_id=current_user.id,
                status=data.status,
                ready_for_gifting=data.status.implies_ready,
                notes=data.notes,
                release_date=data.release_date,
                followed_at=now if data.status == OrderStatus.FOLLOWED else None,
                completed_at=now if data.status == OrderStatus.COMPLETED else None,
                balance_deducted_at=now if should_deduct else None,
            )

            if should_deduct:
                self.ledger_repo.apply_delta(
                    supplier.id, -data.diamond_price, f"Order assigned: {data.skin_name}", order.id
                )

            return self.order_repo.get_joined(order.id), supplier.sync_target

        created, sheet_id = run_atomic(
            self.db, work, label="order create", max_attempts=self.settings.TX_MAX_ATTEMPTS
        )
        logger.info(
            f"Order {created.id} created by user {current_user.id}: supplier={created.supplier_id} "
            f"price={created.diamond_price} status={created.status.value}"
        )

        if self.sheet_sync and sheet_id:
            self.sheet_sync.order_created(
                sheet_id,
                OrderSheetRow(
                    order_id=created.id,
                    created_date=(created.created_at or get_utc_now()).date(),
                    player_account_id=created.player_account_id,
                    server_id=created.server_id,
                    in_game_name=created.in_game_name,
                    skin_name=created.skin_name,
                    diamond_price=created.diamond_price,
                    status_label=created.status.label,
                ),
            )
        return created

    def update_order(
        self, current_user: UserSchema, order_id: int, changes: OrderUpdate
    ) -> OrderResponse:
        """주문 변경 - 권한 확인 후 잔액 효과 엔진으로 위임"""
        scope = enforce(current_user.role, Operation.ORDER_UPDATE)
        existing = self.get_order(current_user, order_id)
        scoped_supplier_id = existing.supplier_id if scope == Scope.OWN else None

        enforce(
            current_user.role,
            Operation.ORDER_UPDATE,
            owns_resource=True,
            target_status=changes.status,
        )
        if changes.supplier_id is not None and changes.supplier_id != existing.supplier_id:
            enforce(current_user.role, Operation.ORDER_REASSIGN)

        # 잠금 아래에서 소유 공급자를 다시 확인
        result = self.engine.mutate(order_id, changes, supplier_id=scoped_supplier_id)

        if self.sheet_sync and result.status_changed:
            self.sheet_sync.status_changed(
                self._sync_target(result.order.supplier_id),
                result.order.id,
                result.order.status.label,
            )
        return result.order

    def delete_order(self, current_user: UserSchema, order_id: int) -> OrderDeleteResponse:
        """주문 삭제 - 차감 내역이 있으면 같은 트랜잭션에서 먼저 환불"""
        enforce(current_user.role, Operation.ORDER_DELETE)

        def work() -> int:
            order = self.order_repo.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", details={"order_id": order_id})

            refunded = 0
            if order.has_outstanding_deduction:
                # 주문이 삭제되므로 원장 기록에 주문을 연결하지 않음
                self.ledger_repo.apply_delta(
                    order.supplier_id, order.diamond_price, f"Order deleted: {order.skin_name}", None
                )
                refunded = order.diamond_price

            self.db.delete(order)
            self.db.flush()
            return refunded

        refunded = run_atomic(
            self.db, work, label=f"order {order_id} delete", max_attempts=self.settings.TX_MAX_ATTEMPTS
        )
        logger.info(f"Order {order_id} deleted by user {current_user.id} (refunded={refunded})")
        return OrderDeleteResponse(order_id=order_id, refunded_amount=refunded)
