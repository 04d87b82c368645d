from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, asc, desc, func, or_, update
from sqlalchemy.orm import Session, joinedload

from diamondapi.models.order import Order as OrderModel, OrderStatus
from diamondapi.models.supplier import Supplier as SupplierModel
from diamondapi.repositories.base import BaseRepository
from diamondapi.schemas.order import OrderResponse, OrderSortField, SortDirection


class OrderRepository(BaseRepository[OrderModel, OrderResponse]):
    """주문 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(OrderModel, OrderResponse, db)

    def _joined(self):
        return self.db.query(self.model_class).options(
            joinedload(self.model_class.supplier),
            joinedload(self.model_class.assigned_by),
        )

    def get_for_update(
        self, order_id: int, supplier_id: Optional[int] = None
    ) -> Optional[OrderModel]:
        """주문 행 잠금 후 최신 상태로 로드 (트랜잭션 내부 전용)"""
        query = self.db.query(self.model_class).filter(self.model_class.id == order_id)
        if supplier_id is not None:
            query = query.filter(self.model_class.supplier_id == supplier_id)
        return query.with_for_update().populate_existing().first()

    def get_joined(
        self, order_id: int, supplier_id: Optional[int] = None
    ) -> Optional[OrderResponse]:
        """
        공급자/배정 관리자 정보를 포함한 주문 조회

        Args:
            order_id: 주문 ID
            supplier_id: 지정하면 해당 공급자의 주문일 때만 반환 (범위 제한)
        """
        query = self._joined().populate_existing().filter(self.model_class.id == order_id)
        if supplier_id is not None:
            query = query.filter(self.model_class.supplier_id == supplier_id)
        return self._to_schema(query.first())

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        exclude_status: Optional[OrderStatus] = None,
        supplier_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: OrderSortField = OrderSortField.CREATED_AT,
        sort_dir: SortDirection = SortDirection.DESC,
        limit: int = 200,
    ) -> List[OrderResponse]:
        """필터/검색/정렬이 적용된 주문 목록"""
        query = self._joined()

        if status is not None:
            query = query.filter(self.model_class.status == status)
        if exclude_status is not None:
            query = query.filter(self.model_class.status != exclude_status)
        if supplier_id is not None:
            query = query.filter(self.model_class.supplier_id == supplier_id)

        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(self.model_class.player_account_id).like(pattern),
                    func.lower(self.model_class.server_id).like(pattern),
                    func.lower(self.model_class.in_game_name).like(pattern),
                    func.lower(self.model_class.skin_name).like(pattern),
                )
            )

        if sort_by == OrderSortField.SUPPLIER:
            query = query.join(SupplierModel, SupplierModel.id == self.model_class.supplier_id)
            sort_column = SupplierModel.name
        else:
            sort_column = getattr(self.model_class, sort_by.value)

        direction = asc if sort_dir == SortDirection.ASC else desc
        query = query.order_by(direction(sort_column), direction(self.model_class.id))

        return self._to_schemas(query.limit(limit).all())

    def list_recent_for_supplier(self, supplier_id: int, limit: int = 20) -> List[OrderModel]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.supplier_id == supplier_id)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .all()
        )

    def promote_stale_followed(self, cutoff: datetime) -> int:
        """
        FOLLOWED 상태로 cutoff 이전부터 머문 주문을 READY_FOR_GIFTING으로 일괄 전환

        상태 조건이 WHERE 절에 포함된 조건부 일괄 UPDATE이므로
        이미 전환된 주문은 다시 건드리지 않습니다.

        Returns:
            int: 전환된 주문 수
        """
        result = self.db.execute(
            update(self.model_class)
            .where(
                and_(
                    self.model_class.status == OrderStatus.FOLLOWED,
                    self.model_class.followed_at.is_not(None),
                    self.model_class.followed_at <= cutoff,
                )
            )
            .values(status=OrderStatus.READY_FOR_GIFTING, ready_for_gifting=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    def count_stats(self) -> dict:
        """관리자 통계용 주문 수 집계"""
        total = self.count()
        pending = self.count({"status": OrderStatus.PENDING})
        ready = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.ready_for_gifting.is_(True),
                self.model_class.status != OrderStatus.COMPLETED,
            )
            .count()
        )
        return {"total_orders": total, "pending_orders": pending, "ready_orders": ready}
