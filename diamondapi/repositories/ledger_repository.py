"""
잔액 원장 리포지토리 - 공급자 잔액과 원장 기록을 함께 다루는 유일한 경로

이 파일은 잔액 시스템의 핵심 데이터 접근을 담당합니다:
1. apply_delta - 잔액 증감과 원장 기록을 한 번에 수행하는 공용 프리미티브
2. 공급자 행 잠금 (절대 잔액 지정 조정용)
3. 원장 조회
4. 데이터 정합성 검증 (suppliers.diamond_balance == sum(change_amount))

핵심 특징:
- 잔액은 SQL 수준의 원자적 증감(balance = balance + delta)으로만 변경됩니다
- change_amount가 0인 기록은 절대 생성되지 않습니다
- 커밋하지 않습니다. 호출한 서비스의 트랜잭션에 함께 묶입니다
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.orm import Session

from diamondapi.core.exceptions import NotFoundError
from diamondapi.models.balance_log import BalanceLog as BalanceLogModel
from diamondapi.models.order import Order as OrderModel
from diamondapi.models.supplier import Supplier as SupplierModel
from diamondapi.repositories.base import BaseRepository
from diamondapi.schemas.balance_log import BalanceLogEntry, LedgerIntegrityResponse
from diamondapi.utils.timezone_utils import get_utc_now

logger = logging.getLogger(__name__)


class LedgerRepository(BaseRepository[BalanceLogModel, BalanceLogEntry]):
    """
    원장 리포지토리

    주요 기능:
    1. 원자성 - 잔액 변경과 원장 기록이 항상 같은 트랜잭션에서 발생
    2. 동시성 - 증감은 DB가 직렬화하므로 lost update가 발생하지 않음
    3. 완전한 감사 추적 - 모든 잔액 변동 기록
    """

    def __init__(self, db: Session):
        super().__init__(BalanceLogModel, BalanceLogEntry, db)

    def _to_ledger_entry(
        self,
        model_instance: BalanceLogModel,
        supplier_name: Optional[str] = None,
        order_skin_name: Optional[str] = None,
    ) -> BalanceLogEntry:
        """
        원장 모델을 응답 스키마로 변환

        Note:
            - change_amount의 부호에 따라 거래 유형(CREDIT/DEBIT) 자동 결정
        """
        change_amount = model_instance.change_amount
        return BalanceLogEntry(
            id=model_instance.id,
            supplier_id=model_instance.supplier_id,
            supplier_name=supplier_name,
            change_amount=change_amount,
            transaction_type="CREDIT" if change_amount > 0 else "DEBIT",
            reason=model_instance.reason,
            order_id=model_instance.order_id,
            order_skin_name=order_skin_name,
            created_at=model_instance.created_at,
        )

    def lock_supplier(self, supplier_id: int) -> Optional[SupplierModel]:
        """
        공급자 행을 SELECT ... FOR UPDATE로 잠그고 최신 값으로 로드

        현재 잔액을 읽어 delta를 계산해야 하는 작업(절대 잔액 지정)에서 사용합니다.
        """
        return (
            self.db.query(SupplierModel)
            .filter(SupplierModel.id == supplier_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def apply_delta(
        self,
        supplier_id: int,
        delta: int,
        reason: str,
        order_id: Optional[int] = None,
    ) -> Optional[BalanceLogModel]:
        """
        잔액 증감 + 원장 기록 (공용 프리미티브)

        Args:
            supplier_id: 대상 공급자 ID
            delta: 변동량 (양수=증가, 음수=차감)
            reason: 변동 사유
            order_id: 관련 주문 ID (주문과 무관하면 None)

        Returns:
            생성된 원장 레코드, delta가 0이면 None (아무것도 기록하지 않음)

        Raises:
            NotFoundError: 공급자가 존재하지 않는 경우
        """
        if delta == 0:
            return None

        result = self.db.execute(
            update(SupplierModel)
            .where(SupplierModel.id == supplier_id)
            .values(diamond_balance=SupplierModel.diamond_balance + delta)
        )
        if result.rowcount == 0:
            raise NotFoundError(
                "Supplier not found", details={"supplier_id": supplier_id}
            )

        entry = self.add(
            supplier_id=supplier_id,
            change_amount=delta,
            reason=reason,
            order_id=order_id,
        )
        logger.debug(
            f"Ledger entry {entry.id}: supplier={supplier_id} delta={delta} order={order_id}"
        )
        return entry

    def get_logs(
        self, supplier_id: Optional[int] = None, limit: int = 100
    ) -> List[BalanceLogEntry]:
        """원장 조회 (최신순) - 공급자 이름과 주문 스킨 이름 포함"""
        query = (
            self.db.query(self.model_class, SupplierModel.name, OrderModel.skin_name)
            .join(SupplierModel, SupplierModel.id == self.model_class.supplier_id)
            .outerjoin(OrderModel, OrderModel.id == self.model_class.order_id)
        )
        if supplier_id is not None:
            query = query.filter(self.model_class.supplier_id == supplier_id)

        rows = (
            query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .all()
        )
        return [
            self._to_ledger_entry(entry, supplier_name, skin_name)
            for entry, supplier_name, skin_name in rows
        ]

    def get_logs_for_order(self, order_id: int) -> List[BalanceLogEntry]:
        rows = (
            self.db.query(self.model_class)
            .filter(self.model_class.order_id == order_id)
            .order_by(self.model_class.id)
            .all()
        )
        return [self._to_ledger_entry(entry) for entry in rows]

    def sum_for_supplier(self, supplier_id: int) -> int:
        result = (
            self.db.query(func.coalesce(func.sum(self.model_class.change_amount), 0))
            .filter(self.model_class.supplier_id == supplier_id)
            .scalar()
        )
        return int(result or 0)

    def verify_integrity_for_supplier(self, supplier_id: int) -> LedgerIntegrityResponse:
        """
        특정 공급자의 원장 정합성 검증

        검증 방식:
        1. 모든 원장 기록의 change_amount 합계 계산
        2. suppliers.diamond_balance와 비교
        3. 일치하지 않으면 MISMATCH
        """
        supplier = self.db.get(SupplierModel, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})

        calculated = self.sum_for_supplier(supplier_id)
        entry_count = self.count({"supplier_id": supplier_id})
        status = "OK" if calculated == supplier.diamond_balance else "MISMATCH"

        if status != "OK":
            logger.warning(
                f"Ledger mismatch for supplier {supplier_id}: "
                f"recorded={supplier.diamond_balance} calculated={calculated}"
            )

        return LedgerIntegrityResponse(
            status=status,
            supplier_id=supplier_id,
            recorded_balance=supplier.diamond_balance,
            calculated_balance=calculated,
            entry_count=entry_count,
            mismatched_supplier_ids=[] if status == "OK" else [supplier_id],
            verified_at=get_utc_now(),
        )

    def verify_global_integrity(self) -> LedgerIntegrityResponse:
        """전체 공급자 원장 정합성 검증"""
        sums = (
            select(
                self.model_class.supplier_id.label("supplier_id"),
                func.sum(self.model_class.change_amount).label("total"),
            )
            .group_by(self.model_class.supplier_id)
            .subquery()
        )
        rows = self.db.execute(
            select(
                SupplierModel.id,
                SupplierModel.diamond_balance,
                func.coalesce(sums.c.total, 0),
            ).outerjoin(sums, sums.c.supplier_id == SupplierModel.id)
        ).all()

        mismatched = [
            supplier_id for supplier_id, balance, total in rows if int(total) != balance
        ]
        if mismatched:
            logger.warning(f"Ledger mismatch for suppliers: {mismatched}")

        return LedgerIntegrityResponse(
            status="OK" if not mismatched else "MISMATCH",
            recorded_balance=sum(balance for _, balance, _ in rows),
            calculated_balance=sum(int(total) for _, _, total in rows),
            entry_count=self.count(),
            supplier_count=len(rows),
            mismatched_supplier_ids=mismatched,
            verified_at=get_utc_now(),
        )
