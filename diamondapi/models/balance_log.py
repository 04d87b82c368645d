"""
공급자 잔액 원장(Ledger) 데이터 모델

이 테이블은 공급자 다이아몬드 잔액의 모든 변동 내역을 저장합니다.
잔액의 증가/차감은 모두 이 테이블에 기록되어 완전한 감사 추적(Audit Trail)을 제공합니다.
"""

from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, Text, event, func
from sqlalchemy.orm import relationship

from diamondapi.models.base import Base, BigIntPK


class BalanceLog(Base):
    """
    잔액 원장 테이블 - 모든 잔액 변동 내역을 저장

    이 테이블은 다음 원칙을 따릅니다:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정/삭제되지 않음
    2. 완전성(Complete): 모든 잔액 변동사항이 기록됨
    3. 정합성(Integrity): 공급자별 change_amount 합계 == suppliers.diamond_balance
    4. 0원 기록 금지: change_amount는 절대 0이 아님

    특징:
    - order_id는 주문이 삭제되면 NULL이 됨 (ON DELETE SET NULL)
    - updated_at이 없음 (수정 자체가 허용되지 않음)
    """

    __tablename__ = "balance_logs"

    # 기본 키 - 자동 증가하는 고유 식별자
    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # 공급자 ID - suppliers 테이블과의 외래키 관계
    supplier_id = Column(BigInteger, ForeignKey("suppliers.id"), nullable=False, index=True)

    # 잔액 변동량 - 양수면 증가(환불/충전), 음수면 감소(주문 차감)
    change_amount = Column(Integer, nullable=False)

    # 변동 사유 - 시스템 생성 (예: "Order assigned: <skin>") 또는 사용자 입력
    reason = Column(Text, nullable=False)

    # 주문 ID - 주문과 무관한 조정이거나 주문이 삭제된 경우 NULL
    order_id = Column(
        BigInteger, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    supplier = relationship("Supplier")
    order = relationship("Order")

    def __repr__(self):
        return f"<BalanceLog(id={self.id}, supplier={self.supplier_id}, change={self.change_amount})>"


class ImmutableLedgerError(Exception):
    """원장 레코드 수정/삭제 시도"""


@event.listens_for(BalanceLog, "before_update")
def _reject_update(mapper, connection, target):
    raise ImmutableLedgerError(f"Balance log {target.id} is append-only")


@event.listens_for(BalanceLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise ImmutableLedgerError(f"Balance log {target.id} is append-only")
