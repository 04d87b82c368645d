import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from diamondapi.models.base import BaseModel, BigIntPK


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    FOLLOWED = "FOLLOWED"
    READY_FOR_GIFTING = "READY_FOR_GIFTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

    @property
    def label(self) -> str:
        """READY_FOR_GIFTING -> "Ready For Gifting" """
        return " ".join(part.capitalize() for part in self.value.split("_"))

    @property
    def releases_balance(self) -> bool:
        """차감된 잔액을 돌려주는 종료 상태인지 여부"""
        return self in (OrderStatus.FAILED, OrderStatus.REFUNDED)

    @property
    def implies_ready(self) -> bool:
        return self in (OrderStatus.READY_FOR_GIFTING, OrderStatus.COMPLETED)


class Order(BaseModel):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_status_followed_at", "status", "followed_at"),
        Index("idx_orders_supplier_id", "supplier_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # 게임 계정 정보 - 비어있지 않은지만 검증하는 불투명 문자열
    player_account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    server_id: Mapped[str] = mapped_column(String(32), nullable=False)
    in_game_name: Mapped[str] = mapped_column(String(100), nullable=False)

    skin_name: Mapped[str] = mapped_column(String(200), nullable=False)
    diamond_price: Mapped[int] = mapped_column(Integer, nullable=False)

    supplier_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("suppliers.id"), nullable=False
    )
    assigned_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )

    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"), default=OrderStatus.PENDING, nullable=False
    )
    ready_for_gifting: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # 생애주기 마일스톤
    followed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # 현재 가격이 어떤 공급자 잔액에서 차감되어 있고 아직 환불되지 않았으면 NOT NULL
    # 이중 차감 / 이중 환불을 막는 유일한 가드
    balance_deducted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    supplier: Mapped["Supplier"] = relationship("Supplier")  # noqa: F821
    assigned_by: Mapped["User"] = relationship("User")  # noqa: F821

    def __repr__(self):
        return f"<Order(id={self.id}, skin={self.skin_name}, status={self.status})>"

    @property
    def has_outstanding_deduction(self) -> bool:
        return self.balance_deducted_at is not None
