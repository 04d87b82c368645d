"""
공급자 데이터 모델

diamond_balance는 balance_logs 원장의 합계를 캐시한 값입니다.
원장이 진실의 원천(source of truth)이며, 잔액은 원장 기록과 같은 트랜잭션 안에서만 변경됩니다.
"""

from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from diamondapi.models.base import BaseModel, BigIntPK


class Supplier(BaseModel):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # 원장 합계의 캐시 - 일시적으로 음수가 될 수 있음
    diamond_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_balance_threshold: Mapped[int] = mapped_column(
        Integer, default=1000, nullable=False
    )

    # Google Sheets 미러링 설정
    google_sheet_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    google_sync_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="supplier")  # noqa: F821

    def __repr__(self):
        return f"<Supplier(id={self.id}, name={self.name}, balance={self.diamond_balance})>"

    @property
    def sync_target(self) -> Optional[str]:
        """동기화가 활성화되어 있고 시트 ID가 있을 때만 시트 ID 반환"""
        if self.google_sync_enabled and self.google_sheet_id:
            return self.google_sheet_id
        return None
