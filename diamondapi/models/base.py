from sqlalchemy import BigInteger, Column, DateTime, Integer, func
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

# SQLite는 INTEGER PRIMARY KEY에만 자동 증가를 적용함
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class TimestampMixin:
    """created_at / updated_at (DB 서버 시각)"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class BaseModel(Base, TimestampMixin):
    """users / suppliers / orders 공통 베이스 (balance_logs는 수정 불가라 updated_at 없음)"""

    __abstract__ = True
