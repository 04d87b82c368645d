from typing import Iterator

from sqlalchemy.orm import Session

from diamondapi.database.connection import SessionLocal


def get_db() -> Iterator[Session]:
    """요청 범위 세션 - 커밋은 서비스의 run_atomic이 담당하고 여기서는 정리만 함"""
    db = SessionLocal()
    try:
        yield db
    finally:
        if db.in_transaction():
            # 커밋되지 않은 읽기 트랜잭션 정리
            db.rollback()
        db.close()
