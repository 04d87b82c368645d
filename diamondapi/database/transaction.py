"""
트랜잭션 실행 헬퍼

하나의 요청에서 발생하는 모든 쓰기(주문 수정, 공급자 잔액 증감, 원장 기록)를
단일 트랜잭션으로 묶어 커밋하거나 전부 롤백합니다.

동시성 충돌(직렬화 실패, 데드락, SQLite 잠금)은 재시도 가능한 오류로 분류되며,
설정된 횟수만큼 전체 작업을 처음부터 다시 실행한 뒤에도 실패하면
ConcurrencyConflictError로 전환됩니다.
"""

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from diamondapi.core.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATE: serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_PGCODES = {"40001", "40P01", "55P03"}


def is_retryable_conflict(exc: Exception) -> bool:
    """동시성 충돌로 인한 오류인지 판단"""
    if not isinstance(exc, DBAPIError):
        return False

    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in RETRYABLE_PGCODES:
        return True

    # SQLite는 pgcode가 없으므로 메시지로 판별
    return isinstance(exc, OperationalError) and "database is locked" in str(exc.orig)


def run_atomic(
    db: Session,
    work: Callable[[], T],
    *,
    label: str,
    max_attempts: int = 2,
) -> T:
    """work()를 하나의 트랜잭션으로 실행하고 커밋

    Args:
        db: 요청 범위 세션
        work: 트랜잭션 안에서 실행할 함수 (매 시도마다 상태를 새로 읽어야 함)
        label: 로그용 작업 이름
        max_attempts: 최대 시도 횟수

    Returns:
        work()의 반환값

    Raises:
        ConcurrencyConflictError: 재시도 후에도 동시성 충돌이 해소되지 않은 경우
    """
    attempts = max(1, max_attempts)
    last_error: Exception = None

    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except DBAPIError as e:
            db.rollback()
            if not is_retryable_conflict(e):
                raise
            last_error = e
            logger.warning(
                f"Concurrency conflict in {label} (attempt {attempt}/{attempts}): {e.orig}"
            )
        except Exception:
            db.rollback()
            raise

    raise ConcurrencyConflictError(
        f"{label} could not complete due to concurrent modification",
        details={"attempts": attempts, "reason": str(getattr(last_error, "orig", last_error))},
    )
