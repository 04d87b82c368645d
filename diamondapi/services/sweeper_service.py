import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.database.transaction import run_atomic
from diamondapi.repositories.order_repository import OrderRepository
from diamondapi.utils.timezone_utils import days_ago

logger = logging.getLogger(__name__)


class ReadyForGiftingSweeper:
    """FOLLOWED 상태로 일정 기간이 지난 주문을 READY_FOR_GIFTING으로 전환

    잔액은 건드리지 않으며, 여러 번 실행해도 결과가 같습니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.order_repo = OrderRepository(db)

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        스윕 실행

        Args:
            now: 기준 시각 (기본값: 현재 UTC)

        Returns:
            int: 이번 실행에서 전환된 주문 수
        """
        cutoff = days_ago(self.settings.READY_FOR_GIFTING_AFTER_DAYS, now)
        promoted = run_atomic(
            self.db,
            lambda: self.order_repo.promote_stale_followed(cutoff),
            label="ready-for-gifting sweep",
            max_attempts=self.settings.TX_MAX_ATTEMPTS,
        )
        if promoted:
            logger.info(f"Sweep promoted {promoted} orders to READY_FOR_GIFTING (cutoff={cutoff.isoformat()})")
        return promoted
