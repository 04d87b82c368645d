"""
백그라운드 스케줄러 - 선물 준비 스윕 주기 실행

주문 목록 조회 시의 스윕과 별개로, SWEEPER_INTERVAL_MINUTES마다
FOLLOWED 상태로 오래 머문 주문을 READY_FOR_GIFTING으로 전환합니다.
"""

import logging
from typing import Callable, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.database.connection import SessionLocal
from diamondapi.services.sweeper_service import ReadyForGiftingSweeper

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "ready_for_gifting_sweep"


def run_ready_for_gifting_sweep(
    settings: Settings, session_factory: Callable[[], Session] = SessionLocal
) -> int:
    """스윕 1회 실행 - 자체 세션을 열고 닫음. 실패는 로그만 남기고 다음 주기에 재시도"""
    db = session_factory()
    try:
        return ReadyForGiftingSweeper(db, settings).sweep()
    except Exception as e:
        logger.error(f"Scheduled sweep failed: {e}", exc_info=True)
        return 0
    finally:
        db.close()


class SweepScheduler:
    def __init__(self, settings: Settings, session_factory: Callable[[], Session] = SessionLocal):
        self.settings = settings
        self.session_factory = session_factory
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def setup_jobs(self) -> AsyncIOScheduler:
        scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 120},
            timezone="UTC",
        )
        scheduler.add_job(
            run_ready_for_gifting_sweep,
            trigger=IntervalTrigger(minutes=self.settings.SWEEPER_INTERVAL_MINUTES),
            args=[self.settings, self.session_factory],
            id=SWEEP_JOB_ID,
            name="Ready-for-gifting sweep",
            replace_existing=True,
        )
        logger.info(
            f"Ready-for-gifting sweep scheduled every {self.settings.SWEEPER_INTERVAL_MINUTES} minutes"
        )
        return scheduler

    def start(self) -> None:
        """AsyncIOScheduler는 실행 중인 이벤트 루프 안에서 시작해야 함 (lifespan)"""
        if not self.settings.SWEEPER_ENABLED:
            logger.info("Ready-for-gifting sweeper disabled")
            return
        if self.running:
            return
        self.scheduler = self.setup_jobs()
        self.scheduler.start()

    def shutdown(self) -> None:
        if self.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Ready-for-gifting sweeper stopped")
        self.scheduler = None
