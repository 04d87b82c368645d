import asyncio
from datetime import timedelta
from unittest.mock import Mock

from sqlalchemy.orm import sessionmaker

from conftest import balance_of
from diamondapi.jobs.scheduler import (
    SWEEP_JOB_ID,
    SweepScheduler,
    run_ready_for_gifting_sweep,
)
from diamondapi.models.order import Order as OrderModel, OrderStatus
from diamondapi.schemas.order import OrderUpdate
from diamondapi.services.balance_effect_engine import BalanceEffectEngine
from diamondapi.services.sweeper_service import ReadyForGiftingSweeper
from diamondapi.utils.timezone_utils import get_utc_now


def _follow(db, order_id, when):
    BalanceEffectEngine(db).apply_in_transaction(
        order_id, OrderUpdate(status=OrderStatus.FOLLOWED), now=when
    )
    db.commit()


class TestReadyForGiftingSweeper:
    def test_promotes_stale_followed_once(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=10000)
        order = factory.order(supplier, admin=admin)
        now = get_utc_now()
        _follow(db, order.id, now - timedelta(days=8))
        sweeper = ReadyForGiftingSweeper(db, settings)

        assert sweeper.sweep(now=now) == 1
        assert sweeper.sweep(now=now) == 0

        db.expire_all()
        promoted = db.get(OrderModel, order.id)
        assert promoted.status == OrderStatus.READY_FOR_GIFTING
        assert promoted.ready_for_gifting is True
        assert balance_of(db, supplier.id) == 9500

    def test_recent_followed_untouched(self, db, admin, factory, settings):
        order = factory.order(factory.supplier(), admin=admin)
        now = get_utc_now()
        _follow(db, order.id, now - timedelta(days=3))

        assert ReadyForGiftingSweeper(db, settings).sweep(now=now) == 0
        db.expire_all()
        assert db.get(OrderModel, order.id).status == OrderStatus.FOLLOWED

    def test_other_statuses_untouched(self, db, admin, factory, settings):
        supplier = factory.supplier()
        pending = factory.order(supplier, admin=admin)
        completed = factory.order(supplier, admin=admin, status=OrderStatus.COMPLETED)

        ReadyForGiftingSweeper(db, settings).sweep(now=get_utc_now() + timedelta(days=30))

        db.expire_all()
        assert db.get(OrderModel, pending.id).status == OrderStatus.PENDING
        assert db.get(OrderModel, completed.id).status == OrderStatus.COMPLETED

    def test_threshold_is_configurable(self, db, admin, factory, settings):
        order = factory.order(factory.supplier(), admin=admin)
        now = get_utc_now()
        _follow(db, order.id, now - timedelta(days=2))
        settings.READY_FOR_GIFTING_AFTER_DAYS = 1

        assert ReadyForGiftingSweeper(db, settings).sweep(now=now) == 1


class TestScheduledSweep:
    def test_run_uses_own_session(self, engine, db, admin, factory, settings):
        order = factory.order(factory.supplier(), admin=admin)
        _follow(db, order.id, get_utc_now() - timedelta(days=10))
        session_factory = sessionmaker(bind=engine, expire_on_commit=False)

        assert run_ready_for_gifting_sweep(settings, session_factory) == 1

    def test_run_swallows_errors(self, settings):
        broken = Mock()
        broken.execute.side_effect = RuntimeError("db down")

        assert run_ready_for_gifting_sweep(settings, lambda: broken) == 0
        broken.close.assert_called_once()

    def test_disabled_scheduler_does_not_start(self, settings):
        settings.SWEEPER_ENABLED = False
        scheduler = SweepScheduler(settings)

        scheduler.start()

        assert scheduler.running is False

    def test_scheduler_registers_interval_job(self, settings):
        settings.SWEEPER_ENABLED = True
        settings.SWEEPER_INTERVAL_MINUTES = 5

        async def start_and_stop():
            scheduler = SweepScheduler(settings)
            scheduler.start()
            try:
                job = scheduler.scheduler.get_job(SWEEP_JOB_ID)
                return scheduler.running, job.trigger.interval
            finally:
                scheduler.shutdown()

        running, interval = asyncio.run(start_and_stop())

        assert running is True
        assert interval == timedelta(minutes=5)
