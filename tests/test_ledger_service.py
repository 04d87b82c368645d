import pytest
from sqlalchemy import update

from conftest import as_schema, balance_of, logs_of, supplier_user
from diamondapi.core.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from diamondapi.models.supplier import Supplier
from diamondapi.models.user import UserRole
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.schemas.supplier import BalanceAdjustmentRequest
from diamondapi.services.ledger_service import LedgerService


class TestApplyDelta:
    """잔액 증감 + 원장 기록 공용 프리미티브"""

    def test_zero_delta_writes_nothing(self, db, factory):
        supplier = factory.supplier(balance=1000)
        before = len(logs_of(db, supplier.id))

        entry = LedgerRepository(db).apply_delta(supplier.id, 0, "noop")
        db.commit()

        assert entry is None
        assert len(logs_of(db, supplier.id)) == before
        assert balance_of(db, supplier.id) == 1000

    def test_balance_may_go_negative(self, db, factory):
        supplier = factory.supplier(balance=100)

        LedgerRepository(db).apply_delta(supplier.id, -300, "Order assigned: Big Skin")
        db.commit()

        assert balance_of(db, supplier.id) == -200

    def test_unknown_supplier(self, db):
        with pytest.raises(NotFoundError):
            LedgerRepository(db).apply_delta(9999, 10, "top-up")


class TestAdjustBalance:
    def test_change_amount(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=1000)

        result = LedgerService(db, settings).adjust_balance(
            as_schema(admin),
            supplier.id,
            BalanceAdjustmentRequest(change_amount=250, reason="Manual top-up"),
        )

        assert result.change_amount == 250
        assert result.log_id is not None
        assert result.supplier.diamond_balance == 1250
        last = logs_of(db, supplier.id)[-1]
        assert (last.id, last.change_amount, last.reason, last.order_id) == (
            result.log_id,
            250,
            "Manual top-up",
            None,
        )

    def test_new_balance_takes_priority(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=1000)

        result = LedgerService(db, settings).adjust_balance(
            as_schema(admin),
            supplier.id,
            BalanceAdjustmentRequest(change_amount=5, new_balance=400, reason="Recount"),
        )

        assert result.change_amount == -600
        assert balance_of(db, supplier.id) == 400

    def test_zero_delta_is_noop(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=1000)
        before = len(logs_of(db, supplier.id))

        result = LedgerService(db, settings).adjust_balance(
            as_schema(admin),
            supplier.id,
            BalanceAdjustmentRequest(new_balance=1000, reason="Recount"),
        )

        assert result.change_amount == 0
        assert result.log_id is None
        assert result.supplier.diamond_balance == 1000
        assert len(logs_of(db, supplier.id)) == before

    def test_supplier_adjusts_own_balance(self, db, factory, settings):
        supplier = factory.supplier(balance=1000)

        result = LedgerService(db, settings).adjust_balance(
            as_schema(supplier_user(db, supplier)),
            supplier.id,
            BalanceAdjustmentRequest(change_amount=-100, reason="Correction"),
        )

        assert result.supplier.diamond_balance == 900

    def test_supplier_cannot_adjust_other_supplier(self, db, factory, settings):
        own = factory.supplier(balance=1000)
        other = factory.supplier(balance=1000)

        with pytest.raises(NotFoundError):
            LedgerService(db, settings).adjust_balance(
                as_schema(supplier_user(db, own)),
                other.id,
                BalanceAdjustmentRequest(change_amount=100, reason="Sneaky"),
            )
        assert balance_of(db, other.id) == 1000

    def test_viewer_forbidden(self, db, viewer, factory, settings):
        supplier = factory.supplier()

        with pytest.raises(ForbiddenError):
            LedgerService(db, settings).adjust_balance(
                as_schema(viewer),
                supplier.id,
                BalanceAdjustmentRequest(change_amount=100, reason="Nope"),
            )

    def test_unknown_supplier(self, db, admin, settings):
        with pytest.raises(NotFoundError):
            LedgerService(db, settings).adjust_balance(
                as_schema(admin),
                9999,
                BalanceAdjustmentRequest(change_amount=100, reason="Top-up"),
            )

    def test_request_requires_amount_or_target(self):
        with pytest.raises(ValueError):
            BalanceAdjustmentRequest(reason="Nothing")

    def test_compute_delta(self):
        request = BalanceAdjustmentRequest(new_balance=300, reason="Recount")
        assert LedgerService.compute_delta(1000, request) == -700

        request = BalanceAdjustmentRequest(change_amount=-50, reason="Fix")
        assert LedgerService.compute_delta(1000, request) == -50

        unchecked = BalanceAdjustmentRequest.model_construct(
            change_amount=None, new_balance=None, reason="x"
        )
        with pytest.raises(InvalidStateError):
            LedgerService.compute_delta(1000, unchecked)


class TestListLogs:
    def test_supplier_scope_is_forced(self, db, admin, factory, settings):
        own = factory.supplier(balance=1000)
        other = factory.supplier(balance=2000)
        factory.order(own, admin=admin, skin_name="Epic Skin", diamond_price=300)

        result = LedgerService(db, settings).list_logs(
            as_schema(supplier_user(db, own)), supplier_id=other.id
        )

        assert {log.supplier_id for log in result.logs} == {own.id}
        newest = result.logs[0]
        assert newest.change_amount == -300
        assert newest.transaction_type == "DEBIT"
        assert newest.order_skin_name == "Epic Skin"
        assert newest.supplier_name == own.name
        assert result.logs[-1].transaction_type == "CREDIT"

    def test_viewer_reads_all(self, db, viewer, factory, settings):
        factory.supplier(balance=1000)
        factory.supplier(balance=2000)

        result = LedgerService(db, settings).list_logs(as_schema(viewer))

        assert result.count == 2

    def test_admin_filters_by_supplier(self, db, admin, factory, settings):
        first = factory.supplier(balance=1000)
        factory.supplier(balance=2000)

        result = LedgerService(db, settings).list_logs(as_schema(admin), supplier_id=first.id)

        assert [log.change_amount for log in result.logs] == [1000]


class TestIntegrity:
    def test_consistent_after_operations(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=5000)
        factory.order(supplier, admin=admin)
        service = LedgerService(db, settings)

        single = service.verify_integrity(as_schema(admin), supplier.id)
        overall = service.verify_integrity(as_schema(admin))

        assert single.status == "OK"
        assert single.recorded_balance == single.calculated_balance == 4500
        assert single.entry_count == 2
        assert overall.status == "OK"
        assert overall.supplier_count == 1

    def test_detects_mismatch(self, db, admin, factory, settings):
        healthy = factory.supplier(balance=1000)
        tampered = factory.supplier(balance=1000)
        db.execute(
            update(Supplier).where(Supplier.id == tampered.id).values(diamond_balance=1234)
        )
        db.commit()

        result = LedgerService(db, settings).verify_integrity(as_schema(admin))

        assert result.status == "MISMATCH"
        assert result.mismatched_supplier_ids == [tampered.id]
        assert healthy.id not in result.mismatched_supplier_ids

    def test_supplier_without_entries(self, db, admin, factory, settings):
        supplier = factory.supplier(balance=0)

        result = LedgerService(db, settings).verify_integrity(as_schema(admin), supplier.id)

        assert result.status == "OK"
        assert result.entry_count == 0

    def test_requires_admin(self, db, viewer, settings):
        with pytest.raises(ForbiddenError):
            LedgerService(db, settings).verify_integrity(as_schema(viewer))

    def test_unknown_supplier(self, db, admin, settings):
        with pytest.raises(NotFoundError):
            LedgerService(db, settings).verify_integrity(as_schema(admin), 9999)


def test_orphan_supplier_user_sees_no_logs(db, factory, settings):
    factory.supplier(balance=1000)
    orphan = factory.user(UserRole.SUPPLIER)

    result = LedgerService(db, settings).list_logs(as_schema(orphan))

    assert result.logs == []
