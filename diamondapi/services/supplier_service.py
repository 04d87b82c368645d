from typing import List, Optional
from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.core.access_policy import Operation, Scope, enforce
from diamondapi.core.exceptions import ConflictError, NotFoundError
from diamondapi.core.security import hash_password
from diamondapi.database.transaction import run_atomic
from diamondapi.models.user import UserRole
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.repositories.order_repository import OrderRepository
from diamondapi.repositories.supplier_repository import SupplierRepository
from diamondapi.repositories.user_repository import UserRepository
from diamondapi.schemas.order import SortDirection
from diamondapi.schemas.supplier import (
    SupplierCreate,
    SupplierRecentOrder,
    SupplierResponse,
    SupplierSortField,
    SupplierUpdate,
)
from diamondapi.schemas.user import User as UserSchema
import logging

logger = logging.getLogger(__name__)

RECENT_ORDER_LIMIT = 20


class SupplierService:
    """공급자 생성/수정/조회"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.supplier_repo = SupplierRepository(db)
        self.user_repo = UserRepository(db)
        self.order_repo = OrderRepository(db)
        self.ledger_repo = LedgerRepository(db)

    def _with_orders(self, supplier: SupplierResponse) -> SupplierResponse:
        recent = self.order_repo.list_recent_for_supplier(supplier.id, RECENT_ORDER_LIMIT)
        return supplier.model_copy(
            update={"orders": [SupplierRecentOrder.model_validate(o) for o in recent]}
        )

    def list_suppliers(
        self,
        current_user: UserSchema,
        search: Optional[str] = None,
        sort_by: SupplierSortField = SupplierSortField.CREATED_AT,
        sort_dir: SortDirection = SortDirection.DESC,
        include_orders: bool = False,
    ) -> List[SupplierResponse]:
        """공급자 목록 - SUPPLIER는 본인 공급자만 (검색/정렬 미적용)"""
        scope = enforce(current_user.role, Operation.SUPPLIER_READ)

        if scope == Scope.OWN:
            own_id = self.user_repo.get_linked_supplier_id(current_user.id)
            if own_id is None:
                return []
            suppliers = self.supplier_repo.list_suppliers(only_id=own_id)
        else:
            suppliers = self.supplier_repo.list_suppliers(
                search=search, sort_by=sort_by, sort_dir=sort_dir
            )

        if include_orders:
            suppliers = [self._with_orders(s) for s in suppliers]
        return suppliers

    def get_supplier(
        self, current_user: UserSchema, supplier_id: int, include_orders: bool = False
    ) -> SupplierResponse:
        scope = enforce(current_user.role, Operation.SUPPLIER_READ, resource="Supplier")
        if scope == Scope.OWN:
            owns = self.user_repo.get_linked_supplier_id(current_user.id) == supplier_id
            enforce(
                current_user.role,
                Operation.SUPPLIER_READ,
                owns_resource=owns,
                resource="Supplier",
            )

        supplier = self.supplier_repo.get_joined(supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
        return self._with_orders(supplier) if include_orders else supplier

    def create_supplier(self, current_user: UserSchema, data: SupplierCreate) -> SupplierResponse:
        """
        공급자 생성 - SUPPLIER 사용자 + 공급자 + 초기 잔액 원장을 하나의 트랜잭션으로

        초기 잔액은 공급자를 0으로 만든 뒤 apply_delta("Initial balance")로 기록하므로
        생성 직후부터 잔액 == 원장 합계가 성립합니다.
        """
        enforce(current_user.role, Operation.SUPPLIER_CREATE)

        if self.user_repo.email_exists(data.email):
            raise ConflictError("Email already exists", details={"email": data.email.lower()})

        password_hash = hash_password(data.password)
        threshold = (
            data.low_balance_threshold
            if data.low_balance_threshold is not None
            else self.settings.DEFAULT_LOW_BALANCE_THRESHOLD
        )

        def work() -> int:
            user = self.user_repo.add_user(
                email=data.email,
                name=data.name,
                password_hash=password_hash,
                role=UserRole.SUPPLIER,
            )
            supplier = self.supplier_repo.add(
                user_id=user.id,
                name=data.name,
                diamond_balance=0,
                low_balance_threshold=threshold,
                google_sheet_id=data.google_sheet_id,
                google_sync_enabled=data.google_sync_enabled,
            )
            self.ledger_repo.apply_delta(supplier.id, data.diamond_balance, "Initial balance")
            return supplier.id

        supplier_id = run_atomic(
            self.db, work, label="supplier create", max_attempts=self.settings.TX_MAX_ATTEMPTS
        )
        logger.info(
            f"Supplier {supplier_id} created by user {current_user.id} "
            f"(initial balance={data.diamond_balance})"
        )
        return self.supplier_repo.get_joined(supplier_id)

    def update_supplier(
        self, current_user: UserSchema, supplier_id: int, data: SupplierUpdate
    ) -> SupplierResponse:
        """공급자 정보 수정 (잔액은 수정하지 않음)"""
        enforce(current_user.role, Operation.SUPPLIER_EDIT)

        def work() -> None:
            supplier = self.supplier_repo.get_model(supplier_id)
            if supplier is None:
                raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})

            for field, value in data.model_dump(exclude_unset=True).items():
                if field in ("name", "low_balance_threshold", "google_sync_enabled") and value is None:
                    continue
                setattr(supplier, field, value)
            self.db.flush()

        run_atomic(
            self.db, work, label=f"supplier {supplier_id} update", max_attempts=self.settings.TX_MAX_ATTEMPTS
        )
        logger.info(f"Supplier {supplier_id} updated by user {current_user.id}")
        return self.supplier_repo.get_joined(supplier_id)
