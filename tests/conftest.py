import os
import sys
from pathlib import Path

# 엔진이 import 시점에 생성되므로 diamondapi import 전에 설정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SWEEPER_ENABLED"] = "false"

# Ensure project root is on path for `diamondapi` imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from diamondapi.config import Settings
from diamondapi.core.security import hash_password
from diamondapi.database.connection import enable_sqlite_foreign_keys
from diamondapi.models import Base, BalanceLog, Supplier, User, UserRole
from diamondapi.repositories.ledger_repository import LedgerRepository
from diamondapi.schemas.order import OrderCreate
from diamondapi.schemas.user import User as UserSchema

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SWEEPER_ENABLED=False,
        SWEEP_ON_ORDER_LIST=True,
        READY_FOR_GIFTING_AFTER_DAYS=7,
        TX_MAX_ATTEMPTS=2,
    )


def as_schema(user: User) -> UserSchema:
    return UserSchema.model_validate(user)


def balance_of(db, supplier_id: int) -> int:
    """identity map을 거치지 않고 DB의 현재 잔액 조회"""
    return db.query(Supplier.diamond_balance).filter(Supplier.id == supplier_id).scalar()


def logs_of(db, supplier_id: int):
    return (
        db.query(BalanceLog)
        .filter(BalanceLog.supplier_id == supplier_id)
        .order_by(BalanceLog.id)
        .all()
    )


class Factory:
    """테스트 데이터 생성 헬퍼 - 모든 생성은 커밋까지 수행"""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, role: UserRole = UserRole.ADMIN, email: str = None, name: str = None) -> User:
        n = self._next()
        user = User(
            email=email or f"{role.value.lower()}{n}@example.com",
            name=name or f"{role.value.title()} {n}",
            password_hash=PASSWORD_HASH,
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def supplier(
        self,
        balance: int = 10000,
        threshold: int = 1000,
        name: str = None,
        sheet_id: str = None,
        sync_enabled: bool = False,
    ) -> Supplier:
        """SUPPLIER 사용자 + 공급자 생성, 초기 잔액은 원장을 통해 기록"""
        user = self.user(UserRole.SUPPLIER)
        supplier = Supplier(
            user_id=user.id,
            name=name or f"Supplier {user.id}",
            diamond_balance=0,
            low_balance_threshold=threshold,
            google_sheet_id=sheet_id,
            google_sync_enabled=sync_enabled,
        )
        self.db.add(supplier)
        self.db.flush()
        LedgerRepository(self.db).apply_delta(supplier.id, balance, "Initial balance")
        self.db.commit()
        self.db.refresh(supplier)
        return supplier

    def order(self, supplier: Supplier, admin: User = None, settings: Settings = None, **overrides):
        """OrderService를 통해 주문 생성 (차감 포함)"""
        from diamondapi.services.order_service import OrderService

        admin = admin or self.user(UserRole.ADMIN)
        n = self._next()
        payload = {
            "player_account_id": f"1234567{n}",
            "server_id": "2001",
            "in_game_name": f"Player{n}",
            "skin_name": f"Skin {n}",
            "diamond_price": 500,
            "supplier_id": supplier.id,
        }
        payload.update(overrides)
        service = OrderService(self.db, settings or Settings(DATABASE_URL="sqlite://"))
        return service.create_order(as_schema(admin), OrderCreate(**payload))


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def admin(factory):
    return factory.user(UserRole.ADMIN, email="admin@example.com", name="Main Admin")


@pytest.fixture
def viewer(factory):
    return factory.user(UserRole.VIEWER, email="viewer@example.com", name="Read Only Viewer")


def supplier_user(db, supplier: Supplier) -> User:
    return db.get(User, supplier.user_id)


@pytest.fixture
def api(db):
    """실제 서비스 + 테스트 세션으로 동작하는 TestClient, login_as로 호출자 지정"""
    from fastapi.testclient import TestClient

    from diamondapi.core.auth_middleware import get_current_user
    from diamondapi.database.session import get_db
    from diamondapi.main import app

    def _get_db():
        yield db

    class Api:
        client = TestClient(app)

        def login_as(self, user: User):
            current = as_schema(user)
            app.dependency_overrides[get_current_user] = lambda: current

        def logout(self):
            app.dependency_overrides.pop(get_current_user, None)

    app.dependency_overrides[get_db] = _get_db
    yield Api()
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_current_user, None)
