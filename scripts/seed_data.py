"""
기본 사용자/공급자 시드 스크립트
관리자 1명, 공급자 2명(잔액 12000 / 8000), 조회 전용 사용자 1명을 생성합니다.

공급자 초기 잔액은 원장(balance_logs)을 통해 기록되므로
시드 직후에도 잔액 == 원장 합계가 성립합니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from diamondapi.core.security import hash_password
from diamondapi.database.connection import SessionLocal
from diamondapi.models.supplier import Supplier
from diamondapi.models.user import User, UserRole
from diamondapi.repositories.ledger_repository import LedgerRepository

ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")
SUPPLIER_PASSWORD = os.environ.get("SEED_SUPPLIER_PASSWORD", "supplier123")
VIEWER_PASSWORD = os.environ.get("SEED_VIEWER_PASSWORD", "viewer123")

SEED_USERS = [
    ("admin@mlbb.example.com", "Main Admin", UserRole.ADMIN, ADMIN_PASSWORD),
    ("supplier1@mlbb.example.com", "Supplier One", UserRole.SUPPLIER, SUPPLIER_PASSWORD),
    ("supplier2@mlbb.example.com", "Supplier Two", UserRole.SUPPLIER, SUPPLIER_PASSWORD),
    ("viewer@mlbb.example.com", "Read Only Viewer", UserRole.VIEWER, VIEWER_PASSWORD),
]

# (사용자 이메일, 공급자 이름, 목표 잔액, 부족 경고 임계값)
SEED_SUPPLIERS = [
    ("supplier1@mlbb.example.com", "Supplier One", 12000, 1000),
    ("supplier2@mlbb.example.com", "Supplier Two", 8000, 1000),
]


def upsert_user(db: Session, email: str, name: str, role: UserRole, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, name=name, role=role, password_hash=hash_password(password))
        db.add(user)
    else:
        user.name = name
        user.role = role
        user.password_hash = hash_password(password)
    db.flush()
    return user


def upsert_supplier(db: Session, user: User, name: str, balance: int, threshold: int) -> Supplier:
    """공급자 생성/갱신 - 잔액 차이는 원장을 통해 맞춤"""
    supplier = db.query(Supplier).filter(Supplier.user_id == user.id).first()
    if supplier is None:
        supplier = Supplier(
            user_id=user.id, name=name, diamond_balance=0, low_balance_threshold=threshold
        )
        db.add(supplier)
        db.flush()
        reason = "Initial balance"
    else:
        supplier.name = name
        supplier.low_balance_threshold = threshold
        db.flush()
        reason = "Seed balance adjustment"

    LedgerRepository(db).apply_delta(supplier.id, balance - supplier.diamond_balance, reason)
    return supplier


def seed_accounts():
    """기본 계정 시드"""
    db = SessionLocal()
    try:
        users = {}
        for email, name, role, password in SEED_USERS:
            users[email] = upsert_user(db, email, name, role, password)

        for email, name, balance, threshold in SEED_SUPPLIERS:
            upsert_supplier(db, users[email], name, balance, threshold)

        db.commit()
        print(f"✅ 시드 계정 생성 완료: 사용자 {len(SEED_USERS)}명, 공급자 {len(SEED_SUPPLIERS)}곳")
        for email, name, role, _ in SEED_USERS:
            print(f"   {role.value:8s} {email} ({name})")

    except Exception as e:
        db.rollback()
        print(f"❌ 시드 데이터 생성 실패: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_accounts()
