from fastapi import Depends
from sqlalchemy.orm import Session
from dependency_injector.wiring import inject, Provide

from diamondapi.database.session import get_db
from diamondapi.config import settings
from diamondapi.containers import Container
from diamondapi.providers.sheets.google_sheets import SheetSyncAdapter

# Services
from diamondapi.services.auth_service import AuthService
from diamondapi.services.user_service import UserService
from diamondapi.services.order_service import OrderService
from diamondapi.services.supplier_service import SupplierService
from diamondapi.services.ledger_service import LedgerService
from diamondapi.services.stats_service import StatsService
from diamondapi.services.sweeper_service import ReadyForGiftingSweeper


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db=db, settings=settings)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db=db, settings=settings)


@inject
def get_order_service(
    db: Session = Depends(get_db),
    sheet_sync: SheetSyncAdapter = Depends(Provide[Container.integrations.sheet_sync]),
) -> OrderService:
    return OrderService(db=db, settings=settings, sheet_sync=sheet_sync)


def get_supplier_service(db: Session = Depends(get_db)) -> SupplierService:
    return SupplierService(db=db, settings=settings)


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(db=db, settings=settings)


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db=db)


def get_sweeper(db: Session = Depends(get_db)) -> ReadyForGiftingSweeper:
    return ReadyForGiftingSweeper(db=db, settings=settings)
