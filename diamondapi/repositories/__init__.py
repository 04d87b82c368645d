# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .supplier_repository import SupplierRepository
from .order_repository import OrderRepository
from .ledger_repository import LedgerRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "SupplierRepository",
    "OrderRepository",
    "LedgerRepository",
]
