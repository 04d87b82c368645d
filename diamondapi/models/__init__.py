from .base import Base
from .user import User, UserRole
from .supplier import Supplier
from .order import Order, OrderStatus
from .balance_log import BalanceLog

__all__ = ["Base", "User", "UserRole", "Supplier", "Order", "OrderStatus", "BalanceLog"]
