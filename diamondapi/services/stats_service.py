from sqlalchemy.orm import Session

from diamondapi.core.access_policy import Operation, enforce
from diamondapi.repositories.order_repository import OrderRepository
from diamondapi.schemas.admin import AdminStatsResponse
from diamondapi.schemas.user import User as UserSchema


class StatsService:
    """관리자 대시보드 통계"""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)

    def get_admin_stats(self, current_user: UserSchema) -> AdminStatsResponse:
        enforce(current_user.role, Operation.ADMIN_TOOLS)
        return AdminStatsResponse(**self.order_repo.count_stats())
