from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.core.exceptions import NotFoundError
from diamondapi.core.security import hash_password
from diamondapi.database.transaction import run_atomic
from diamondapi.models.user import UserRole
from diamondapi.repositories.user_repository import UserRepository
from diamondapi.schemas.user import UserProfile, UserProfileUpdate
import logging

logger = logging.getLogger(__name__)


class UserService:
    """사용자 프로필 관련 비즈니스 로직"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.user_repo = UserRepository(db)
        self.settings = settings

    def get_user_profile(self, user_id: int) -> UserProfile:
        """사용자 프로필 조회"""
        profile = self.user_repo.get_user_profile(user_id)
        if not profile:
            raise NotFoundError(f"User profile not found: {user_id}")
        return profile

    def update_user_profile(self, user_id: int, update_data: UserProfileUpdate) -> UserProfile:
        """
        프로필 수정

        - name은 항상 갱신
        - password가 있으면 새 해시로 교체
        - supplier_name은 SUPPLIER 사용자의 연결된 공급자 이름을 변경
        """
        password_hash = hash_password(update_data.password) if update_data.password else None

        def work() -> None:
            user = self.user_repo.get_model(user_id)
            if user is None:
                raise NotFoundError(f"User not found: {user_id}")

            user.name = update_data.name
            if password_hash:
                user.password_hash = password_hash
            if (
                update_data.supplier_name
                and user.role == UserRole.SUPPLIER
                and user.supplier is not None
            ):
                user.supplier.name = update_data.supplier_name
            self.db.flush()

        run_atomic(
            self.db, work, label=f"user {user_id} profile update", max_attempts=self.settings.TX_MAX_ATTEMPTS
        )
        logger.info(f"User {user_id} updated profile (password_changed={bool(password_hash)})")
        return self.get_user_profile(user_id)
