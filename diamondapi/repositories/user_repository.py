from typing import Optional
from sqlalchemy.orm import Session, joinedload

from diamondapi.models.user import User as UserModel, UserRole
from diamondapi.schemas.user import User as UserSchema, UserProfile
from diamondapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    def get_model_by_email(self, email: str) -> Optional[UserModel]:
        """로그인 검증용 - password_hash가 필요하므로 ORM 인스턴스 반환"""
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.email == self.normalize_email(email))
            .first()
        )

    def email_exists(self, email: str) -> bool:
        return self.exists({"email": self.normalize_email(email)})

    def add_user(
        self, email: str, name: str, password_hash: str, role: UserRole
    ) -> UserModel:
        """사용자 생성 (flush만 수행)"""
        return self.add(
            email=self.normalize_email(email),
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=True,
        )

    def get_user_profile(self, user_id: int) -> Optional[UserProfile]:
        """사용자 프로필 조회 (연결된 공급자 포함)"""
        model_instance = (
            self.db.query(self.model_class)
            .options(joinedload(self.model_class.supplier))
            .filter(self.model_class.id == user_id)
            .first()
        )
        if model_instance is None:
            return None
        return UserProfile.model_validate(model_instance)

    def get_linked_supplier_id(self, user_id: int) -> Optional[int]:
        """SUPPLIER 사용자의 연결된 공급자 ID (없으면 None)"""
        model_instance = (
            self.db.query(self.model_class)
            .options(joinedload(self.model_class.supplier))
            .filter(self.model_class.id == user_id)
            .first()
        )
        if model_instance is None or model_instance.supplier is None:
            return None
        return model_instance.supplier.id
