from typing import Optional
from sqlalchemy.orm import Session

from diamondapi.config import Settings
from diamondapi.core.security import create_access_token, decode_access_token, verify_password
from diamondapi.core.exceptions import AuthenticationError
from diamondapi.repositories.user_repository import UserRepository
from diamondapi.schemas.auth import LoginRequest, Token, TokenData
from diamondapi.schemas.user import User as UserSchema
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """인증 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.user_repo = UserRepository(db)
        self.settings = settings

    def login(self, credentials: LoginRequest) -> Token:
        """이메일/비밀번호 로그인 - 실패 사유는 구분하지 않음"""
        user = self.user_repo.get_model_by_email(credentials.email)
        if (
            user is None
            or not user.is_active
            or not verify_password(credentials.password, user.password_hash)
        ):
            logger.warning(f"Failed login attempt for {credentials.email}")
            raise AuthenticationError("Invalid email or password")

        access_token = create_access_token(data={"sub": user.email, "user_id": user.id})
        logger.info(f"User {user.id} logged in")
        return Token(access_token=access_token, token_type="bearer", role=user.role)

    def verify_token(self, token: str) -> Optional[TokenData]:
        """토큰 검증 - 유효하지 않으면 None"""
        try:
            payload = decode_access_token(token)
        except AuthenticationError:
            return None
        return TokenData(user_id=payload.user_id)

    def get_current_user(self, token: str) -> Optional[UserSchema]:
        """토큰으로 현재 사용자 조회"""
        token_data = self.verify_token(token)
        if not token_data or not token_data.user_id:
            return None

        user = self.user_repo.get_by_id(token_data.user_id)
        if not user or not user.is_active:
            return None

        return user
