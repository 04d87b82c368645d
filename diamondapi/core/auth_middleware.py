from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from diamondapi.deps import get_auth_service
from diamondapi.services.auth_service import AuthService
from diamondapi.schemas.user import User as UserSchema
from diamondapi.core.exceptions import AuthenticationError, ForbiddenError

# JWT Bearer 토큰 스킴
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserSchema:
    """필수 사용자 인증 - 유효한 토큰이 필요함"""
    if not credentials:
        raise AuthenticationError("Authentication required")

    user = auth_service.get_current_user(credentials.credentials)
    if not user:
        raise AuthenticationError("Invalid or expired token")
    return user


def require_admin(
    current_user: UserSchema = Depends(get_current_user),
) -> UserSchema:
    """관리자 권한이 필요한 엔드포인트용 의존성"""
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user
