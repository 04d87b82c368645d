from typing import Any
from fastapi import APIRouter, Depends

from diamondapi.deps import get_auth_service
from diamondapi.schemas.auth import BaseResponse, LoginRequest
from diamondapi.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=BaseResponse)
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """이메일/비밀번호 로그인 - JWT 액세스 토큰 발급"""
    token = auth_service.login(payload)
    return BaseResponse(success=True, data=token.model_dump(mode="json"))
