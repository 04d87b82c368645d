from typing import Any
from fastapi import APIRouter, Depends

from diamondapi.core.auth_middleware import get_current_user
from diamondapi.deps import get_user_service
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.user import User as UserSchema, UserProfileUpdate
from diamondapi.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=BaseResponse)
def get_current_user_profile(
    current_user: UserSchema = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Any:
    """현재 사용자 프로필 조회"""
    profile = user_service.get_user_profile(current_user.id)
    return BaseResponse(success=True, data=profile.model_dump(mode="json"))


@router.patch("/me", response_model=BaseResponse)
def update_current_user_profile(
    update_data: UserProfileUpdate,
    current_user: UserSchema = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Any:
    """현재 사용자 프로필 수정 (이름, 비밀번호, 공급자 표시 이름)"""
    profile = user_service.update_user_profile(current_user.id, update_data)
    return BaseResponse(success=True, data=profile.model_dump(mode="json"))
