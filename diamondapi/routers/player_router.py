from typing import Any
from fastapi import APIRouter, Depends
from dependency_injector.wiring import inject, Provide

from diamondapi.containers import Container
from diamondapi.core.auth_middleware import require_admin
from diamondapi.core.exceptions import NotFoundError
from diamondapi.providers.player.moogold import PlayerIdVerifier
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.player import PlayerVerifyRequest
from diamondapi.schemas.user import User as UserSchema

router = APIRouter(prefix="/players", tags=["players"])


@router.post("/verify", response_model=BaseResponse)
@inject
async def verify_player(
    payload: PlayerVerifyRequest,
    current_user: UserSchema = Depends(require_admin),
    verifier: PlayerIdVerifier = Depends(Provide[Container.integrations.player_verifier]),
) -> Any:
    """게임 계정 ID + 서버 ID로 인게임 닉네임 조회 (주문 생성 시 자동 입력용)"""
    result = await verifier.verify(payload.player_account_id, payload.server_id)
    if not result.found:
        raise NotFoundError(result.error or "Player not found")
    return BaseResponse(success=True, data={"in_game_name": result.display_name})
