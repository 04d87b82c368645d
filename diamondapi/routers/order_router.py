"""
주문 API 라우터

- GET /orders: 주문 목록 (조회 전 선물 준비 스윕 실행, SUPPLIER는 본인 주문만)
- POST /orders: 주문 생성 + 공급자 잔액 차감 (ADMIN)
- GET /orders/{order_id}: 주문 단건 조회
- PATCH /orders/{order_id}: 상태/재배정/준비 플래그 변경 (잔액 효과 엔진)
- DELETE /orders/{order_id}: 주문 삭제 + 차감분 환불 (ADMIN)
"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Path, Query, status

from diamondapi.core.auth_middleware import get_current_user
from diamondapi.deps import get_order_service
from diamondapi.models.order import OrderStatus
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.order import OrderCreate, OrderSortField, OrderUpdate, SortDirection
from diamondapi.schemas.user import User as UserSchema
from diamondapi.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=BaseResponse)
def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    exclude_status: Optional[OrderStatus] = Query(None),
    supplier_id: Optional[int] = Query(None, description="ADMIN/VIEWER 전용 공급자 필터"),
    search: Optional[str] = Query(None, description="계정 ID, 서버 ID, 닉네임, 스킨 이름 검색"),
    sort: OrderSortField = Query(OrderSortField.CREATED_AT),
    order: SortDirection = Query(SortDirection.DESC),
    limit: Optional[int] = Query(None, description="1~500 범위로 보정, 기본 200"),
    current_user: UserSchema = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> Any:
    """주문 목록 조회"""
    result = order_service.list_orders(
        current_user,
        status=status_filter,
        exclude_status=exclude_status,
        supplier_id=supplier_id,
        search=search,
        sort_by=sort,
        sort_dir=order,
        limit=limit,
    )
    return BaseResponse(success=True, data=result.model_dump(mode="json"))


@router.post("", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    current_user: UserSchema = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> Any:
    """주문 생성 (ADMIN)"""
    order = order_service.create_order(current_user, payload)
    return BaseResponse(success=True, data={"order": order.model_dump(mode="json")})


@router.get("/{order_id}", response_model=BaseResponse)
def get_order(
    order_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> Any:
    order = order_service.get_order(current_user, order_id)
    return BaseResponse(success=True, data={"order": order.model_dump(mode="json")})


@router.patch("/{order_id}", response_model=BaseResponse)
def update_order(
    payload: OrderUpdate,
    order_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> Any:
    """주문 변경 - SUPPLIER는 FOLLOWED/READY_FOR_GIFTING/COMPLETED/FAILED만 설정 가능"""
    order = order_service.update_order(current_user, order_id, payload)
    return BaseResponse(success=True, data={"order": order.model_dump(mode="json")})


@router.delete("/{order_id}", response_model=BaseResponse)
def delete_order(
    order_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> Any:
    """주문 삭제 (ADMIN)"""
    result = order_service.delete_order(current_user, order_id)
    return BaseResponse(success=True, data=result.model_dump(mode="json"))
