from typing import Any, Optional
from fastapi import APIRouter, Depends, Path, Query, status

from diamondapi.core.auth_middleware import get_current_user
from diamondapi.deps import get_ledger_service, get_supplier_service
from diamondapi.schemas.auth import BaseResponse
from diamondapi.schemas.order import SortDirection
from diamondapi.schemas.supplier import (
    BalanceAdjustmentRequest,
    SupplierCreate,
    SupplierSortField,
    SupplierUpdate,
)
from diamondapi.schemas.user import User as UserSchema
from diamondapi.services.ledger_service import LedgerService
from diamondapi.services.supplier_service import SupplierService

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.get("", response_model=BaseResponse)
def list_suppliers(
    search: Optional[str] = Query(None, description="공급자 이름 또는 사용자 이메일"),
    sort: SupplierSortField = Query(SupplierSortField.CREATED_AT),
    order: SortDirection = Query(SortDirection.DESC),
    include_orders: bool = Query(False, description="최근 주문 20건 포함"),
    current_user: UserSchema = Depends(get_current_user),
    supplier_service: SupplierService = Depends(get_supplier_service),
) -> Any:
    suppliers = supplier_service.list_suppliers(
        current_user,
        search=search,
        sort_by=sort,
        sort_dir=order,
        include_orders=include_orders,
    )
    return BaseResponse(
        success=True,
        data={
            "suppliers": [s.model_dump(mode="json") for s in suppliers],
            "count": len(suppliers),
        },
    )


@router.post("", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: SupplierCreate,
    current_user: UserSchema = Depends(get_current_user),
    supplier_service: SupplierService = Depends(get_supplier_service),
) -> Any:
    """공급자 + 공급자 사용자 생성 (ADMIN)"""
    supplier = supplier_service.create_supplier(current_user, payload)
    return BaseResponse(success=True, data={"supplier": supplier.model_dump(mode="json")})


@router.get("/{supplier_id}", response_model=BaseResponse)
def get_supplier(
    supplier_id: int = Path(..., gt=0),
    include_orders: bool = Query(False),
    current_user: UserSchema = Depends(get_current_user),
    supplier_service: SupplierService = Depends(get_supplier_service),
) -> Any:
    supplier = supplier_service.get_supplier(current_user, supplier_id, include_orders)
    return BaseResponse(success=True, data={"supplier": supplier.model_dump(mode="json")})


@router.patch("/{supplier_id}", response_model=BaseResponse)
def update_supplier(
    payload: SupplierUpdate,
    supplier_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    supplier_service: SupplierService = Depends(get_supplier_service),
) -> Any:
    """공급자 정보 수정 (ADMIN)"""
    supplier = supplier_service.update_supplier(current_user, supplier_id, payload)
    return BaseResponse(success=True, data={"supplier": supplier.model_dump(mode="json")})


@router.post("/{supplier_id}/balance", response_model=BaseResponse)
def adjust_balance(
    payload: BalanceAdjustmentRequest,
    supplier_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> Any:
    """
    잔액 직접 조정 - ADMIN 또는 해당 공급자

    new_balance(목표 잔액)와 change_amount(증감량) 중 new_balance가 우선합니다.
    계산된 증감량이 0이면 원장에 기록하지 않습니다.
    """
    result = ledger_service.adjust_balance(current_user, supplier_id, payload)
    return BaseResponse(success=True, data=result.model_dump(mode="json"))
