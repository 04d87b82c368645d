"""
역할 기반 접근 정책

역할(ADMIN / SUPPLIER / VIEWER) x 작업 → 허용 범위(ANY / OWN)의 권한 표와
역할별 주문 상태 허용 목록으로 모든 권한 판단을 한 곳에서 처리합니다.

거부 사유는 두 가지로 구분합니다:
- FORBIDDEN: 인증되었지만 해당 작업/상태에 대한 권한이 없음 (403)
- NOT_FOUND: 본인 범위 밖의 리소스 (존재 여부를 노출하지 않기 위해 404와 동일하게 응답)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from diamondapi.core.exceptions import ForbiddenError, NotFoundError
from diamondapi.models.order import OrderStatus
from diamondapi.models.user import UserRole


class Operation(str, Enum):
    ORDER_CREATE = "order:create"
    ORDER_READ = "order:read"
    ORDER_UPDATE = "order:update"
    ORDER_REASSIGN = "order:reassign"
    ORDER_DELETE = "order:delete"
    SUPPLIER_CREATE = "supplier:create"
    SUPPLIER_EDIT = "supplier:edit"
    SUPPLIER_READ = "supplier:read"
    BALANCE_ADJUST = "balance:adjust"
    BALANCE_LOG_READ = "balance_log:read"
    ADMIN_TOOLS = "admin:tools"
    PLAYER_VERIFY = "player:verify"


class Scope(str, Enum):
    ANY = "any"
    OWN = "own"


class DenialKind(str, Enum):
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


CAPABILITIES: Dict[UserRole, Dict[Operation, Scope]] = {
    UserRole.ADMIN: {operation: Scope.ANY for operation in Operation},
    UserRole.SUPPLIER: {
        Operation.ORDER_READ: Scope.OWN,
        Operation.ORDER_UPDATE: Scope.OWN,
        Operation.SUPPLIER_READ: Scope.OWN,
        Operation.BALANCE_ADJUST: Scope.OWN,
        Operation.BALANCE_LOG_READ: Scope.OWN,
    },
    UserRole.VIEWER: {
        Operation.ORDER_READ: Scope.ANY,
        Operation.SUPPLIER_READ: Scope.ANY,
        Operation.BALANCE_LOG_READ: Scope.ANY,
    },
}

# None이면 모든 상태 허용
STATUS_ALLOWLIST: Dict[UserRole, Optional[FrozenSet[OrderStatus]]] = {
    UserRole.ADMIN: None,
    UserRole.SUPPLIER: frozenset(
        {
            OrderStatus.FOLLOWED,
            OrderStatus.READY_FOR_GIFTING,
            OrderStatus.COMPLETED,
            OrderStatus.FAILED,
        }
    ),
    UserRole.VIEWER: frozenset(),
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    scope: Optional[Scope] = None
    denial: Optional[DenialKind] = None
    reason: str = ""

    @classmethod
    def allow(cls, scope: Scope) -> "AccessDecision":
        return cls(allowed=True, scope=scope)

    @classmethod
    def deny(cls, denial: DenialKind, reason: str) -> "AccessDecision":
        return cls(allowed=False, denial=denial, reason=reason)


def _as_role(role: Union[str, UserRole]) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def authorize(
    role: Union[str, UserRole],
    operation: Operation,
    owns_resource: Optional[bool] = None,
    target_status: Optional[OrderStatus] = None,
) -> AccessDecision:
    """
    권한 판단

    Args:
        role: 호출자 역할
        operation: 요청 작업
        owns_resource: 리소스가 호출자의 공급자 소유인지 (판단 불필요하면 None)
        target_status: 주문 상태 변경 시 목표 상태

    Returns:
        AccessDecision: 허용이면 scope, 거부면 denial/reason 포함
    """
    user_role = _as_role(role)
    if user_role is None:
        return AccessDecision.deny(DenialKind.FORBIDDEN, f"Unknown role: {role}")

    scope = CAPABILITIES.get(user_role, {}).get(operation)
    if scope is None:
        return AccessDecision.deny(
            DenialKind.FORBIDDEN, f"{user_role.value} may not perform {operation.value}"
        )

    if scope == Scope.OWN and owns_resource is False:
        return AccessDecision.deny(DenialKind.NOT_FOUND, "Resource is outside caller scope")

    if target_status is not None:
        allowlist = STATUS_ALLOWLIST.get(user_role)
        if allowlist is not None and target_status not in allowlist:
            return AccessDecision.deny(
                DenialKind.FORBIDDEN,
                f"{user_role.value} may not set status {target_status.value}",
            )

    return AccessDecision.allow(scope)


def enforce(
    role: Union[str, UserRole],
    operation: Operation,
    owns_resource: Optional[bool] = None,
    target_status: Optional[OrderStatus] = None,
    resource: str = "Resource",
) -> Scope:
    """authorize() 결과를 API 예외로 변환 - 허용 시 scope 반환"""
    decision = authorize(role, operation, owns_resource, target_status)
    if decision.allowed:
        return decision.scope

    if decision.denial == DenialKind.NOT_FOUND:
        raise NotFoundError(f"{resource} not found")
    raise ForbiddenError(decision.reason, details={"operation": operation.value})
