from pydantic import BaseModel, Field


class AdminStatsResponse(BaseModel):
    total_orders: int
    pending_orders: int
    ready_orders: int = Field(..., description="선물 준비 완료 상태이며 아직 완료되지 않은 주문 수")


class SweepResponse(BaseModel):
    promoted: int = Field(..., description="READY_FOR_GIFTING으로 전환된 주문 수")
