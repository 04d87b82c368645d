"""Pydantic models for the player-id verification lookup."""

from typing import Optional

from pydantic import BaseModel, Field


class PlayerVerifyRequest(BaseModel):
    player_account_id: str = Field(..., min_length=1)
    server_id: str = Field(..., min_length=1)


class PlayerVerificationResult(BaseModel):
    """Either display_name or error is set."""

    display_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.display_name is not None
