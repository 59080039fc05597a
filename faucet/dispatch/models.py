from pydantic import BaseModel, Field


class SendRequest(BaseModel):
    address: str = Field(..., description="The bitcoin address to send coins to")
    amount: int = Field(
        ..., ge=0, lt=2**64, description="The amount to send, denominated in sats"
    )
