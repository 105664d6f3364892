from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field


class ChatAction(BaseModel):
    type: Literal["trade", "query", "wallet", "none"] = Field(description="What the message was routed to")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Trade result payload for trade actions")


class ChatResponse(BaseModel):
    message: str = Field(description="Assistant reply")
    type: Literal["default", "trade", "error", "info", "market", "wallet"] = Field(
        default="default", description="Display style of the reply"
    )
    action: ChatAction = Field(default_factory=lambda: ChatAction(type="none"), description="Routing outcome")
