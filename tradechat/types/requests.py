from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(description="User message")


class TradeRequest(BaseModel):
    message: str = Field(description="Trade command or question")
