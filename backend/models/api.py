"""Request and response schemas for the HTTP API."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Body of POST /chat. Fields are optional so missing ones map to a 400."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    message: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str


class FaqCreateRequest(BaseModel):
    """Body of POST /faqs."""
    title: Optional[str] = None
    content: Optional[str] = None


class FaqOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str
    created_at: str = Field(alias="createdAt")


class FaqCreatedResponse(BaseModel):
    message: str
    faq: FaqOut


class TurnOut(BaseModel):
    sender: str
    content: str
    timestamp: str


class HistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    messages: List[TurnOut]
