"""Data models for the FAQ support chat backend."""
from .faq import FaqEntry
from .conversation import Sender, ConversationTurn, ConversationRecord
from .api import ChatRequest, ChatResponse, FaqCreateRequest, FaqOut, FaqCreatedResponse, TurnOut, HistoryResponse

__all__ = [
    "FaqEntry",
    "Sender",
    "ConversationTurn",
    "ConversationRecord",
    "ChatRequest",
    "ChatResponse",
    "FaqCreateRequest",
    "FaqOut",
    "FaqCreatedResponse",
    "TurnOut",
    "HistoryResponse",
]
