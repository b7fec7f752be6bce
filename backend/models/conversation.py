"""Conversation data models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Sender(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, value: str) -> Optional["Sender"]:
        """Map a stored sender value to a Sender, accepting the legacy 'ai' tag."""
        if value == "ai":
            return cls.ASSISTANT
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class ConversationTurn:
    """Represents a single message in a conversation."""
    sender: Sender
    content: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "sender": self.sender.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ConversationRecord:
    """All turns exchanged with one user, oldest first."""
    user_id: str
    turns: List[ConversationTurn] = field(default_factory=list)
    updated_at: Optional[datetime] = None
