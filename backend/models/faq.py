"""FAQ data models."""
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FaqEntry:
    """A stored title/content pair used as retrieval context."""
    id: str
    title: str
    content: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
        }
