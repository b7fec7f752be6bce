"""Configuration management for the FAQ support chat backend."""
import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "5000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5000"
).split(",")

# Model Configuration
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "30"))
TEMPERATURE = 0.5
MAX_OUTPUT_TOKENS = 500
ASSISTANT_NAME = os.getenv("ASSISTANT_NAME", "Dhanista")

# Storage Configuration
STORE_BACKEND = os.getenv("STORE_BACKEND", "supabase")  # "supabase" or "memory"
FAQ_TABLE = "faqs"
CHAT_TABLE = "chats"

# Retrieval Configuration
MIN_SCORE = float(os.getenv("FAQ_MIN_SCORE", "0.3"))
TOP_K = 3

# Conversation Configuration
MAX_HISTORY = int(os.getenv("CHAT_MAX_HISTORY", "6"))

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@dataclass
class Settings:
    """Explicit settings handed to the app factory and services."""
    base_url: str = GEMINI_BASE_URL
    api_key: Optional[str] = GEMINI_API_KEY
    min_score: float = MIN_SCORE
    max_history: int = MAX_HISTORY
    model: str = GEMINI_MODEL
    timeout: float = GEMINI_TIMEOUT
    temperature: float = TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    assistant_name: str = ASSISTANT_NAME
    store_backend: str = STORE_BACKEND
    supabase_url: Optional[str] = SUPABASE_URL
    supabase_key: Optional[str] = SUPABASE_KEY
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))

    @classmethod
    def load(cls) -> "Settings":
        """Read settings from the current environment."""
        return cls(
            base_url=os.getenv("GEMINI_BASE_URL", GEMINI_BASE_URL),
            api_key=os.getenv("GEMINI_API_KEY", GEMINI_API_KEY),
            min_score=float(os.getenv("FAQ_MIN_SCORE", str(MIN_SCORE))),
            max_history=int(os.getenv("CHAT_MAX_HISTORY", str(MAX_HISTORY))),
            model=os.getenv("GEMINI_MODEL", GEMINI_MODEL),
            timeout=float(os.getenv("GEMINI_TIMEOUT", str(GEMINI_TIMEOUT))),
            assistant_name=os.getenv("ASSISTANT_NAME", ASSISTANT_NAME),
            store_backend=os.getenv("STORE_BACKEND", STORE_BACKEND),
            supabase_url=os.getenv("SUPABASE_URL", SUPABASE_URL),
            supabase_key=os.getenv("SUPABASE_KEY", SUPABASE_KEY),
        )
