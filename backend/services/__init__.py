"""Services for the FAQ support chat backend."""
from .relevance_scorer import RelevanceScorer, ScoredFaq, normalize_text
from .context_assembler import ContextAssembler, PromptPayload, PromptMessage, FALLBACK_REPLY
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .faq_store import FaqStore, InMemoryFaqStore, SupabaseFaqStore, StoreError
from .chat_store import ChatStore, InMemoryChatStore, SupabaseChatStore
from .document_loader import DocumentLoader, ExtractionError

__all__ = ['RelevanceScorer', 'ScoredFaq', 'normalize_text', 'ContextAssembler', 'PromptPayload', 'PromptMessage', 'FALLBACK_REPLY', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'FaqStore', 'InMemoryFaqStore', 'SupabaseFaqStore', 'StoreError', 'ChatStore', 'InMemoryChatStore', 'SupabaseChatStore', 'DocumentLoader', 'ExtractionError']
