"""Prompt assembly for the completion API and reply extraction."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from models.conversation import ConversationTurn, Sender
from models.faq import FaqEntry
from config import ASSISTANT_NAME, MAX_HISTORY, MAX_OUTPUT_TOKENS, TEMPERATURE

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I received an empty or unclear response from the AI. "
    "Please try again or ask your question in a different way."
)

FAQ_SEPARATOR = "\n\n---\n\n"

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]

INSTRUCTION_TEMPLATE = """You are {assistant_name}, a helpful and knowledgeable AI assistant. Your primary goal is to answer user questions accurately and comprehensively.

**Instructions:**
1. **Prioritize the provided relevant FAQs.** If the user's question can be answered by the information in "Relevant FAQs:", use that information directly and comprehensively.
2. If the "Relevant FAQs:" section is empty or does not sufficiently answer the question, attempt to answer using your general knowledge.
3. **Crucially:** If you cannot find relevant information in the FAQs AND your general knowledge is insufficient, *do not say you don't have enough information*. Instead, acknowledge the query and politely suggest rephrasing or mention that the specific information might not be available in your current knowledge base. For example: "I don't have specific information on that topic in my current knowledge base. Could you please rephrase your question or ask about something else?"
4. Maintain a friendly and professional tone.
"""


@dataclass
class PromptMessage:
    """One role-tagged message in the outbound payload."""
    role: str  # "user" or "model"
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass
class PromptPayload:
    """Everything sent to the completion API for one user message."""
    messages: List[PromptMessage]
    temperature: float = TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    safety_threshold: Optional[str] = "BLOCK_NONE"
    faq_count: int = 0
    history_count: int = 0

    def to_request_body(self) -> Dict[str, Any]:
        """Render as a generateContent request body."""
        body: Dict[str, Any] = {
            "contents": [message.to_dict() for message in self.messages],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        if self.safety_threshold:
            body["safetySettings"] = [
                {"category": category, "threshold": self.safety_threshold}
                for category in SAFETY_CATEGORIES
            ]
        return body

    def all_text(self) -> str:
        return "\n".join(message.text for message in self.messages)


class ContextAssembler:
    """Builds the outbound prompt and parses the inbound completion."""

    def __init__(
        self,
        max_history: int = MAX_HISTORY,
        assistant_name: str = ASSISTANT_NAME,
        temperature: float = TEMPERATURE,
        max_output_tokens: int = MAX_OUTPUT_TOKENS
    ):
        """
        Initialize the assembler.

        Args:
            max_history: Turns kept when the latest turn is from the user;
                one fewer is kept otherwise
            assistant_name: Persona name used in the instruction block
            temperature: Sampling temperature for the completion API
            max_output_tokens: Completion length cap
        """
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        self.assistant_name = assistant_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def trim_history(self, history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        """
        Keep the most recent turns.

        When the newest turn is from the user the full window is kept,
        otherwise one fewer, so an odd cut does not leave a user turn
        at the start without the reply that followed it.
        """
        turns = [turn for turn in history if isinstance(turn.sender, Sender)]
        if not turns:
            return []
        if turns[-1].sender == Sender.USER:
            window = self.max_history
        else:
            window = self.max_history - 1
        if window <= 0:
            return []
        return turns[-window:]

    @staticmethod
    def format_faqs(faqs: Sequence[FaqEntry]) -> str:
        """Render matched FAQs as Q/A blocks; empty string when none matched."""
        return FAQ_SEPARATOR.join(f"Q: {faq.title}\nA: {faq.content}" for faq in faqs)

    def build_instruction(self, faqs: Sequence[FaqEntry]) -> str:
        instruction = INSTRUCTION_TEMPLATE.format(assistant_name=self.assistant_name)
        faq_block = self.format_faqs(faqs)
        if faq_block:
            instruction += f"\n**Relevant FAQs:**\n{faq_block}\n"
        return instruction

    def build_prompt(
        self,
        query: str,
        scored_faqs: Sequence[FaqEntry],
        history: Sequence[ConversationTurn]
    ) -> PromptPayload:
        """
        Assemble the completion request for a user message.

        Args:
            query: The new user message
            scored_faqs: Output of the relevance scorer, best first
            history: Stored conversation turns, oldest first

        Returns:
            PromptPayload ordered as instruction, trimmed history, query
        """
        trimmed = self.trim_history(history)

        messages = [PromptMessage(role="user", text=self.build_instruction(scored_faqs))]
        for turn in trimmed:
            role = "user" if turn.sender == Sender.USER else "model"
            messages.append(PromptMessage(role=role, text=turn.content))
        messages.append(PromptMessage(role="user", text=query))

        logger.debug(
            f"Built prompt: faqs={len(scored_faqs)}, "
            f"history={len(trimmed)}/{len(history)}, messages={len(messages)}"
        )

        return PromptPayload(
            messages=messages,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            faq_count=len(scored_faqs),
            history_count=len(trimmed),
        )

    @staticmethod
    def extract_reply(response: Any) -> str:
        """
        Pull the first text completion out of an upstream response.

        Never raises: any missing or malformed piece yields FALLBACK_REPLY.
        """
        try:
            text = response["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.error(f"Completion response was empty or malformed: {str(response)[:500]}")
            return FALLBACK_REPLY

        if not isinstance(text, str) or not text.strip():
            logger.error("Completion response contained no text")
            return FALLBACK_REPLY
        return text
