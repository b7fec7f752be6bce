"""
Chat widget state.

The widget's whole UI state is one immutable ChatViewState. Every change
goes through a pure function that returns a new state, so rendering code
only ever reads.
"""
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

SEND_FAILED_REPLY = "Oops! Something went wrong. Please try again."


@dataclass(frozen=True)
class ChatMessage:
    sender: str  # "user" or "assistant"
    content: str


@dataclass(frozen=True)
class ChatViewState:
    messages: Tuple[ChatMessage, ...] = ()
    is_typing: bool = False
    input_text: str = ""


def set_input(state: ChatViewState, text: str) -> ChatViewState:
    return replace(state, input_text=text)


def submit(state: ChatViewState) -> Tuple[ChatViewState, Optional[str]]:
    """
    Move the typed text into the message list.

    Returns:
        The new state and the message to send, or (state, None) when the
        input is blank or a reply is still pending
    """
    text = state.input_text.strip()
    if not text or state.is_typing:
        return state, None
    new_state = replace(
        state,
        messages=state.messages + (ChatMessage("user", text),),
        input_text="",
        is_typing=True,
    )
    return new_state, text


def receive_reply(state: ChatViewState, reply: str) -> ChatViewState:
    return replace(
        state,
        messages=state.messages + (ChatMessage("assistant", reply),),
        is_typing=False,
    )


def fail_send(state: ChatViewState, error_text: str = SEND_FAILED_REPLY) -> ChatViewState:
    return receive_reply(state, error_text)


def load_history(state: ChatViewState, messages: Iterable[ChatMessage]) -> ChatViewState:
    """Replace the message list with stored history."""
    return replace(state, messages=tuple(messages))
