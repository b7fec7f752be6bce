"""Client-side chat widget: state container, HTTP client and terminal front end."""
from .state import ChatMessage, ChatViewState, set_input, submit, receive_reply, fail_send, load_history
from .api import ChatApiClient, ChatApiError

__all__ = [
    "ChatMessage",
    "ChatViewState",
    "set_input",
    "submit",
    "receive_reply",
    "fail_send",
    "load_history",
    "ChatApiClient",
    "ChatApiError",
]
