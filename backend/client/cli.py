"""Terminal chat widget."""
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from client.api import ChatApiClient, ChatApiError
from client.state import ChatViewState, set_input, submit, receive_reply, fail_send, load_history

EXIT_COMMANDS = ("/exit", "exit", "/quit", "quit")


def handle_line(line: str, state: ChatViewState, api: ChatApiClient) -> tuple[bool, ChatViewState, list[str]]:
    """
    Process one line of input.

    Returns:
        (should_exit, new state, lines to print)
    """
    line = line.strip()
    if not line:
        return False, state, []

    if line.lower() in EXIT_COMMANDS:
        return True, state, ["Bye!"]

    if line.startswith("/upload"):
        parts = line.split(maxsplit=2)
        if len(parts) != 3:
            return False, state, ["Usage: /upload <path> <title>"]
        path = Path(parts[1])
        if not path.is_file():
            return False, state, [f"No such file: {path}"]
        try:
            body = api.upload_file_faq(parts[2], path)
        except ChatApiError as e:
            return False, state, [f"Upload failed: {e}"]
        return False, state, [body.get("message", "Uploaded.")]

    state, message = submit(set_input(state, line))
    if message is None:
        return False, state, []

    try:
        reply = api.send_message(message)
        state = receive_reply(state, reply)
    except ChatApiError as e:
        # a 500 from /chat still carries a user-facing reply
        state = receive_reply(state, str(e)) if e.status_code == 500 else fail_send(state)

    return False, state, [f"Bot: {state.messages[-1].content}"]


def run_widget(api: ChatApiClient, input_fn=input, print_fn=print) -> ChatViewState:
    state = ChatViewState()
    try:
        state = load_history(state, api.fetch_history())
    except ChatApiError as e:
        print_fn(f"(could not load history: {e})")

    for message in state.messages:
        label = "You" if message.sender == "user" else "Bot"
        print_fn(f"{label}: {message.content}")

    print_fn("Type a question, /upload <path> <title> to add a FAQ, /exit to leave.")

    while True:
        try:
            line = input_fn("You: ")
        except (EOFError, KeyboardInterrupt):
            print_fn("\nBye!")
            break

        should_exit, state, output = handle_line(line, state, api)
        for text in output:
            print_fn(text)
        if should_exit:
            break

    return state


if __name__ == "__main__":
    run_widget(ChatApiClient(
        base_url=os.getenv("CHAT_API_URL", "http://localhost:5000"),
        user_id=os.getenv("CHAT_USER_ID", "demo_user_123"),
    ))
