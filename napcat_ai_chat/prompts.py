# prompts.py
# Build the message list sent to the AI

from typing import Dict, List

from .config import Config, DEFAULT_SYSTEM_PROMPT
from .history import Turn


def build_messages(config: Config, history: List[Turn], question: str) -> List[Dict[str, str]]:
    """
    Assemble the chat-completion messages.

    Args:
        config: Current plugin configuration (system prompt).
        history: Prior turns, already truncated to the context length.
        question: The new user question.

    Returns:
        One system message, the history turns in order, then the question.
    """
    messages = [{"role": "system", "content": config.system_prompt or DEFAULT_SYSTEM_PROMPT}]
    messages.extend(turn.as_message() for turn in history)
    messages.append({"role": "user", "content": question})
    return messages
