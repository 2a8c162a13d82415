"""
Chat Domain - Conversational editing of an extracted BOQ.

This domain handles:
- Model-bound chat sessions
- Prompting with a reduced BOQ projection
- Applying add/update/delete patches from replies
"""

from .contracts import ChatClient, ChatTransport
from .models import ChatReply, ChatSession, Modification, ModificationAction
from .patch_engine import (
    CHAT_ERROR_MESSAGE,
    SYSTEM_INSTRUCTION,
    ConversationalPatchEngine,
    apply_modifications,
    build_chat_prompt,
    create_chat_session,
    submit,
)

__all__ = [
    # Contracts
    "ChatClient",
    "ChatTransport",
    # Models
    "ChatReply",
    "ChatSession",
    "Modification",
    "ModificationAction",
    # Implementations
    "CHAT_ERROR_MESSAGE",
    "SYSTEM_INSTRUCTION",
    "ConversationalPatchEngine",
    "apply_modifications",
    "build_chat_prompt",
    "create_chat_session",
    "submit",
]
