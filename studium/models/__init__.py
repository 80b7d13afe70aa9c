from .user import User
from .notebook import Notebook
from .source import Source
from .conversation import Conversation, Message, MessageRole

# Export all models for easy importing
__all__ = ["User", "Notebook", "Source", "Conversation", "Message", "MessageRole"]
