from datetime import datetime
from typing import List

from pydantic import Field

from ..models import MessageRole
from .base import CamelModel


class MessageCreate(CamelModel):
    content: str = Field(min_length=1, max_length=10000)


class Message(CamelModel):
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: datetime


class Conversation(CamelModel):
    id: str
    notebook_id: str
    created_at: datetime
    updated_at: datetime


class ConversationPreview(Conversation):
    """Conversation with at most its latest message attached."""
    messages: List[Message] = []


class ConversationEnvelope(CamelModel):
    conversation: Conversation


class ConversationList(CamelModel):
    conversations: List[ConversationPreview]


class MessageList(CamelModel):
    messages: List[Message]


class MessageExchange(CamelModel):
    user_message: Message
    assistant_message: Message
