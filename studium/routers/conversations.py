import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import (
    Conversation as ConversationModel,
    Message as MessageModel,
    MessageRole,
    Source as SourceModel,
    User,
)
from ..ownership import get_owned_conversation, get_owned_notebook
from ..schemas.base import MessageResponse
from ..schemas.conversation import (
    ConversationEnvelope,
    ConversationList,
    MessageCreate,
    MessageExchange,
    MessageList,
)
from ..services import ai_service as ai
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

NO_SOURCES_REPLY = "Please upload some source documents first before asking questions."
AI_FAILURE_REPLY = "Sorry, I encountered an error processing your question. Please try again."


def _conversation_history(db: Session, conversation_id: str):
    return (
        db.query(MessageModel)
        .filter(MessageModel.conversation_id == conversation_id)
        .order_by(MessageModel.created_at.asc())
        .all()
    )


@router.post(
    "/notebooks/{notebook_id}/conversations",
    response_model=ConversationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_conversation(
    notebook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned_notebook(db, notebook_id, current_user)

    conversation = ConversationModel(notebook_id=notebook_id)
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return {"conversation": conversation}


@router.get("/notebooks/{notebook_id}/conversations", response_model=ConversationList)
def get_conversations(
    notebook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List a notebook's conversations, each with its latest message."""
    get_owned_notebook(db, notebook_id, current_user)

    conversations = (
        db.query(ConversationModel)
        .filter(ConversationModel.notebook_id == notebook_id)
        .order_by(ConversationModel.updated_at.desc())
        .all()
    )

    previews = []
    for conversation in conversations:
        latest = (
            db.query(MessageModel)
            .filter(MessageModel.conversation_id == conversation.id)
            .order_by(MessageModel.created_at.desc())
            .first()
        )
        previews.append({
            "id": conversation.id,
            "notebook_id": conversation.notebook_id,
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
            "messages": [latest] if latest else [],
        })
    return {"conversations": previews}


@router.get("/conversations/{conversation_id}/messages", response_model=MessageList)
def get_messages(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned_conversation(db, conversation_id, current_user)
    return {"messages": _conversation_history(db, conversation_id)}


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageExchange,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store the user's question and answer it from the notebook's sources.

    Model failures are replaced by a fixed apology; the request still succeeds.
    """
    conversation = get_owned_conversation(db, conversation_id, current_user)

    # History is read before the new question is stored
    history = _conversation_history(db, conversation_id)

    user_message = MessageModel(
        conversation_id=conversation_id,
        role=MessageRole.USER,
        content=payload.content,
    )
    db.add(user_message)
    db.commit()
    db.refresh(user_message)

    sources = db.query(SourceModel).filter(SourceModel.notebook_id == conversation.notebook_id).all()

    if not sources:
        reply = NO_SOURCES_REPLY
    else:
        try:
            reply = ai.ai_service.generate_answer(payload.content, sources, history)
        except Exception:
            logger.exception("AI service error in conversation %s", conversation_id)
            reply = AI_FAILURE_REPLY

    assistant_message = MessageModel(
        conversation_id=conversation_id,
        role=MessageRole.ASSISTANT,
        content=reply,
    )
    db.add(assistant_message)
    conversation.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user_message)
    db.refresh(assistant_message)

    return {"user_message": user_message, "assistant_message": assistant_message}


@router.delete("/conversations/{conversation_id}", response_model=MessageResponse)
def delete_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    conversation = get_owned_conversation(db, conversation_id, current_user)

    db.delete(conversation)
    db.commit()
    return {"message": "Conversation deleted successfully"}
