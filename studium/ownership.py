from sqlalchemy.orm import Session

from .errors import ForbiddenError, NotFoundError
from .models import Conversation, Notebook, Source, User


def get_owned_notebook(db: Session, notebook_id: str, current_user: User) -> Notebook:
    notebook = db.query(Notebook).filter(Notebook.id == notebook_id).first()
    if not notebook:
        raise NotFoundError("Notebook not found")
    if notebook.user_id != current_user.id:
        raise ForbiddenError("Access denied")
    return notebook


def _ensure_notebook_owner(db: Session, notebook_id: str, current_user: User) -> None:
    notebook = db.query(Notebook).filter(Notebook.id == notebook_id).first()
    if not notebook or notebook.user_id != current_user.id:
        raise ForbiddenError("Access denied")


def get_owned_source(db: Session, source_id: str, current_user: User) -> Source:
    source = db.query(Source).filter(Source.id == source_id).first()
    if not source:
        raise NotFoundError("Source not found")
    _ensure_notebook_owner(db, source.notebook_id, current_user)
    return source


def get_owned_conversation(db: Session, conversation_id: str, current_user: User) -> Conversation:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    _ensure_notebook_owner(db, conversation.notebook_id, current_user)
    return conversation
