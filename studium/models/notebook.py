from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional, List
from uuid import uuid4


class Notebook(SQLModel, table=True):
    """Notebook owned by exactly one user."""
    __tablename__ = "notebooks"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    content: str = Field(default="")
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    user: Optional["User"] = Relationship(back_populates="notebooks")
    sources: List["Source"] = Relationship(
        back_populates="notebook",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    conversations: List["Conversation"] = Relationship(
        back_populates="notebook",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
