from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional
from uuid import uuid4


class Source(SQLModel, table=True):
    """Uploaded document attached to a notebook.

    The bytes live on disk; ``file_path`` is relative to the upload root.
    """
    __tablename__ = "sources"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    notebook_id: str = Field(index=True, foreign_key="notebooks.id", ondelete="CASCADE")
    file_name: str
    file_type: str
    file_size: int
    file_path: str
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)

    notebook: Optional["Notebook"] = Relationship(back_populates="sources")
