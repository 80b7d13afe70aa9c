from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class NotebookCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = ""


class NotebookUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None


class NotebookSummary(CamelModel):
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class Notebook(NotebookSummary):
    user_id: str


class NotebookEnvelope(CamelModel):
    notebook: Notebook


class NotebookList(CamelModel):
    notebooks: List[NotebookSummary]
