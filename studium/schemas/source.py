from datetime import datetime
from typing import List

from .base import CamelModel


class Source(CamelModel):
    id: str
    notebook_id: str
    file_name: str
    file_type: str
    file_size: int
    file_path: str
    uploaded_at: datetime


class SourceEnvelope(CamelModel):
    source: Source


class SourceList(CamelModel):
    sources: List[Source]
