import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..errors import BadRequestError, NotFoundError
from ..models import Source as SourceModel, User
from ..ownership import get_owned_notebook, get_owned_source
from ..schemas.base import MessageResponse
from ..schemas.source import SourceEnvelope, SourceList
from ..services.storage import FileTooLargeError, delete_file, resolve_path, save_upload
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/notebooks/{notebook_id}/sources",
    response_model=SourceEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def upload_source(
    notebook_id: str,
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store an uploaded document on disk and record it against the notebook."""
    get_owned_notebook(db, notebook_id, current_user)

    if file is None or not file.filename:
        raise BadRequestError("No file uploaded")
    if file.content_type not in config.ALLOWED_FILE_TYPES:
        raise BadRequestError("Invalid file type")

    try:
        relative_path, size = save_upload(notebook_id, file.filename, file.file, config.MAX_UPLOAD_SIZE)
    except FileTooLargeError:
        raise BadRequestError("File too large")

    source = SourceModel(
        notebook_id=notebook_id,
        file_name=file.filename,
        file_type=file.content_type,
        file_size=size,
        file_path=relative_path,
    )
    db.add(source)
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_file(relative_path)
        raise
    db.refresh(source)
    logger.info("Source %s uploaded to notebook %s (%d bytes)", source.id, notebook_id, size)
    return {"source": source}


@router.get("/notebooks/{notebook_id}/sources", response_model=SourceList)
def get_sources(
    notebook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned_notebook(db, notebook_id, current_user)

    sources = (
        db.query(SourceModel)
        .filter(SourceModel.notebook_id == notebook_id)
        .order_by(SourceModel.uploaded_at.desc())
        .all()
    )
    return {"sources": sources}


@router.delete("/sources/{source_id}", response_model=MessageResponse)
def delete_source(
    source_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    source = get_owned_source(db, source_id, current_user)

    delete_file(source.file_path)
    db.delete(source)
    db.commit()
    return {"message": "Source deleted successfully"}


@router.get("/sources/{source_id}/download")
def download_source(
    source_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stream the stored file back as an attachment."""
    source = get_owned_source(db, source_id, current_user)

    path = resolve_path(source.file_path)
    if not path.exists():
        raise NotFoundError("File not found on server")

    # Starlette emits filename*=utf-8''... when the name needs escaping
    return FileResponse(str(path), media_type=source.file_type, filename=source.file_name)
