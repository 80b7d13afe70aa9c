import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Notebook as NotebookModel, User
from ..ownership import get_owned_notebook
from ..schemas.base import MessageResponse
from ..schemas.notebook import NotebookCreate, NotebookEnvelope, NotebookList, NotebookUpdate
from ..services.storage import remove_notebook_dir
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NotebookList)
def get_notebooks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the current user's notebooks, most recently updated first."""
    notebooks = (
        db.query(NotebookModel)
        .filter(NotebookModel.user_id == current_user.id)
        .order_by(NotebookModel.updated_at.desc())
        .all()
    )
    return {"notebooks": notebooks}


@router.post("", response_model=NotebookEnvelope, status_code=status.HTTP_201_CREATED)
def create_notebook(
    notebook: NotebookCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    db_notebook = NotebookModel(
        title=notebook.title,
        content=notebook.content,
        user_id=current_user.id,
    )
    db.add(db_notebook)
    db.commit()
    db.refresh(db_notebook)
    logger.info("Notebook %s created by user %s", db_notebook.id, current_user.id)
    return {"notebook": db_notebook}


@router.get("/{notebook_id}", response_model=NotebookEnvelope)
def get_notebook(
    notebook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"notebook": get_owned_notebook(db, notebook_id, current_user)}


@router.put("/{notebook_id}", response_model=NotebookEnvelope)
def update_notebook(
    notebook_id: str,
    notebook_update: NotebookUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update only the fields present in the request body."""
    notebook = get_owned_notebook(db, notebook_id, current_user)

    for field, value in notebook_update.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(notebook, field, value)

    notebook.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(notebook)
    return {"notebook": notebook}


@router.delete("/{notebook_id}", response_model=MessageResponse)
def delete_notebook(
    notebook_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a notebook with its sources, conversations and stored files."""
    notebook = get_owned_notebook(db, notebook_id, current_user)

    db.delete(notebook)
    db.commit()
    remove_notebook_dir(notebook_id)
    return {"message": "Notebook deleted successfully"}
