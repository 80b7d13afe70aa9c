import io
from unittest.mock import patch
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studium import config
from studium.main import app
from studium.models import Source
from studium.services.storage import save_upload


@pytest.fixture
def notebook(user, make_notebook):
    return make_notebook(user)


def _upload(client, notebook_id, headers, name="notes.txt", data=b"hello world", mime="text/plain"):
    return client.post(
        f"/api/v1/notebooks/{notebook_id}/sources",
        files={"file": (name, data, mime)},
        headers=headers,
    )


def test_upload_source_stores_file_and_metadata(client, notebook, headers):
    response = _upload(client, notebook.id, headers)
    assert response.status_code == 201
    source = response.json()["source"]
    assert source["notebookId"] == notebook.id
    assert source["fileName"] == "notes.txt"
    assert source["fileType"] == "text/plain"
    assert source["fileSize"] == len(b"hello world")
    assert source["filePath"].startswith(f"{notebook.id}/")
    assert source["filePath"].endswith(".txt")
    assert (config.UPLOAD_DIR / source["filePath"]).read_bytes() == b"hello world"


def test_upload_rejects_disallowed_type(client, notebook, headers):
    response = _upload(client, notebook.id, headers, name="run.sh", mime="application/x-sh")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid file type"}


def test_upload_without_file(client, notebook, headers):
    response = client.post(f"/api/v1/notebooks/{notebook.id}/sources", headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_upload_over_size_limit_leaves_nothing_behind(client, db, notebook, headers):
    with patch.object(config, "MAX_UPLOAD_SIZE", 10):
        response = _upload(client, notebook.id, headers, data=b"x" * 11)
    assert response.status_code == 400
    assert response.json() == {"error": "File too large"}
    assert db.query(Source).count() == 0
    assert list((config.UPLOAD_DIR / notebook.id).iterdir()) == []


def test_upload_checks_ownership_before_file(client, notebook, other_headers):
    response = client.post(f"/api/v1/notebooks/{notebook.id}/sources", headers=other_headers)
    assert response.status_code == 403


def test_upload_to_missing_notebook(client, headers):
    response = _upload(client, "missing", headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Notebook not found"}


def test_list_sources_newest_first(client, notebook, headers):
    _upload(client, notebook.id, headers, name="first.txt")
    _upload(client, notebook.id, headers, name="second.md", mime="text/markdown")

    response = client.get(f"/api/v1/notebooks/{notebook.id}/sources", headers=headers)
    assert response.status_code == 200
    assert [s["fileName"] for s in response.json()["sources"]] == ["second.md", "first.txt"]


def test_download_source(client, notebook, headers):
    source = _upload(client, notebook.id, headers, name="paper.pdf", data=b"%PDF-1.4", mime="application/pdf").json()["source"]

    response = client.get(f"/api/v1/sources/{source['id']}/download", headers=headers)
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4"
    assert response.headers["content-type"].startswith("application/pdf")
    assert response.headers["content-disposition"] == 'attachment; filename="paper.pdf"'


def test_download_when_file_missing_on_disk(client, notebook, headers):
    source = _upload(client, notebook.id, headers).json()["source"]
    (config.UPLOAD_DIR / source["filePath"]).unlink()

    response = client.get(f"/api/v1/sources/{source['id']}/download", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"error": "File not found on server"}


def test_delete_source_removes_file(client, db, notebook, headers):
    source = _upload(client, notebook.id, headers).json()["source"]
    path = config.UPLOAD_DIR / source["filePath"]

    response = client.delete(f"/api/v1/sources/{source['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Source deleted successfully"}
    assert not path.exists()
    assert db.query(Source).count() == 0


def test_missing_source_is_404(client, headers):
    assert client.delete("/api/v1/sources/nope", headers=headers).json() == {"error": "Source not found"}
    assert client.get("/api/v1/sources/nope/download", headers=headers).status_code == 404


def test_cross_user_source_access_is_forbidden(client, notebook, headers, other_headers):
    source = _upload(client, notebook.id, headers).json()["source"]

    assert client.get(f"/api/v1/notebooks/{notebook.id}/sources", headers=other_headers).status_code == 403
    assert client.get(f"/api/v1/sources/{source['id']}/download", headers=other_headers).status_code == 403
    response = client.delete(f"/api/v1/sources/{source['id']}", headers=other_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}
    assert (config.UPLOAD_DIR / source["filePath"]).exists()


def test_deleting_notebook_removes_sources_and_files(client, db, notebook, headers):
    _upload(client, notebook.id, headers)
    notebook_dir = config.UPLOAD_DIR / notebook.id

    response = client.delete(f"/api/v1/notebooks/{notebook.id}", headers=headers)
    assert response.status_code == 200
    assert not notebook_dir.exists()
    db.expire_all()
    assert db.query(Source).count() == 0


def test_download_non_ascii_filename(client, notebook, headers):
    source = _upload(client, notebook.id, headers, name="笔记.txt", data=b"hi").json()["source"]
    assert source["fileName"] == "笔记.txt"

    response = client.get(f"/api/v1/sources/{source['id']}/download", headers=headers)
    assert response.status_code == 200
    assert response.content == b"hi"
    assert response.headers["content-disposition"] == f"attachment; filename*=utf-8''{quote('笔记.txt')}"


def test_download_filename_with_quote(client, notebook, headers):
    source = _upload(client, notebook.id, headers, name='say "hi".txt').json()["source"]

    response = client.get(f"/api/v1/sources/{source['id']}/download", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-disposition"] == f"attachment; filename*=utf-8''{quote(source['fileName'])}"


class _BrokenStream(io.BytesIO):
    """Yields one chunk, then fails like a dropped connection."""

    def read(self, size=-1):
        if self.tell() == 0:
            return super().read(4)
        raise OSError("connection reset")


def test_save_upload_removes_partial_file_on_io_error(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", tmp_path)

    with pytest.raises(OSError):
        save_upload("nb", "notes.txt", _BrokenStream(b"hello world"), max_size=1024)

    assert list((tmp_path / "nb").iterdir()) == []


def test_failed_commit_removes_saved_file(client, notebook, headers):
    failing_client = TestClient(app, raise_server_exceptions=False)
    with patch.object(Session, "commit", side_effect=SQLAlchemyError("database unavailable")):
        response = failing_client.post(
            f"/api/v1/notebooks/{notebook.id}/sources",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=headers,
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert list((config.UPLOAD_DIR / notebook.id).iterdir()) == []
