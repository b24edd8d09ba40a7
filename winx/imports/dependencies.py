"""FastAPI dependencies exposing the upload store and the import dispatcher."""

from __future__ import annotations

from fastapi import Request

from winx.config import settings
from winx.imports.dispatcher import ImportDispatcher
from winx.imports.files import UploadStore


def get_upload_store() -> UploadStore:
    return UploadStore(settings.UPLOAD_DIR)


def get_import_dispatcher(request: Request) -> ImportDispatcher:
    """The dispatcher started by the application lifespan."""
    dispatcher = getattr(request.app.state, "import_dispatcher", None)
    if dispatcher is None:
        raise RuntimeError("Import dispatcher is not running.")
    return dispatcher
