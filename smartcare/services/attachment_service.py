"""
Attachment bookkeeping for appointments.

Files go to the storage backend first; their metadata is then written to the
appointment's ``attachments`` list. The two writes are not transactional.
"""
import logging
import os
import time
from dataclasses import dataclass
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.storage import FileStorage
from ..models.appointment import Appointment

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None


_last_millis = 0


def now_millis() -> int:
    """Epoch milliseconds, strictly increasing so storage paths never collide."""
    global _last_millis
    _last_millis = max(int(time.time() * 1000), _last_millis + 1)
    return _last_millis


def clean_filename(filename: Optional[str]) -> str:
    """Strip directory components from a client-supplied filename."""
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    if not name or name in (".", ".."):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid filename"
        )
    return name


def check_upload(upload: IncomingFile) -> str:
    """Reject oversized or unnamed uploads; returns the cleaned filename."""
    if len(upload.content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File {upload.filename} exceeds the upload size limit"
        )
    return clean_filename(upload.filename)


def store_file(storage: FileStorage, prefix: str, owner_id: int, upload: IncomingFile) -> dict:
    """
    Store one upload under ``{prefix}/{owner_id}/{timestamp}-{filename}``.

    Returns the attachment metadata record.
    """
    file_name = check_upload(upload)
    uploaded_at = now_millis()
    storage_path = f"{prefix}/{owner_id}/{uploaded_at}-{file_name}"
    file_url = storage.save(storage_path, upload.content, upload.content_type)

    return {
        "file_name": file_name,
        "file_url": file_url,
        "storage_path": storage_path,
        "uploaded_at": uploaded_at,
    }


class AttachmentService:
    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage

    def upload(self, appointment: Appointment, files: List[IncomingFile]) -> List[dict]:
        """
        Store each file and return the new metadata records in upload order.

        Every file is checked before the first one is stored.
        """
        for f in files:
            check_upload(f)
        return [
            store_file(self.storage, "appointments", appointment.id, f)
            for f in files
        ]

    def append(self, appointment: Appointment, uploaded: List[dict]) -> List[dict]:
        """Set the attachment list to ``existing ++ uploaded``; no de-duplication."""
        existing = list(appointment.attachments or [])
        merged = existing + uploaded
        appointment.attachments = merged
        return merged

    def remove(self, appointment: Appointment, file_url: str, storage_path: Optional[str] = None) -> dict:
        """
        Drop the first attachment matching ``file_url`` (and ``storage_path``
        when given) and delete its stored object.
        """
        attachments = list(appointment.attachments or [])

        index = None
        for i, item in enumerate(attachments):
            if item.get("file_url") != file_url:
                continue
            if storage_path and item.get("storage_path") != storage_path:
                continue
            index = i
            break

        if index is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Attachment not found"
            )

        removed = attachments.pop(index)
        path = removed.get("storage_path")
        if path:
            self.storage.delete(path)
        else:
            logger.warning(
                f"Attachment {removed.get('file_name')} on appointment {appointment.id} "
                f"has no storage path; only the metadata was removed"
            )

        appointment.attachments = attachments
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Removed attachment {removed.get('file_name')} from appointment {appointment.id}")
        return removed
