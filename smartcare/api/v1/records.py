from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.storage import FileStorage, get_storage
from ...api.deps import get_patient_user
from ...models.user import User
from ...schemas.record import RecordResponse, RecordsOverview
from ...services.attachment_service import IncomingFile
from ...services.record_service import RecordService

router = APIRouter(prefix="/records", tags=["Records"])

@router.post("", response_model=RecordResponse, status_code=201)
async def upload_record(
    file: UploadFile = File(...),
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    upload = IncomingFile(
        filename=file.filename or "",
        content=await file.read(),
        content_type=file.content_type,
    )
    return RecordService(db, storage).upload(current_user, upload)

@router.get("", response_model=RecordsOverview)
async def list_records(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    """Own uploads plus files doctors attached to the patient's appointments."""
    return RecordService(db, storage).overview(current_user)

@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    RecordService(db, storage).delete(current_user, record_id)
    return {"message": "Record deleted"}
