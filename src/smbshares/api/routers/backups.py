from typing import List

from fastapi import APIRouter, HTTPException

from smbshares.api.dtos import BackupCreateResponse, DataResponse, ShareOperationResponse, SuccessResponse
from smbshares.backups.manager import is_backup_name
from smbshares.config.settings import get_config
from smbshares.shares.models import BackupRecord
from smbshares.shares.service import ShareService

router = APIRouter(prefix="/backups", tags=["backups"])


def _check_filename(filename: str):
    if not is_backup_name(filename):
        raise HTTPException(status_code=400, detail="Invalid backup filename")


@router.get("", response_model=List[BackupRecord])
def list_backups():
    service = ShareService(get_config())
    return service.backups.list()


@router.post("", status_code=201, response_model=BackupCreateResponse)
def create_backup():
    service = ShareService(get_config())
    filename = service.backups.create()
    if filename is None:
        raise HTTPException(status_code=500, detail="Failed to create backup")
    return BackupCreateResponse(message="Backup created", filename=filename)


@router.get("/{filename}", response_model=DataResponse)
def view_backup(filename: str):
    _check_filename(filename)
    service = ShareService(get_config())
    content = service.backups.view(filename)
    if content is None:
        raise HTTPException(status_code=404, detail="Backup not found")
    return DataResponse(data=[s.to_record() for s in content])


@router.post("/{filename}/restore", response_model=ShareOperationResponse)
def restore_backup(filename: str):
    _check_filename(filename)
    service = ShareService(get_config())
    if service.backups.view(filename) is None:
        raise HTTPException(status_code=404, detail="Backup not found")
    result = service.restore_backup(filename)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return ShareOperationResponse(message=result.message, verified=result.verified,
                                  apply_status=result.status)


@router.delete("/{filename}", response_model=SuccessResponse)
def delete_backup(filename: str):
    _check_filename(filename)
    service = ShareService(get_config())
    if not service.backups.delete(filename):
        raise HTTPException(status_code=404, detail="Backup not found")
    return SuccessResponse(message="Backup deleted")
