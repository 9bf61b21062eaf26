from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException
from fastapi.logger import logger

from smbshares.api.dtos import DataResponse, RenderedConfig, ShareOperationResponse, ShareToggleRequest
from smbshares.config.settings import get_config
from smbshares.shares.models import ApplyStatus, OperationResult
from smbshares.shares.service import ShareService

router = APIRouter(prefix="/shares", tags=["Shares"])


def _to_response(result: OperationResult) -> ShareOperationResponse:
    if not result.success:
        logger.error(f"Share operation failed: {result.message}")
        if result.not_found:
            raise HTTPException(status_code=404, detail=result.message)
        code = 500 if result.server_error else 400
        raise HTTPException(status_code=code, detail=result.message)
    return ShareOperationResponse(
        message=result.message,
        verified=result.verified,
        apply_status=result.status,
    )


@router.get("", response_model=DataResponse)
def list_shares_endpoint():
    service = ShareService(get_config())
    return DataResponse(data=service.export_config())


@router.get("/config", response_model=RenderedConfig)
def render_config_endpoint():
    service = ShareService(get_config())
    return RenderedConfig(config=service.render_config())


@router.get("/export", response_model=DataResponse)
def export_config_endpoint():
    service = ShareService(get_config())
    return DataResponse(data=service.export_config())


@router.post("/import", response_model=ShareOperationResponse)
def import_config_endpoint(records: List[Any] = Body(...)):
    service = ShareService(get_config())
    return _to_response(service.import_config(records))


@router.get("/{name}", response_model=DataResponse)
def get_share_endpoint(name: str):
    service = ShareService(get_config())
    share = service.get_share(name)
    if share is None:
        raise HTTPException(status_code=404, detail="Share not found")
    return DataResponse(data=share.to_record())


@router.post("", response_model=ShareOperationResponse)
def create_share_endpoint(share: Dict[str, Any] = Body(...)):
    service = ShareService(get_config())
    return _to_response(service.add_share(share))


@router.put("/{name}", response_model=ShareOperationResponse)
def update_share_endpoint(name: str, share: Dict[str, Any] = Body(...)):
    service = ShareService(get_config())
    return _to_response(service.update_share(name, share))


@router.delete("/{name}", response_model=ShareOperationResponse)
def delete_share_endpoint(name: str):
    service = ShareService(get_config())
    return _to_response(service.delete_share(name))


@router.post("/{name}/toggle", response_model=ShareOperationResponse)
def toggle_share_endpoint(name: str, request: Optional[ShareToggleRequest] = None):
    service = ShareService(get_config())
    enabled = request.enabled if request else None
    return _to_response(service.toggle_share(name, enabled))


@router.post("/reload", response_model=ShareOperationResponse)
def reload_samba_endpoint():
    service = ShareService(get_config())
    result = service.apply()
    if not result.applied:
        raise HTTPException(status_code=500, detail=f"Failed to reload Samba: {result.message}")
    return ShareOperationResponse(
        message="Samba reloaded successfully",
        verified=result.status == ApplyStatus.APPLIED,
        apply_status=result.status,
    )
