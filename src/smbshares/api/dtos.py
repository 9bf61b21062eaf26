from typing import Any, Optional

from pydantic import BaseModel

from smbshares.shares.models import ApplyStatus


class BaseResponse(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class SuccessResponse(BaseResponse):
    pass


class DataResponse(BaseResponse):
    data: Optional[Any] = None


class ShareOperationResponse(BaseResponse):
    success: bool = True
    verified: bool = False
    apply_status: Optional[ApplyStatus] = None


class ShareToggleRequest(BaseModel):
    enabled: Optional[bool] = None


class BackupCreateResponse(BaseResponse):
    filename: str


class RenderedConfig(BaseModel):
    config: str
