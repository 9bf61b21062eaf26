import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ExportMode(str, Enum):
    VISIBLE = "visible"
    VISIBLE_HIDDEN = "visible-hidden"
    TIME_MACHINE = "time-machine"
    TIME_MACHINE_HIDDEN = "time-machine-hidden"
    NOT_EXPORTED = "not-exported"

    @property
    def hidden(self) -> bool:
        return self in (ExportMode.VISIBLE_HIDDEN, ExportMode.TIME_MACHINE_HIDDEN)

    @property
    def time_machine(self) -> bool:
        return self in (ExportMode.TIME_MACHINE, ExportMode.TIME_MACHINE_HIDDEN)


class CaseSensitivity(str, Enum):
    AUTO = "auto"
    SENSITIVE = "sensitive"
    FORCED_LOWERCASE = "forced-lowercase"


class SecurityMode(str, Enum):
    PUBLIC = "public"
    SECURE = "secure"
    PRIVATE = "private"


class AccessLevel(str, Enum):
    NO_ACCESS = "no-access"
    READ_ONLY = "read-only"
    READ_WRITE = "read-write"


class ApplyStatus(str, Enum):
    APPLIED = "applied"
    APPLIED_UNVERIFIED = "applied-unverified"
    FAILED = "failed"


# Codes used by the original shares.json format
LEGACY_EXPORT_CODES = {
    "e": ExportMode.VISIBLE,
    "eh": ExportMode.VISIBLE_HIDDEN,
    "et": ExportMode.TIME_MACHINE,
    "eth": ExportMode.TIME_MACHINE_HIDDEN,
    "-": ExportMode.NOT_EXPORTED,
}

LEGACY_CASE_CODES = {
    "yes": CaseSensitivity.SENSITIVE,
    "forced": CaseSensitivity.FORCED_LOWERCASE,
}


def _str_to_bool(val: Any) -> Any:
    if isinstance(val, str):
        return val.strip().lower() in ('yes', 'true', '1', 'on', 'enabled')
    return val


class ShareDefinition(BaseModel):
    name: str
    path: str = ""
    comment: Optional[str] = None
    export_mode: ExportMode = Field(
        default=ExportMode.VISIBLE,
        validation_alias=AliasChoices("export_mode", "export"),
    )
    case_sensitivity: CaseSensitivity = Field(
        default=CaseSensitivity.AUTO,
        validation_alias=AliasChoices("case_sensitivity", "case_sensitive"),
    )
    security: SecurityMode = SecurityMode.PUBLIC
    user_access: Dict[str, AccessLevel] = Field(default_factory=dict)
    hosts_allow: Optional[str] = None
    hosts_deny: Optional[str] = None
    create_mask: Optional[str] = None
    directory_mask: Optional[str] = None
    # None means the field is absent; "" is an explicit request for no override
    force_user: Optional[str] = None
    force_group: Optional[str] = None
    hide_dot_files: Optional[bool] = None
    fruit: bool = False
    volsizelimit: Optional[str] = None
    enabled: bool = True

    @field_validator("export_mode", mode="before")
    @classmethod
    def _legacy_export(cls, v):
        if isinstance(v, str) and v in LEGACY_EXPORT_CODES:
            return LEGACY_EXPORT_CODES[v]
        return v

    @field_validator("case_sensitivity", mode="before")
    @classmethod
    def _legacy_case(cls, v):
        if isinstance(v, str) and v in LEGACY_CASE_CODES:
            return LEGACY_CASE_CODES[v]
        return v

    @field_validator("user_access", mode="before")
    @classmethod
    def _decode_user_access(cls, v):
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError("user_access must be a JSON object")
            if v is None:
                return {}
        return v

    @field_validator("hide_dot_files", "fruit", "enabled", mode="before")
    @classmethod
    def _flags(cls, v):
        return _str_to_bool(v)

    @field_validator("volsizelimit", mode="before")
    @classmethod
    def _volsize_as_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def to_record(self) -> Dict[str, Any]:
        """Serializable form for shares.json; absent optional fields are left out."""
        return self.model_dump(mode="json", exclude_none=True)


class ShareDefaults(BaseModel):
    force_user: str = ""
    force_group: str = ""
    create_mask: str = "0664"
    directory_mask: str = "0775"
    hide_dot_files: bool = True


class BackupRecord(BaseModel):
    filename: str
    timestamp: str
    size: int
    share_count: int


class ToolResult(BaseModel):
    success: bool
    output: str = ""


class ApplyResult(BaseModel):
    status: ApplyStatus
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.status != ApplyStatus.FAILED


class OperationResult(BaseModel):
    success: bool
    message: str = ""
    errors: List[str] = Field(default_factory=list)
    status: Optional[ApplyStatus] = None
    not_found: bool = False
    # The failure is on our side (storage or samba), not in the request
    server_error: bool = False

    @property
    def verified(self) -> bool:
        return self.status == ApplyStatus.APPLIED
