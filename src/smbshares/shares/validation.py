import re
from typing import Any, Dict, List

from smbshares.shares.models import ShareDefinition
from smbshares.shares.paths import PathError, resolve_share_path

SHARE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,40}$")
MASK_PATTERN = re.compile(r"^[0-7]{4}$")

# Empty is meaningful for these: it suppresses the compiled-in default
_KEEP_EMPTY = ("force_user", "force_group")


def validate_share(share: ShareDefinition, permitted_root: str) -> List[str]:
    """Returns every problem found with the share; an empty list means it may be saved."""
    errors = []

    if not share.name or not SHARE_NAME_PATTERN.fullmatch(share.name):
        errors.append(
            "Invalid share name. Use 1-40 letters, numbers, hyphens, and underscores."
        )

    try:
        resolve_share_path(share.path, permitted_root)
    except PathError as e:
        errors.append(str(e))

    if share.create_mask and not MASK_PATTERN.fullmatch(share.create_mask):
        errors.append("Invalid create mask. Must be 4 octal digits (0-7).")

    if share.directory_mask and not MASK_PATTERN.fullmatch(share.directory_mask):
        errors.append("Invalid directory mask. Must be 4 octal digits (0-7).")

    return errors


def sanitize_share_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Trims string values and drops empty ones from raw form/API input.

    Does not validate; use validate_share() for that.
    """
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
            if value == "" and key not in _KEEP_EMPTY:
                continue
        cleaned[key] = value
    return cleaned
