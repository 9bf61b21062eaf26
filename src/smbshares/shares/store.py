import json
import logging
import os
from typing import List, Optional, Sequence, Union

import yaml
from pydantic import ValidationError

from smbshares.config.settings import AppConfig, PluginSettings
from smbshares.shares.models import ShareDefinition

logger = logging.getLogger(__name__)


def find_share(shares: Sequence[ShareDefinition], name: str) -> Optional[int]:
    """Position of the share called `name`, or None. Lookups are always by name."""
    for index, share in enumerate(shares):
        if share.name == name:
            return index
    return None


def decode_shares(raw: Union[str, bytes], strict: bool = False) -> Optional[List[ShareDefinition]]:
    """
    Parses a shares.json document. Returns None if it is not a share list.

    Unreadable records are skipped, or make the whole document fail when
    `strict` is set.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.error(f"Invalid shares document: {e}")
        return None
    if not isinstance(data, list):
        logger.error("Invalid shares document: expected a list")
        return None

    shares = []
    for entry in data:
        try:
            shares.append(ShareDefinition.model_validate(entry))
        except ValidationError as e:
            if strict:
                logger.error(f"Unreadable share record {entry!r}: {e}")
                return None
            logger.error(f"Skipping unreadable share record {entry!r}: {e}")
    return shares


def encode_shares(shares: Sequence[ShareDefinition]) -> str:
    return json.dumps([s.to_record() for s in shares], indent=4)


def write_atomic(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "wb") as f:
        f.write(data)
    os.replace(tmp_path, path)


class ShareStore:
    """
    The persisted share collection (shares.json) and plugin settings (settings.yaml).

    The collection is always written whole. There is no locking: two writers
    that load, modify and save concurrently race and the last save wins.
    """

    def __init__(self, config: AppConfig):
        self.config = config

    @property
    def shares_file(self) -> str:
        return self.config.shares_file

    def load_shares(self) -> List[ShareDefinition]:
        raw = self.read_raw()
        if raw is None:
            return []
        return decode_shares(raw) or []

    def load_shares_for_update(self) -> Optional[List[ShareDefinition]]:
        """
        The complete collection, for callers that will save it back.

        Returns None when shares.json exists but cannot be read or any record in
        it is invalid, so a later save cannot silently drop those records.
        """
        if not os.path.exists(self.shares_file):
            return []
        raw = self.read_raw()
        if raw is None:
            return None
        return decode_shares(raw, strict=True)

    def save_shares(self, shares: Sequence[ShareDefinition]) -> bool:
        names = [s.name for s in shares]
        if len(names) != len(set(names)):
            logger.error(f"Refusing to save shares with duplicate names: {names}")
            return False
        return self.write_raw(encode_shares(shares).encode("utf-8"))

    def read_raw(self) -> Optional[bytes]:
        if not os.path.exists(self.shares_file):
            return None
        try:
            with open(self.shares_file, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Failed to read {self.shares_file}: {e}")
            return None

    def write_raw(self, data: bytes) -> bool:
        try:
            write_atomic(self.shares_file, data)
            return True
        except OSError as e:
            logger.error(f"Failed to write {self.shares_file}: {e}")
            return False

    def load_settings(self) -> PluginSettings:
        path = self.config.settings_file
        if not os.path.exists(path):
            return PluginSettings()
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            return PluginSettings.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.error(f"Failed to load settings from {path}, using defaults: {e}")
            return PluginSettings()

    def save_settings(self, settings: PluginSettings) -> bool:
        path = self.config.settings_file
        try:
            data = yaml.safe_dump(settings.model_dump(), default_flow_style=False)
            write_atomic(path, data.encode("utf-8"))
            return True
        except OSError as e:
            logger.error(f"Failed to write settings to {path}: {e}")
            return False
