import logging
import os
import re
from datetime import datetime
from typing import List, Optional, Tuple

from smbshares.shares.models import BackupRecord, ShareDefinition
from smbshares.shares.store import ShareStore, decode_shares

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_COUNT = 10
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
TIMESTAMP_LENGTH = len("YYYY-MM-DD_HH-MM-SS")
BACKUP_NAME_PATTERN = re.compile(r"^shares_[\d_-]+\.json$")


def _sequence(filename: str) -> Tuple[str, int]:
    """(timestamp, counter) from a backup name, used to order same-second backups."""
    stem = filename[len("shares_"):-len(".json")]
    stamp, suffix = stem[:TIMESTAMP_LENGTH], stem[TIMESTAMP_LENGTH + 1:]
    return stamp, int(suffix) if suffix.isdigit() else 0


def is_backup_name(filename: str) -> bool:
    return bool(filename) and BACKUP_NAME_PATTERN.fullmatch(filename) is not None


class BackupManager:
    """Timestamped snapshots of shares.json, kept in their own directory."""

    def __init__(self, store: ShareStore, backup_directory: Optional[str] = None,
                 retention_count: int = DEFAULT_RETENTION_COUNT):
        self.store = store
        self.backup_directory = backup_directory or store.config.backup_directory
        self.retention_count = retention_count

    def _path(self, filename: str) -> Optional[str]:
        # Only plain backup names; this also keeps "../" out
        if not is_backup_name(filename):
            return None
        return os.path.join(self.backup_directory, filename)

    def _new_filename(self) -> str:
        timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
        taken = [
            _sequence(f)[1] for f in self._backup_files() if _sequence(f)[0] == timestamp
        ]
        if not taken:
            return f"shares_{timestamp}.json"
        # Keep counting up so a same-second backup always sorts after the earlier ones
        return f"shares_{timestamp}-{max(taken) + 1}.json"

    def _age_key(self, filename: str):
        mtime = os.stat(os.path.join(self.backup_directory, filename)).st_mtime_ns
        return (mtime,) + _sequence(filename)

    def _backup_files(self) -> List[str]:
        if not os.path.isdir(self.backup_directory):
            return []
        return [
            f for f in sorted(os.listdir(self.backup_directory))
            if is_backup_name(f) and os.path.isfile(os.path.join(self.backup_directory, f))
        ]

    def create(self) -> Optional[str]:
        """
        Copies the live shares.json into a new backup and prunes old ones.

        Returns:
            The backup filename, or None if there was nothing to back up or
            the copy could not be written.
        """
        data = self.store.read_raw()
        if data is None:
            logger.info("No shares file yet, skipping backup")
            return None

        try:
            os.makedirs(self.backup_directory, exist_ok=True)
            filename = self._new_filename()
            with open(os.path.join(self.backup_directory, filename), "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to create backup in {self.backup_directory}: {e}")
            return None

        logger.info(f"Created backup {filename}")
        self.prune(self.retention_count)
        return filename

    def prune(self, retain: int) -> int:
        """Deletes all but the `retain` most recent backups. Returns how many were deleted."""
        files = self._backup_files()
        if len(files) <= retain:
            return 0

        files.sort(key=self._age_key)
        to_delete = files[:len(files) - retain] if retain > 0 else files

        deleted = 0
        for filename in to_delete:
            try:
                os.remove(os.path.join(self.backup_directory, filename))
                deleted += 1
            except OSError as e:
                logger.error(f"Error deleting backup {filename}: {e}")
        if deleted:
            logger.info(f"Pruned {deleted} old backup(s), keeping {retain}")
        return deleted

    def list(self) -> List[BackupRecord]:
        """All backups, newest first."""
        records = []
        for filename in self._backup_files():
            path = os.path.join(self.backup_directory, filename)
            try:
                stat = os.stat(path)
                with open(path, "rb") as f:
                    shares = decode_shares(f.read())
            except OSError as e:
                logger.error(f"Failed to read backup {filename}: {e}")
                continue
            records.append(((stat.st_mtime_ns,) + _sequence(filename), BackupRecord(
                filename=filename,
                timestamp=datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
                size=stat.st_size,
                share_count=len(shares) if shares is not None else 0,
            )))
        records.sort(key=lambda r: r[0], reverse=True)
        return [record for _, record in records]

    def view(self, filename: str) -> Optional[List[ShareDefinition]]:
        """The share collection stored in a backup, or None if missing or unreadable."""
        path = self._path(filename)
        if path is None or not os.path.isfile(path):
            return None
        try:
            with open(path, "rb") as f:
                return decode_shares(f.read())
        except OSError as e:
            logger.error(f"Failed to read backup {filename}: {e}")
            return None

    def restore(self, filename: str, snapshot_current: bool = True) -> bool:
        """
        Replaces the live shares.json with the backup's bytes.

        The backup is read before the current state is snapshotted, so
        pruning triggered by that snapshot cannot remove it first.
        """
        path = self._path(filename)
        if path is None or not os.path.isfile(path):
            logger.error(f"Backup not found: {filename}")
            return False
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.error(f"Failed to read backup {filename}: {e}")
            return False

        if snapshot_current:
            self.create()

        if not self.store.write_raw(data):
            return False
        logger.info(f"Restored shares from backup {filename}")
        return True

    def delete(self, filename: str) -> bool:
        path = self._path(filename)
        if path is None or not os.path.isfile(path):
            return False
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Error deleting backup {filename}: {e}")
            return False
        logger.info(f"Deleted backup {filename}")
        return True
