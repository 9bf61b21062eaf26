import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from smbshares.backups.manager import BackupManager
from smbshares.config.settings import AppConfig
from smbshares.shares.compiler import generate_samba_config, is_exported
from smbshares.shares.models import (
    ApplyResult,
    ApplyStatus,
    OperationResult,
    ShareDefaults,
    ShareDefinition,
)
from smbshares.shares.smb import SambaController
from smbshares.shares.store import ShareStore, find_share, write_atomic
from smbshares.shares.validation import sanitize_share_data, validate_share

logger = logging.getLogger(__name__)

ShareInput = Union[ShareDefinition, Dict[str, Any]]

SAVE_FAILED = "Failed to save shares"
UNREADABLE_SHARES = "Stored shares could not be read; fix or restore shares.json before making changes"


def _validation_messages(e: ValidationError) -> List[str]:
    messages = []
    for err in e.errors():
        field = ".".join(str(p) for p in err["loc"]) or "share"
        messages.append(f"Invalid {field}: {err['msg']}")
    return messages


class ShareService:
    """
    Name-keyed share operations: validate, persist, compile smb-custom.conf, apply.

    Shares are always looked up by name, never by position.
    """

    def __init__(self, config: AppConfig, store: Optional[ShareStore] = None,
                 backups: Optional[BackupManager] = None,
                 controller: Optional[SambaController] = None):
        self.config = config
        self.store = store or ShareStore(config)
        if backups is None:
            retention = self.store.load_settings().backup_retention_count
            backups = BackupManager(self.store, config.backup_directory, retention)
        self.backups = backups
        self.controller = controller or SambaController(config)

    @property
    def defaults(self) -> ShareDefaults:
        return ShareDefaults(
            force_user=self.config.default_force_user,
            force_group=self.config.default_force_group,
        )

    def _parse(self, data: ShareInput):
        if isinstance(data, ShareDefinition):
            return data, []
        try:
            return ShareDefinition.model_validate(sanitize_share_data(data)), []
        except ValidationError as e:
            return None, _validation_messages(e)

    def _load_for_update(self):
        shares = self.store.load_shares_for_update()
        if shares is None:
            return None, OperationResult(success=False, message=UNREADABLE_SHARES, server_error=True)
        return shares, None

    def _check_enabled(self) -> Optional[OperationResult]:
        if not self.store.load_settings().service_enabled:
            return OperationResult(
                success=False,
                message="Plugin is disabled. Enable it in Settings first.",
            )
        return None

    def _finish(self, shares: Sequence[ShareDefinition], action: str, name: str,
                should_exist: bool = True) -> OperationResult:
        if not self.write_config(shares):
            return OperationResult(success=False, message="Failed to write samba configuration",
                                   server_error=True)

        applied = self.controller.apply(name, should_exist)
        if applied.status == ApplyStatus.FAILED:
            return OperationResult(
                success=False,
                status=applied.status,
                message=f"Failed to reload Samba: {applied.message}",
                server_error=True,
            )
        if applied.status == ApplyStatus.APPLIED:
            message = f'Share "{name}" {action} and verified'
        else:
            message = f'Share "{name}" {action} but verification failed'
        return OperationResult(success=True, status=applied.status, message=message)

    def list_shares(self) -> List[ShareDefinition]:
        return self.store.load_shares()

    def get_share(self, name: str) -> Optional[ShareDefinition]:
        shares = self.store.load_shares()
        index = find_share(shares, name)
        return shares[index] if index is not None else None

    def validate(self, share: ShareDefinition) -> List[str]:
        return validate_share(share, self.config.permitted_root)

    def render_config(self, shares: Optional[Sequence[ShareDefinition]] = None) -> str:
        if shares is None:
            shares = self.store.load_shares()
        return generate_samba_config(shares, self.defaults)

    def write_config(self, shares: Optional[Sequence[ShareDefinition]] = None) -> bool:
        path = self.config.custom_conf_path
        try:
            write_atomic(path, self.render_config(shares).encode("utf-8"))
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            return False
        return True

    def apply(self) -> ApplyResult:
        """Regenerate smb-custom.conf from the stored shares and reload samba."""
        if not self.write_config():
            return ApplyResult(status=ApplyStatus.FAILED, message="Failed to write samba configuration")
        return self.controller.apply()

    def add_share(self, data: ShareInput) -> OperationResult:
        disabled = self._check_enabled()
        if disabled:
            return disabled

        share, errors = self._parse(data)
        if share is not None:
            errors = self.validate(share)
        if errors:
            return OperationResult(success=False, message=", ".join(errors), errors=errors)

        shares, failure = self._load_for_update()
        if failure:
            return failure
        if find_share(shares, share.name) is not None:
            return OperationResult(success=False, message="Share name already exists")

        shares.append(share)
        if not self.store.save_shares(shares):
            return OperationResult(success=False, message=SAVE_FAILED, server_error=True)
        logger.info(f"Share added: {share.name}")

        self.controller.ensure_include()
        return self._finish(shares, "added", share.name)

    def update_share(self, original_name: Optional[str], data: ShareInput) -> OperationResult:
        """Replaces the share called original_name (or the share's own name) with data."""
        disabled = self._check_enabled()
        if disabled:
            return disabled

        share, errors = self._parse(data)
        if share is not None:
            errors = self.validate(share)
        if errors:
            return OperationResult(success=False, message=", ".join(errors), errors=errors)

        shares, failure = self._load_for_update()
        if failure:
            return failure
        index = find_share(shares, original_name or share.name)
        if index is None:
            return OperationResult(success=False, message="Share not found", not_found=True)
        other = find_share(shares, share.name)
        if other is not None and other != index:
            return OperationResult(success=False, message="Share name already exists")

        self.backups.create()
        shares[index] = share
        if not self.store.save_shares(shares):
            return OperationResult(success=False, message=SAVE_FAILED, server_error=True)
        logger.info(f"Share updated: {share.name}")

        result = self._finish(shares, "updated", share.name, should_exist=is_exported(share))
        renamed_from = original_name if original_name and original_name != share.name else None
        if result.success and renamed_from and not self.controller.verify_share(renamed_from, should_exist=False):
            logger.warning(f"Share {renamed_from} is still active in samba after being renamed to {share.name}")
            return OperationResult(
                success=True,
                status=ApplyStatus.APPLIED_UNVERIFIED,
                message=f'Share "{share.name}" updated but verification failed',
            )
        return result

    def delete_share(self, name: str) -> OperationResult:
        disabled = self._check_enabled()
        if disabled:
            return disabled

        shares, failure = self._load_for_update()
        if failure:
            return failure
        index = find_share(shares, name)
        if index is None:
            return OperationResult(success=False, message="Share not found", not_found=True)

        del shares[index]
        if not self.store.save_shares(shares):
            return OperationResult(success=False, message=SAVE_FAILED, server_error=True)
        logger.info(f"Share deleted: {name}")

        return self._finish(shares, "deleted", name, should_exist=False)

    def toggle_share(self, name: str, enabled: Optional[bool] = None) -> OperationResult:
        """Flips a share's enabled flag, or sets it when `enabled` is given."""
        shares, failure = self._load_for_update()
        if failure:
            return failure
        index = find_share(shares, name)
        if index is None:
            return OperationResult(success=False, message="Share not found", not_found=True)

        share = shares[index]
        new_state = (not share.enabled) if enabled is None else enabled
        shares[index] = share.model_copy(update={"enabled": new_state})
        if not self.store.save_shares(shares):
            return OperationResult(success=False, message=SAVE_FAILED, server_error=True)
        logger.info(f"Share {name} {'enabled' if new_state else 'disabled'}")

        action = "enabled" if new_state else "disabled"
        return self._finish(shares, action, name, should_exist=is_exported(shares[index]))

    def export_config(self) -> List[Dict[str, Any]]:
        return [s.to_record() for s in self.store.load_shares()]

    def import_config(self, records: Any) -> OperationResult:
        """Validates every record, backs up the current shares and replaces them wholesale."""
        if not isinstance(records, list):
            return OperationResult(success=False, message="Invalid configuration format")

        shares = []
        seen = set()
        for record in records:
            if not isinstance(record, (dict, ShareDefinition)):
                return OperationResult(success=False, message="Invalid configuration format")
            share, errors = self._parse(record)
            if share is not None:
                errors = self.validate(share)
            if errors:
                return OperationResult(
                    success=False,
                    message="Invalid share: " + ", ".join(errors),
                    errors=errors,
                )
            if share.name in seen:
                error = f"Share name already exists: {share.name}"
                return OperationResult(success=False, message=f"Invalid share: {error}", errors=[error])
            seen.add(share.name)
            shares.append(share)

        self.backups.create()
        if not self.store.save_shares(shares):
            return OperationResult(success=False, message=SAVE_FAILED, server_error=True)
        logger.info(f"Imported {len(shares)} share(s)")

        applied = self.apply()
        if not applied.applied:
            return OperationResult(
                success=False,
                status=applied.status,
                message=f"Configuration imported but Samba reload failed: {applied.message}",
                server_error=True,
            )
        return OperationResult(success=True, status=applied.status,
                               message="Configuration imported successfully")

    def restore_backup(self, filename: str) -> OperationResult:
        if not self.backups.restore(filename):
            return OperationResult(success=False, message="Failed to restore backup", server_error=True)
        applied = self.apply()
        if not applied.applied:
            return OperationResult(
                success=False,
                status=applied.status,
                message=f"Backup restored but Samba reload failed: {applied.message}",
                server_error=True,
            )
        return OperationResult(success=True, status=applied.status,
                               message="Backup restored successfully")
