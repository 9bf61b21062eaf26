import logging
import os
import shutil
import subprocess
from typing import List, Optional, Set

from smbshares.config.settings import AppConfig
from smbshares.shares.models import ApplyResult, ApplyStatus, ToolResult

logger = logging.getLogger(__name__)

SERVICE_NAMES = ['smbd', 'samba', 'smb']


def parse_section_names(output: str) -> Set[str]:
    """Share names from the bracketed section headers in testparm output."""
    names = set()
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("[") and line.endswith("]"):
            names.add(line[1:-1])
    return names


class SambaController:
    """
    Drives the external samba tools: syntax check, live reload, verification.

    An apply cycle runs validate -> reload -> verify. A failed validation or
    reload stops the cycle; a failed verification only downgrades the result
    to applied-unverified. Nothing here raises on tool failure.
    """

    def __init__(self, config: AppConfig):
        self.config = config

    def _run(self, cmd: List[str], merge_stderr: bool = True) -> ToolResult:
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.DEVNULL,
                text=True,
            )
        except OSError as e:
            logger.error(f"Failed to run {cmd[0]}: {e}")
            return ToolResult(success=False, output=f"{cmd[0]}: {e}")
        return ToolResult(success=result.returncode == 0, output=result.stdout.strip())

    def check_installed(self) -> bool:
        """Check if samba is installed."""
        return shutil.which("smbd") is not None or shutil.which("samba") is not None

    def get_status(self) -> str:
        """Get the status of the samba service."""
        for service in SERVICE_NAMES:
            try:
                result = subprocess.run(["systemctl", "is-active", service], stdout=subprocess.PIPE,
                                        stderr=subprocess.DEVNULL, text=True)
                status = result.stdout.strip()
                if status != "unknown":
                    return status
            except FileNotFoundError:
                continue
        return "not found"

    def validate_config(self, config_file: Optional[str] = None) -> ToolResult:
        """Run testparm against the configuration; output is returned untouched."""
        return self._run([self.config.testparm, "-s", config_file or self.config.smb_conf_path])

    def reload(self) -> ToolResult:
        """Ask every running samba process to re-read its configuration."""
        return self._run([self.config.smbcontrol, "all", "reload-config"])

    def list_active_shares(self, config_file: Optional[str] = None) -> Optional[Set[str]]:
        result = self._run(
            [self.config.testparm, "-s", config_file or self.config.smb_conf_path],
            merge_stderr=False,
        )
        if not result.success:
            return None
        return parse_section_names(result.output)

    def verify_share(self, name: str, should_exist: bool = True) -> bool:
        active = self.list_active_shares()
        if active is None:
            return False
        return (name in active) == should_exist

    def reload_samba(self) -> ToolResult:
        """Syntax check followed by a reload; the first failure is returned."""
        check = self.validate_config()
        if not check.success:
            return ToolResult(success=False, output=f"Invalid Samba configuration: {check.output}")
        result = self.reload()
        if not result.success:
            return result
        return ToolResult(success=True)

    def apply(self, share_name: Optional[str] = None, should_exist: bool = True) -> ApplyResult:
        result = self.reload_samba()
        if not result.success:
            logger.error(f"Samba apply failed: {result.output}")
            return ApplyResult(status=ApplyStatus.FAILED, message=result.output)

        if share_name is None:
            return ApplyResult(status=ApplyStatus.APPLIED)

        if self.verify_share(share_name, should_exist):
            return ApplyResult(status=ApplyStatus.APPLIED)

        state = "active" if should_exist else "removed"
        logger.warning(f"Share {share_name} could not be verified as {state} after reload")
        return ApplyResult(
            status=ApplyStatus.APPLIED_UNVERIFIED,
            message=f"Share {share_name} is not {state} in samba",
        )

    def ensure_include(self) -> bool:
        """Adds an include for smb-custom.conf to smb-extra.conf if it is missing."""
        if not self.config.manage_include:
            return True

        extra_conf = self.config.smb_extra_conf_path
        include_line = f"include = {self.config.custom_conf_path}"
        content = ""
        if os.path.exists(extra_conf):
            try:
                with open(extra_conf, "r") as f:
                    content = f.read()
            except OSError as e:
                logger.error(f"Failed to read {extra_conf}: {e}")
                return False

        if include_line in content:
            return True

        try:
            os.makedirs(os.path.dirname(extra_conf), exist_ok=True)
            with open(extra_conf, "a") as f:
                f.write(f"\n# Custom SMB Shares plugin\n{include_line}\n")
        except OSError as e:
            logger.error(f"Failed to add include directive to {extra_conf}: {e}")
            return False

        logger.info(f"Added include directive for custom SMB shares to {extra_conf}")
        return True
