import os
import subprocess
from unittest.mock import MagicMock, patch

from smbshares.shares.models import ApplyStatus
from smbshares.shares.smb import SambaController

TESTPARM_OUTPUT = "[global]\n\tworkgroup = WORKGROUP\n\n[docs]\n\tpath = /mnt/user/docs\n"


def completed(returncode=0, stdout=""):
    return MagicMock(returncode=returncode, stdout=stdout)


def fake_tools(testparm_rc=0, smbcontrol_rc=0, listing=TESTPARM_OUTPUT):
    """subprocess.run replacement answering for testparm and smbcontrol."""
    def run(cmd, **kwargs):
        if cmd[0] == "smbcontrol":
            return completed(smbcontrol_rc, "" if smbcontrol_rc == 0 else "Can't connect to smbd")
        if kwargs.get("stderr") == subprocess.DEVNULL:
            return completed(0, listing)
        return completed(testparm_rc, "Loaded services file OK." if testparm_rc == 0
                         else "Unknown parameter encountered: \"gust ok\"")
    return run


def test_validate_config_uses_testparm(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", return_value=completed(0, "ok\n")) as mock_run:
        result = controller.validate_config()

    assert result.success
    assert result.output == "ok"
    args = mock_run.call_args[0][0]
    assert args == ["testparm", "-s", app_config.smb_conf_path]
    assert mock_run.call_args[1]["stderr"] == subprocess.STDOUT


def test_reload_uses_smbcontrol(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", return_value=completed(0)) as mock_run:
        assert controller.reload().success
    assert mock_run.call_args[0][0] == ["smbcontrol", "all", "reload-config"]


def test_missing_tool_is_a_failure(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=FileNotFoundError("No such file")):
        result = controller.validate_config()
    assert not result.success
    assert "testparm" in result.output


def test_apply_stops_on_invalid_config(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools(testparm_rc=1)) as mock_run:
        result = controller.apply("docs")

    assert result.status == ApplyStatus.FAILED
    assert result.message.startswith("Invalid Samba configuration: ")
    assert "gust ok" in result.message
    assert all(call[0][0][0] != "smbcontrol" for call in mock_run.call_args_list)


def test_apply_reports_reload_failure(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools(smbcontrol_rc=1)):
        result = controller.apply("docs")

    assert result.status == ApplyStatus.FAILED
    assert "Can't connect to smbd" in result.message


def test_apply_verified(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools()):
        result = controller.apply("docs")
    assert result.status == ApplyStatus.APPLIED
    assert result.applied


def test_apply_unverified_when_share_missing(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools()):
        result = controller.apply("photos")

    assert result.status == ApplyStatus.APPLIED_UNVERIFIED
    assert result.applied
    assert result.message == "Share photos is not active in samba"


def test_apply_verifies_removal(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools()):
        assert controller.apply("photos", should_exist=False).status == ApplyStatus.APPLIED
        result = controller.apply("docs", should_exist=False)

    assert result.status == ApplyStatus.APPLIED_UNVERIFIED
    assert result.message == "Share docs is not removed in samba"


def test_apply_without_name_skips_verification(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", side_effect=fake_tools()) as mock_run:
        result = controller.apply()

    assert result.status == ApplyStatus.APPLIED
    assert mock_run.call_count == 2


def test_verify_fails_when_listing_fails(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run", return_value=completed(255)):
        assert controller.verify_share("docs") is False
        assert controller.verify_share("docs", should_exist=False) is False


def test_get_status(app_config):
    controller = SambaController(app_config)
    with patch("smbshares.shares.smb.subprocess.run") as mock_run:
        mock_run.side_effect = [completed(3, "unknown\n"), completed(0, "active\n")]
        assert controller.get_status() == "active"


def test_ensure_include_is_idempotent(app_config):
    controller = SambaController(app_config)

    assert controller.ensure_include()
    assert controller.ensure_include()

    with open(app_config.smb_extra_conf_path) as f:
        content = f.read()
    assert content.count(f"include = {app_config.custom_conf_path}") == 1
    assert "# Custom SMB Shares plugin" in content


def test_ensure_include_appends_to_existing_file(app_config, tmp_path):
    extra = tmp_path / "boot" / "config" / "smb-extra.conf"
    extra.parent.mkdir(parents=True)
    extra.write_text("[global]\n    server min protocol = SMB2\n")

    assert SambaController(app_config).ensure_include()

    content = extra.read_text()
    assert content.startswith("[global]\n    server min protocol = SMB2\n")
    assert content.endswith(f"include = {app_config.custom_conf_path}\n")


def test_ensure_include_disabled(app_config):
    app_config.manage_include = False
    assert SambaController(app_config).ensure_include()
    assert not os.path.exists(app_config.smb_extra_conf_path)
