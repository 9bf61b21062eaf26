import pytest

from smbshares.config.settings import AppConfig


@pytest.fixture
def mnt(tmp_path):
    root = tmp_path / "mnt"
    (root / "user" / "docs").mkdir(parents=True)
    return root


@pytest.fixture
def app_config(tmp_path, mnt):
    return AppConfig(
        config_base=str(tmp_path / "boot" / "config"),
        permitted_root=str(mnt),
        smb_conf_path=str(tmp_path / "etc" / "smb.conf"),
        testparm="testparm",
        smbcontrol="smbcontrol",
        default_force_user="",
        default_force_group="",
        manage_include=True,
    )
