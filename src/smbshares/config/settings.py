import os

from pydantic import BaseModel, Field

PLUGIN_NAME = "custom.smb.shares"


class AppConfig(BaseModel):
    config_base: str = Field(default_factory=lambda: os.getenv("SMBSHARES_CONFIG_BASE", "/boot/config"))
    permitted_root: str = Field(default_factory=lambda: os.getenv("SMBSHARES_PERMITTED_ROOT", "/mnt"))
    smb_conf_path: str = Field(default_factory=lambda: os.getenv("SMBSHARES_SMB_CONF", "/etc/samba/smb.conf"))
    testparm: str = Field(default_factory=lambda: os.getenv("SMBSHARES_TESTPARM", "testparm"))
    smbcontrol: str = Field(default_factory=lambda: os.getenv("SMBSHARES_SMBCONTROL", "smbcontrol"))

    # Applied at compile time when a share has no force_user/force_group field at all
    default_force_user: str = Field(default_factory=lambda: os.getenv("SMBSHARES_DEFAULT_FORCE_USER", ""))
    default_force_group: str = Field(default_factory=lambda: os.getenv("SMBSHARES_DEFAULT_FORCE_GROUP", ""))

    manage_include: bool = Field(
        default_factory=lambda: os.getenv("SMBSHARES_MANAGE_INCLUDE", "true").lower() == "true"
    )

    @property
    def plugin_directory(self) -> str:
        return os.path.join(self.config_base, "plugins", PLUGIN_NAME)

    @property
    def shares_file(self) -> str:
        return os.path.join(self.plugin_directory, "shares.json")

    @property
    def settings_file(self) -> str:
        return os.path.join(self.plugin_directory, "settings.yaml")

    @property
    def custom_conf_path(self) -> str:
        return os.path.join(self.plugin_directory, "smb-custom.conf")

    @property
    def backup_directory(self) -> str:
        return os.path.join(self.plugin_directory, "backups")

    @property
    def smb_extra_conf_path(self) -> str:
        return os.path.join(self.config_base, "smb-extra.conf")


class PluginSettings(BaseModel):
    """Persisted plugin settings, edited by the administrator."""
    service_enabled: bool = True
    backup_retention_count: int = Field(default=10, ge=1)


def get_config() -> AppConfig:
    """Builds the runtime configuration from SMBSHARES_* environment variables."""
    return AppConfig()
