from typing import Dict, Iterable, List, Optional

from smbshares.shares.models import (
    AccessLevel,
    CaseSensitivity,
    ExportMode,
    SecurityMode,
    ShareDefaults,
    ShareDefinition,
)

INDENT = "    "
FRUIT_VFS_OBJECTS = "catia fruit streams_xattr"


def _clean(value) -> str:
    # A newline in user data would start a new directive
    return str(value).replace("\r", "").replace("\n", "")


def _directive(key: str, value) -> str:
    return f"{INDENT}{key} = {_clean(value)}\n"


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def _principals(user_access: Dict[str, AccessLevel], *levels: AccessLevel) -> List[str]:
    return sorted(_clean(p) for p, level in user_access.items() if level in levels)


def is_exported(share: ShareDefinition) -> bool:
    return share.enabled and share.export_mode != ExportMode.NOT_EXPORTED


def build_case_config(share: ShareDefinition) -> str:
    if share.case_sensitivity == CaseSensitivity.SENSITIVE:
        return _directive("case sensitive", "yes")
    if share.case_sensitivity == CaseSensitivity.FORCED_LOWERCASE:
        # These four only make sense together
        return (
            _directive("case sensitive", "yes")
            + _directive("default case", "lower")
            + _directive("preserve case", "no")
            + _directive("short preserve case", "no")
        )
    return ""


def build_fruit_config(share: ShareDefinition) -> str:
    """macOS support; Time Machine export implies the fruit VFS stack."""
    if share.export_mode.time_machine:
        config = _directive("vfs objects", FRUIT_VFS_OBJECTS)
        config += _directive("fruit:time machine", "yes")
        if share.volsizelimit:
            config += _directive("fruit:time machine max size", f"{_clean(share.volsizelimit)}M")
        return config
    if share.fruit:
        return _directive("vfs objects", FRUIT_VFS_OBJECTS)
    return ""


def build_write_list_config(user_access: Dict[str, AccessLevel]) -> str:
    writers = _principals(user_access, AccessLevel.READ_WRITE)
    if not writers:
        return ""
    return _directive("write list", " ".join(writers))


def build_private_access_config(user_access: Dict[str, AccessLevel]) -> str:
    valid = _principals(user_access, AccessLevel.READ_ONLY, AccessLevel.READ_WRITE)
    config = ""
    if valid:
        config += _directive("valid users", " ".join(valid))
    config += build_write_list_config(user_access)
    return config


def build_security_config(share: ShareDefinition) -> str:
    """
    Translates the security mode into guest/read-only/user list directives.

    Private shares are always "read only = yes": samba's write list overrides
    the blanket read-only setting, so the principals listed there can still write.
    """
    if share.security == SecurityMode.SECURE:
        return (
            _directive("guest ok", "yes")
            + _directive("read only", "yes")
            + build_write_list_config(share.user_access)
        )
    if share.security == SecurityMode.PRIVATE:
        return (
            _directive("guest ok", "no")
            + build_private_access_config(share.user_access)
            + _directive("read only", "yes")
        )
    return _directive("guest ok", "yes") + _directive("read only", "no")


def build_permission_config(share: ShareDefinition, defaults: ShareDefaults) -> str:
    config = ""
    force_user = defaults.force_user if share.force_user is None else share.force_user
    force_group = defaults.force_group if share.force_group is None else share.force_group
    if _clean(force_user):
        config += _directive("force user", force_user)
    if _clean(force_group):
        config += _directive("force group", force_group)

    config += _directive("create mask", share.create_mask or defaults.create_mask)
    config += _directive("directory mask", share.directory_mask or defaults.directory_mask)
    hide_dot_files = defaults.hide_dot_files if share.hide_dot_files is None else share.hide_dot_files
    config += _directive("hide dot files", _yes_no(hide_dot_files))
    return config


def build_host_access_config(share: ShareDefinition) -> str:
    config = ""
    if share.hosts_allow:
        config += _directive("hosts allow", share.hosts_allow)
    if share.hosts_deny:
        config += _directive("hosts deny", share.hosts_deny)
    return config


def build_share_section(share: ShareDefinition, defaults: ShareDefaults) -> str:
    section = f"[{_clean(share.name)}]\n"
    section += _directive("path", share.path)
    if share.comment:
        section += _directive("comment", share.comment)
    section += _directive("browseable", _yes_no(not share.export_mode.hidden))
    section += build_case_config(share)
    section += build_fruit_config(share)
    section += build_security_config(share)
    section += build_permission_config(share, defaults)
    section += build_host_access_config(share)
    return section + "\n"


def generate_samba_config(
    shares: Iterable[ShareDefinition], defaults: Optional[ShareDefaults] = None
) -> str:
    """
    Compiles share definitions into smb.conf sections.

    Sections follow the input order; disabled and non-exported shares are
    skipped. Output depends only on the arguments.
    """
    defaults = defaults or ShareDefaults()
    return "".join(build_share_section(s, defaults) for s in shares if is_exported(s))
