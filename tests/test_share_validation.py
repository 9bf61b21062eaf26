from unittest.mock import patch

import pytest

from smbshares.shares.models import ShareDefinition
from smbshares.shares.validation import sanitize_share_data, validate_share


def test_valid_share_has_no_errors(mnt):
    share = ShareDefinition(name="docs", path=str(mnt / "user" / "docs"))
    assert validate_share(share, str(mnt)) == []


def test_traversal_is_reported(mnt, tmp_path):
    (tmp_path / "etc").mkdir()
    share = ShareDefinition(name="evil", path=f"{mnt}/../etc")
    errors = validate_share(share, str(mnt))
    assert len(errors) == 1
    assert "must be under" in errors[0]


def test_symlink_escape_is_reported(mnt, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (mnt / "evil").symlink_to(outside)
    errors = validate_share(ShareDefinition(name="evil", path=str(mnt / "evil")), str(mnt))
    assert errors == [f"Invalid path: must be under {mnt}/"]


@pytest.mark.parametrize("name", ["", "has space", "semi;colon", "a" * 41, "dots.are.bad", "new\nline"])
def test_invalid_names(mnt, name):
    share = ShareDefinition(name=name, path=str(mnt / "user" / "docs"))
    errors = validate_share(share, str(mnt))
    assert len(errors) == 1
    assert "Invalid share name" in errors[0]


@pytest.mark.parametrize("name", ["a", "Media_2024", "time-machine", "a" * 40])
def test_valid_names(mnt, name):
    share = ShareDefinition(name=name, path=str(mnt / "user" / "docs"))
    assert validate_share(share, str(mnt)) == []


@pytest.mark.parametrize("mask", ["0664", "0000", "7777"])
def test_valid_masks(mnt, mask):
    share = ShareDefinition(name="docs", path=str(mnt / "user" / "docs"),
                            create_mask=mask, directory_mask=mask)
    assert validate_share(share, str(mnt)) == []


@pytest.mark.parametrize("mask", ["0888", "664", "06644", "abcd", "0777\nguest ok = yes"])
def test_invalid_masks_report_one_error_each(mnt, mask):
    share = ShareDefinition(name="docs", path=str(mnt / "user" / "docs"),
                            create_mask=mask, directory_mask=mask)
    errors = validate_share(share, str(mnt))
    assert errors == [
        "Invalid create mask. Must be 4 octal digits (0-7).",
        "Invalid directory mask. Must be 4 octal digits (0-7).",
    ]


def test_empty_masks_are_ignored(mnt):
    share = ShareDefinition(name="docs", path=str(mnt / "user" / "docs"),
                            create_mask="", directory_mask="")
    assert validate_share(share, str(mnt)) == []


def test_all_errors_are_accumulated(mnt):
    share = ShareDefinition(name="bad name", path="/elsewhere", create_mask="99", directory_mask="x")
    errors = validate_share(share, str(mnt))
    assert len(errors) == 4
    assert errors[0].startswith("Invalid share name")
    assert errors[1].startswith("Path must start with")


def test_unwritable_path_is_reported(mnt):
    share = ShareDefinition(name="docs", path=str(mnt / "user" / "docs"))
    with patch("smbshares.shares.paths.os.access", return_value=False):
        errors = validate_share(share, str(mnt))
    assert errors == [f"Path is not writable: {share.path}"]


def test_sanitize_trims_and_drops_empty_values():
    data = sanitize_share_data({
        "name": "  docs ",
        "comment": "   ",
        "hosts_allow": "",
        "enabled": True,
        "force_user": "",
        "force_group": " staff ",
    })
    assert data == {"name": "docs", "enabled": True, "force_user": "", "force_group": "staff"}
