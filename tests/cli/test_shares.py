import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from smbshares.cli import main
from smbshares.shares.models import ApplyResult, ApplyStatus


@pytest.fixture
def controller():
    with patch("smbshares.shares.service.SambaController") as MockController:
        instance = MockController.return_value
        instance.apply.return_value = ApplyResult(status=ApplyStatus.APPLIED)
        instance.ensure_include.return_value = True
        yield instance


@pytest.fixture
def invoke(app_config, controller):
    runner = CliRunner()

    def run(*args):
        return runner.invoke(main, list(args), obj={"config": app_config})
    return run


@pytest.fixture
def docs_path(mnt):
    return str(mnt / "user" / "docs")


def test_shares_help():
    runner = CliRunner()
    result = runner.invoke(main, ['shares', '--help'])
    assert result.exit_code == 0
    assert "Manage shares." in result.output


def test_list_empty(invoke):
    result = invoke('shares', 'list')
    assert result.exit_code == 0
    assert "No shares found." in result.output


def test_add_and_show(invoke, docs_path):
    result = invoke('shares', 'add', 'docs', docs_path, '--security', 'private',
                    '--access', 'admin=read-write', '--access', '@staff=read-only', '--comment', 'Docs')
    assert result.exit_code == 0, result.output
    assert 'Share "docs" added and verified' in result.output

    result = invoke('shares', 'show', 'docs')
    record = json.loads(result.output)
    assert record["security"] == "private"
    assert record["user_access"] == {"admin": "read-write", "@staff": "read-only"}

    result = invoke('shares', 'list')
    assert "Name: docs (enabled)" in result.output


def test_add_invalid_share(invoke):
    result = invoke('shares', 'add', 'bad name', '/etc')
    assert result.exit_code == 1
    assert "Error: Invalid share name" in result.output
    assert "Error: Path must start with" in result.output


def test_add_bad_access_entry(invoke, docs_path):
    result = invoke('shares', 'add', 'docs', docs_path, '--access', 'admin')
    assert result.exit_code == 2
    assert "PRINCIPAL=LEVEL" in result.output


def test_unverified_apply_warns(invoke, controller, docs_path):
    controller.apply.return_value = ApplyResult(status=ApplyStatus.APPLIED_UNVERIFIED, message="x")
    result = invoke('shares', 'add', 'docs', docs_path)
    assert result.exit_code == 0
    assert 'Warning: Share "docs" added but verification failed' in result.output


def test_update_keeps_unspecified_fields(invoke, docs_path):
    invoke('shares', 'add', 'docs', docs_path, '--comment', 'Docs', '--create-mask', '0644')

    result = invoke('shares', 'update', 'docs', '--rename', 'papers', '--comment', 'Papers')
    assert result.exit_code == 0, result.output

    record = json.loads(invoke('shares', 'show', 'papers').output)
    assert record["comment"] == "Papers"
    assert record["create_mask"] == "0644"
    assert record["path"] == docs_path


def test_update_missing_share(invoke):
    result = invoke('shares', 'update', 'ghost', '--comment', 'x')
    assert result.exit_code == 1
    assert "Share 'ghost' not found." in result.output


def test_toggle_and_delete(invoke, docs_path):
    invoke('shares', 'add', 'docs', docs_path)

    result = invoke('shares', 'toggle', 'docs')
    assert 'Share "docs" disabled and verified' in result.output
    result = invoke('shares', 'toggle', 'docs', '--enable')
    assert 'Share "docs" enabled and verified' in result.output

    result = invoke('shares', 'delete', 'docs')
    assert result.exit_code == 0
    assert invoke('shares', 'delete', 'docs').exit_code == 1


def test_render(invoke, docs_path):
    invoke('shares', 'add', 'docs', docs_path)
    result = invoke('shares', 'render')
    assert result.output.startswith("[docs]\n")


def test_export_import(invoke, docs_path, tmp_path):
    invoke('shares', 'add', 'docs', docs_path)
    exported = invoke('shares', 'export').output
    invoke('shares', 'delete', 'docs')

    source = tmp_path / "shares.json"
    source.write_text(exported)
    result = invoke('shares', 'import', str(source))

    assert result.exit_code == 0, result.output
    assert "Configuration imported successfully" in result.output
    assert invoke('shares', 'show', 'docs').exit_code == 0


def test_import_invalid_json(invoke, tmp_path):
    source = tmp_path / "shares.json"
    source.write_text("{nope")
    result = invoke('shares', 'import', str(source))
    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_apply(invoke, controller):
    assert "Samba reloaded successfully." in invoke('shares', 'apply').output
    controller.apply.return_value = ApplyResult(status=ApplyStatus.FAILED, message="no smbd")
    result = invoke('shares', 'apply')
    assert result.exit_code == 1
    assert "Failed to reload Samba: no smbd" in result.output
