"""Tests for CLI main module."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import typer
from typer.testing import CliRunner

from auroraboot.cli.main import _run_cli_command, app
from auroraboot.exceptions import ConfigurationError, StageExecutionError
from auroraboot.pipeline import BuildResult


runner = CliRunner()


@patch("auroraboot.cli.main.ConfigManager")
@patch("auroraboot.cli.main.console")
def test_run_cli_command_success(mock_console, mock_config_manager):
    """Test the CLI command runner on a successful execution."""
    mock_handler = MagicMock()
    options = MagicMock()
    mock_config_manager.return_value.load = AsyncMock(return_value=options)
    
    _run_cli_command(mock_handler, ["disk.raw=true"], None, None, False)
    
    # Verify options were loaded from the overrides
    mock_config_manager.return_value.load.assert_awaited_once_with(None, ["disk.raw=true"], None)
    
    # Verify the handler was called with the loaded options
    mock_handler.assert_called_once_with(options)
    
    # Verify no error was printed
    mock_console.print.assert_not_called()


@patch("auroraboot.cli.main.ConfigManager")
@patch("auroraboot.cli.main.console")
def test_run_cli_command_debug(mock_console, mock_config_manager):
    """Test --debug adds a log level override."""
    mock_config_manager.return_value.load = AsyncMock(return_value=MagicMock())
    
    _run_cli_command(MagicMock(), [], None, None, True)
    
    args = mock_config_manager.return_value.load.call_args.args
    assert args[1] == ["log_level=DEBUG"]


@patch("auroraboot.cli.main.ConfigManager")
@patch("auroraboot.cli.main.console")
def test_run_cli_command_configuration_error(mock_console, mock_config_manager):
    """Test the CLI command runner when options are invalid."""
    mock_config_manager.return_value.load = AsyncMock(
        side_effect=ConfigurationError("No source given")
    )
    mock_handler = MagicMock()
    
    with pytest.raises(typer.Exit) as exc_info:
        _run_cli_command(mock_handler, [], None, None, False)
        
    # Verify the handler was never called
    mock_handler.assert_not_called()
    
    # Verify the error message was printed to the console
    mock_console.print.assert_called_once_with("[red]Error:[/red] No source given")
    
    # Verify typer.Exit was called
    assert exc_info.value.exit_code == 1


@patch("auroraboot.cli.main.ConfigManager")
@patch("auroraboot.cli.main.console")
def test_run_cli_command_stage_error(mock_console, mock_config_manager):
    """Test a failing stage reports the stages entered."""
    mock_config_manager.return_value.load = AsyncMock(return_value=MagicMock())
    error = StageExecutionError("gen-raw-disk", OSError("disk full"), ["prepare-dirs", "gen-raw-disk"])
    
    with pytest.raises(typer.Exit) as exc_info:
        _run_cli_command(MagicMock(side_effect=error), [], None, None, False)
        
    printed = [c.args[0] for c in mock_console.print.call_args_list]
    assert printed[0] == "[red]Error:[/red] stage gen-raw-disk failed: disk full"
    assert "prepare-dirs, gen-raw-disk" in printed[1]
    assert exc_info.value.exit_code == 1


def test_plan_command(tmp_path):
    """Test the plan command lists applicable and skipped stages."""
    result = runner.invoke(app, [
        "plan",
        "--set", "container_image=docker://quay.io/kairos/opensuse:tumbleweed-core-amd64-generic-v3.2.1",
        "--set", "disk.vhd=true",
        "--set", f"state_dir={tmp_path}",
    ])
    
    assert result.exit_code == 0
    assert "dump-source" in result.output
    assert "convert-vhd" in result.output
    assert "skipped" in result.output


def test_plan_command_invalid_options():
    result = runner.invoke(app, ["plan", "--set", "disk.raw=true"])
    
    assert result.exit_code == 1
    assert "No source given" in result.output


def test_build_command_missing_config(tmp_path):
    result = runner.invoke(app, ["build", "--config", str(tmp_path / "missing.yaml")])
    
    assert result.exit_code == 1
    assert "Cannot read" in result.output


@pytest.fixture
def restore_logging():
    """Put back the root handlers replaced by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@patch("auroraboot.runner.PipelineExecutor")
def test_build_debug_output_names_only_entered_stages(mock_executor, tmp_path, restore_logging):
    """Test stages that never start are absent from the debug output."""
    trail = ["prepare-dirs", "download-squashfs", "extract-squashfs", "gen-raw-disk"]
    mock_executor.return_value.run = AsyncMock(return_value=BuildResult(trail=trail))
    
    result = runner.invoke(app, [
        "build",
        "--debug",
        "--set", "flavor=rockylinux",
        "--set", "flavor_release=9",
        "--set", "artifact_version=v3.2.1",
        "--set", "disk.raw=true",
        "--set", f"state_dir={tmp_path}",
        "--set", f"loop.lock_dir={tmp_path / 'locks'}",
    ])
    
    assert result.exit_code == 0
    pipeline = mock_executor.call_args.args[0]
    assert pipeline.ids == trail
    assert "gen-raw-disk" in result.output
    assert "dump-source" not in result.output
    assert "build-arm-image" not in result.output
    assert "convert-vhd" not in result.output
