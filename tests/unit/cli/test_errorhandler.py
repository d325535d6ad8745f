from unittest.mock import patch

import httpx
import pytest
import typer

from offline_agent.batch import AttemptResult
from offline_agent.cache.exceptions import TierDeletionError
from offline_agent.cli.errorhandler import handle_cli_errors
from offline_agent.config.exceptions import ConfigValidationError
from offline_agent.exceptions import InstallError, InvalidStateError
from offline_agent.lifecycle import LifecycleState


def _printed(mock_print) -> list[str]:
    return [str(arg) for call in mock_print.call_args_list for arg in call[0]]


def test_handle_cli_errors_config_validation():
    """Verify every validation error is listed."""
    errors = [{"loc": ("origin",), "msg": "must be http(s)"}, {"loc": ("fetch_retries",), "msg": "too small"}]
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit) as excinfo:
            with handle_cli_errors(debug=False):
                raise ConfigValidationError(errors)

        assert excinfo.value.exit_code == 1
        args = _printed(mock_print)
        assert any("Invalid Configuration" in arg for arg in args)
        assert any("origin: must be http(s)" in arg for arg in args)
        assert any("fetch_retries: too small" in arg for arg in args)


def test_handle_cli_errors_install_failure_lists_assets():
    failure = AttemptResult.failed("GET http://app.test/app.css", httpx.ConnectError("down"))
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit) as excinfo:
            with handle_cli_errors(debug=False):
                raise InstallError("static-v1", [failure])

        assert excinfo.value.exit_code == 1
        args = _printed(mock_print)
        assert any("Install Failed" in arg for arg in args)
        assert any("GET http://app.test/app.css" in arg for arg in args)


def test_handle_cli_errors_lifecycle_state():
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit):
            with handle_cli_errors(debug=False):
                raise InvalidStateError("activate", LifecycleState.PARSED)

        assert any("Lifecycle Error" in arg for arg in _printed(mock_print))


def test_handle_cli_errors_cache_error():
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit):
            with handle_cli_errors(debug=False):
                raise TierDeletionError("static-v0", PermissionError("denied"))

        assert any("Cache Error" in arg for arg in _printed(mock_print))


def test_handle_cli_errors_network_error():
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit):
            with handle_cli_errors(debug=False):
                raise httpx.ConnectError("unreachable")

        assert any("Network Error" in arg for arg in _printed(mock_print))


def test_handle_cli_errors_debug_mode_re_raises():
    """Verify debug mode re-raises specific exceptions."""
    with pytest.raises(ConfigValidationError):
        with handle_cli_errors(debug=True):
            raise ConfigValidationError([])


def test_handle_cli_errors_unexpected_exception():
    """Verify generic exception handling."""
    with patch("offline_agent.cli.errorhandler.console.print") as mock_print:
        with pytest.raises(typer.Exit) as excinfo:
            with handle_cli_errors(debug=False):
                msg = "Oops"
                raise ValueError(msg)

        assert excinfo.value.exit_code == 1
        assert any("An unexpected error occurred" in arg for arg in _printed(mock_print))


def test_handle_cli_errors_unexpected_exception_debug():
    """Verify generic exception handling in debug mode prints trace and exits."""
    with patch("offline_agent.cli.errorhandler.console.print_exception") as mock_print_exc:
        with pytest.raises(typer.Exit):
            with handle_cli_errors(debug=True):
                msg = "Oops"
                raise ValueError(msg)

        assert mock_print_exc.called


def test_handle_cli_errors_lets_exit_through():
    with pytest.raises(typer.Exit) as excinfo:
        with handle_cli_errors(debug=False):
            raise typer.Exit(3)

    assert excinfo.value.exit_code == 3
