"""Tests for exit codes module."""

from phantom_bridge.cli.exit_codes import ExitCode


class TestExitCode:
    """Test ExitCode class."""

    def test_success_code(self) -> None:
        """Test SUCCESS exit code."""
        assert ExitCode.SUCCESS == 0

    def test_general_error_code(self) -> None:
        """Test GENERAL_ERROR exit code."""
        assert ExitCode.GENERAL_ERROR == 1

    def test_cancelled_code(self) -> None:
        """Test CANCELLED exit code (SIGINT)."""
        assert ExitCode.CANCELLED == 130

    def test_codes_are_unique(self) -> None:
        """Test that no two names share a code."""
        codes = [
            value for name, value in vars(ExitCode).items()
            if name.isupper() and isinstance(value, int)
        ]
        assert len(codes) == len(set(codes))


class TestExitCodeGetName:
    """Test ExitCode.get_name method."""

    def test_get_name_known(self) -> None:
        """Test getting names of known codes."""
        assert ExitCode.get_name(ExitCode.SPAWN_ERROR) == "SPAWN_ERROR"
        assert ExitCode.get_name(ExitCode.READINESS_TIMEOUT) == "READINESS_TIMEOUT"

    def test_get_name_unknown(self) -> None:
        """Test getting name of unknown code."""
        assert ExitCode.get_name(99) == "UNKNOWN(99)"


class TestExitCodeGetDescription:
    """Test ExitCode.get_description method."""

    def test_get_description_known(self) -> None:
        """Test getting description of a known code."""
        assert "liveness" in ExitCode.get_description(ExitCode.READINESS_TIMEOUT)

    def test_get_description_unknown(self) -> None:
        """Test getting description of unknown code."""
        assert ExitCode.get_description(99) == "Unknown exit code: 99"
