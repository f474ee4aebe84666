"""
Tests for result models and helper functions.
"""

import pytest

from media_toolkit.models import OutputLine, StreamName, ToolResult
from media_toolkit.utils import (
    ToolExecutionError,
    extract_error_message,
    format_duration,
    parse_time_to_seconds,
    split_arguments,
)


class TestToolResult:
    """Test ToolResult model."""

    def test_succeeded(self):
        """Test exit code 0 is success."""
        assert ToolResult(0, "out", "").succeeded
        assert not ToolResult(1, "", "err").succeeded

    def test_immutable(self):
        """Test results cannot be modified."""
        result = ToolResult(0, "out", "")
        with pytest.raises(AttributeError):
            result.exit_code = 1  # type: ignore[misc]

    def test_check_success(self):
        """Test check returns the result on success."""
        result = ToolResult(0, "out", "")
        assert result.check() is result

    def test_check_failure(self):
        """Test check raises with the extracted error message."""
        stderr = "ffmpeg version 6.0\ninput.mp4: No such file or directory\n"
        result = ToolResult(1, "", stderr)

        with pytest.raises(ToolExecutionError, match="No such file or directory") as exc_info:
            result.check()

        assert exc_info.value.exit_code == 1
        assert exc_info.value.stderr == stderr


class TestOutputLine:
    """Test OutputLine model."""

    def test_stream_tag(self):
        """Test stream tagging."""
        assert OutputLine(StreamName.STDERR, "x").is_stderr
        assert not OutputLine(StreamName.STDOUT, "x").is_stderr


class TestHelpers:
    """Test helper functions."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("00:00:10.00", 10.0),
            ("01:02:03.50", 3723.5),
            ("02:30", 150.0),
            ("12.5", 12.5),
        ],
    )
    def test_parse_time_to_seconds(self, value, expected):
        """Test timestamp parsing."""
        assert parse_time_to_seconds(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["N/A", "", "1:2:3:4"])
    def test_parse_time_invalid(self, value):
        """Test invalid timestamps raise ValueError."""
        with pytest.raises(ValueError):
            parse_time_to_seconds(value)

    def test_format_duration(self):
        """Test duration formatting."""
        assert format_duration(3723.5) == "01:02:03"

    def test_split_arguments_string(self):
        """Test argument strings are tokenised without adding quotes."""
        assert split_arguments('-i "my file.mp4" -c:v libx264 out.mkv') == [
            "-i",
            "my file.mp4",
            "-c:v",
            "libx264",
            "out.mkv",
        ]

    def test_split_arguments_windows_rules(self):
        """Test non-POSIX splitting leaves no quote characters for list2cmdline to re-quote."""
        assert split_arguments('-i "C:\\My Videos\\in.mp4" -y out.mkv', posix=False) == [
            "-i",
            "C:\\My Videos\\in.mp4",
            "-y",
            "out.mkv",
        ]

    def test_split_arguments_unbalanced_quote(self):
        """Test an unbalanced quote is reported as ValueError."""
        with pytest.raises(ValueError):
            split_arguments("drawtext=text=It's")

    def test_split_arguments_sequence(self):
        """Test sequences are passed through."""
        assert split_arguments(["-i", "a b.mp4"]) == ["-i", "a b.mp4"]

    def test_split_arguments_empty(self):
        """Test empty arguments."""
        assert split_arguments("") == []
        assert split_arguments(None) == []

    def test_extract_error_message_pattern(self):
        """Test error message extraction finds known patterns."""
        stderr = "Some info\nError while opening file\nMore details\n"
        assert "Error while opening" in extract_error_message(stderr)

    def test_extract_error_message_fallback(self):
        """Test fallback to the last lines."""
        stderr = "Line 1\nLine 2\nLine 3\nLine 4\n"
        assert extract_error_message(stderr) == "Line 2 | Line 3 | Line 4"

    def test_extract_error_message_empty(self):
        """Test empty stderr."""
        assert extract_error_message("") == "Unknown error"
