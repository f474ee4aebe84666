"""
Helper functions for media toolkit.

This module contains utility functions used throughout the application.
"""

import re
import shlex
import sys
from typing import Optional, Sequence, Union


def format_duration(seconds: float) -> str:
    """
    Format duration as HH:MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "01:30:45")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_time_to_seconds(time_str: str) -> float:
    """
    Parse time string to seconds.

    Supports formats:
    - HH:MM:SS.mmm
    - MM:SS.mmm
    - SS.mmm

    Args:
        time_str: Time string to parse

    Returns:
        Time in seconds

    Raises:
        ValueError: If the string is not a timestamp (e.g. "N/A")
    """
    parts = time_str.strip().split(":")
    if len(parts) == 3:
        hours, minutes, seconds = parts
        return float(hours) * 3600 + float(minutes) * 60 + float(seconds)
    elif len(parts) == 2:
        minutes, seconds = parts
        return float(minutes) * 60 + float(seconds)
    elif len(parts) == 1:
        return float(parts[0])
    raise ValueError(f"Invalid time string: {time_str!r}")


def split_arguments(
    arguments: Union[str, Sequence[str], None],
    posix: Optional[bool] = None,
) -> list[str]:
    """
    Tokenise a pre-formatted argument string for process creation.

    The string is split the way a shell would split it, but nothing is
    quoted, escaped or expanded. Sequences are passed through as a list.

    On Windows the vector is joined back into a command line with
    subprocess.list2cmdline, which quotes tokens containing spaces again.
    Non-POSIX splitting keeps quote characters, so the outer quotes of each
    token are removed here to avoid quoting them twice.

    Args:
        arguments: Argument string, sequence of arguments, or None
        posix: Use POSIX splitting rules (default: everywhere but Windows)

    Returns:
        Argument vector (without the program)

    Raises:
        ValueError: If the string has an unbalanced quote
    """
    if arguments is None:
        return []
    if not isinstance(arguments, str):
        return [str(arg) for arg in arguments]

    if posix is None:
        posix = sys.platform != "win32"
    if posix:
        return shlex.split(arguments)
    return [_strip_outer_quotes(token) for token in shlex.split(arguments, posix=False)]


def _strip_outer_quotes(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    return token


def extract_error_message(stderr: str) -> str:
    """
    Extract meaningful error message from stderr.

    Args:
        stderr: Complete stderr output

    Returns:
        Extracted error message or truncated stderr
    """
    error_patterns = [
        r"Error while (opening|decoding|encoding)",
        r"Invalid data found",
        r"No such file or directory",
        r"Permission denied",
        r"Unknown encoder",
        r"Invalid argument",
        r"cannot open",
    ]

    lines = stderr.splitlines()
    for pattern in error_patterns:
        for i, line in enumerate(lines):
            if re.search(pattern, line, re.IGNORECASE):
                # Return this line and next 2 lines
                return " | ".join(lines[i : i + 3])

    # Return last 3 non-empty lines as fallback
    non_empty = [line for line in lines if line.strip()]
    return " | ".join(non_empty[-3:]) if non_empty else "Unknown error"
