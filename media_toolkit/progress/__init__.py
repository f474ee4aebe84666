"""Progress parsing from tool output."""

from media_toolkit.progress.parser import (
    FFMPEG_DURATION_PATTERN,
    FFMPEG_TIME_PATTERN,
    CounterProgressParser,
    ProgressParser,
    ffmpeg_progress_parser,
    regex_counter_matcher,
    regex_time_matcher,
)

__all__ = [
    "FFMPEG_DURATION_PATTERN",
    "FFMPEG_TIME_PATTERN",
    "CounterProgressParser",
    "ProgressParser",
    "ffmpeg_progress_parser",
    "regex_counter_matcher",
    "regex_time_matcher",
]
