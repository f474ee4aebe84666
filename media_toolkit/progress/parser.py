"""
Log-driven progress parsing.

Command-line media tools print free-form status lines while they work.
This module turns that line stream into progress events with a small
state machine parametrised by matcher functions, so each tool supplies
its own vocabulary while sharing the same latch semantics:

- The first line announcing a total duration latches it for the rest of
  the invocation. Later announcements are ignored.
- Every line is checked for a processed position. Once a nonzero total is
  known, each match yields a ProgressEvent; matches seen earlier are
  dropped, not replayed.
"""

import re
from typing import Callable, Optional, Pattern, Union

from ..models import CounterProgressEvent, ProgressEvent
from ..utils import get_logger, parse_time_to_seconds

logger = get_logger(__name__)

TimeMatcher = Callable[[str], Optional[float]]
CounterMatcher = Callable[[str], Optional[tuple[int, int]]]

# "  Duration: 00:02:30.50, start: 0.000000, bitrate: 5000 kb/s"
FFMPEG_DURATION_PATTERN = re.compile(r"Duration: ([^,]+),")
# "frame=  150 fps= 30 q=-1.0 size= 1024kB time=00:00:05.00 bitrate=..."
FFMPEG_TIME_PATTERN = re.compile(r"time=([^ ]+)")


def regex_time_matcher(pattern: Union[str, Pattern[str]]) -> TimeMatcher:
    """
    Build a matcher extracting a timestamp from a line.

    Args:
        pattern: Regex whose first group captures a [HH:]MM:SS[.ff] timestamp

    Returns:
        Matcher returning seconds, or None if the line does not match or
        the captured value is not a timestamp (e.g. "N/A")
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    def match(line: str) -> Optional[float]:
        found = regex.search(line)
        if not found:
            return None
        try:
            return parse_time_to_seconds(found.group(1))
        except ValueError:
            return None

    return match


def regex_counter_matcher(pattern: Union[str, Pattern[str]]) -> CounterMatcher:
    """
    Build a matcher extracting a (current, total) counter pair from a line.

    Args:
        pattern: Regex with two groups, current then total

    Returns:
        Matcher returning the pair, or None
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    def match(line: str) -> Optional[tuple[int, int]]:
        found = regex.search(line)
        if not found:
            return None
        return int(found.group(1)), int(found.group(2))

    return match


class ProgressParser:
    """
    Duration-based progress state machine for one invocation at a time.

    Feed every output line to observe(); call reset() before reusing the
    parser for another invocation (ProcessRunner does this automatically).
    """

    def __init__(self, duration_matcher: TimeMatcher, position_matcher: TimeMatcher):
        """
        Initialize parser.

        Args:
            duration_matcher: Returns total seconds for a duration announcement line
            position_matcher: Returns processed seconds for a position line
        """
        self.duration_matcher = duration_matcher
        self.position_matcher = position_matcher
        self._total: Optional[float] = None
        self._processed: Optional[float] = None

    @property
    def total_duration(self) -> Optional[float]:
        """Latched total duration in seconds, or None if not announced yet."""
        return self._total

    @property
    def processed_duration(self) -> Optional[float]:
        """Most recent processed position that produced an event."""
        return self._processed

    @property
    def fraction(self) -> float:
        """Current completion fraction (0.0 while total is unknown)."""
        if not self._total or self._processed is None:
            return 0.0
        return self._processed / self._total

    def reset(self) -> None:
        """Forget all state and return to "total unknown"."""
        self._total = None
        self._processed = None

    def observe(self, line: str) -> Optional[ProgressEvent]:
        """
        Consume one output line.

        Args:
            line: Output line from either stream

        Returns:
            ProgressEvent if the line reports a position and total is known
        """
        if not line:
            return None

        if self._total is None:
            total = self.duration_matcher(line)
            if total is not None:
                self._total = total
                logger.debug(f"Detected duration: {total}s")

        processed = self.position_matcher(line)
        if processed is None or not self._total:
            return None

        self._processed = processed
        return ProgressEvent(processed=processed, total=self._total)


class CounterProgressParser:
    """Progress from tools that report "current of total" counters."""

    def __init__(self, counter_matcher: CounterMatcher):
        self.counter_matcher = counter_matcher
        self._last: Optional[CounterProgressEvent] = None

    @property
    def fraction(self) -> float:
        return self._last.progress if self._last else 0.0

    def reset(self) -> None:
        self._last = None

    def observe(self, line: str) -> Optional[CounterProgressEvent]:
        if not line:
            return None
        pair = self.counter_matcher(line)
        if pair is None:
            return None
        current, total = pair
        if total <= 0:
            return None
        self._last = CounterProgressEvent(current=current, total=total)
        return self._last


def ffmpeg_progress_parser() -> ProgressParser:
    """Create a parser for FFmpeg's "Duration:" and "time=" status lines."""
    return ProgressParser(
        duration_matcher=regex_time_matcher(FFMPEG_DURATION_PATTERN),
        position_matcher=regex_time_matcher(FFMPEG_TIME_PATTERN),
    )
