"""
Log chunk aggregation.

Folds timestamped log lines, as delivered by the log retrieval backend,
into a single chunk bounded by the earliest and latest timestamp seen.
"""

from datetime import datetime, timezone
from typing import Iterable, Tuple

from pydantic import BaseModel

# Sentinel bounds of a chunk without any lines
EMPTY_SINCE = datetime.max.replace(tzinfo=timezone.utc)
EMPTY_UNTIL = datetime.min.replace(tzinfo=timezone.utc)

LogLine = Tuple[datetime, str]


class LogChunk(BaseModel):
    since: datetime = EMPTY_SINCE
    until: datetime = EMPTY_UNTIL
    log_lines: str = ""

    @property
    def is_empty(self) -> bool:
        """True for the sentinel chunk, which must not be read as a time interval."""
        return self.since == EMPTY_SINCE and self.until == EMPTY_UNTIL

    @classmethod
    def from_lines(cls, lines: Iterable[LogLine]) -> "LogChunk":
        return aggregate_log_lines(lines)


def aggregate_log_lines(lines: Iterable[LogLine]) -> LogChunk:
    """
    Aggregate log lines into one chunk.

    Texts are concatenated in input order without inserting separators,
    so every line must already carry its own line break. Timestamps must be
    timezone-aware.

    Args:
        lines: (timestamp, text) pairs

    Returns:
        LogChunk with since = earliest and until = latest timestamp, or the
        empty sentinel chunk if there are no lines

    Raises:
        ValueError: If a timestamp has no timezone
    """
    since = EMPTY_SINCE
    until = EMPTY_UNTIL
    texts = []

    for timestamp, text in lines:
        if timestamp.tzinfo is None or timestamp.utcoffset() is None:
            raise ValueError(
                f"Log line timestamp {timestamp.isoformat()} must be timezone-aware"
            )
        if timestamp < since:
            since = timestamp
        if timestamp > until:
            until = timestamp
        texts.append(text)

    return LogChunk(since=since, until=until, log_lines="".join(texts))
