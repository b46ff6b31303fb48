"""Ordered in-memory log buffer shared by the runner and log readers."""

import logging
import re
import threading

# CSI sequences such as colour codes ("\x1b[31m")
ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


class LogBuffer:
    """Append-only sequence of log lines.

    Readers keep their own offset, so every reader sees every line in
    arrival order. Lines are never de-duplicated.
    """

    def __init__(self, max_lines: int | None = None):
        self._lines: list[str] = []
        self._dropped = 0
        self._max_lines = max_lines
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        """Append a chunk; multi-line chunks are split into lines.

        Terminal colour codes are removed so readers get plain text.
        """
        lines = strip_ansi(text).splitlines() or [""]
        with self._lock:
            self._lines.extend(lines)
            if self._max_lines is not None and len(self._lines) > self._max_lines:
                overflow = len(self._lines) - self._max_lines
                del self._lines[:overflow]
                self._dropped += overflow

    def read_from(self, offset: int = 0) -> tuple[list[str], int]:
        """Lines at or after ``offset`` and the offset to continue from.

        Offsets count every line ever appended, including trimmed ones.
        """
        with self._lock:
            start = max(offset - self._dropped, 0)
            lines = self._lines[start:]
            return lines, self._dropped + len(self._lines)

    def clear(self) -> None:
        with self._lock:
            self._dropped += len(self._lines)
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return self._dropped + len(self._lines)


class LogBufferHandler(logging.Handler):
    """Logging handler that mirrors records into a LogBuffer."""

    def __init__(self, buffer: LogBuffer, level: int = logging.INFO):
        super().__init__(level)
        self.buffer = buffer
        self.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(message)s", datefmt="%H:%M:%S")
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.buffer.append(self.format(record))
        except Exception:
            self.handleError(record)
