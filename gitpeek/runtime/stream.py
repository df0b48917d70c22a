"""Background loader for line-oriented subprocess or stdin output.

One daemon thread per loader appends decoded lines in batches to a
lock-guarded list; the UI thread only reads by index and polls the
``loaded`` event, so it never blocks on the producer.
"""

from __future__ import annotations

import itertools
import logging
import subprocess
import sys
import threading
from typing import IO

from ..errors import CommandSpawnError, EmptyStreamError

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
ERROR_LINE = "\x1b[31m/!\\ *** ERROR *** /!\\: gitpeek could not read that line\x1b[0m"


def clean_buggy_characters(line: str) -> str:
    """Replace characters that break cell-based rendering."""
    return line.replace("\t", "    ").replace("\r", "^M")


def decode_line(raw: bytes) -> str:
    if raw.endswith(b"\r\n"):
        raw = raw[:-2]
    elif raw.endswith(b"\n"):
        raw = raw[:-1]
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("undecodable line in stream: %r", raw[:80])
        return ERROR_LINE
    return clean_buggy_characters(text)


class StreamLoader:
    """Append-only line buffer filled by a background reader thread.

    The first line is read synchronously so an empty stream fails at
    construction with ``EmptyStreamError``. ``len()`` only ever grows and
    ``is_fully_loaded()`` flips to true exactly once.
    """

    def __init__(
        self,
        source: IO[bytes],
        process: subprocess.Popen | None = None,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        self._lines: list[str] = []
        self._lock = threading.Lock()
        self._loaded = threading.Event()
        self._source = source
        self._process = process
        self._batch_size = batch_size

        first = source.readline()
        if not first:
            raise EmptyStreamError()
        self._lines.append(decode_line(first))

        self._thread = threading.Thread(target=self._run, name="gitpeek-stream", daemon=True)
        self._thread.start()

    @classmethod
    def from_command(cls, argv: list[str]) -> StreamLoader:
        logger.debug("streaming output of %s", " ".join(argv))
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise CommandSpawnError(" ".join(argv), exc) from exc
        assert proc.stdout is not None
        try:
            return cls(proc.stdout, process=proc)
        except EmptyStreamError:
            proc.wait()
            raise

    @classmethod
    def from_stdin(cls) -> StreamLoader:
        return cls(sys.stdin.buffer)

    def _run(self) -> None:
        try:
            while True:
                raw_batch = list(itertools.islice(self._source, self._batch_size))
                if not raw_batch:
                    break
                self.append([decode_line(raw) for raw in raw_batch])
            if self._process is not None:
                self._process.wait()
        except (OSError, ValueError) as exc:
            logger.warning("stream reader stopped: %s", exc)
        finally:
            logger.debug("stream finished with %d lines", len(self))
            self._loaded.set()

    def append(self, batch: list[str]) -> None:
        with self._lock:
            self._lines.extend(batch)

    def get_line(self, index: int) -> str | None:
        if index < 0:
            return None
        with self._lock:
            if index >= len(self._lines):
                return None
            return self._lines[index]

    def read(self, start: int, stop: int) -> list[str]:
        """Return a snapshot of ``lines[start:stop]``."""
        with self._lock:
            return self._lines[max(0, start) : stop]

    def is_fully_loaded(self) -> bool:
        return self._loaded.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until loading finishes; only meant for tests and teardown."""
        return self._loaded.wait(timeout)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
