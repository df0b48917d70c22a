"""Tests for the background line loader.

Uses in-memory byte streams so the reader thread finishes quickly; each
test waits on the loader before asserting on the final content.
"""

from __future__ import annotations

import io
import unittest
from unittest import mock

from gitpeek.errors import CommandSpawnError, EmptyStreamError
from gitpeek.runtime.stream import ERROR_LINE, StreamLoader, clean_buggy_characters, decode_line


class DecodeLineTests(unittest.TestCase):
    def test_line_endings_are_removed(self) -> None:
        self.assertEqual(decode_line(b"abc\n"), "abc")
        self.assertEqual(decode_line(b"abc\r\n"), "abc")
        self.assertEqual(decode_line(b"abc"), "abc")

    def test_invalid_utf8_becomes_error_line(self) -> None:
        self.assertEqual(decode_line(b"\xff\xfe\n"), ERROR_LINE)

    def test_tabs_and_carriage_returns_are_cleaned(self) -> None:
        self.assertEqual(clean_buggy_characters("a\tb\rc"), "a    b^Mc")


class StreamLoaderTests(unittest.TestCase):
    def test_empty_stream_fails_at_construction(self) -> None:
        with self.assertRaises(EmptyStreamError):
            StreamLoader(io.BytesIO(b""))

    def test_all_lines_are_loaded_in_order(self) -> None:
        data = b"".join(f"line {i}\n".encode() for i in range(250))
        loader = StreamLoader(io.BytesIO(data), batch_size=7)
        self.assertTrue(loader.wait(5))
        self.assertTrue(loader.is_fully_loaded())
        self.assertEqual(len(loader), 250)
        self.assertEqual(loader.get_line(0), "line 0")
        self.assertEqual(loader.get_line(249), "line 249")
        self.assertIsNone(loader.get_line(250))
        self.assertIsNone(loader.get_line(-1))

    def test_bad_line_does_not_stop_loading(self) -> None:
        loader = StreamLoader(io.BytesIO(b"ok\n\xc3\x28\nafter\n"))
        loader.wait(5)
        self.assertEqual(loader.read(0, 10), ["ok", ERROR_LINE, "after"])

    def test_read_returns_a_snapshot_slice(self) -> None:
        loader = StreamLoader(io.BytesIO(b"a\nb\nc\n"))
        loader.wait(5)
        snapshot = loader.read(-3, 2)
        loader.append(["d"])
        self.assertEqual(snapshot, ["a", "b"])
        self.assertEqual(len(loader), 4)

    def test_length_only_grows(self) -> None:
        loader = StreamLoader(io.BytesIO(b"x\n" * 500), batch_size=10)
        seen = [len(loader)]
        while not loader.is_fully_loaded():
            seen.append(len(loader))
        seen.append(len(loader))
        self.assertEqual(seen, sorted(seen))
        self.assertEqual(seen[-1], 500)

    def test_from_command_reports_spawn_failure(self) -> None:
        with mock.patch("gitpeek.runtime.stream.subprocess.Popen", side_effect=OSError("missing")):
            with self.assertRaises(CommandSpawnError):
                StreamLoader.from_command(["git-nope", "log"])

    def test_from_command_reads_process_stdout(self) -> None:
        proc = mock.MagicMock()
        proc.stdout = io.BytesIO(b"commit abc\nAuthor: x\n")
        with mock.patch("gitpeek.runtime.stream.subprocess.Popen", return_value=proc):
            loader = StreamLoader.from_command(["git", "log"])
        loader.wait(5)
        self.assertEqual(loader.read(0, 5), ["commit abc", "Author: x"])
        proc.wait.assert_called_once_with()

    def test_from_command_empty_output_reaps_process(self) -> None:
        proc = mock.MagicMock()
        proc.stdout = io.BytesIO(b"")
        with mock.patch("gitpeek.runtime.stream.subprocess.Popen", return_value=proc):
            with self.assertRaises(EmptyStreamError):
                StreamLoader.from_command(["git", "log"])
        proc.wait.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
