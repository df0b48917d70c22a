"""Tests for git output parsers and the staging state machine.

Parsers are fed captured output; ``run_git`` is patched wherever a helper
would spawn git.
"""

from __future__ import annotations

import subprocess
import unittest
from unittest import mock

from gitpeek.errors import GitCommandError, GitParseError, NotInGitRepoError
from gitpeek.git import (
    FileStatus,
    GitFile,
    GitOp,
    StagedStatus,
    adapt_repo_root,
    apply_staging,
    is_valid_revision,
    pager_argv,
    parse_git_blame,
    parse_git_show,
    parse_git_stash,
    parse_git_status,
    previous_filename,
    repo_root,
    run_git,
)

SHOW_OUTPUT = """commit 3f2a9c1d0e (HEAD -> main)
Author: Ada <ada@example.com>
Date:   Mon Jan 1 10:00:00 2024 +0100

    Rename helpers

    Longer body.

M\tsrc/util.py
A\tsrc/new.py
D\told.py
A\tREADME.md
"""


class StatusParseTests(unittest.TestCase):
    def test_codes_map_to_staged_and_unstaged_statuses(self) -> None:
        files = parse_git_status("M  staged.py\n M unstaged.py\nAM both.py\n?? new.txt\nUU conflict.c\n D gone.md\n")
        self.assertEqual(
            {name: (f.staged_status, f.unstaged_status) for name, f in files.items()},
            {
                "staged.py": (FileStatus.MODIFIED, FileStatus.NONE),
                "unstaged.py": (FileStatus.NONE, FileStatus.MODIFIED),
                "both.py": (FileStatus.NEW, FileStatus.MODIFIED),
                "new.txt": (FileStatus.NONE, FileStatus.NEW),
                "conflict.c": (FileStatus.NONE, FileStatus.UNMERGED),
                "gone.md": (FileStatus.NONE, FileStatus.DELETED),
            },
        )

    def test_file_name_with_form_feed(self) -> None:
        files = parse_git_status("?? odd\x0cname.txt\n M plain.py\r\n")
        self.assertEqual(sorted(files), ["odd\x0cname.txt", "plain.py"])

    def test_blank_output_has_no_files(self) -> None:
        self.assertEqual(parse_git_status("\n"), {})

    def test_short_line_is_a_parse_error(self) -> None:
        with self.assertRaises(GitParseError):
            parse_git_status("M\n")


class GitFileTests(unittest.TestCase):
    def test_staging_an_unstaged_change_needs_add(self) -> None:
        git_file = GitFile(unstaged_status=FileStatus.MODIFIED, staged_status=FileStatus.NONE)
        self.assertIsNone(git_file.git_op())
        git_file.toggle(StagedStatus.UNSTAGED)
        self.assertEqual((git_file.unstaged_status, git_file.staged_status), (FileStatus.NONE, FileStatus.MODIFIED))
        self.assertIs(git_file.git_op(), GitOp.ADD)

    def test_unstaging_a_new_file_needs_rm_cached(self) -> None:
        git_file = GitFile(unstaged_status=FileStatus.NONE, staged_status=FileStatus.NEW)
        git_file.toggle(StagedStatus.STAGED)
        self.assertEqual((git_file.unstaged_status, git_file.staged_status), (FileStatus.NEW, FileStatus.NONE))
        self.assertIs(git_file.git_op(), GitOp.RM_CACHED)

    def test_unstaging_a_modification_needs_restore(self) -> None:
        git_file = GitFile(unstaged_status=FileStatus.NONE, staged_status=FileStatus.MODIFIED)
        git_file.toggle(StagedStatus.STAGED)
        self.assertIs(git_file.git_op(), GitOp.RESTORE)

    def test_resolving_a_conflict_stages_as_modified(self) -> None:
        git_file = GitFile(unstaged_status=FileStatus.UNMERGED, staged_status=FileStatus.NONE)
        git_file.toggle(StagedStatus.UNSTAGED)
        self.assertEqual(git_file.staged_status, FileStatus.MODIFIED)
        self.assertIs(git_file.git_op(), GitOp.ADD)

    def test_toggling_back_cancels_the_operation(self) -> None:
        git_file = GitFile(unstaged_status=FileStatus.MODIFIED, staged_status=FileStatus.NONE)
        git_file.toggle(StagedStatus.UNSTAGED)
        git_file.toggle(StagedStatus.STAGED)
        self.assertIsNone(git_file.git_op())

    def test_apply_staging_groups_files_per_operation(self) -> None:
        files = {
            "b.py": GitFile(unstaged_status=FileStatus.MODIFIED, staged_status=FileStatus.NONE),
            "a.py": GitFile(unstaged_status=FileStatus.NEW, staged_status=FileStatus.NONE),
            "c.py": GitFile(unstaged_status=FileStatus.NONE, staged_status=FileStatus.MODIFIED),
            "d.py": GitFile(unstaged_status=FileStatus.MODIFIED, staged_status=FileStatus.NONE),
        }
        files["b.py"].toggle(StagedStatus.UNSTAGED)
        files["a.py"].toggle(StagedStatus.UNSTAGED)
        files["c.py"].toggle(StagedStatus.STAGED)
        with mock.patch("gitpeek.git.run_git") as run:
            apply_staging(files, "git")
        self.assertEqual(
            [c.args for c in run.call_args_list],
            [
                ("git", ["add", "--", "a.py", "b.py"]),
                ("git", ["restore", "--staged", "--", "c.py"]),
            ],
        )
        self.assertTrue(all(f.git_op() is None for f in files.values()))


class BlameParseTests(unittest.TestCase):
    def test_lines_split_into_entries_and_code(self) -> None:
        output = (
            "3f2a9c1d (Ada Lovelace 2024-01-01 10:00:00 +0100 1) import os\n"
            "^9e8d7c6b old/name.py (Bob 2023-05-06 07:08:09 -0700 2)     return 1\n"
            "00000000 (Not Committed Yet 2024-02-02 00:00:00 +0000 3) wip\n"
            "3f2a9c1d (Ada Lovelace 2024-01-01 10:00:00 +0100 4)\n"
        )
        blames, code = parse_git_blame(output)
        self.assertEqual(code, ["import os", "    return 1", "wip", ""])
        self.assertEqual(blames[0].hash, "3f2a9c1d")
        self.assertEqual(blames[0].author, "Ada Lovelace")
        self.assertEqual(blames[0].date, "2024-01-01")
        self.assertIsNone(blames[0].filename)
        self.assertEqual(blames[1].hash, "^9e8d7c6b")
        self.assertEqual(blames[1].filename, "old/name.py")
        self.assertIsNone(blames[2])

    def test_form_feed_in_code_stays_on_its_line(self) -> None:
        output = (
            "3f2a9c1d (Ada 2024-01-01 10:00:00 +0100 1) int x;\n"
            "3f2a9c1d (Ada 2024-01-01 10:00:00 +0100 2) \x0c\n"
            "3f2a9c1d (Ada 2024-01-01 10:00:00 +0100 3) int y;\r\n"
        )
        blames, code = parse_git_blame(output)
        self.assertEqual(code, ["int x;", "\x0c", "int y;"])
        self.assertEqual(len(blames), 3)

    def test_garbage_line_is_a_parse_error(self) -> None:
        with self.assertRaises(GitParseError):
            parse_git_blame("not blame output\n")


class ShowParseTests(unittest.TestCase):
    def test_subject_with_line_separator_stays_in_metadata(self) -> None:
        commit = parse_git_show("commit abc\n\n    page\x0cbreak \u2028 here\n\nM\tsrc\x1cname.py\n")
        self.assertIn("    page\x0cbreak \u2028 here", commit.metadata.split("\n"))
        self.assertEqual(commit.files, ((FileStatus.MODIFIED, "src\x1cname.py"),))

    def test_metadata_hash_and_sorted_files(self) -> None:
        commit = parse_git_show(SHOW_OUTPUT)
        self.assertEqual(commit.hash, "3f2a9c1d0e")
        self.assertIn("    Rename helpers", commit.metadata)
        self.assertIn("    Longer body.", commit.metadata)
        self.assertNotIn("src/util.py", commit.metadata)
        self.assertEqual(
            commit.files,
            (
                (FileStatus.NEW, "README.md"),
                (FileStatus.NEW, "src/new.py"),
                (FileStatus.MODIFIED, "src/util.py"),
                (FileStatus.DELETED, "old.py"),
            ),
        )

    def test_empty_output_is_a_parse_error(self) -> None:
        for output in ("", "commit\n"):
            with self.subTest(output=output), self.assertRaises(GitParseError):
                parse_git_show(output)


class StashParseTests(unittest.TestCase):
    def test_date_and_title(self) -> None:
        stashes = parse_git_stash("2024-03-04 05:06:07 +0100\tWIP on main: abc fix\n")
        self.assertEqual(len(stashes), 1)
        self.assertEqual(stashes[0].date, "2024-03-04")
        self.assertEqual(stashes[0].title, "WIP on main: abc fix")

    def test_title_with_form_feed(self) -> None:
        stashes = parse_git_stash("2024-03-04 05:06:07 +0100\tOn main: a\x0cb\n")
        self.assertEqual([s.title for s in stashes], ["On main: a\x0cb"])

    def test_malformed_line_is_a_parse_error(self) -> None:
        with self.assertRaises(GitParseError):
            parse_git_stash("no tab here\n")


class GitCommandTests(unittest.TestCase):
    def test_non_zero_exit_raises_with_first_stderr_line(self) -> None:
        completed = subprocess.CompletedProcess(["git"], 128, stdout="", stderr="fatal: bad\nmore\n")
        with mock.patch("gitpeek.git.subprocess.run", return_value=completed):
            with self.assertRaises(GitCommandError) as ctx:
                run_git("git", ["show", "nope"])
        self.assertEqual(str(ctx.exception), "error running `git show nope`: fatal: bad")

    def test_missing_executable_raises(self) -> None:
        with mock.patch("gitpeek.git.subprocess.run", side_effect=FileNotFoundError("git")):
            with self.assertRaises(GitCommandError):
                run_git("git", ["status"])

    def test_repo_root_outside_repository(self) -> None:
        with mock.patch("gitpeek.git.run_git", side_effect=GitCommandError(["rev-parse"])):
            with self.assertRaises(NotInGitRepoError):
                repo_root("git")

    def test_wsl_root_translation(self) -> None:
        with mock.patch("gitpeek.git.sys.platform", "linux"):
            self.assertEqual(adapt_repo_root("C:/src/repo"), "/mnt/c/src/repo")
            self.assertEqual(adapt_repo_root("/home/x"), "/home/x")

    def test_previous_filename_follows_rename(self) -> None:
        output = "M\tother.py\nR100\told.py\tnew.py\n"
        with mock.patch("gitpeek.git.run_git", return_value=output) as run:
            self.assertEqual(previous_filename("git", "abc", "new.py"), "old.py")
            self.assertEqual(previous_filename("git", "abc", "other.py"), "other.py")
        run.assert_called_with("git", ["diff", "--name-status", "abc^", "abc"])

    def test_is_valid_revision(self) -> None:
        with mock.patch("gitpeek.git.run_git", return_value="abc\n"):
            self.assertTrue(is_valid_revision("git", "abc"))
        with mock.patch("gitpeek.git.run_git", side_effect=GitCommandError(["rev-parse"])):
            self.assertFalse(is_valid_revision("git", "zzz"))

    def test_pager_argv_forces_color(self) -> None:
        self.assertEqual(pager_argv("git", "log", ["--", "a.py"]), ["git", "log", "--color=always", "--", "a.py"])


if __name__ == "__main__":
    unittest.main()
