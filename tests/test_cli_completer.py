"""Tests for FileShareCompleter."""

from pathlib import Path
from unittest.mock import patch

import pytest
from prompt_toolkit.document import Document

from cli.completer import FileShareCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a FileShareCompleter instance."""
    return FileShareCompleter()


@pytest.fixture
def work_dir(tmp_path):
    """
    Create a temporary working directory with files to upload.

    Returns:
        Path to the temporary directory
    """
    (tmp_path / "document.txt").write_text("content")
    (tmp_path / "data.csv").write_text("content")
    (tmp_path / ".hidden").write_text("content")
    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "beach.jpg").write_text("content")
    (photos / "dog.png").write_text("content")
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        """Empty input should suggest all commands."""
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        """Partial command should filter to matching commands."""
        completions = get_completions_list(completer, "s")
        assert "signup" in completions
        assert "share" in completions
        assert "sent" in completions
        assert "search" in completions
        assert "login" not in completions

    def test_command_completion_case_insensitive(self, completer):
        """Command completion should be case insensitive."""
        completions = get_completions_list(completer, "UP")
        assert completions == ["upload"]


class TestFileCompletion:
    """Tests for local path completion in upload command."""

    def test_upload_shows_files_and_directories(self, completer, work_dir):
        """After 'upload ', should show files and directories of the working directory."""
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "upload ")
            assert "document.txt" in completions
            assert "data.csv" in completions
            assert "photos/" in completions

    def test_hidden_files_need_dot_prefix(self, completer, work_dir):
        with patch.object(Path, "cwd", return_value=work_dir):
            assert ".hidden" not in get_completions_list(completer, "upload ")
            assert ".hidden" in get_completions_list(completer, "upload .")

    def test_partial_path_filters_files(self, completer, work_dir):
        """Partial path should filter matching files."""
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "upload d")
            assert "document.txt" in completions
            assert "data.csv" in completions
            assert "photos/" not in completions

    def test_completes_inside_directory(self, completer, work_dir):
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "upload photos/")
            assert completions == ["photos/beach.jpg", "photos/dog.png"]

    def test_excludes_already_typed_files(self, completer, work_dir):
        """Files already in command should not be suggested again."""
        with patch.object(Path, "cwd", return_value=work_dir):
            completions = get_completions_list(completer, "upload document.txt ")
            assert "document.txt" not in completions
            assert "data.csv" in completions

    def test_missing_directory_yields_nothing(self, completer, work_dir):
        with patch.object(Path, "cwd", return_value=work_dir):
            assert get_completions_list(completer, "upload nowhere/") == []

    def test_other_commands_no_file_completion(self, completer, work_dir):
        """Commands other than upload should not trigger file completion."""
        with patch.object(Path, "cwd", return_value=work_dir):
            assert get_completions_list(completer, "delete ") == []
            assert get_completions_list(completer, "share ") == []

    def test_base_dir_overrides_cwd(self, work_dir):
        completer = FileShareCompleter(base_dir=work_dir / "photos")
        assert get_completions_list(completer, "upload b") == ["beach.jpg"]
