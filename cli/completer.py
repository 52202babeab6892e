"""Custom completer for FileShare CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class FileShareCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'upload' command
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For 'upload' command arguments, completes files and directories.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "upload":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str, exclude: set) -> Iterable[Completion]:
        """
        Complete local paths relative to the working directory.

        Directories are offered with a trailing '/', hidden entries only when
        the partial name starts with '.'.
        """
        base_dir = self.base_dir or Path.cwd()
        dir_part, _, name_part = partial.rpartition("/")
        directory = base_dir / dir_part if dir_part else base_dir
        if not directory.is_dir():
            return

        prefix = f"{dir_part}/" if dir_part else ""
        candidates = []
        for item in directory.iterdir():
            if item.name.startswith(".") and not name_part.startswith("."):
                continue
            if not item.name.lower().startswith(name_part.lower()):
                continue
            rel_path = f"{prefix}{item.name}"
            if item.is_dir():
                candidates.append(f"{rel_path}/")
            elif item.is_file() and rel_path not in exclude:
                candidates.append(rel_path)

        for path in sorted(candidates):
            yield Completion(path, start_position=-len(partial))
