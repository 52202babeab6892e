"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DeleteCommand,
    DetailsCommand,
    DownloadCommand,
    InboxCommand,
    ListCommand,
    LoginCommand,
    LogoutCommand,
    ReadCommand,
    RefreshCommand,
    SearchCommand,
    SentCommand,
    ShareCommand,
    SignupCommand,
    UnreadCommand,
    UploadCommand,
    WhoamiCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


NO_ARGUMENT_COMMANDS = {
    "logout": LogoutCommand,
    "whoami": WhoamiCommand,
    "refresh": RefreshCommand,
    "list": ListCommand,
    "inbox": InboxCommand,
    "sent": SentCommand,
    "unread": UnreadCommand,
}


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].lower()
    args = tokens[1:]

    if command_name in NO_ARGUMENT_COMMANDS:
        if args:
            raise ParseError(f"{command_name} takes no arguments")
        return NO_ARGUMENT_COMMANDS[command_name]()
    elif command_name == "signup":
        return _parse_signup(args)
    elif command_name == "login":
        return _parse_login(args)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "details":
        return DetailsCommand(file_id=_single_argument("details", "<file_id>", args))
    elif command_name == "delete":
        return DeleteCommand(file_id=_single_argument("delete", "<file_id>", args))
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "share":
        return _parse_share(args)
    elif command_name == "read":
        return ReadCommand(share_id=_single_argument("read", "<share_id>", args))
    elif command_name == "search":
        if not args:
            raise ParseError("search requires a query")
        return SearchCommand(query=" ".join(args))
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _single_argument(command: str, name: str, args: list[str]) -> str:
    if len(args) != 1:
        raise ParseError(f"{command} requires exactly 1 argument: {name}")
    return args[0]


def _parse_signup(args: list[str]) -> SignupCommand:
    """Parse 'signup <username> <password> <email> <full name>' command."""
    if len(args) < 4:
        raise ParseError("signup requires 4 arguments: <username> <password> <email> <full name>")

    username, password, email = args[:3]
    return SignupCommand(
        username=username,
        password=password,
        email=email,
        full_name=" ".join(args[3:]),
    )


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("login requires exactly 2 arguments: <username> <password>")

    username, password = args
    return LoginCommand(username=username, password=password)


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [path ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file")

    return UploadCommand(file_list=tuple(args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file_id> [output_dir]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires 1 or 2 arguments: <file_id> [output_dir]")

    file_id = args[0]
    output_dir = args[1] if len(args) > 1 else None

    return DownloadCommand(file_id=file_id, output_dir=output_dir)


def _parse_share(args: list[str]) -> ShareCommand:
    """Parse 'share <file_id> <username>' command."""
    if len(args) != 2:
        raise ParseError("share requires exactly 2 arguments: <file_id> <username>")

    file_id, username = args
    return ShareCommand(file_id=file_id, username=username.lstrip("@"))
