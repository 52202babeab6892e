"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from client.app import FileShareClient
from client.models import DuplicateDecision, DuplicateResolver, PendingDuplicate
from cli.commands import (
    get_client,
    handle_delete,
    handle_details,
    handle_download,
    handle_inbox,
    handle_list,
    handle_login,
    handle_logout,
    handle_read,
    handle_refresh,
    handle_search,
    handle_sent,
    handle_share,
    handle_signup,
    handle_unread,
    handle_upload,
    handle_whoami,
)
from cli.completer import FileShareCompleter
from cli.constants import (
    DUPLICATE_PROMPT_TEXT,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
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
from cli.parser import ParseError, parse_command


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_logo() -> None:
    """Display FileShare logo with ANSI colors."""
    print(LOGO)


def prompt_resolver(session: PromptSession) -> DuplicateResolver:
    """Resolver asking on the terminal whether to upload each duplicate."""
    async def resolve(pending: PendingDuplicate) -> DuplicateDecision:
        try:
            answer = await session.prompt_async(
                DUPLICATE_PROMPT_TEXT.format(name=pending.existing.file_name)
            )
        except (KeyboardInterrupt, EOFError):
            return DuplicateDecision.SKIP
        if answer.strip().lower() in ("y", "yes"):
            return DuplicateDecision.UPLOAD_ANYWAY
        return DuplicateDecision.SKIP

    return resolve


async def dispatch_command(
    cmd_obj,
    client: FileShareClient,
    resolver: Optional[DuplicateResolver] = None,
) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, SignupCommand):
        return await handle_signup(cmd_obj, client)
    elif isinstance(cmd_obj, LoginCommand):
        return await handle_login(cmd_obj, client)
    elif isinstance(cmd_obj, LogoutCommand):
        return await handle_logout(client)
    elif isinstance(cmd_obj, WhoamiCommand):
        return await handle_whoami(client)
    elif isinstance(cmd_obj, RefreshCommand):
        return await handle_refresh(client)
    elif isinstance(cmd_obj, UploadCommand):
        return await handle_upload(cmd_obj, client, resolver)
    elif isinstance(cmd_obj, ListCommand):
        return await handle_list(client)
    elif isinstance(cmd_obj, DetailsCommand):
        return await handle_details(cmd_obj, client)
    elif isinstance(cmd_obj, DeleteCommand):
        return await handle_delete(cmd_obj, client)
    elif isinstance(cmd_obj, DownloadCommand):
        return await handle_download(cmd_obj, client)
    elif isinstance(cmd_obj, ShareCommand):
        return await handle_share(cmd_obj, client)
    elif isinstance(cmd_obj, InboxCommand):
        return await handle_inbox(client)
    elif isinstance(cmd_obj, SentCommand):
        return await handle_sent(client)
    elif isinstance(cmd_obj, ReadCommand):
        return await handle_read(cmd_obj, client)
    elif isinstance(cmd_obj, UnreadCommand):
        return await handle_unread(client)
    elif isinstance(cmd_obj, SearchCommand):
        return await handle_search(cmd_obj, client)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def repl_loop(client: Optional[FileShareClient] = None) -> None:
    """Start interactive REPL with prompt_toolkit."""
    client = client or get_client()
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=FileShareCompleter(), history=history, style=STYLE
    )
    resolver = prompt_resolver(session)

    clear_screen()
    show_logo()
    print(WELCOME_TITLE)
    print(WELCOME_HELP)

    try:
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_logo()
                    print(WELCOME_TITLE)
                    print(WELCOME_HELP)
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj, client, resolver)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await client.close()
