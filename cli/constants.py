"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "signup", "login", "logout", "whoami", "refresh",
    "upload", "list", "details", "delete", "download",
    "share", "inbox", "sent", "read", "unread", "search",
    "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#2F9BD7 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;47;155;215m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  ┌─┐┬┬  ┌─┐┌─┐┬ ┬┌─┐┬─┐┌─┐
  ├┤ ││  ├┤ └─┐├─┤├─┤├┬┘├┤
  └  ┴┴─┘└─┘└─┘┴ ┴┴ ┴┴└─└─┘
{RESET}"""

WELCOME_TITLE = "FileShare CLI - upload and share files"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "fileshare> "
DUPLICATE_PROMPT_TEXT = "'{name}' already exists. Upload anyway? [y/N] "

NOT_LOGGED_IN_MESSAGE = "Not logged in. Please run: login <username> <password>"

HELP_TEXT = """Available commands:
  signup <username> <password> <email> <full name>   Create an account and log in
  login <username> <password>                        Log in
  logout                                             Log out
  whoami                                             Show the logged-in user
  refresh                                            Reload your profile from the server
  upload <path> [path ...]                           Upload files (asks before replacing duplicates)
  list                                               List your files
  details <file_id>                                  Show file details
  delete <file_id>                                   Delete a file
  download <file_id> [output_dir]                    Download a file (default: downloads/)
  share <file_id> <username>                         Share a file with another user
  inbox                                              List files shared with you
  sent                                               List files you shared
  read <share_id>                                    Mark a shared file as read
  unread                                             Count unread shared files
  search <query>                                     Search users by name
  clear                                              Clear screen and redisplay welcome message
  help                                               Show this help
  exit                                               Exit REPL

Examples:
  signup alice secret123 alice@example.com "Alice Smith"
  login alice secret123
  upload report.pdf photos/beach.jpg
  share 42 bob
  read 7"""

DEFAULT_DOWNLOAD_DIR = "downloads"
