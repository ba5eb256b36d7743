"""
Entry point for the Blogger import tool.

Usage::

    python main.py docs/blog-export.xml --default-author <user id> \
        [--config config/import_config.json] [--create-users] [--download-media]
"""

import argparse
import sys

from blogger_import.config import DEFAULT_CONFIG_FILE, load_config
from blogger_import.import_tool import BloggerImportTool
from blogger_import.utils.errors import MalformedInputError, PersistenceError
from blogger_import.utils.reports import generate_users_csv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a Blogger XML export into the content store.")
    parser.add_argument("export", help="Path to the Blogger export (.xml)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="JSON configuration file")
    parser.add_argument("--default-author", default=None, help="User id for entries without a resolved author")
    parser.add_argument("--create-users", action="store_true", help="Create users for unknown authors")
    parser.add_argument("--download-media", action="store_true", help="Download images into local media storage")
    parser.add_argument("--db", default=None, help="DuckDB database file (overrides the config)")
    parser.add_argument("--users-csv", default="reports/created_users.csv", help="Where to write created users")
    return parser


def main(argv=None) -> int:
    """
    Run the import and print the users created with their one-time passwords.
    """
    args = build_parser().parse_args(argv)

    config = load_config(config_file=args.config)
    if args.create_users:
        config["import"]["create_new_users"] = True
    if args.download_media:
        config["import"]["download_media"] = True
    if args.db:
        config["store"]["database"] = args.db

    tool = BloggerImportTool(config)
    tool.log_message(f"Starting Blogger import of {args.export}.")

    try:
        result = tool.run_import_file(args.export, args.default_author)
    except FileNotFoundError:
        tool.log_message(f"Export file '{args.export}' not found.", level="ERROR")
        return 2
    except MalformedInputError as e:
        tool.log_message(f"The export could not be parsed: {e}", level="ERROR")
        return 2
    except PersistenceError as e:
        tool.log_message(f"Import aborted while resolving users: {e}", level="ERROR")
        return 1

    if result.created_users:
        tool.log_message("New users (passwords are shown only once):")
        for user in result.created_users:
            print(f"  {user.username}  {user.email}  {user.generated_password}")
        path = generate_users_csv(result.users, out_path=args.users_csv)
        tool.log_message(f"Created users written to {path}")

    if not result.ok:
        for error in result.errors:
            tool.log_message(str(error), level="ERROR")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
