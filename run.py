from __future__ import annotations

import argparse
import os

from dotenv import load_dotenv


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Discord bot.")
    parser.add_argument(
        "--env-file",
        help="Load environment variables from this file before starting.",
    )
    parser.add_argument("--prefix", help="Command prefix (overrides BOT_PREFIX).")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log line format (overrides LOG_FORMAT).",
    )
    args = parser.parse_args()

    if args.env_file:
        if not os.path.exists(args.env_file):
            parser.error(f"env file not found: {args.env_file}")
        load_dotenv(args.env_file, override=True)
    if args.prefix:
        os.environ["BOT_PREFIX"] = args.prefix
    if args.log_format:
        os.environ["LOG_FORMAT"] = args.log_format
    from bot import main as bot_main

    bot_main()


if __name__ == "__main__":
    main()
