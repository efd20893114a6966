#!/usr/bin/env python3
"""Command-line entry point for the guild-audio bot."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from guild_audio.domain.shared.constants import ConfigKeys
from guild_audio.domain.shared.messages import ErrorMessages, LogTemplates
from guild_audio.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guild-audio",
        description="Run the guild-audio Discord voice bot.",
    )
    parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL from the environment (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--log-config",
        type=Path,
        help=f"dictConfig JSON file (default: ${ConfigKeys.LOG_CONFIG_PATH} or logging_config.json)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from guild_audio.config.settings import get_settings

    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, args.log_config)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from guild_audio.config.container import create_container
    from guild_audio.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
