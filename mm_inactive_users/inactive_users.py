#! /usr/bin/env python3
"""
Find Mattermost users in one team who have been inactive for a given number
of days, and optionally deactivate or permanently delete them.

Connection details come from the command line, falling back to the MM_URL,
MM_PORT, MM_SCHEME, MM_TOKEN and MM_DEBUG environment variables (a .env file
is honoured).

Exit codes: 0 success, 1 configuration error, 2 processing error,
4 unreadable keyboard input, 99 team not found.
"""
import argparse
import sys
from typing import List

import requests

from mm_inactive_users.actions import ActionOutcome, DEACTIVATE, HARD_DELETE, apply_action, summarize
from mm_inactive_users.config_loader import (
    DEFAULT_AGE, DEFAULT_PORT, DEFAULT_SCHEME, ConfigError, Settings,
    env_flag, load_config, load_env_files, resolve_settings,
)
from mm_inactive_users.mm_client import MattermostClient
from mm_inactive_users.review import print_identified_users
from mm_inactive_users.teams import TeamNotFoundError, resolve_team_id
from mm_inactive_users.users import PageFetchError, collect_candidates
from mm_inactive_users.utils import setup_logging, get_logger, prompt_for_keypress
from mm_inactive_users.version import __version__

logger = get_logger(__name__)

LOW_AGE_WARNING_DAYS = 30

EXIT_CONFIG = 1
EXIT_PROCESSING = 2
EXIT_INPUT = 4
EXIT_TEAM_NOT_FOUND = 99

def build_parser() -> argparse.ArgumentParser:
    """Builds the parser. Single-dash long flags (-url) are accepted as well as --url."""
    parser = argparse.ArgumentParser(
        prog="mm-inactive-users",
        description="Identify, and optionally deactivate, Mattermost users who have been inactive for a given number of days.",
    )
    parser.add_argument("-url", "--url", default="", help="The URL of the Mattermost instance (without the HTTP scheme) [env: MM_URL]")
    parser.add_argument("-port", "--port", default="", help=f"The TCP port used by Mattermost [env: MM_PORT, default: {DEFAULT_PORT}]")
    parser.add_argument("-scheme", "--scheme", default="", help=f"The HTTP scheme to be used (http/https) [env: MM_SCHEME, default: {DEFAULT_SCHEME}]")
    parser.add_argument("-token", "--token", default="", help="The auth token used to connect to Mattermost [env: MM_TOKEN]")
    parser.add_argument("-team", "--team", default="", help="*Required*. The name of the Mattermost team")
    parser.add_argument("-age", "--age", type=int, default=DEFAULT_AGE, help=f"The number of days a user must have been inactive to be deactivated [default: {DEFAULT_AGE}]")
    parser.add_argument("-dry-run", "--dry-run", action="store_true", help="List the users that would be deactivated, without making any changes")
    parser.add_argument("-hard-delete", "--hard-delete", action="store_true", help="Permanently delete users instead of deactivating them")
    parser.add_argument("-include-deactivated", "--include-deactivated", action="store_true", help="Also list users that are already deactivated")
    parser.add_argument("-config", "--config", default=None, help="Optional YAML file with page_size, exclude_deactivated and deactivate_method")
    parser.add_argument("-debug", "--debug", action="store_true", help="Enable debug logging [env: MM_DEBUG]")
    parser.add_argument("-version", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser

def confirm_and_apply(client: MattermostClient, candidates, settings: Settings) -> List[ActionOutcome]:
    """Asks the operator what to do with the candidates until they say yes or no."""
    action = HARD_DELETE if settings.hard_delete else DEACTIVATE
    verb = "Permanently delete" if settings.hard_delete else "Deactivate"
    prompt = f"{len(candidates)} users identified as inactive.  {verb} them? (Y)es/(N)o/(L)ist: "

    while True:
        keypress = prompt_for_keypress(prompt, ["Y", "N", "L"])
        if keypress == "Y":
            logger.info("Deleting users" if settings.hard_delete else "Deactivating users")
            outcomes = apply_action(client, candidates, action, settings.deactivate_method)
            logger.info(summarize(outcomes, action))
            return outcomes
        if keypress == "N":
            logger.info("Aborting")
            return []
        print_identified_users(candidates)

def process_users(client: MattermostClient, settings: Settings) -> List[ActionOutcome]:
    """Resolves the team, gathers inactive users, then reports or acts on them."""
    logger.debug("Processing users")
    team_id = resolve_team_id(client, settings.team)

    candidates = collect_candidates(client, team_id, settings)
    logger.info("All users reviewed")

    if not candidates:
        logger.info(f"No users found that have been inactive for more than {settings.age} days")
        return []

    if settings.dry_run:
        logger.info("Running in dry-run mode.  Writing list of identified users to the terminal.")
        print_identified_users(candidates)
        return []

    return confirm_and_apply(client, candidates, settings)

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    load_env_files()
    setup_logging(args.debug or env_flag("MM_DEBUG"))

    try:
        config = load_config(args.config)
        settings = resolve_settings(args, config)
    except ConfigError as e:
        for error in e.errors:
            logger.error(error)
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_CONFIG)

    logger.debug(
        f"Parameters: url={settings.url} port={settings.port} scheme={settings.scheme} "
        f"team={settings.team} age={settings.age} page_size={settings.page_size}"
    )
    if settings.dry_run:
        logger.debug("Dry-run flag is set")
    if settings.age < LOW_AGE_WARNING_DAYS:
        logger.warning("The supplied age parameter is relatively low!  Please validate that the correct value was used prior to deactivating users!")

    client = MattermostClient.from_settings(settings)
    try:
        process_users(client, settings)
    except TeamNotFoundError:
        sys.exit(EXIT_TEAM_NOT_FOUND)
    except EOFError:
        logger.error("Error processing user input.  Aborting.")
        sys.exit(EXIT_INPUT)
    except (requests.exceptions.RequestException, PageFetchError, ValueError) as e:
        logger.error(f"Processing failed.  Error: {e}")
        sys.exit(EXIT_PROCESSING)

if __name__ == "__main__":
    main()
