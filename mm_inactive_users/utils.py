import logging
import shutil
import sys
from typing import List

DEFAULT_TERMINAL_HEIGHT = 24


class _BelowErrorFilter(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.ERROR


def setup_logging(debug: bool = False):
    """Configures logging for the application.

    Errors go to stderr, everything else to stdout.
    """
    level = logging.DEBUG if debug else logging.INFO

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowErrorFilter())
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[stdout_handler, stderr_handler]
    )

def get_logger(name: str):
    """Returns a logger instance with the given name."""
    return logging.getLogger(name)

def get_terminal_height() -> int:
    """Returns the terminal height in lines, or a fixed fallback when stdout is not a terminal."""
    if sys.stdout.isatty():
        return shutil.get_terminal_size((80, DEFAULT_TERMINAL_HEIGHT)).lines
    return DEFAULT_TERMINAL_HEIGHT

def prompt_for_keypress(prompt: str, allowed_keys: List[str]) -> str:
    """
    Prompts until one of the allowed keys is entered and returns it upper-cased.
    EOFError from input() propagates to the caller.
    """
    get_logger(__name__).debug("Waiting for keypress")
    allowed = [key.upper() for key in allowed_keys]
    while True:
        response = input(prompt).strip().upper()
        if response in allowed:
            return response
        print("Invalid input.  Please try again.")
