import os
from dataclasses import dataclass
from typing import Dict, Any, List, Optional
from urllib.parse import urlsplit

import yaml
from dotenv import load_dotenv

# .env may live in the working directory or at the root of the repo
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

DEFAULT_PORT = "8065"
DEFAULT_SCHEME = "http"
DEFAULT_AGE = 180
DEFAULT_PAGE_SIZE = 60
DEFAULT_CONFIG_FILE = "config.yaml"
DEACTIVATE_METHODS = ("active", "delete")

TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the configuration is incomplete or invalid."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class Settings:
    """Validated run configuration, passed explicitly to everything that needs it."""

    url: str
    token: str
    team: str
    port: str = DEFAULT_PORT
    scheme: str = DEFAULT_SCHEME
    age: int = DEFAULT_AGE
    dry_run: bool = False
    debug: bool = False
    hard_delete: bool = False
    exclude_deactivated: bool = True
    deactivate_method: str = "active"
    page_size: int = DEFAULT_PAGE_SIZE


def load_env_files():
    """Loads .env from the working directory, then from the repo root."""
    load_dotenv()
    load_dotenv(os.path.join(ROOT_DIR, ".env"))

def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads optional settings from a YAML file.

    Without an explicit path, a missing config.yaml is not an error.
    """
    path = config_path or DEFAULT_CONFIG_FILE
    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        if config_path:
            raise ConfigError([f"Configuration file not found: {config_path}"])
        return {}
    except yaml.YAMLError as e:
        raise ConfigError([f"Error parsing configuration file: {e}"])

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError([f"Configuration file must contain a mapping: {path}"])
    return config

def get_env_var(name: str, default: str = None) -> str:
    """Retrieves an environment variable."""
    return os.getenv(name, default)

def env_flag(name: str) -> bool:
    value = get_env_var(name, "")
    return value.strip().lower() in TRUTHY

def split_url(url: str, scheme: Optional[str], port: Optional[str]):
    """
    Accepts a bare host, host:port, or a full URL for the server address.

    Scheme and port carried in the address apply only where none was given explicitly.
    """
    url = url.strip().rstrip("/")
    has_scheme = "://" in url
    parsed = urlsplit(url if has_scheme else f"//{url}")
    try:
        url_port = parsed.port
    except ValueError:
        raise ConfigError([f"Invalid port in Mattermost URL: {url}"])

    if not has_scheme:
        if url_port is None:
            return url, scheme, port
        return parsed.hostname or "", scheme, port or str(url_port)

    scheme = scheme or parsed.scheme
    if not port:
        if url_port:
            port = str(url_port)
        else:
            port = {"https": "443", "http": "80"}.get(scheme)
    return parsed.hostname or "", scheme, port

def resolve_settings(args, config: Dict[str, Any]) -> Settings:
    """
    Builds Settings from parsed command line arguments, falling back to the
    environment for connection details and to the YAML config for tunables.
    Raises ConfigError listing every problem found.
    """
    url = args.url or get_env_var("MM_URL", "")
    port = args.port or get_env_var("MM_PORT", "")
    scheme = args.scheme or get_env_var("MM_SCHEME", "")
    token = args.token or get_env_var("MM_TOKEN", "")
    debug = args.debug or env_flag("MM_DEBUG")

    if url:
        url, scheme, port = split_url(url, scheme, port)
    scheme = scheme or DEFAULT_SCHEME
    port = port or DEFAULT_PORT

    errors = []
    if not url:
        errors.append("The Mattermost URL must be supplied either on the command line or via the MM_URL environment variable")
    if not token:
        errors.append("The Mattermost auth token must be supplied either on the command line or via the MM_TOKEN environment variable")
    if not args.team:
        errors.append("A Mattermost team name is required to use this utility.")

    page_size = config.get("page_size", DEFAULT_PAGE_SIZE)
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size < 1:
        errors.append(f"page_size must be a positive integer, got: {page_size!r}")

    deactivate_method = config.get("deactivate_method", "active")
    if deactivate_method not in DEACTIVATE_METHODS:
        errors.append(f"deactivate_method must be one of {', '.join(DEACTIVATE_METHODS)}, got: {deactivate_method!r}")

    exclude_deactivated = bool(config.get("exclude_deactivated", True))
    if args.include_deactivated:
        exclude_deactivated = False

    if errors:
        raise ConfigError(errors)

    return Settings(
        url=url,
        token=token,
        team=args.team,
        port=str(port),
        scheme=scheme,
        age=args.age,
        dry_run=args.dry_run,
        debug=debug,
        hard_delete=args.hard_delete,
        exclude_deactivated=exclude_deactivated,
        deactivate_method=deactivate_method,
        page_size=page_size,
    )
