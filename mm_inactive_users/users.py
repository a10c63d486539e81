import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

import requests

from mm_inactive_users.config_loader import Settings
from mm_inactive_users.mm_client import MattermostClient
from mm_inactive_users.utils import get_logger

logger = get_logger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000
ADMIN_ROLE = "system_admin"


@dataclass(frozen=True)
class InactiveUser:
    user_id: str
    username: str
    email: str
    full_name: str
    last_activity_on: str
    days_since_last_activity: int


@dataclass
class Page:
    """A page that had users on it. records holds only those that passed the filter."""
    records: List[InactiveUser] = field(default_factory=list)
    fetched: int = 0


@dataclass
class Exhausted:
    """The server returned an empty page: there is nothing more to read."""


@dataclass
class Failed:
    error: Exception


PageResult = Union[Page, Exhausted, Failed]


class PageFetchError(Exception):
    """Raised when a page of users could not be read. Fatal to the whole run."""

    def __init__(self, page: int, error: Exception):
        super().__init__(f"Failed to fetch users page {page}: {error}")
        self.page = page
        self.error = error


def epoch_to_date(epoch_ms: int) -> str:
    """Converts epoch milliseconds into a DD-MM-YYYY date string (local time)."""
    return datetime.fromtimestamp(epoch_ms // 1000).strftime("%d-%m-%Y")

def days_ago(epoch_ms: int, now_ms: Optional[int] = None) -> int:
    """Whole days elapsed between epoch_ms and now."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return (now_ms - epoch_ms) // MS_PER_DAY

def is_admin(roles: str) -> bool:
    return ADMIN_ROLE in (roles or "").split()

def filter_user(user: Dict, settings: Settings, now_ms: Optional[int] = None) -> Optional[InactiveUser]:
    """
    Applies the candidate rules to one user object from the API.

    Returns an InactiveUser when the user should be offered for deactivation,
    None otherwise.
    """
    username = user.get("username", "")
    if is_admin(user.get("roles", "")):
        logger.info(f"Skipping {username}: user is an admin")
        return None

    if settings.exclude_deactivated and (user.get("delete_at") or 0) != 0:
        logger.debug(f"Skipping {username}: already deactivated")
        return None

    last_activity = user.get("last_activity_at") or 0
    age = days_ago(last_activity, now_ms)
    if age < settings.age:
        return None

    first_name = user.get("first_name", "")
    last_name = user.get("last_name", "")
    return InactiveUser(
        user_id=user.get("id", ""),
        username=username,
        email=user.get("email", ""),
        full_name=f"{first_name} {last_name}",
        last_activity_on=epoch_to_date(last_activity),
        days_since_last_activity=age,
    )

def fetch_users_page(client: MattermostClient, team_id: str, page: int, settings: Settings, now_ms: Optional[int] = None) -> PageResult:
    """Fetches and filters one page of team members."""
    logger.debug(f"Getting users page: {page}")
    try:
        users = client.get_team_users_page(team_id, page, settings.page_size)
    except (requests.exceptions.RequestException, ValueError) as e:
        return Failed(e)

    if not isinstance(users, list):
        return Failed(ValueError(f"Expected a list of users, got: {type(users).__name__}"))
    if not users:
        return Exhausted()

    records = []
    for user in users:
        candidate = filter_user(user, settings, now_ms)
        if candidate:
            records.append(candidate)
    return Page(records=records, fetched=len(users))

def collect_candidates(client: MattermostClient, team_id: str, settings: Settings, now_ms: Optional[int] = None) -> Dict[str, InactiveUser]:
    """
    Walks every page of team members and returns the inactive ones keyed by user ID.

    Raises PageFetchError on the first page that cannot be read.
    """
    candidates: Dict[str, InactiveUser] = {}
    page = 0
    while True:
        result = fetch_users_page(client, team_id, page, settings, now_ms)
        if isinstance(result, Failed):
            raise PageFetchError(page, result.error)
        if isinstance(result, Exhausted):
            logger.debug("No more users to process.")
            return candidates

        for user in result.records:
            candidates[user.user_id] = user
        logger.debug(f"Processed page: {page} ({result.fetched} users, {len(result.records)} inactive)")
        page += 1
