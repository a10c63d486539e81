from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from mm_inactive_users.mm_client import MattermostClient
from mm_inactive_users.users import InactiveUser
from mm_inactive_users.utils import get_logger

logger = get_logger(__name__)

DEACTIVATE = "deactivate"
HARD_DELETE = "hard_delete"


@dataclass
class ActionOutcome:
    user: InactiveUser
    succeeded: bool
    error: Optional[Exception] = None


def _action_call(client: MattermostClient, action: str, deactivate_method: str):
    if action == HARD_DELETE:
        return client.delete_user
    if action != DEACTIVATE:
        raise ValueError(f"Unknown action: {action}")
    if deactivate_method == "delete":
        return client.disable_user
    return client.deactivate_user

def apply_action(client: MattermostClient, users: Dict[str, InactiveUser], action: str = DEACTIVATE, deactivate_method: str = "active") -> List[ActionOutcome]:
    """
    Deactivates or permanently deletes every candidate, one request at a time.

    A failure for one user is logged and recorded, then processing moves on to
    the next user. Nothing is retried or rolled back.
    """
    call = _action_call(client, action, deactivate_method)
    outcomes = []
    for user in users.values():
        try:
            call(user.user_id)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to {action.replace('_', ' ')} user: {user.username} ({e})")
            outcomes.append(ActionOutcome(user, False, e))
            continue
        outcomes.append(ActionOutcome(user, True))
    return outcomes

def summarize(outcomes: List[ActionOutcome], action: str = DEACTIVATE) -> str:
    succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
    failed = len(outcomes) - succeeded
    label = "Deletion" if action == HARD_DELETE else "Deactivation"
    return f"{label} complete: {succeeded} succeeded, {failed} failed"
