import requests
from typing import Dict, Any, Optional, List
from urllib.parse import quote
from mm_inactive_users.utils import get_logger

logger = get_logger(__name__)

class MattermostClient:
    """Client for the parts of the Mattermost API used to find and retire inactive users."""

    def __init__(self, scheme: str, host: str, port: str, token: str):
        """Initializes the client with the server address and a bearer token."""
        self.scheme = scheme
        self.host = host
        self.port = str(port)
        self.token = token
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest", # Often needed for MM API
        }
        self.url = f"{self.scheme}://{self.host}:{self.port}"
        self.api_url = f"{self.url}/api/v4"

    @classmethod
    def from_settings(cls, settings) -> 'MattermostClient':
        return cls(settings.scheme, settings.url, settings.port, settings.token)

    def _request(self, method: str, endpoint: str, data: Any = None, params: Dict = None, expected_status_codes: List[int] = None) -> Any:
        """Internal method to handle requests with error handling."""
        url = f"{self.api_url}{endpoint}"
        logger.debug(f"{method} {url} params={params}")
        try:
            response = requests.request(
                method, url, headers=self.headers, json=data, params=params
            )
            response.raise_for_status()
            # Handle empty content (e.g. 204 No Content)
            if not response.content:
                return {}
            return response.json()
        except requests.exceptions.RequestException as e:
            is_expected = False
            if expected_status_codes and isinstance(e, requests.exceptions.HTTPError) and e.response is not None:
                if e.response.status_code in expected_status_codes:
                     is_expected = True

            if not is_expected:
                error_msg = f"API Request Failed: {method} {url} - {e}"
                if hasattr(e, 'response') and e.response is not None:
                    error_msg += f" | Response: {e.response.text}"
                logger.error(error_msg)
            else:
                logger.debug(f"Expected API Error: {method} {url} - {e}")
            raise

    # Team Management
    def get_team_by_name(self, name: str) -> Optional[Dict]:
        """Looks a team up by its URL name. Returns None when it does not exist."""
        try:
            return self._request("GET", f"/teams/name/{quote(name, safe='')}", expected_status_codes=[404])
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise

    def get_teams(self, per_page: int = 200) -> List[Dict]:
        """Returns every team visible to the token, walking all pages."""
        teams = []
        page = 0
        while True:
            batch = self._request("GET", "/teams", params={"page": page, "per_page": per_page})
            if not batch:
                return teams
            teams.extend(batch)
            page += 1

    # User Management
    def get_team_users_page(self, team_id: str, page: int, per_page: int) -> List[Dict]:
        """Fetches one page of team members, least recently active first."""
        params = {
            "in_team": team_id,
            "sort": "last_activity_at",
            "per_page": per_page,
            "page": page,
        }
        return self._request("GET", "/users", params=params)

    def deactivate_user(self, user_id: str) -> Dict:
        """Marks a user inactive via the state toggle endpoint."""
        logger.info(f"Deactivating user {user_id}")
        return self._request("PUT", f"/users/{user_id}/active", data={"active": False})

    def disable_user(self, user_id: str) -> Dict:
        """Disables a user (soft delete, can be reactivated)."""
        logger.info(f"Disabling user {user_id}")
        return self._request("DELETE", f"/users/{user_id}")

    def delete_user(self, user_id: str) -> Dict:
        """Permanently deletes a user and their data."""
        logger.info(f"Permanently deleting user {user_id}")
        return self._request("DELETE", f"/users/{user_id}", params={"permanent": "true"})
