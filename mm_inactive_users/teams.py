from typing import Dict, List
from mm_inactive_users.mm_client import MattermostClient
from mm_inactive_users.utils import get_logger

logger = get_logger(__name__)

class TeamNotFoundError(Exception):
    """Raised when the requested team does not exist on the server."""

    def __init__(self, team: str, teams: List[Dict]):
        super().__init__(f"Team not found: {team}")
        self.team = team
        self.teams = teams

def print_teams(teams: List[Dict]):
    print("\nAvailable teams (display name / name)\n=====================================\n")
    for team in teams:
        print(f"{team.get('display_name', '')} ({team.get('name', '')})")
    print()

def resolve_team_id(client: MattermostClient, team_name: str) -> str:
    """
    Converts a team name into the team's internal ID.

    If the team does not exist the list of available teams is printed and
    TeamNotFoundError is raised, so the operator can rerun with a valid name.
    """
    logger.debug(f"Retrieving Team ID for team: {team_name}")
    team = client.get_team_by_name(team_name)
    if team is None:
        logger.error(f"Team '{team_name}' not found")
        teams = client.get_teams()
        print_teams(teams)
        raise TeamNotFoundError(team_name, teams)

    team_id = team.get("id")
    if not team_id:
        raise ValueError(f"Unable to retrieve team ID for team: {team_name}")
    return team_id
