from matchday.models.final_match import FinalMatch
from matchday.models.live_match import LiveMatch
from matchday.models.match_block import MatchBlock
from matchday.models.match_override import MatchOverride
from matchday.models.match_template import MatchTemplate
from matchday.models.player import Player
from matchday.models.team import Team
from matchday.models.tournament import Tournament
from matchday.models.tournament_format import TournamentFormat
from matchday.models.tournament_group import TournamentGroup
from matchday.models.tournament_player import TournamentPlayer
from matchday.models.tournament_rule import TournamentRule
from matchday.models.tournament_team import TournamentTeam

__all__ = [
    "TournamentGroup",
    "TournamentFormat",
    "MatchTemplate",
    "Tournament",
    "TournamentRule",
    "Team",
    "Player",
    "TournamentTeam",
    "TournamentPlayer",
    "MatchBlock",
    "LiveMatch",
    "FinalMatch",
    "MatchOverride",
]
