"""
Bracket Data Structures.

Teams, games, player brackets and the transient submission payload,
plus the result type returned by the bracket validator.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from .exceptions import SubmissionShapeError


REGIONS = ("East", "West", "South", "Midwest")


class SlotKey(NamedTuple):
    """Position of a game in the bracket: round (1 = first) and game number within the round."""
    round: int
    game_number: int

    def __str__(self) -> str:
        return f"R{self.round}G{self.game_number}"


@dataclass(frozen=True)
class Team:
    """Immutable tournament team reference data."""
    id: str
    name: str
    seed: Optional[int] = None          # 1-16
    region: Optional[str] = None        # East / West / South / Midwest
    logo_url: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["Team"]:
        """
        Coerce a payload value into a Team.

        Accepts a Team, a mapping with at least an ``id``, or a bare id
        (string or integer). Returns None for missing values.

        Raises:
            ValueError: if the value cannot identify a team
        """
        if value is None or value == "":
            return None
        if isinstance(value, Team):
            return value
        if isinstance(value, bool):
            raise ValueError(f"not a team reference: {value!r}")
        if isinstance(value, (str, int)):
            team_id = str(value)
            return cls(id=team_id, name=team_id)
        if isinstance(value, Mapping):
            team_id = value.get("id")
            if team_id is None or team_id == "" or isinstance(team_id, bool):
                raise ValueError("team is missing an id")
            seed = value.get("seed")
            if seed is not None:
                try:
                    seed = int(seed)
                except (TypeError, ValueError, OverflowError):
                    raise ValueError("team seed must be an integer")
            return cls(
                id=str(team_id),
                name=str(value.get("name") or team_id),
                seed=seed,
                region=value.get("region"),
                logo_url=value.get("logoUrl") or value.get("logo"),
            )
        raise ValueError(f"not a team reference: {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name, "seed": self.seed, "region": self.region}
        if self.logo_url:
            data["logoUrl"] = self.logo_url
        return data


def _team_id(team: Optional[Team]) -> Optional[str]:
    return team.id if team is not None else None


@dataclass
class Game:
    """A single game slot, either a player's pick or a real-world result."""
    round: int
    game_number: int
    id: Optional[str] = None
    team1: Optional[Team] = None
    team2: Optional[Team] = None
    winner: Optional[Team] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    date: Optional[str] = None
    completed: bool = False
    region: Optional[str] = None

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.round, self.game_number)

    @property
    def team_ids(self) -> List[str]:
        """Ids of the teams currently populating this game."""
        return [t.id for t in (self.team1, self.team2) if t is not None]

    @property
    def winner_id(self) -> Optional[str]:
        return _team_id(self.winner)

    def has_legal_winner(self) -> bool:
        """True when there is no winner or the winner is one of the two teams."""
        if self.winner is None:
            return True
        return self.winner.id in self.team_ids

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Game":
        """
        Build a game from a camelCase JSON payload.

        Raises:
            ValueError: if round/gameNumber are absent or not integers, or a
                team field cannot be read
        """
        if not isinstance(data, Mapping):
            raise ValueError("game entry must be an object")
        round_num = data.get("round")
        game_number = data.get("gameNumber", data.get("game_number"))
        if round_num is None or game_number is None:
            raise ValueError("missing round or gameNumber")
        if isinstance(round_num, bool) or isinstance(game_number, bool):
            raise ValueError("round and gameNumber must be integers")
        try:
            round_num = int(round_num)
            game_number = int(game_number)
        except (TypeError, ValueError, OverflowError):
            raise ValueError("round and gameNumber must be integers")

        return cls(
            id=data.get("id"),
            round=round_num,
            game_number=game_number,
            team1=Team.from_value(data.get("team1")),
            team2=Team.from_value(data.get("team2")),
            winner=Team.from_value(data.get("winner")),
            score1=data.get("score1"),
            score2=data.get("score2"),
            date=data.get("date"),
            completed=bool(data.get("completed", False)),
            region=data.get("region"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "round": self.round,
            "gameNumber": self.game_number,
            "region": self.region,
            "team1": self.team1.to_dict() if self.team1 else None,
            "team2": self.team2.to_dict() if self.team2 else None,
            "winner": self.winner.to_dict() if self.winner else None,
            "score1": self.score1,
            "score2": self.score2,
            "date": self.date,
            "completed": self.completed,
        }


@dataclass
class Bracket:
    """
    One player's stored bracket for a season.

    ``total_points`` is derived by the scoring job and is never touched by
    the validator.
    """
    id: str
    player_name: str
    player_email: str
    submitted_at: datetime
    games: List[Game] = field(default_factory=list)
    total_points: int = 0
    is_complete: bool = False
    is_public: bool = False
    tie_breaker: Optional[int] = None

    @property
    def picks(self) -> Dict[SlotKey, str]:
        """Map of slot to picked winner id (slots without a pick are omitted)."""
        return {g.slot: g.winner.id for g in self.games if g.winner is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Bracket":
        submitted_at = data.get("submittedAt")
        if isinstance(submitted_at, str):
            submitted_at = datetime.fromisoformat(submitted_at.replace("Z", "+00:00"))
        tie_breaker = data.get("tieBreaker")
        return cls(
            id=str(data["id"]),
            player_name=data.get("playerName", ""),
            player_email=data.get("playerEmail", ""),
            submitted_at=submitted_at,
            games=[Game.from_dict(g) for g in data.get("games", [])],
            total_points=int(data.get("totalPoints", 0)),
            is_complete=bool(data.get("isComplete", False)),
            is_public=bool(data.get("isPublic", False)),
            tie_breaker=int(tie_breaker) if tie_breaker is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "playerName": self.player_name,
            "playerEmail": self.player_email,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "games": [g.to_dict() for g in self.games],
            "totalPoints": self.total_points,
            "isComplete": self.is_complete,
            "isPublic": self.is_public,
            "tieBreaker": self.tie_breaker,
        }


@dataclass
class BracketSubmission:
    """
    Unvalidated payload a player posts.

    ``games`` holds Game objects or raw mappings; individual entries are
    only interpreted by the validator so that a bad entry becomes an error
    rather than an exception.
    """
    player_name: Any
    player_email: Any
    games: Sequence[Any]
    tie_breaker: Any = None

    @classmethod
    def from_dict(cls, payload: Any) -> "BracketSubmission":
        """
        Parse the top-level shape of a submission.

        Raises:
            SubmissionShapeError: payload is not an object or ``games`` is
                not a list
        """
        if isinstance(payload, BracketSubmission):
            return payload
        if not isinstance(payload, Mapping):
            raise SubmissionShapeError("payload must be an object")
        games = payload.get("games")
        if not isinstance(games, (list, tuple)):
            raise SubmissionShapeError("games must be a list")
        return cls(
            player_name=payload.get("playerName"),
            player_email=payload.get("playerEmail"),
            games=list(games),
            tie_breaker=payload.get("tieBreaker"),
        )


@dataclass
class BracketValidationResult:
    """Result of bracket validation. Warnings never affect validity."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
