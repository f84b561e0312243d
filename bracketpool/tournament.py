"""
Tournament Configuration and Bracket Topology.

Static season parameters (regions, rounds, scoring) together with the
explicit feeder map that says which earlier game sends its winner into
each later-round slot. The validator and scoring code never infer the
topology from list order; they read it from ``TournamentConfig.feeders``.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .bracket import Game, SlotKey, Team
from .exceptions import ConfigurationError


# Standard in-region first-round layout: adjacent pairs meet in round 1.
# 1v16, 8v9, 5v12, 4v13, 6v11, 3v14, 7v10, 2v15
SEED_ORDER = [1, 16, 8, 9, 5, 12, 4, 13, 6, 11, 3, 14, 7, 10, 2, 15]

DEFAULT_TIE_BREAKER_RANGE = (50, 500)


@dataclass(frozen=True)
class RoundConfig:
    """One round of the tournament."""
    name: str                    # "Sweet 16"
    games_per_region: int        # 0 for national rounds (Final Four, Championship)
    points: int                  # points for a correct pick in this round


@dataclass
class TournamentConfig:
    """
    Season parameters for a single-elimination tournament.

    ``feeders`` maps every slot with round > 1 to the pair of previous-round
    slots whose winners become its team1 and team2. ``first_round``
    optionally pins the seeded round-1 matchups (team ids).
    """
    regions: List[str]
    rounds: List[RoundConfig]
    total_teams: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    feeders: Dict[SlotKey, Tuple[SlotKey, SlotKey]] = field(default_factory=dict)
    first_round: Optional[Dict[SlotKey, Tuple[str, str]]] = None
    tie_breaker_required: bool = False
    tie_breaker_range: Optional[Tuple[int, int]] = DEFAULT_TIE_BREAKER_RANGE

    # -------------------------------------------------------------------------
    # Shape
    # -------------------------------------------------------------------------

    @property
    def num_rounds(self) -> int:
        return len(self.rounds)

    def games_in_round(self, round_num: int) -> int:
        """Number of games in a round (1-based round number)."""
        if round_num < 1 or round_num > self.num_rounds:
            raise ConfigurationError(f"Round {round_num} is not part of this tournament")
        games = self.total_teams // 2
        for index in range(round_num):
            per_region = self.rounds[index].games_per_region
            if per_region > 0:
                games = per_region * len(self.regions)
            elif index > 0:
                games = games // 2
        return games

    @property
    def slots(self) -> List[SlotKey]:
        """Every game slot, round 1 first, in game-number order."""
        return [
            SlotKey(r, n)
            for r in range(1, self.num_rounds + 1)
            for n in range(1, self.games_in_round(r) + 1)
        ]

    def round_name(self, round_num: int) -> str:
        if 1 <= round_num <= self.num_rounds:
            return self.rounds[round_num - 1].name
        return f"Round {round_num}"

    def round_points(self, round_num: int) -> int:
        if 1 <= round_num <= self.num_rounds:
            return self.rounds[round_num - 1].points
        return 0

    def region_of(self, slot: SlotKey) -> Optional[str]:
        """Region a slot belongs to, or None for national rounds."""
        if not 1 <= slot.round <= self.num_rounds:
            return None
        per_region = self.rounds[slot.round - 1].games_per_region
        if per_region <= 0:
            return None
        index = (slot.game_number - 1) // per_region
        if 0 <= index < len(self.regions):
            return self.regions[index]
        return None

    def describe(self, slot: SlotKey) -> str:
        """Human-readable game label used in validation messages."""
        label = f"{self.round_name(slot.round)} game {slot.game_number}"
        region = self.region_of(slot)
        if region:
            label += f" ({region})"
        return label

    # -------------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------------

    def check(self) -> "TournamentConfig":
        """
        Verify the configuration is internally consistent.

        Round 1 must hold total_teams / 2 games, every later round half of
        the one before, and the final round exactly one game. Regional rounds
        must hold games_per_region x len(regions) games, and every later-round
        slot must have a feeder pair in the previous round.

        Returns:
            self, so the call can be chained

        Raises:
            ConfigurationError: on any inconsistency
        """
        if not self.regions:
            raise ConfigurationError("Tournament config has no regions")
        if not self.rounds:
            raise ConfigurationError("Tournament config has no rounds")
        if self.total_teams < 2 or self.total_teams % 2:
            raise ConfigurationError(f"total_teams must be an even number >= 2, got {self.total_teams}")

        expected = self.total_teams // 2
        seen_national = False
        for index, rnd in enumerate(self.rounds, start=1):
            if rnd.games_per_region < 0:
                raise ConfigurationError(f"{rnd.name}: games_per_region cannot be negative")
            if rnd.games_per_region > 0:
                if seen_national:
                    raise ConfigurationError(f"{rnd.name}: regional round follows a national round")
                actual = rnd.games_per_region * len(self.regions)
            else:
                seen_national = True
                actual = expected
            if actual != expected:
                raise ConfigurationError(
                    f"{rnd.name}: expected {expected} games, config implies {actual}"
                )
            if index < self.num_rounds:
                if expected % 2:
                    raise ConfigurationError(f"{rnd.name}: {expected} games cannot be halved")
                expected //= 2

        if self.games_in_round(self.num_rounds) != 1:
            raise ConfigurationError("The final round must contain exactly one game")

        self._check_feeders()

        if self.first_round is not None:
            round_one = set(s for s in self.slots if s.round == 1)
            for slot in self.first_round:
                if slot not in round_one:
                    raise ConfigurationError(f"Seeded matchup for {slot} is not a first-round game")

        if self.tie_breaker_range is not None:
            low, high = self.tie_breaker_range
            if low > high:
                raise ConfigurationError(f"Tie breaker range is empty: {low}..{high}")

        return self

    def _check_feeders(self) -> None:
        slots = set(self.slots)
        used = set()
        for slot in self.slots:
            if slot.round == 1:
                continue
            pair = self.feeders.get(slot)
            if pair is None:
                raise ConfigurationError(f"No feeder games defined for {slot}")
            for feeder in pair:
                if feeder not in slots or feeder.round != slot.round - 1:
                    raise ConfigurationError(f"{slot} is fed by {feeder}, which is not a previous-round game")
                if feeder in used:
                    raise ConfigurationError(f"{feeder} feeds more than one game")
                used.add(feeder)
        extra = set(self.feeders) - slots
        if extra:
            raise ConfigurationError(f"Feeder entries for unknown games: {sorted(extra)}")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def standard(
        cls,
        regions: Iterable[str],
        rounds: Iterable[RoundConfig],
        total_teams: int,
        **kwargs,
    ) -> "TournamentConfig":
        """
        Build a config with the conventional topology.

        Game n of round r is fed by games 2n-1 and 2n of round r-1. With
        regions numbered contiguously this keeps regional games inside
        their region and pairs regions[0] with regions[1], regions[2] with
        regions[3] in the first national round.
        """
        config = cls(regions=list(regions), rounds=list(rounds), total_teams=total_teams, **kwargs)
        config.feeders = standard_feeders(config)
        return config.check()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TournamentConfig":
        """
        Build from a camelCase JSON document.

        ``feeders`` is optional; when given it is a list of
        ``{"game": [round, n], "from": [[round, n], [round, n]]}`` entries,
        otherwise the standard topology is generated.

        Raises:
            ConfigurationError: missing fields or inconsistent values
        """
        try:
            rounds = [
                RoundConfig(
                    name=r["name"],
                    games_per_region=int(r["gamesPerRegion"]),
                    points=int(r["points"]),
                )
                for r in data["rounds"]
            ]
            kwargs = dict(
                regions=list(data["regions"]),
                rounds=rounds,
                total_teams=int(data["totalTeams"]),
                start_date=_parse_datetime(data.get("startDate")),
                end_date=_parse_datetime(data.get("endDate")),
                tie_breaker_required=bool(data.get("tieBreakerRequired", False)),
            )
            if "tieBreakerRange" in data:
                tb_range = data["tieBreakerRange"]
                kwargs["tie_breaker_range"] = (int(tb_range[0]), int(tb_range[1])) if tb_range else None
            if data.get("firstRound"):
                kwargs["first_round"] = {
                    SlotKey(1, int(entry["gameNumber"])): (str(entry["team1"]), str(entry["team2"]))
                    for entry in data["firstRound"]
                }
            feeders = data.get("feeders")
            if feeders:
                kwargs["feeders"] = {
                    SlotKey(*entry["game"]): (SlotKey(*entry["from"][0]), SlotKey(*entry["from"][1]))
                    for entry in feeders
                }
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise ConfigurationError(f"Invalid tournament config: {e}") from e

        if feeders:
            return cls(**kwargs).check()
        regions = kwargs.pop("regions")
        rounds = kwargs.pop("rounds")
        total_teams = kwargs.pop("total_teams")
        return cls.standard(regions, rounds, total_teams, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions": list(self.regions),
            "rounds": [
                {"name": r.name, "gamesPerRegion": r.games_per_region, "points": r.points}
                for r in self.rounds
            ],
            "totalTeams": self.total_teams,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "feeders": [
                {"game": list(slot), "from": [list(pair[0]), list(pair[1])]}
                for slot, pair in sorted(self.feeders.items())
            ],
            "tieBreakerRequired": self.tie_breaker_required,
            "tieBreakerRange": list(self.tie_breaker_range) if self.tie_breaker_range else None,
        }


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def standard_feeders(config: TournamentConfig) -> Dict[SlotKey, Tuple[SlotKey, SlotKey]]:
    """Feeder map where game n of round r takes the winners of games 2n-1 and 2n."""
    feeders = {}
    for round_num in range(2, config.num_rounds + 1):
        for n in range(1, config.games_in_round(round_num) + 1):
            feeders[SlotKey(round_num, n)] = (
                SlotKey(round_num - 1, 2 * n - 1),
                SlotKey(round_num - 1, 2 * n),
            )
    return feeders


def bracket_seed_order(region_size: int) -> List[int]:
    """
    Seed order down one region's first-round column.

    The NCAA layout is used for 16-team regions; other power-of-two sizes
    use the same fold (best seed meets worst seed, halves kept apart).
    """
    if region_size == len(SEED_ORDER):
        return list(SEED_ORDER)
    if region_size < 2 or region_size & (region_size - 1):
        raise ConfigurationError(f"Region size must be a power of two, got {region_size}")
    order = [1, 2]
    while len(order) < region_size:
        size = len(order) * 2
        order = [s for seed in order for s in (seed, size + 1 - seed)]
    return order


def seed_first_round(teams: Iterable[Team], config: TournamentConfig) -> Dict[SlotKey, Tuple[str, str]]:
    """
    Pair teams into first-round games by region and seed.

    Args:
        teams: every team in the field, with region and seed set
        config: tournament whose first round is regional

    Returns:
        Map of round-1 slot to (team1_id, team2_id), suitable for
        ``TournamentConfig.first_round``

    Raises:
        ConfigurationError: a region is missing a seed or has duplicates
    """
    per_region = config.rounds[0].games_per_region
    if per_region <= 0:
        raise ConfigurationError("Seeding requires a regional first round")

    by_region: Dict[str, Dict[int, Team]] = {region: {} for region in config.regions}
    for team in teams:
        if team.region not in by_region:
            raise ConfigurationError(f"Team {team.id} has unknown region {team.region!r}")
        if team.seed in by_region[team.region]:
            raise ConfigurationError(f"Duplicate seed {team.seed} in {team.region}")
        by_region[team.region][team.seed] = team

    matchups = {}
    order = bracket_seed_order(per_region * 2)
    for region_index, region in enumerate(config.regions):
        seeds = by_region[region]
        missing = [s for s in order if s not in seeds]
        if missing:
            raise ConfigurationError(f"{region} is missing seeds {missing}")
        for i in range(per_region):
            top, bottom = seeds[order[2 * i]], seeds[order[2 * i + 1]]
            matchups[SlotKey(1, region_index * per_region + i + 1)] = (top.id, bottom.id)
    return matchups


def generate_bracket_structure(config: TournamentConfig) -> List[Game]:
    """Empty game shells for every slot, ids assigned, nothing completed."""
    return [
        Game(
            id=f"game-{slot.round}-{slot.game_number}",
            round=slot.round,
            game_number=slot.game_number,
            region=config.region_of(slot),
            completed=False,
        )
        for slot in config.slots
    ]


DEFAULT_ROUNDS = [
    RoundConfig("First Round", 8, 1),
    RoundConfig("Second Round", 4, 2),
    RoundConfig("Sweet 16", 2, 4),
    RoundConfig("Elite 8", 1, 8),
    RoundConfig("Final Four", 0, 16),
    RoundConfig("Championship", 0, 32),
]


def default_tournament_config(tie_breaker_required: bool = True) -> TournamentConfig:
    """The 64-team, four-region season."""
    return TournamentConfig.standard(
        regions=["East", "West", "South", "Midwest"],
        rounds=DEFAULT_ROUNDS,
        total_teams=64,
        start_date=datetime.fromisoformat("2026-03-18T12:00:00-05:00"),
        end_date=datetime.fromisoformat("2026-04-07T21:00:00-05:00"),
        tie_breaker_required=tie_breaker_required,
    )
