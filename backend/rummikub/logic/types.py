"""
Pydantic models for data crossing component boundaries.

Contains typed action payloads submitted by the hosting shell, settlement
payouts, final standings, and the per-player game view.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rummikub.logic.enums import GameStatus
from rummikub.logic.melds import Meld
from rummikub.logic.rng import validate_seed_hex
from rummikub.logic.tiles import Tile


class JokerRetrieval(BaseModel):
    """Swap the joker at ``table_melds[meld_index][joker_position]`` for a hand tile."""

    model_config = ConfigDict(frozen=True)

    meld_index: int
    joker_position: int
    replacement_index: int  # index into the pre-turn hand


class PlayTilesActionData(BaseModel):
    """Data for a plain play: hand tiles out, full proposed table in."""

    tiles_from_hand: list[int]
    table_melds: list[Meld]


class PlayWithJokerRetrievalActionData(BaseModel):
    """Data for a play that first retrieves one or more table jokers."""

    retrievals: list[JokerRetrieval] = Field(min_length=1)
    tiles_from_hand: list[int]
    table_melds: list[Meld]


class JoinActionData(BaseModel):
    """Optional randomness for the shuffle triggered by the final join."""

    seed: str | None = None

    @field_validator("seed")
    @classmethod
    def _check_seed(cls, value: str | None) -> str | None:
        if value is not None:
            validate_seed_hex(value)
        return value


class Payout(BaseModel):
    """Credit instructions produced by prize settlement."""

    model_config = ConfigDict(frozen=True)

    game_id: str
    winner: str
    winner_amount: int
    house: str
    house_amount: int

    @property
    def total(self) -> int:
        return self.winner_amount + self.house_amount


class PlayerStanding(BaseModel):
    """Player standing in final game results."""

    seat: int
    identity: str
    score: int
    tiles_left: int


class PlayerView(BaseModel):
    """Player-visible information about a seat; ``tiles`` only for the viewer."""

    seat: int
    identity: str
    tile_count: int
    has_opened: bool
    score: int
    tiles: list[Tile] | None = None


class GameView(BaseModel):
    """Complete game view for a specific player."""

    game_id: str
    status: GameStatus
    current_player_index: int
    max_players: int
    players: list[PlayerView]
    table_melds: list[Meld]
    pool_count: int
    prize_pool: int
    winner: str | None = None
    prize_claimed: bool = False
