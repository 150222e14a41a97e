"""
String enum definitions for Rummikub game concepts.
"""

from enum import Enum, StrEnum


class TileKind(str, Enum):
    """Variants a tile slot can hold."""

    NUMBER = "number"
    JOKER = "joker"
    EMPTY = "empty"  # unused hand slot in wire payloads, never playable


class TileColor(str, Enum):
    """Tile colors, in canonical deck order."""

    RED = "red"
    BLUE = "blue"
    BLACK = "black"
    ORANGE = "orange"


COLOR_ORDER: tuple[TileColor, ...] = tuple(TileColor)


class MeldKind(str, Enum):
    """Kinds of melds on the table."""

    SET = "set"
    RUN = "run"


class GameStatus(str, Enum):
    """Lifecycle phase of a game record. Transitions are strictly forward."""

    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class GameAction(str, Enum):
    """Actions dispatched from a hosting shell to the game service."""

    JOIN = "join"
    DRAW_TILE = "draw_tile"
    PLAY_TILES = "play_tiles"
    PLAY_WITH_JOKER_RETRIEVAL = "play_with_joker_retrieval"
    CLAIM_PRIZE = "claim_prize"


class GameErrorCode(StrEnum):
    """Stable error codes for rejected actions."""

    # lobby
    INVALID_PLAYER_COUNT = "invalid_player_count"
    GAME_ALREADY_STARTED = "game_already_started"
    GAME_FULL = "game_full"
    PLAYER_NOT_IN_GAME = "player_not_in_game"
    PLAYER_ALREADY_JOINED = "player_already_joined"

    # turn / phase
    GAME_NOT_IN_PROGRESS = "game_not_in_progress"
    NOT_PLAYER_TURN = "not_player_turn"
    NOT_ENOUGH_TILES = "not_enough_tiles"
    TOO_MANY_TILES = "too_many_tiles"

    # meld structure
    MELD_TOO_SMALL = "meld_too_small"
    EMPTY_TILE_IN_MELD = "empty_tile_in_meld"
    INVALID_TILE_INDEX = "invalid_tile_index"
    INVALID_MELD_INDEX = "invalid_meld_index"
    INVALID_TILE_POSITION = "invalid_tile_position"

    # set / run semantics
    INVALID_SET = "invalid_set"
    INVALID_RUN = "invalid_run"
    DUPLICATE_COLOR_IN_SET = "duplicate_color_in_set"
    SET_MUST_HAVE_REAL_TILE = "set_must_have_real_tile"
    TOO_MANY_JOKERS_IN_SET = "too_many_jokers_in_set"
    RUN_MUST_HAVE_REAL_TILE = "run_must_have_real_tile"
    DUPLICATE_NUMBER_IN_RUN = "duplicate_number_in_run"
    INVALID_JOKER_PLACEMENT = "invalid_joker_placement"
    RUN_CANNOT_WRAP = "run_cannot_wrap"

    # opening / turn economy
    INITIAL_MELD_TOO_LOW = "initial_meld_too_low"
    INITIAL_MELD_CANNOT_USE_TABLE = "initial_meld_cannot_use_table"
    MUST_PRESERVE_TABLE_TILES = "must_preserve_table_tiles"

    # joker retrieval
    CANNOT_RETRIEVE_JOKER_BEFORE_OPENING = "cannot_retrieve_joker_before_opening"
    NOT_A_JOKER = "not_a_joker"
    INVALID_JOKER_REPLACEMENT = "invalid_joker_replacement"
    MUST_PLAY_TILE_WITH_JOKER = "must_play_tile_with_joker"
    MUST_PLAY_RETRIEVED_JOKER = "must_play_retrieved_joker"

    # settlement
    GAME_NOT_FINISHED = "game_not_finished"
    NOT_THE_WINNER = "not_the_winner"
    PRIZE_ALREADY_CLAIMED = "prize_already_claimed"
    PAYOUT_FAILED = "payout_failed"
    INVALID_GAME_STATE = "invalid_game_state"

    # service boundary
    UNSUPPORTED_SETTINGS = "unsupported_settings"
    VALIDATION_ERROR = "validation_error"
    GAME_NOT_FOUND = "game_not_found"
    UNKNOWN_ACTION = "unknown_action"
