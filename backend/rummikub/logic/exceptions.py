"""Typed domain exceptions for game rule violations.

Every rejected action raises a subclass of GameRuleError carrying a stable
GameErrorCode. The subclass names the taxonomy group; the code names the exact
failure. The service boundary (rummikub_service.py) catches GameRuleError and
converts it into an ErrorEvent, so callers branch on ``code`` and never on
message text.
"""

from rummikub.logic.enums import GameErrorCode

_DEFAULT_MESSAGES: dict[GameErrorCode, str] = {
    GameErrorCode.INVALID_PLAYER_COUNT: "player count must be between 2 and 4",
    GameErrorCode.GAME_ALREADY_STARTED: "game has already started",
    GameErrorCode.GAME_FULL: "game is full",
    GameErrorCode.PLAYER_NOT_IN_GAME: "player not in game",
    GameErrorCode.PLAYER_ALREADY_JOINED: "player has already joined this game",
    GameErrorCode.GAME_NOT_IN_PROGRESS: "game is not in progress",
    GameErrorCode.NOT_PLAYER_TURN: "not your turn",
    GameErrorCode.NOT_ENOUGH_TILES: "not enough tiles remaining",
    GameErrorCode.TOO_MANY_TILES: "player has too many tiles",
    GameErrorCode.MELD_TOO_SMALL: "meld must have at least 3 tiles",
    GameErrorCode.EMPTY_TILE_IN_MELD: "empty tile in meld",
    GameErrorCode.INVALID_TILE_INDEX: "invalid tile index",
    GameErrorCode.INVALID_MELD_INDEX: "invalid meld index",
    GameErrorCode.INVALID_TILE_POSITION: "invalid tile position in meld",
    GameErrorCode.INVALID_SET: "invalid set",
    GameErrorCode.INVALID_RUN: "invalid run",
    GameErrorCode.DUPLICATE_COLOR_IN_SET: "duplicate color in set",
    GameErrorCode.SET_MUST_HAVE_REAL_TILE: "set must have at least one real tile to establish number",
    GameErrorCode.TOO_MANY_JOKERS_IN_SET: "too many jokers in set",
    GameErrorCode.RUN_MUST_HAVE_REAL_TILE: "run must have at least one real tile to establish color",
    GameErrorCode.DUPLICATE_NUMBER_IN_RUN: "duplicate number in run",
    GameErrorCode.INVALID_JOKER_PLACEMENT: "jokers must fill exactly the gaps in the sequence",
    GameErrorCode.RUN_CANNOT_WRAP: "run cannot wrap around (1 is always low, cannot follow 13)",
    GameErrorCode.INITIAL_MELD_TOO_LOW: "initial meld is below the minimum point value",
    GameErrorCode.INITIAL_MELD_CANNOT_USE_TABLE: "initial meld must use only hand tiles",
    GameErrorCode.MUST_PRESERVE_TABLE_TILES: "table tiles must equal previous table plus played tiles",
    GameErrorCode.CANNOT_RETRIEVE_JOKER_BEFORE_OPENING: "cannot retrieve joker before completing initial meld",
    GameErrorCode.NOT_A_JOKER: "tile at this position is not a joker",
    GameErrorCode.INVALID_JOKER_REPLACEMENT: "replacement tile does not match the joker's value",
    GameErrorCode.MUST_PLAY_TILE_WITH_JOKER: "must play at least one hand tile when retrieving a joker",
    GameErrorCode.MUST_PLAY_RETRIEVED_JOKER: "retrieved joker must be played in the same turn",
    GameErrorCode.GAME_NOT_FINISHED: "game not finished yet",
    GameErrorCode.NOT_THE_WINNER: "not the winner",
    GameErrorCode.PRIZE_ALREADY_CLAIMED: "prize already claimed",
    GameErrorCode.PAYOUT_FAILED: "ledger rejected the payout",
    GameErrorCode.INVALID_GAME_STATE: "invalid game state",
}


class GameRuleError(Exception):
    """Base exception for game rule violations.

    Raised by domain logic (game.py, play.py, melds.py, settlement.py) when an
    action violates the rules. The record passed in is never modified, so a
    caught GameRuleError always means the action had zero effect.
    """

    def __init__(self, code: GameErrorCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or _DEFAULT_MESSAGES.get(code, code.value)
        super().__init__(f"{code.value}: {self.message}")


class LobbyError(GameRuleError):
    """Join/seat errors (player count, full game, unknown player)."""


class TurnError(GameRuleError):
    """Phase and turn-order errors, plus pool and hand capacity limits."""


class MeldStructureError(GameRuleError):
    """Malformed meld or out-of-range index in a play."""


class InvalidMeldError(GameRuleError):
    """Meld is structurally sound but not a legal set or run."""


class OpeningError(GameRuleError):
    """Initial meld or table preservation violated."""


class JokerRetrievalError(GameRuleError):
    """Joker retrieval conditions not met."""


class SettlementError(GameRuleError):
    """Prize claim rejected."""


class PayoutError(SettlementError):
    """The ledger failed to execute a credit.

    ``winner_paid`` is True when the winner's credit went through and only
    the house credit failed.
    """

    def __init__(self, message: str, *, winner_paid: bool) -> None:
        super().__init__(GameErrorCode.PAYOUT_FAILED, message)
        self.winner_paid = winner_paid


class UnsupportedSettingsError(GameRuleError):
    """Game settings describe a game the engine cannot run."""

    def __init__(self, message: str) -> None:
        super().__init__(GameErrorCode.UNSUPPORTED_SETTINGS, message)
