"""
Immutable state update utilities using Pydantic model_copy.

Provides helper functions for common immutable record updates. These
functions never mutate the input record - they always return a new record
with the requested changes applied.
"""

from rummikub.logic.state import GameRecord, Player
from rummikub.logic.tiles import Tile

_PLAYER_FIELDS = set(Player.model_fields)


def update_player(
    record: GameRecord,
    seat: int,
    **updates: object,
) -> GameRecord:
    """
    Return new record with updated player at seat.

    Args:
        record: Current game record
        seat: Player seat to update
        **updates: Fields to update on the player

    Returns:
        New GameRecord with updated player

    Raises:
        ValueError: If seat is out of bounds or update fields are invalid

    """
    if not (0 <= seat < len(record.players)):
        raise ValueError(f"Invalid seat {seat}, expected 0-{len(record.players) - 1}")
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    players = list(record.players)
    players[seat] = record.players[seat].model_copy(update=updates)
    return record.model_copy(update={"players": tuple(players)})


def add_tile_to_player(
    record: GameRecord,
    seat: int,
    tile: Tile,
) -> GameRecord:
    """Return new record with tile appended to the player's hand."""
    player = record.players[seat]
    return update_player(record, seat, hand=(*player.hand, tile))


def advance_turn(record: GameRecord) -> GameRecord:
    """
    Return new record with the turn passed to the next seat.

    Every seat takes its turn in order; there are no skips.
    """
    new_seat = (record.current_player_index + 1) % len(record.players)
    return record.model_copy(
        update={
            "current_player_index": new_seat,
            "turn_count": record.turn_count + 1,
        },
    )


def bump_revision(record: GameRecord) -> GameRecord:
    """Return new record with the revision counter incremented."""
    return record.model_copy(update={"revision": record.revision + 1})
