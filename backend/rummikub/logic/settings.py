"""Centralized game settings for Rummikub - deck shape, hand limits and contest economics."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from rummikub.logic.enums import COLOR_ORDER
from rummikub.logic.exceptions import UnsupportedSettingsError

BASIS_POINTS = 10_000
MAX_RANK = 13
MIN_RUN_RANK = 3  # smallest max_rank that still allows a 3-tile run
LAMPORTS_PER_SOL = 1_000_000_000


class GameSettings(BaseModel):
    """
    Configuration for a single game record.

    Defaults describe the canonical 106-tile game with a 0.1 SOL entry fee
    and a 5% house fee.
    """

    model_config = ConfigDict(frozen=True)

    # --- Deck ---
    num_colors: int = 4
    max_rank: int = 13
    copies_per_tile: int = 2
    num_jokers: int = 2

    # --- Seats ---
    min_players: int = 2
    max_players: int = 4

    # --- Hands ---
    initial_hand_size: int = 14
    hand_capacity: int = 21

    # --- Scoring ---
    min_initial_meld: int = 30
    joker_penalty: int = 30  # value of a joker left in hand at game end

    # --- Escrow ---
    entry_fee: int = LAMPORTS_PER_SOL // 10
    house_fee_bps: int = 500

    @property
    def deck_size(self) -> int:
        return self.num_colors * self.max_rank * self.copies_per_tile + self.num_jokers

    @property
    def max_set_size(self) -> int:
        # one slot per color
        return self.num_colors


def validate_settings(settings: GameSettings) -> None:
    """Validate that all settings values are supported by the engine.

    Raises UnsupportedSettingsError listing every unsupported value.
    """
    errors: list[str] = []

    if not 1 <= settings.num_colors <= len(COLOR_ORDER):
        errors.append(f"num_colors={settings.num_colors} is not supported (1-{len(COLOR_ORDER)})")

    if not MIN_RUN_RANK <= settings.max_rank <= MAX_RANK:
        errors.append(f"max_rank={settings.max_rank} is not supported ({MIN_RUN_RANK}-{MAX_RANK})")

    if settings.copies_per_tile < 1 or settings.num_jokers < 0:
        errors.append("deck must contain at least one copy of every number tile")

    if not 2 <= settings.min_players <= settings.max_players <= len(COLOR_ORDER):  # noqa: PLR2004
        errors.append(
            f"player range {settings.min_players}-{settings.max_players} is not supported (2-{len(COLOR_ORDER)})"
        )

    if settings.initial_hand_size > settings.hand_capacity:
        errors.append(
            f"initial_hand_size={settings.initial_hand_size} exceeds hand_capacity={settings.hand_capacity}"
        )

    if settings.initial_hand_size * settings.max_players > settings.deck_size:
        errors.append(
            f"deck of {settings.deck_size} tiles cannot deal {settings.initial_hand_size} tiles "
            f"to {settings.max_players} players"
        )

    if settings.entry_fee < 0:
        errors.append(f"entry_fee={settings.entry_fee} must not be negative")

    if not 0 <= settings.house_fee_bps <= BASIS_POINTS:
        errors.append(f"house_fee_bps={settings.house_fee_bps} must be within 0-{BASIS_POINTS}")

    if errors:
        raise UnsupportedSettingsError("; ".join(errors))
