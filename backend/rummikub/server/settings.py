"""Rummikub engine configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from rummikub.logic.settings import BASIS_POINTS, LAMPORTS_PER_SOL, GameSettings, validate_settings


class EngineSettings(BaseSettings):
    model_config = {"env_prefix": "RUMMIKUB_"}

    log_dir: str = Field(default="backend/logs/rummikub", min_length=1)
    treasury: str = Field(default="treasury", min_length=1)  # identity credited with the house fee
    entry_fee: int = Field(default=LAMPORTS_PER_SOL // 10, ge=0)
    house_fee_bps: int = Field(default=500, ge=0, le=BASIS_POINTS)
    max_games: int = Field(default=100, ge=1)

    def to_game_settings(self) -> GameSettings:
        """Build the per-game settings, keeping every rule default."""
        settings = GameSettings(entry_fee=self.entry_fee, house_fee_bps=self.house_fee_bps)
        validate_settings(settings)
        return settings
