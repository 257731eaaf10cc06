"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Battle settings loaded from environment variables (prefix ``BATTLE_``)."""

    model_config = SettingsConfigDict(
        env_prefix="BATTLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Combatant stats - the player is more fragile and has less EP
    player_max_hp: int = Field(default=180, gt=0)
    player_max_ep: int = Field(default=45, ge=0)
    opponent_max_hp: int = Field(default=240, gt=0)
    opponent_max_ep: int = Field(default=60, ge=0)

    # EP regeneration (player: end of every turn and on rest; opponent: on rest)
    player_ep_regen: int = Field(default=5, ge=0)
    opponent_ep_regen: int = Field(default=8, ge=0)

    # Damage
    player_damage_multiplier: float = Field(default=0.9, gt=0)
    opponent_damage_multiplier: float = Field(default=1.15, gt=0)
    crit_chance: float = Field(default=0.15, ge=0, le=1)
    crit_multiplier: float = Field(default=1.5, ge=1)
    strong_hit_percent: float = Field(default=0.30, gt=0)  # Share of target max HP

    # Turn order
    player_starts: bool = True

    # Opponent AI
    precision_low_hp_threshold: float = Field(default=35.0, ge=0, le=100)  # Player HP %

    # Presentation pacing before the opponent replies, in seconds (0 = immediate)
    reply_delay: float = Field(default=0.0, ge=0)

    # Randomness - set for reproducible battles
    rng_seed: int | None = None

    # Optional JSON action catalog replacing the built-in one
    catalog_path: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
