"""Memory Match game configuration."""

import json
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field, model_validator


class MemoryMatchConfig(BaseModel):
    """Configuration for a Memory Match session.

    The defaults are the fixed rules of the game; overriding them is meant
    for tests and local experiments, not for players.
    """

    time_limit: int = Field(
        default=300,
        ge=1,
        description="Session time limit in seconds",
    )
    total_cards: int = Field(
        default=32,
        ge=2,
        description="Number of cards on the board",
    )
    total_pairs: int = Field(
        default=16,
        ge=1,
        description="Number of pairs on the board (total_cards / 2)",
    )
    grid_cols: int = Field(default=8, ge=1, description="Board columns")
    grid_rows: int = Field(default=4, ge=1, description="Board rows")
    card_flip_delay_ms: int = Field(
        default=700,
        ge=0,
        description="Grace period before two revealed cards are resolved",
    )
    total_images: int = Field(
        default=21,
        ge=1,
        description="Size of the image pool pairs are drawn from (ids 1..total_images)",
    )
    ranking_size: int = Field(
        default=10,
        ge=1,
        description="Number of entries kept in the ranking",
    )
    storage_key: str = Field(
        default="memoryGameRanking",
        min_length=1,
        description="Key the ranking is persisted under",
    )

    @model_validator(mode="after")
    def validate_layout(self) -> "MemoryMatchConfig":
        if self.total_cards != self.total_pairs * 2:
            raise ValueError(
                f"total_cards ({self.total_cards}) must be twice total_pairs ({self.total_pairs})"
            )
        if self.total_pairs > self.total_images:
            raise ValueError(
                f"total_pairs ({self.total_pairs}) exceeds the image pool ({self.total_images})"
            )
        return self

    @property
    def grid_size(self) -> int:
        return self.grid_cols * self.grid_rows

    @property
    def card_flip_delay(self) -> float:
        """Flip delay in seconds."""
        return self.card_flip_delay_ms / 1000.0

    class Config:
        extra = "forbid"


GAME_CONFIG = MemoryMatchConfig()


def load_config(filepath: Union[str, Path]) -> MemoryMatchConfig:
    """
    Load configuration from YAML or JSON file.

    Args:
        filepath: Path to config file

    Returns:
        MemoryMatchConfig instance
    """
    path = Path(filepath)
    content = path.read_text()

    if path.suffix in ['.yaml', '.yml']:
        try:
            import yaml
            data = yaml.safe_load(content)
        except ImportError:
            raise ImportError("PyYAML required for YAML config files: pip install pyyaml")
    else:
        data = json.loads(content)

    return MemoryMatchConfig(**(data or {}))
