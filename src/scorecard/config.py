"""Configuration — scoring policy, report thresholds, seed data."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

ScoringPolicy = Literal["fixed_table", "parametric"]


class ScoreColourBands(BaseModel):
    green: float = Field(default=80.0, ge=0.0, le=100.0)
    blue: float = Field(default=60.0, ge=0.0, le=100.0)
    yellow: float = Field(default=40.0, ge=0.0, le=100.0)


class Settings(BaseSettings):
    scoring_policy: ScoringPolicy = "fixed_table"
    fallback_to_fixed_table: bool = True

    top_performer_threshold: float = 80.0
    needs_improvement_threshold: float = 60.0
    score_colour_bands: ScoreColourBands = ScoreColourBands()

    data_dir: Path = Path(__file__).resolve().parent.parent.parent / "data"
    seed_sample_suppliers: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
