"""
Module: engine.config

Purpose:
    Configuration dataclass for the query engine. Immutable
    configuration with validation on construction.

Key Classes:
    - EngineConfig: Engine-wide behaviour knobs

Dependencies:
    - dataclasses (std)

Used By:
    - engine.controller.QueryEngine
    - engine.loading.loader.ingest_records
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from interview_toolkit.core.models.questions import Difficulty


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the query engine (immutable).

    Attributes:
        progression_step: Questions of the current tier a session must be
            served before the default progression policy steps up a tier
        start_difficulty: Tier new sessions start from
        history_limit: Number of ended sessions kept in history
        history_path: JSON file the session history is persisted to;
            None keeps history in memory only
        strict_validation: Also validate records against the JSON schema
        warn_near_duplicates: Report repeated question texts at ingest
        default_seed: Seed used when a request carries none; None keeps
            lexical id order

    Invariants:
        - progression_step >= 1
        - history_limit >= 0

    Example:
        >>> config = EngineConfig(progression_step=5, default_seed=7)
    """

    progression_step: int = 3
    start_difficulty: Difficulty = Difficulty.BEGINNER
    history_limit: int = 50
    history_path: Optional[Path] = None
    strict_validation: bool = False
    warn_near_duplicates: bool = True
    default_seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.progression_step < 1:
            raise ValueError(f"progression_step must be positive: {self.progression_step}")
        if self.history_limit < 0:
            raise ValueError(f"history_limit must be non-negative: {self.history_limit}")
        if not isinstance(self.start_difficulty, Difficulty):
            raise ValueError(f"start_difficulty must be a Difficulty: {self.start_difficulty!r}")
