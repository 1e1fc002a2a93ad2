"""
Solution Seeding
=================

Loads curated solutions from a YAML file into the solutions table.
"""

from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, field_validator

from feedback_resolver.config import VALID_NORMALIZED_KEYS
from feedback_resolver.resolution.domain import SolutionRecord
from feedback_resolver.resolution.infrastructure.repositories import SQLAlchemySolutionRepository
from feedback_resolver.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SolutionSeed(BaseModel):
    normalized_key: str
    solution_text: str = Field(..., min_length=1)

    @field_validator("normalized_key")
    @classmethod
    def validate_normalized_key(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_NORMALIZED_KEYS:
            raise ValueError(f"normalized_key must be one of {VALID_NORMALIZED_KEYS}")
        return v


class SolutionSeedFile(BaseModel):
    """Contents of a solutions YAML file."""
    solutions: List[SolutionSeed] = Field(default_factory=list)


def load_solution_seeds(path: Path) -> SolutionSeedFile:
    """Load and validate a solutions YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return SolutionSeedFile(**data)


async def seed_solutions(
    repository: SQLAlchemySolutionRepository,
    seeds: SolutionSeedFile
) -> List[SolutionRecord]:
    """Upsert every seed; later entries for the same key win."""
    stored = []
    for seed in seeds.solutions:
        stored.append(await repository.upsert(seed.normalized_key, seed.solution_text))
        logger.info("Seeded solution", extra={"normalized_key": seed.normalized_key})
    return stored
