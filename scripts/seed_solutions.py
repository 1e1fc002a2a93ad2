#!/usr/bin/env python3
"""
Seed Solutions
==============

Loads curated solutions from a YAML file into the solutions table.

Usage:
    python scripts/seed_solutions.py config/solutions.yaml
"""

import argparse
import asyncio
from pathlib import Path

from feedback_resolver.config import settings
from feedback_resolver.infrastructure.database import (
    init_database,
    close_database,
    create_tables,
    get_session_context,
)
from feedback_resolver.resolution.infrastructure.repositories import SQLAlchemySolutionRepository
from feedback_resolver.resolution.infrastructure.seeding import load_solution_seeds, seed_solutions
from feedback_resolver.shared.infrastructure.logging import setup_logging


async def main(path: Path) -> None:
    setup_logging(settings.log_level, settings.environment)

    seeds = load_solution_seeds(path)
    print(f"Loaded {len(seeds.solutions)} solutions from {path}")

    init_database()
    try:
        await create_tables()
        async with get_session_context() as session:
            stored = await seed_solutions(SQLAlchemySolutionRepository(session), seeds)
    finally:
        await close_database()

    for record in stored:
        print(f"  {record.normalized_key}: {record.solution_text[:60]}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the solutions table")
    parser.add_argument(
        "path",
        nargs="?",
        default=Path(__file__).parent.parent / "config" / "solutions.yaml",
        type=Path
    )
    asyncio.run(main(parser.parse_args().path))
