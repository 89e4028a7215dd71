"""Seeded synthetic fixture data for test scenarios."""

from fixturekit.generators.fake import FakeDataGenerator
from fixturekit.generators.scenarios import (
    BUILTIN_SCENARIOS,
    GeneratorRegistry,
    ScenarioGenerator,
    scenario_generator,
)

__all__ = [
    "BUILTIN_SCENARIOS",
    "FakeDataGenerator",
    "GeneratorRegistry",
    "ScenarioGenerator",
    "scenario_generator",
]
