"""
Named scenario generators.

A scenario generator takes ``(count, seed)`` and returns a Collection;
the same seed always gives the same collection.
"""

from collections.abc import Callable, Iterator, Mapping
from datetime import date
from typing import Any, Protocol

from fixturekit.generators.fake import FakeDataGenerator
from fixturekit.schemas.records import Collection, Record
from fixturekit.utils.logging import get_logger

log = get_logger(__name__)


class ScenarioGenerator(Protocol):
    """Callable producing ``count`` records for a scenario."""

    def __call__(self, count: int, seed: int | None = None) -> Collection: ...


RecordFactory = Callable[[FakeDataGenerator], Record]


def login_record(fake: FakeDataGenerator) -> Record:
    return {
        "username": fake.email(),
        "password": fake.password(),
        "remember_me": fake.boolean(),
    }


def registration_record(fake: FakeDataGenerator) -> Record:
    password = fake.password()
    return {
        **fake.person(),
        "username": fake.from_pattern("{lastName}{number:3}").lower(),
        "password": password,
        "confirm_password": password,
        "agree_to_terms": True,
    }


def payment_record(fake: FakeDataGenerator) -> Record:
    return {
        **fake.credit_card(),
        "billing_address": fake.address(),
        "amount": fake.number(10, 1000, decimals=2),
    }


def contact_record(fake: FakeDataGenerator) -> Record:
    return {
        "name": fake.full_name(),
        "email": fake.email(),
        "phone": fake.phone(),
        "subject": f"Test Subject {fake.integer(1, 100)}",
        "message": (
            f"This is a test message generated on {fake.reference_date.isoformat()}"
        ),
    }


BUILTIN_SCENARIOS: Mapping[str, RecordFactory] = {
    "login": login_record,
    "registration": registration_record,
    "payment": payment_record,
    "contact": contact_record,
}


def scenario_generator(
    factory: RecordFactory,
    reference_date: date | None = None,
) -> ScenarioGenerator:
    """
    Wrap a per-record factory into a ``(count, seed)`` generator.

    Args:
        factory: Builds one record from a FakeDataGenerator.
        reference_date: Fixed "today" for date-dependent fields.

    Returns:
        Scenario generator.
    """

    def generate(count: int, seed: int | None = None) -> Collection:
        if count < 0:
            msg = f"count must be >= 0, got {count}"
            raise ValueError(msg)
        fake = FakeDataGenerator(seed=seed, reference_date=reference_date)
        return Collection(tuple(factory(fake) for _ in range(count)))

    return generate


class GeneratorRegistry(Mapping[str, ScenarioGenerator]):
    """
    Mapping of scenario name to generator.

    Registration happens before the registry is handed to a provider;
    providers never register generators themselves.
    """

    def __init__(self, generators: Mapping[str, ScenarioGenerator] | None = None) -> None:
        self._generators: dict[str, ScenarioGenerator] = dict(generators or {})

    @classmethod
    def with_defaults(cls, reference_date: date | None = None) -> "GeneratorRegistry":
        """Registry holding the built-in login/registration/payment/contact scenarios."""
        return cls(
            {
                name: scenario_generator(factory, reference_date)
                for name, factory in BUILTIN_SCENARIOS.items()
            }
        )

    def register(self, name: str, generator: ScenarioGenerator) -> None:
        """
        Add or replace a scenario.

        Args:
            name: Scenario name used in descriptors and generate_data.
            generator: ``(count, seed) -> Collection`` callable.
        """
        if name in self._generators:
            log.warning("Replacing scenario generator", scenario=name)
        self._generators[name] = generator

    def register_factory(
        self,
        name: str,
        factory: RecordFactory,
        reference_date: date | None = None,
    ) -> None:
        """Register a per-record factory as a scenario."""
        self.register(name, scenario_generator(factory, reference_date))

    def __getitem__(self, name: str) -> ScenarioGenerator:
        return self._generators[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._generators)

    def __len__(self) -> int:
        return len(self._generators)

    def generate(self, name: str, count: int = 1, seed: int | None = None) -> Collection:
        """
        Run a scenario.

        Raises:
            KeyError: If the scenario is not registered.
        """
        if name not in self._generators:
            available = ", ".join(self._generators) or "none"
            msg = f"Unknown scenario '{name}'. Available: {available}"
            raise KeyError(msg)
        collection = self._generators[name](count, seed)
        log.debug("Generated scenario data", scenario=name, count=len(collection), seed=seed)
        return collection


def describe(collection: Collection) -> dict[str, Any]:
    """Field names and record count of a generated collection."""
    fields: list[str] = []
    for record in collection:
        fields.extend(k for k in record if k not in fields)
    return {"records": len(collection), "fields": fields}
