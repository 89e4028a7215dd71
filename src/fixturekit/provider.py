"""
DataProvider: the single entry point for test code.

Composes SourceLoader, SchemaValidator, Cache and QueryEngine. Loads are
cached by descriptor key and concurrent identical loads share one read.
"""

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fixturekit.config.settings import ProviderConfig, SizeUnit
from fixturekit.errors import FixtureError, SourceNotFoundError, UnsupportedFormatError
from fixturekit.generators.scenarios import GeneratorRegistry
from fixturekit.ingestion.loader import SourceLoader, Transformations
from fixturekit.ingestion.parsers import get_dumper
from fixturekit.ingestion.readers import Reader, Writer, file_reader, file_writer
from fixturekit.query.engine import QueryEngine
from fixturekit.query.spec import QuerySpec
from fixturekit.schemas.records import Collection, Descriptor, Record, SourceFormat
from fixturekit.schemas.registry import RuleRegistry
from fixturekit.schemas.rules import ValidationResult, ValidationRule
from fixturekit.utils.cache import Cache, CacheStats, monotonic_ms
from fixturekit.utils.logging import get_logger, log_context
from fixturekit.validation.core import SchemaValidator

log = get_logger(__name__)

DescriptorLike = Descriptor | Mapping[str, Any]


@dataclass
class GeneratedData:
    """Generated records with one validation result per record.

    ``results`` is empty when no rule applied.
    """

    collection: Collection
    results: list[ValidationResult] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.results)


def _consume_exception(task: asyncio.Task[Any]) -> None:
    # Every waiter may have gone away; mark the failure as retrieved.
    if not task.cancelled():
        task.exception()


class DataProvider:
    """
    Loads, caches, validates and queries fixture collections.

    Example:
        provider = DataProvider(load_config(Path("fixtures.yaml")))
        users = await provider.load_source({"path": "users", "format": "json"})
        admins = provider.query(users, {"where": {"role": "admin"}})
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        reader: Reader | None = None,
        writer: Writer | None = None,
        generators: GeneratorRegistry | None = None,
        rules: RuleRegistry | Mapping[str, ValidationRule | Mapping[str, Any]] | None = None,
        cache: Cache[Collection] | None = None,
        transformations: Transformations | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the provider.

        Registries are fixed after construction.

        Args:
            config: Provider configuration (defaults apply when None).
            reader: Async text reader; defaults to the file system.
            writer: Async text writer used by save_data; defaults to the
                file system.
            generators: Scenario registry; defaults to the built-ins.
            rules: Rule registry, or extra rules merged over the built-ins
                and the configured rules.
            cache: Cache instance; built from ``config.cache`` when None.
            transformations: Per-field callables applied to loaded records.
            clock: Millisecond clock for the default cache.
        """
        self.config = config or ProviderConfig()
        encoding = self.config.loader.encoding

        self.generators = generators or GeneratorRegistry.with_defaults(
            self.config.generators.reference_date
        )
        if isinstance(rules, RuleRegistry):
            self.rules = rules
        else:
            self.rules = RuleRegistry.with_defaults(
                {**self.config.validation_rules(), **(rules or {})}
            )

        self.cache = cache or self._build_cache(clock or monotonic_ms)
        self.loader = SourceLoader(
            self.config.loader,
            reader or file_reader(encoding),
            self.generators,
            transformations,
        )
        self.writer = writer or file_writer(encoding)
        self.validator = SchemaValidator(self.rules)
        self.engine = QueryEngine()
        self._inflight: dict[str, asyncio.Task[Collection]] = {}

    def _build_cache(self, clock: Callable[[], float]) -> Cache[Collection]:
        weigher = None
        if self.config.cache.size_unit is SizeUnit.RECORDS:
            weigher = len
        return Cache(self.config.cache.max_size, weigher=weigher, clock=clock)

    @property
    def cache_enabled(self) -> bool:
        return self.config.cache.enabled

    async def load_source(
        self,
        descriptor: DescriptorLike,
        *,
        rule_name: str | None = None,
    ) -> Collection:
        """
        Load a source, serving repeated requests from the cache.

        A caller that arrives while the same key is loading waits for that
        load instead of reading again. Cancelling a waiter never cancels
        the load itself. Every caller gets its own copy of the records, so
        mutating a result never changes what the cache serves next.

        Args:
            descriptor: Source descriptor or equivalent mapping.
            rule_name: Validate freshly loaded records with this rule and log
                invalid ones. Results are not returned; use validate_collection.

        Returns:
            Loaded collection.

        Raises:
            SourceNotFoundError: Missing file or unknown scenario.
            UnsupportedFormatError: Unknown format tag.
            ParseError: Malformed content.
            SourceTimeoutError: The read exceeded the configured timeout.
        """
        descriptor = Descriptor.coerce(descriptor)
        key = descriptor.cache_key

        if self.cache_enabled:
            entry = self.cache.get(key)
            if entry is not None:
                return entry.value.copy()

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load_and_store(descriptor, rule_name))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        else:
            log.debug("Joining in-flight load", cache_key=key)

        collection = await asyncio.shield(task)
        return collection.copy()

    async def _load_and_store(
        self,
        descriptor: Descriptor,
        rule_name: str | None,
    ) -> Collection:
        key = descriptor.cache_key
        try:
            with log_context(cache_key=key):
                collection = await self.loader.load(descriptor)
                if rule_name is not None:
                    self._log_invalid(collection, rule_name)
            if self.cache_enabled:
                self.cache.set(key, collection, self.config.cache.ttl_ms)
            return collection
        except FixtureError as e:
            log.error(
                "Failed to load source",
                cache_key=key,
                error_type=type(e).__name__,
                error=e.message,
            )
            raise
        finally:
            # cleared before completion so a failure is never handed to a later caller
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def _log_invalid(self, collection: Collection, rule_name: str) -> None:
        results = self.validator.validate_many(collection, rule_name)
        for index, result in enumerate(results):
            if not result.is_valid:
                log.warning(
                    "Loaded record failed validation",
                    rule=rule_name,
                    record=index,
                    errors=list(result.errors),
                )

    def query(
        self,
        collection: Collection,
        spec: QuerySpec | Mapping[str, Any] | None,
    ) -> Collection:
        """
        Filter, project, sort and page a collection.

        Raises:
            QuerySpecError: If ``spec`` is invalid.
        """
        return self.engine.evaluate(collection, spec)

    def validate(self, record: Mapping[str, Any], rule_name: str) -> ValidationResult:
        """Validate one record against a registered rule."""
        return self.validator.validate(record, rule_name)

    def validate_collection(
        self,
        collection: Collection,
        rule_name: str,
    ) -> list[ValidationResult]:
        """Validate every record of a collection; never stops early."""
        return self.validator.validate_many(collection, rule_name)

    def generate_data(
        self,
        scenario: str,
        count: int = 1,
        seed: int | None = None,
        rule_name: str | None = None,
    ) -> GeneratedData:
        """
        Generate records for a scenario and validate them.

        The records are validated with ``rule_name``, or with the rule named
        like the scenario when one exists. Generated data is not cached.

        Args:
            scenario: Registered scenario name.
            count: Number of records.
            seed: RNG seed; identical seeds give identical data.
            rule_name: Rule to validate with.

        Returns:
            GeneratedData with the collection and per-record results.

        Raises:
            SourceNotFoundError: If the scenario is not registered.
        """
        if scenario not in self.generators:
            available = ", ".join(self.generators) or "none"
            msg = f"Unknown scenario '{scenario}'. Available: {available}"
            raise SourceNotFoundError(msg)

        collection = self.generators.generate(scenario, count, seed)

        rule = rule_name or (scenario if scenario in self.rules else None)
        results = self.validator.validate_many(collection, rule) if rule else []

        log.info(
            "Generated data",
            scenario=scenario,
            count=len(collection),
            seed=seed,
            rule=rule,
            invalid=sum(1 for r in results if not r.is_valid),
        )
        return GeneratedData(collection=collection, results=results)

    def get_cache_stats(self) -> CacheStats:
        """Snapshot of cache counters."""
        return self.cache.stats()

    def clear_cache(self) -> int:
        """Drop every cached collection; returns how many were removed."""
        return self.cache.clear()

    async def save_data(
        self,
        collection: Collection | list[Record],
        path: str,
        format: SourceFormat | str,
        environment: str | None = None,
    ) -> str:
        """
        Serialize a collection and write it through the writer.

        Any cached entry for the same source is dropped so the next load
        reads the new content.

        Args:
            collection: Records to save.
            path: Path relative to the data root (extension optional).
            format: json, csv or yaml.
            environment: Environment whose directory receives the file.

        Returns:
            Path the file was written to.

        Raises:
            UnsupportedFormatError: For unknown formats and ``generated``.
        """
        fmt = SourceFormat.parse(format)
        if fmt is SourceFormat.GENERATED:
            msg = "Generated sources cannot be saved"
            raise UnsupportedFormatError(msg)
        if not isinstance(collection, Collection):
            collection = Collection.of(collection)

        descriptor = Descriptor(path=path, format=fmt, environment=environment)
        target = self.loader.resolve_path(descriptor)
        text = get_dumper(fmt, delimiter=self.config.loader.csv_delimiter)(collection)
        await self.writer(str(target), text)

        self.cache.delete(descriptor.cache_key)
        log.info("Saved data", path=str(target), records=len(collection))
        return str(target)

    async def get_scenario_data(
        self,
        name: str,
        environment: str | None = None,
    ) -> Collection:
        """
        Load ``<name>.json``; when it does not exist, generate one record for
        the scenario, save it and return it.

        Raises:
            SourceNotFoundError: If the file is missing and no scenario of
                that name is registered.
        """
        descriptor = Descriptor(
            path=f"{name}.json", format=SourceFormat.JSON, environment=environment
        )
        try:
            return await self.load_source(descriptor)
        except SourceNotFoundError:
            log.warning("Scenario data not found, generating", scenario=name)

        generated = self.generate_data(name, count=1)
        await self.save_data(
            generated.collection, descriptor.path, SourceFormat.JSON, environment
        )
        return Collection(generated.collection.records, descriptor)

    async def get_parameterized_data(
        self,
        test_name: str,
        environment: str | None = None,
    ) -> Collection:
        """
        Load ``<test_name>_parameters.json``.

        Returns:
            The parameter sets, or one empty record when the file is missing.
        """
        descriptor = Descriptor(
            path=f"{test_name}_parameters.json",
            format=SourceFormat.JSON,
            environment=environment,
        )
        try:
            return await self.load_source(descriptor)
        except SourceNotFoundError:
            log.warning("No parameter file, using one empty parameter set", test=test_name)
            return Collection(({},), descriptor)
