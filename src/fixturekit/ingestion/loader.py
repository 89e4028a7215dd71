"""
Source loading with closed-format dispatch.

The loader resolves a descriptor to a path, reads it through the injected
reader under a timeout and parses it with the format's parser. Generated
sources are served by the scenario registry instead of the reader.
"""

import asyncio
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from fixturekit.config.settings import LoaderConfig
from fixturekit.errors import (
    ParseError,
    SourceNotFoundError,
    SourceTimeoutError,
)
from fixturekit.generators.scenarios import GeneratorRegistry
from fixturekit.ingestion.parsers import get_parser
from fixturekit.ingestion.readers import Reader
from fixturekit.schemas.records import Collection, Descriptor, Record, SourceFormat
from fixturekit.utils.logging import get_logger

log = get_logger(__name__)

Transformations = Mapping[str, Callable[[Any], Any]]


class SourceLoader:
    """
    Loads one source into a Collection.

    No retries and no caching happen here; the provider owns both concerns.
    """

    def __init__(
        self,
        config: LoaderConfig,
        reader: Reader,
        generators: GeneratorRegistry,
        transformations: Transformations | None = None,
    ) -> None:
        """
        Initialize the loader.

        Args:
            config: Source locations, timeout and CSV options.
            reader: ``async (path) -> text``; FileNotFoundError means missing.
            generators: Scenario registry for generated sources.
            transformations: Per-field callables applied to every loaded record.
        """
        self.config = config
        self.reader = reader
        self.generators = generators
        self.transformations = dict(transformations or {})

    def resolve_path(self, descriptor: Descriptor) -> Path:
        """
        Resolve a descriptor's path against the data root.

        Environments listed in ``environment_paths`` read from their own
        sub-directory. A path without a suffix gets the format's extension.

        Args:
            descriptor: File-backed source descriptor.

        Returns:
            Path handed to the reader.
        """
        root = self.config.data_root
        if descriptor.environment and descriptor.environment in self.config.environment_paths:
            root = root / self.config.environment_paths[descriptor.environment]

        path = root / descriptor.path
        extension = descriptor.format.extension
        if extension and not path.suffix:
            path = path.with_name(path.name + extension)
        return path

    async def load(self, descriptor: Descriptor) -> Collection:
        """
        Load and parse a source.

        Args:
            descriptor: What to load.

        Returns:
            Collection tagged with ``descriptor``.

        Raises:
            SourceNotFoundError: Missing file or unknown scenario.
            ParseError: Malformed content.
            SourceTimeoutError: The reader exceeded ``timeout_s``.
        """
        if descriptor.format is SourceFormat.GENERATED:
            collection = self._generate(descriptor)
        else:
            collection = await self._read(descriptor)

        records = collection.records
        if self.transformations:
            records = tuple(self._transform(record) for record in records)

        log.info(
            "Loaded source",
            cache_key=descriptor.cache_key,
            records=len(records),
        )
        return Collection(records, descriptor)

    def _generate(self, descriptor: Descriptor) -> Collection:
        if descriptor.path not in self.generators:
            available = ", ".join(self.generators) or "none"
            msg = f"Unknown scenario '{descriptor.path}'. Available: {available}"
            raise SourceNotFoundError(msg, descriptor)
        return self.generators.generate(descriptor.path, descriptor.count, descriptor.seed)

    async def _read(self, descriptor: Descriptor) -> Collection:
        path = self.resolve_path(descriptor)
        timeout = self.config.timeout_s

        try:
            text = await asyncio.wait_for(self.reader(str(path)), timeout=timeout)
        except TimeoutError:
            msg = f"Reading {path} exceeded {timeout}s"
            raise SourceTimeoutError(msg, descriptor) from None
        except FileNotFoundError as e:
            msg = f"Source file not found: {path}"
            raise SourceNotFoundError(msg, descriptor) from e
        except OSError as e:
            msg = f"Could not read {path}: {e.strerror or e}"
            raise SourceNotFoundError(msg, descriptor) from e
        except UnicodeDecodeError as e:
            msg = f"Could not decode {path}: {e.reason}"
            raise ParseError(msg, descriptor) from e

        parser = get_parser(descriptor.format, delimiter=self.config.csv_delimiter)
        try:
            return parser(text)
        except ParseError as e:
            e.descriptor = descriptor
            raise

    def _transform(self, record: Record) -> Record:
        out = dict(record)
        for field_name, transform in self.transformations.items():
            if field_name not in out:
                continue
            try:
                out[field_name] = transform(out[field_name])
            except Exception as e:  # noqa: BLE001
                log.warning(
                    "Field transformation failed, keeping original value",
                    field=field_name,
                    error=str(e),
                )
        return out
