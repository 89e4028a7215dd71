"""Command-line interface for loading, querying and generating fixtures."""

import asyncio
import json
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from fixturekit.schemas.records import SourceFormat

if TYPE_CHECKING:
    from fixturekit.provider import DataProvider
    from fixturekit.schemas.records import Collection

app = typer.Typer(
    name="fixturekit",
    help="Load, query, validate and generate test fixture data.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]
DataRootOption = Annotated[
    Path | None,
    typer.Option("--data-root", "-d", help="Override the configured data root."),
]
FormatOption = Annotated[
    SourceFormat,
    typer.Option("--format", "-f", help="Source format.", case_sensitive=False),
]
EnvOption = Annotated[
    str | None,
    typer.Option("--env", "-e", help="Environment to load from."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print records as JSON instead of a table."),
]


# Set when --log-level or --json-logs was given; a config file then does not
# override logging.
_logging_from_cli = False


@app.callback()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
    ] = None,
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit logs as JSON."),
    ] = False,
) -> None:
    """Configure logging for every command."""
    global _logging_from_cli
    from fixturekit.utils.logging import configure_logging

    _logging_from_cli = log_level is not None or json_logs
    try:
        configure_logging(level=log_level or "WARNING", json_output=json_logs)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def _build_provider(
    config: Path | None,
    data_root: Path | None,
    reference_date: date | None = None,
) -> "DataProvider":
    from fixturekit.config.loader import load_config
    from fixturekit.config.settings import ProviderConfig
    from fixturekit.provider import DataProvider
    from fixturekit.utils.logging import configure_from

    provider_config = load_config(config) if config is not None else ProviderConfig()
    if config is not None and not _logging_from_cli:
        configure_from(provider_config.logging)
    if data_root is not None:
        loader = provider_config.loader.model_copy(update={"data_root": data_root})
        provider_config = provider_config.model_copy(update={"loader": loader})
    if reference_date is not None:
        generators = provider_config.generators.model_copy(
            update={"reference_date": reference_date}
        )
        provider_config = provider_config.model_copy(update={"generators": generators})
    return DataProvider(provider_config)


def _load(
    provider: "DataProvider",
    path: str,
    fmt: SourceFormat,
    env: str | None,
) -> "Collection":
    from fixturekit.errors import FixtureError

    try:
        return asyncio.run(
            provider.load_source({"path": path, "format": fmt, "environment": env})
        )
    except FixtureError as e:
        console.print(f"Error: {e}", markup=False, style="red")
        raise typer.Exit(code=1) from e


def _cell(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _print_records(collection: "Collection", title: str, as_json: bool) -> None:
    if as_json:
        from fixturekit.ingestion.parsers import dump_json

        typer.echo(dump_json(collection))
        return

    fields: list[str] = []
    for record in collection:
        fields.extend(name for name in record if name not in fields)

    table = Table(title=title, show_header=True)
    table.add_column("#", style="dim", justify="right")
    for name in fields:
        table.add_column(name, style="cyan" if name == fields[0] else None)
    for index, record in enumerate(collection):
        table.add_row(
            str(index),
            *(_cell(record[name]) if name in record else "-" for name in fields),
        )
    console.print(table)
    console.print(f"[dim]{len(collection)} record(s)[/dim]")


@app.command()
def load(
    path: Annotated[str, typer.Argument(help="Source path relative to the data root.")],
    fmt: FormatOption = SourceFormat.JSON,
    env: EnvOption = None,
    config: ConfigOption = None,
    data_root: DataRootOption = None,
    as_json: JsonOption = False,
) -> None:
    """Load a source and print its records."""
    provider = _build_provider(config, data_root)
    collection = _load(provider, path, fmt, env)
    _print_records(collection, f"{path} ({fmt.value})", as_json)


@app.command()
def query(
    path: Annotated[str, typer.Argument(help="Source path relative to the data root.")],
    where: Annotated[
        str | None,
        typer.Option("--where", "-w", help='Filter as JSON, e.g. \'{"age": {"$gte": 18}}\'.'),
    ] = None,
    select: Annotated[
        str | None,
        typer.Option("--select", "-s", help="Comma-separated fields to keep."),
    ] = None,
    order_by: Annotated[
        list[str] | None,
        typer.Option("--order-by", "-o", help="Sort key as field[:asc|desc]; repeatable."),
    ] = None,
    skip: Annotated[int, typer.Option("--skip", help="Records to skip.")] = 0,
    limit: Annotated[int | None, typer.Option("--limit", help="Maximum records.")] = None,
    fmt: FormatOption = SourceFormat.JSON,
    env: EnvOption = None,
    config: ConfigOption = None,
    data_root: DataRootOption = None,
    as_json: JsonOption = False,
) -> None:
    """Load a source and run a query over it."""
    from fixturekit.errors import QuerySpecError
    from fixturekit.query.spec import QuerySpec

    try:
        where_data = json.loads(where) if where else None
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: --where is not valid JSON: {e.msg}[/red]")
        raise typer.Exit(code=1) from e

    try:
        spec = QuerySpec.build(
            where=where_data,
            select=[s.strip() for s in select.split(",")] if select else None,
            order_by=order_by or (),
            skip=skip,
            limit=limit,
        )
    except QuerySpecError as e:
        console.print(f"Error: {e}", markup=False, style="red")
        raise typer.Exit(code=1) from e

    provider = _build_provider(config, data_root)
    collection = _load(provider, path, fmt, env)
    result = provider.query(collection, spec)
    _print_records(result, f"{path}: {len(result)} of {len(collection)}", as_json)


@app.command()
def generate(
    scenario: Annotated[str, typer.Argument(help="Scenario name, e.g. login or payment.")],
    count: Annotated[int, typer.Option("--count", "-n", min=0, help="Records to generate.")] = 1,
    seed: Annotated[int | None, typer.Option("--seed", help="RNG seed.")] = None,
    rule: Annotated[
        str | None,
        typer.Option("--rule", "-r", help="Validation rule (default: scenario name)."),
    ] = None,
    reference_date: Annotated[
        datetime | None,
        typer.Option(
            "--reference-date",
            formats=["%Y-%m-%d"],
            help="Date treated as today; pin it with --seed for repeatable output.",
        ),
    ] = None,
    config: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Generate synthetic records for a scenario."""
    from fixturekit.errors import SourceNotFoundError

    day = reference_date.date() if reference_date is not None else None
    provider = _build_provider(config, None, day)
    try:
        generated = provider.generate_data(scenario, count=count, seed=seed, rule_name=rule)
    except SourceNotFoundError as e:
        console.print(f"Error: {e}", markup=False, style="red")
        raise typer.Exit(code=1) from e

    _print_records(generated.collection, f"Scenario: {scenario}", as_json)
    if as_json or not generated.results:
        return

    invalid = sum(1 for r in generated.results if not r.is_valid)
    status = "[green]all valid[/green]" if invalid == 0 else f"[red]{invalid} invalid[/red]"
    console.print(f"Validation: {len(generated.results)} checked, {status}")


@app.command()
def validate(
    path: Annotated[str, typer.Argument(help="Source path relative to the data root.")],
    rule: Annotated[str, typer.Option("--rule", "-r", help="Validation rule name.")],
    fmt: FormatOption = SourceFormat.JSON,
    env: EnvOption = None,
    config: ConfigOption = None,
    data_root: DataRootOption = None,
) -> None:
    """Validate every record of a source against a rule."""
    from fixturekit.validation import ConsoleReporter, validate_frame

    provider = _build_provider(config, data_root)
    if rule not in provider.rules:
        available = ", ".join(provider.rules.list_rules())
        console.print(f"[red]Error: Unknown rule '{rule}'. Available: {available}[/red]")
        raise typer.Exit(code=1)

    collection = _load(provider, path, fmt, env)
    results = provider.validate_collection(collection, rule)

    reporter = ConsoleReporter(console)
    reporter.print_results(results, rule)
    console.print()
    reporter.print_frame_report(validate_frame(collection, provider.rules[rule], rule))

    if any(not r.is_valid for r in results):
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from fixturekit import __version__

    console.print(f"fixturekit version {__version__}")


if __name__ == "__main__":
    app()
