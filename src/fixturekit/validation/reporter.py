"""
Console reporter for validation results.

Formats per-record validation results using Rich.
"""

from rich.console import Console
from rich.table import Table

from fixturekit.schemas.rules import ValidationResult
from fixturekit.validation.frame import FrameReport


class ConsoleReporter:
    """Formats and displays validation results to the console."""

    def __init__(self, console: Console) -> None:
        """
        Initialize console reporter.

        Args:
            console: Rich Console instance for output.
        """
        self.console = console

    def print_results(
        self,
        results: list[ValidationResult],
        rule_name: str,
        title: str = "Record Validation Results",
    ) -> None:
        """
        Print one table row per record, then a summary and error details.

        Args:
            results: Validation results in record order.
            rule_name: Rule the records were checked against.
            title: Table title.
        """
        table = Table(title=title, show_header=True)
        table.add_column("#", style="cyan", justify="right", no_wrap=True)
        table.add_column("Rule", style="blue")
        table.add_column("Status", justify="center")
        table.add_column("Errors", justify="right")
        table.add_column("Warnings", justify="right", style="dim")

        for index, result in enumerate(results):
            table.add_row(
                str(index),
                rule_name,
                self._format_status(result),
                str(len(result.errors)),
                str(len(result.warnings)),
            )

        self.console.print(table)
        self._print_summary(results)
        self._print_detailed_errors(results)

    def print_frame_report(self, report: FrameReport) -> None:
        """Print the failure cases of a batch frame validation."""
        if report.is_valid:
            self.console.print(f"[green]{report.format()}[/green]")
            return
        self.console.print(f"[bold red]Rule '{report.rule_name}':[/bold red]")
        for line in report.format().split("\n"):
            self.console.print(f"  {line}", markup=False)

    def _format_status(self, result: ValidationResult) -> str:
        if not result.is_valid:
            return "[red]Fail[/red]"
        if result.warnings:
            return "[yellow]Warn[/yellow]"
        return "[green]Pass[/green]"

    def _print_summary(self, results: list[ValidationResult]) -> None:
        total = len(results)
        passed = sum(1 for r in results if r.is_valid)
        warned = sum(1 for r in results if r.is_valid and r.warnings)

        self.console.print()
        self.console.print("[bold]Summary:[/bold]")
        self.console.print(f"  Total records: {total}")
        self.console.print(f"  [green]Passed: {passed}[/green]")
        self.console.print(f"  [red]Failed: {total - passed}[/red]")
        self.console.print(f"  [yellow]With warnings: {warned}[/yellow]")

    def _print_detailed_errors(self, results: list[ValidationResult]) -> None:
        failed = [(i, r) for i, r in enumerate(results) if not r.is_valid]
        if not failed:
            return

        self.console.print()
        self.console.print("[bold red]Validation Errors:[/bold red]")
        for index, result in failed:
            self.console.print(f"  [bold]record {index}[/bold]:")
            for error in result.errors:
                self.console.print(f"    {error}", markup=False)
