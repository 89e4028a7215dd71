"""
Batch validation of whole collections through pandera.

A ValidationRule is translated into a DataFrameSchema so every record of a
collection is checked in one lazy pass. The per-record SchemaValidator stays
the authority for ValidationResult; this module is for reporting.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaErrors

from fixturekit.schemas.records import Collection
from fixturekit.schemas.rules import FieldType, ValidationRule
from fixturekit.utils.logging import get_logger

log = get_logger(__name__)

FAILURE_COLUMNS = ["column", "check", "failure_case", "index"]


def _is_null(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _type_check(field_type: FieldType) -> pa.Check:
    return pa.Check(
        lambda v: _is_null(v) or field_type.matches(v),
        element_wise=True,
        name=f"type:{field_type.value}",
        error=f"expected {field_type.value}",
    )


def _pattern_check(pattern: str) -> pa.Check:
    compiled = re.compile(pattern)
    return pa.Check(
        lambda v: not isinstance(v, str) or compiled.fullmatch(v) is not None,
        element_wise=True,
        name="pattern",
        error=f"does not match {pattern}",
    )


def build_frame_schema(rule: ValidationRule, name: str | None = None) -> pa.DataFrameSchema:
    """
    Translate a rule into a pandera schema.

    Required fields become required, non-nullable columns. Typed and
    patterned fields get element-wise checks. Extra columns are allowed.

    Args:
        rule: Rule to translate.
        name: Schema name shown in pandera errors.

    Returns:
        DataFrameSchema over object-typed columns.
    """
    columns: dict[str, pa.Column] = {}
    for column_name in sorted(rule.known_fields):
        checks: list[pa.Check] = []
        if column_name in rule.types:
            checks.append(_type_check(rule.types[column_name]))
        if column_name in rule.patterns:
            checks.append(_pattern_check(rule.patterns[column_name]))

        is_required = column_name in rule.required
        columns[column_name] = pa.Column(
            None,
            checks=checks,
            nullable=not is_required,
            required=is_required,
        )

    return pa.DataFrameSchema(columns, strict=False, name=name)


@dataclass
class FrameReport:
    """Outcome of validating a collection as a frame."""

    rule_name: str
    row_count: int
    failure_cases: pd.DataFrame = field(
        default_factory=lambda: pd.DataFrame(columns=FAILURE_COLUMNS)
    )

    @property
    def is_valid(self) -> bool:
        return self.failure_cases.empty

    @property
    def error_count(self) -> int:
        return len(self.failure_cases)

    def failed_rows(self) -> list[int]:
        """Row positions with at least one failure (missing columns have none)."""
        rows = self.failure_cases["index"].dropna()
        return sorted({int(i) for i in rows})

    def format(self, limit: int = 5) -> str:
        """Short text summary with the first ``limit`` failure cases."""
        if self.is_valid:
            return f"{self.row_count} record(s) passed rule '{self.rule_name}'"
        cases = self.failure_cases.head(limit).to_string(index=False)
        shown = f" (showing first {limit})" if self.error_count > limit else ""
        return f"{self.error_count} validation error(s){shown}:\n{cases}"


def validate_frame(collection: Collection, rule: ValidationRule, rule_name: str) -> FrameReport:
    """
    Validate a whole collection in one lazy pandera pass.

    Args:
        collection: Records to check.
        rule: Rule to apply.
        rule_name: Name used in the report.

    Returns:
        FrameReport; an empty collection is always valid.
    """
    if not collection:
        return FrameReport(rule_name=rule_name, row_count=0)

    df = collection.to_dataframe().astype(object)
    schema = build_frame_schema(rule, name=rule_name)

    try:
        schema.validate(df, lazy=True)
    except SchemaErrors as e:
        failures = e.failure_cases.reindex(columns=FAILURE_COLUMNS)
        log.info(
            "Frame validation failed",
            rule=rule_name,
            rows=len(df),
            failures=len(failures),
        )
        return FrameReport(
            rule_name=rule_name,
            row_count=len(df),
            failure_cases=failures.reset_index(drop=True),
        )

    log.debug("Frame validation passed", rule=rule_name, rows=len(df))
    return FrameReport(rule_name=rule_name, row_count=len(df))
