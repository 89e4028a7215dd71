"""
Per-record shape validation.

Validation never raises: every outcome, including an unknown rule, is
returned as a ValidationResult.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from fixturekit.schemas.registry import RuleRegistry
from fixturekit.schemas.rules import ValidationResult, ValidationRule
from fixturekit.utils.logging import get_logger

log = get_logger(__name__)


def check_record(record: Mapping[str, Any], rule: ValidationRule) -> ValidationResult:
    """
    Check one record against one rule.

    Null values count as missing for ``required`` and skip type and
    pattern checks.

    Args:
        record: Record to check.
        rule: Rule to apply.

    Returns:
        Result with errors in rule order and warnings in record order.
    """
    errors: list[str] = []

    for name in rule.required:
        if record.get(name) is None:
            errors.append(f"missing field: {name}")

    for name, field_type in rule.types.items():
        value = record.get(name)
        if value is not None and not field_type.matches(value):
            errors.append(f"type mismatch: {name} expected {field_type.value}")

    for name, pattern in rule.patterns.items():
        value = record.get(name)
        if isinstance(value, str) and re.fullmatch(pattern, value) is None:
            errors.append(f"pattern mismatch: {name}")

    known = rule.known_fields
    warnings = [f"unrecognized field: {name}" for name in record if name not in known]

    return ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )


class SchemaValidator:
    """Validates records against rules from a RuleRegistry."""

    def __init__(self, rules: RuleRegistry) -> None:
        """
        Initialize the validator.

        Args:
            rules: Named rules; fixed for the validator's lifetime.
        """
        self.rules = rules

    def validate(self, record: Mapping[str, Any], rule_name: str) -> ValidationResult:
        """
        Validate a record against a named rule.

        Args:
            record: Record to check.
            rule_name: Registered rule name.

        Returns:
            ValidationResult; ``is_valid`` is False for an unknown rule.
        """
        rule = self.rules.get(rule_name)
        if rule is None:
            log.debug("Unknown validation rule", rule=rule_name)
            return ValidationResult(is_valid=False, errors=(f"unknown rule: {rule_name}",))

        result = check_record(record, rule)
        if not result.is_valid:
            log.debug("Record failed validation", rule=rule_name, errors=list(result.errors))
        return result

    def validate_many(
        self,
        records: Iterable[Mapping[str, Any]],
        rule_name: str,
    ) -> list[ValidationResult]:
        """Validate every record; one result per record, in order."""
        results = [self.validate(record, rule_name) for record in records]
        invalid = sum(1 for r in results if not r.is_valid)
        log.debug("Validated records", rule=rule_name, total=len(results), invalid=invalid)
        return results
