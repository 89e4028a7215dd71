"""
Registry of named validation rules.

One registry is created per provider; it is read-only after construction.
"""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from fixturekit.schemas.rules import FieldType, ValidationRule

EMAIL_PATTERN = r"[^@\s]+@[^@\s]+\.[A-Za-z]{2,}"

BUILTIN_RULES: Mapping[str, ValidationRule] = MappingProxyType(
    {
        "login": ValidationRule(
            required=("username", "password"),
            types={
                "username": FieldType.STRING,
                "password": FieldType.STRING,
                "remember_me": FieldType.BOOLEAN,
            },
            patterns={"username": EMAIL_PATTERN},
        ),
        "registration": ValidationRule(
            required=("first_name", "last_name", "email", "username", "password"),
            types={
                "first_name": FieldType.STRING,
                "last_name": FieldType.STRING,
                "full_name": FieldType.STRING,
                "email": FieldType.STRING,
                "phone": FieldType.STRING,
                "date_of_birth": FieldType.STRING,
                "age": FieldType.NUMBER,
                "gender": FieldType.STRING,
                "address": FieldType.OBJECT,
                "username": FieldType.STRING,
                "password": FieldType.STRING,
                "confirm_password": FieldType.STRING,
                "agree_to_terms": FieldType.BOOLEAN,
            },
            patterns={"email": EMAIL_PATTERN},
        ),
        "payment": ValidationRule(
            required=("number", "expiry_date", "cvv", "amount"),
            types={
                "number": FieldType.STRING,
                "type": FieldType.STRING,
                "expiry_date": FieldType.STRING,
                "cvv": FieldType.STRING,
                "holder_name": FieldType.STRING,
                "billing_address": FieldType.OBJECT,
                "amount": FieldType.NUMBER,
            },
            patterns={"expiry_date": r"(0[1-9]|1[0-2])/\d{2}", "cvv": r"\d{3,4}"},
        ),
        "contact": ValidationRule(
            required=("name", "email", "message"),
            types={
                "name": FieldType.STRING,
                "email": FieldType.STRING,
                "phone": FieldType.STRING,
                "subject": FieldType.STRING,
                "message": FieldType.STRING,
            },
            patterns={"email": EMAIL_PATTERN},
        ),
    }
)


class RuleRegistry(Mapping[str, ValidationRule]):
    """
    Read-only mapping of rule name to ValidationRule.

    Behaves like a Mapping, so ``name in registry`` and iteration work as
    expected.
    """

    def __init__(self, rules: Mapping[str, ValidationRule] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            rules: Rules keyed by name. Copied; later changes to the
                argument do not leak in.
        """
        self._rules: Mapping[str, ValidationRule] = MappingProxyType(
            dict(rules or {})
        )

    @classmethod
    def with_defaults(
        cls,
        extra: Mapping[str, ValidationRule | Mapping[str, Any]] | None = None,
    ) -> "RuleRegistry":
        """
        Build a registry holding the built-in scenario rules plus extras.

        Args:
            extra: Additional rules; entries override built-ins of the
                same name. Plain mappings are converted with
                ValidationRule.from_mapping.

        Returns:
            New registry.
        """
        rules: dict[str, ValidationRule] = dict(BUILTIN_RULES)
        for name, rule in (extra or {}).items():
            if not isinstance(rule, ValidationRule):
                rule = ValidationRule.from_mapping(rule)
            rules[name] = rule
        return cls(rules)

    def __getitem__(self, name: str) -> ValidationRule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get_rule(self, name: str) -> ValidationRule:
        """
        Get a rule by name.

        Args:
            name: Rule identifier.

        Returns:
            The registered rule.

        Raises:
            KeyError: If the rule is not registered.
        """
        if name not in self._rules:
            available = ", ".join(self._rules.keys()) or "none"
            msg = f"Unknown rule '{name}'. Available: {available}"
            raise KeyError(msg)
        return self._rules[name]

    def list_rules(self) -> list[str]:
        """List all registered rule names."""
        return list(self._rules.keys())
