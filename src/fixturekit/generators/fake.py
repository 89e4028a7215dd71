"""
Seeded fake data for fixture generation.

All randomness goes through one numpy Generator, so the same seed and
reference date always produce the same values.
"""

import re
import uuid
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any, TypeVar

import numpy as np

T = TypeVar("T")

FIRST_NAMES: dict[str, tuple[str, ...]] = {
    "male": (
        "James", "John", "Robert", "Michael", "William",
        "David", "Richard", "Joseph", "Thomas", "Christopher",
    ),
    "female": (
        "Mary", "Patricia", "Jennifer", "Linda", "Elizabeth",
        "Barbara", "Susan", "Jessica", "Sarah", "Karen",
    ),
}

LAST_NAMES: tuple[str, ...] = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller",
    "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez",
    "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
)

CITIES: tuple[str, ...] = (
    "New York", "Los Angeles", "Chicago", "Houston", "Phoenix",
    "Philadelphia", "San Antonio", "San Diego", "Dallas", "San Jose",
    "Austin", "Jacksonville", "Columbus", "Charlotte", "San Francisco",
    "Indianapolis", "Seattle", "Denver", "Washington",
)

STATES: tuple[str, ...] = (
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado",
    "Connecticut", "Delaware", "Florida", "Georgia", "Hawaii", "Idaho",
    "Illinois", "Indiana", "Iowa", "Kansas", "Kentucky", "Louisiana",
    "Maine", "Maryland", "Massachusetts", "Michigan", "Minnesota",
)

STREET_NAMES: tuple[str, ...] = (
    "Main St", "Oak Ave", "Pine Rd", "Elm Dr", "Cedar Ln", "Maple Way", "Park Blvd",
)

EMAIL_DOMAINS: tuple[str, ...] = (
    "example.com", "example.org", "test.net", "mail.test", "company.example",
)

# prefix and total length per card type
CARD_TYPES: dict[str, tuple[str, int]] = {
    "Visa": ("4", 16),
    "MasterCard": ("5", 16),
    "American Express": ("34", 15),
    "Discover": ("6011", 16),
}

GENDERS: tuple[str, ...] = ("Male", "Female", "Other")

ALPHANUMERIC = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

_PATTERN_TOKEN = re.compile(r"\{(\w+)(?::(\d+))?\}")


def luhn_check_digit(digits: str) -> str:
    """Check digit that makes ``digits + check`` pass the Luhn test."""
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 0:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return str((10 - total % 10) % 10)


class FakeDataGenerator:
    """
    Realistic fake values for people, addresses, cards and credentials.

    Dates (birth dates, card expiry, message stamps) are computed relative
    to ``reference_date`` so output does not drift with the wall clock.
    Without one the generator uses today, so the same seed reproduces the
    same values only when a reference date is pinned.
    """

    def __init__(self, seed: int | None = None, reference_date: date | None = None) -> None:
        """
        Initialize the generator.

        Args:
            seed: RNG seed; None draws fresh OS entropy.
            reference_date: "Today" for age and expiry calculations;
                defaults to ``date.today()``.
        """
        self.seed = seed
        self.reference_date = reference_date or date.today()
        self._rng = np.random.default_rng(seed)

    def integer(self, low: int, high: int) -> int:
        """Random integer in ``[low, high)``."""
        return int(self._rng.integers(low, high))

    def choice(self, options: Sequence[T]) -> T:
        """Pick one element."""
        return options[self.integer(0, len(options))]

    def number(self, low: float = 0, high: float = 100, decimals: int = 0) -> float | int:
        """Random number in ``[low, high)``, rounded to ``decimals`` places."""
        value = float(self._rng.uniform(low, high))
        if decimals > 0:
            return round(value, decimals)
        return int(value)

    def boolean(self, probability: float = 0.5) -> bool:
        """Random boolean, True with the given probability."""
        return bool(self._rng.random() < probability)

    def string(self, length: int, charset: str = ALPHANUMERIC) -> str:
        """Random string drawn from ``charset``."""
        return "".join(self.choice(charset) for _ in range(length))

    def digits(self, length: int) -> str:
        return "".join(str(self.integer(0, 10)) for _ in range(length))

    def first_name(self, gender: str | None = None) -> str:
        if gender and gender.lower() in FIRST_NAMES:
            return self.choice(FIRST_NAMES[gender.lower()])
        return self.choice(FIRST_NAMES["male"] + FIRST_NAMES["female"])

    def last_name(self) -> str:
        return self.choice(LAST_NAMES)

    def full_name(self, gender: str | None = None) -> str:
        return f"{self.first_name(gender)} {self.last_name()}"

    def email(self, name: str | None = None, domain: str | None = None) -> str:
        """
        Email address, optionally derived from a person's name.

        Args:
            name: Name to base the local part on ("Mary Smith" -> mary.smith).
            domain: Domain to use instead of a random one.
        """
        if name:
            local = re.sub(r"\s+", ".", name.strip().lower())
        else:
            local = f"{self.first_name().lower()}.{self.last_name().lower()}"
        return f"{local}{self.integer(1, 100)}@{domain or self.choice(EMAIL_DOMAINS)}"

    def phone(self, fmt: str = "(###) ###-####") -> str:
        """Phone number; every ``#`` becomes a digit."""
        return "".join(str(self.integer(0, 10)) if c == "#" else c for c in fmt)

    def address(self) -> dict[str, Any]:
        return {
            "street": f"{self.integer(1, 9999)} {self.choice(STREET_NAMES)}",
            "city": self.choice(CITIES),
            "state": self.choice(STATES),
            "zip_code": str(self.integer(10000, 99999)),
            "country": "United States",
        }

    def date_between(self, start: date, end: date) -> date:
        """Random date in ``[start, end]``."""
        span = (end - start).days
        return start + timedelta(days=self.integer(0, span + 1))

    def age_on(self, birth_date: date) -> int:
        """Completed years between ``birth_date`` and the reference date."""
        ref = self.reference_date
        before_birthday = (ref.month, ref.day) < (birth_date.month, birth_date.day)
        return ref.year - birth_date.year - int(before_birthday)

    def person(self, gender: str | None = None) -> dict[str, Any]:
        """Person with name, contact details, birth date and address."""
        gender = gender or self.choice(GENDERS)
        first = self.first_name(gender)
        last = self.last_name()
        full = f"{first} {last}"
        birth = self.date_between(date(1950, 1, 1), date(2005, 12, 31))
        return {
            "first_name": first,
            "last_name": last,
            "full_name": full,
            "email": self.email(full),
            "phone": self.phone(),
            "date_of_birth": birth.isoformat(),
            "age": self.age_on(birth),
            "gender": gender,
            "address": self.address(),
        }

    def credit_card(self, card_type: str | None = None) -> dict[str, Any]:
        """
        Credit card with a Luhn-valid number, grouped in blocks of four.

        Args:
            card_type: One of CARD_TYPES; random when None.

        Raises:
            KeyError: If ``card_type`` is not a known type.
        """
        card_type = card_type or self.choice(tuple(CARD_TYPES))
        prefix, length = CARD_TYPES[card_type]
        body = prefix + self.digits(length - len(prefix) - 1)
        number = body + luhn_check_digit(body)
        grouped = " ".join(number[i : i + 4] for i in range(0, len(number), 4))
        month = self.integer(1, 13)
        year = (self.reference_date.year + self.integer(1, 6)) % 100
        cvv_length = 4 if card_type == "American Express" else 3
        return {
            "number": grouped,
            "type": card_type,
            "expiry_date": f"{month:02d}/{year:02d}",
            "cvv": self.digits(cvv_length),
            "holder_name": self.full_name().upper(),
        }

    def uuid4(self) -> str:
        """Version-4 UUID drawn from the seeded RNG."""
        return str(uuid.UUID(bytes=self._rng.bytes(16), version=4))

    def password(self, length: int = 12, include_symbols: bool = True) -> str:
        """
        Password with at least one lowercase, uppercase and digit (and
        symbol, when enabled).
        """
        lower = "abcdefghijklmnopqrstuvwxyz"
        upper = lower.upper()
        numbers = "0123456789"
        charset = lower + upper + numbers
        chars = [self.choice(lower), self.choice(upper), self.choice(numbers)]
        if include_symbols:
            charset += SYMBOLS
            chars.append(self.choice(SYMBOLS))
        chars.extend(self.choice(charset) for _ in range(length - len(chars)))
        order = self._rng.permutation(len(chars))
        return "".join(chars[i] for i in order)

    def from_pattern(self, pattern: str) -> str:
        """
        Fill a template such as ``"user-{number:4}@{string:6}.test"``.

        Supported tokens: firstName, lastName, email, phone, uuid, date,
        number:N (N digits), string:N (N alphanumerics). Unknown tokens are
        left as they are.
        """

        def fill(match: re.Match[str]) -> str:
            token, size = match.group(1), match.group(2)
            if token == "number" and size:
                n = int(size)
                return str(self.integer(10 ** (n - 1), 10**n))
            if token == "string" and size:
                return self.string(int(size))
            simple = {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "email": self.email,
                "phone": self.phone,
                "uuid": self.uuid4,
                "date": self.reference_date.isoformat,
            }
            if token in simple:
                return simple[token]()
            return match.group(0)

        return _PATTERN_TOKEN.sub(fill, pattern)
