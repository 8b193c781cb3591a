"""Domain value objects for the identity service.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from app.domain.exceptions import ValidationException

# Shared slug pattern: lowercase alphanumeric with optional hyphens (e.g. acme-corp).
_SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SEPARATORS_RE = re.compile(r"[\s_-]+")
_SLUG_MAX_LENGTH = 63
_SLUG_FALLBACK = "company"

# Width of the full_name and company name columns.
MAX_NAME_LENGTH = 200


def slugify(name: str) -> str:
    """Derive a URL-safe slug from a company name.

    Lowercases, drops anything that is not a word character, whitespace or
    hyphen, collapses runs of whitespace/underscore/hyphen into one hyphen
    and trims hyphens at both ends. Names with no usable characters map to
    'company'.
    """
    slug = _SLUG_STRIP_RE.sub("", name.strip().lower())
    slug = _SLUG_SEPARATORS_RE.sub("-", slug).strip("-")
    # \w keeps non-ASCII letters; keep only what the slug pattern accepts
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")[:_SLUG_MAX_LENGTH].strip("-")
    return slug or _SLUG_FALLBACK


@dataclass(frozen=True)
class CompanySlug:
    """Value object for a company slug (unique per company).

    Slugs are lowercase alphanumeric with optional hyphens, 1-63 characters
    including any collision suffix (the width of the slug column).
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Company slug must be a non-empty string")
        if len(self.value) > _SLUG_MAX_LENGTH:
            raise ValueError(f"Company slug must not exceed {_SLUG_MAX_LENGTH} characters")
        if not _SLUG_RE.match(self.value):
            raise ValueError(
                "Company slug must be lowercase alphanumeric with optional hyphens "
                "(e.g., 'acme', 'acme-corp')"
            )

    @classmethod
    def from_name(cls, name: str) -> "CompanySlug":
        """Build the base slug for a company name."""
        return cls(slugify(name))

    def with_suffix(self, suffix: str) -> "CompanySlug":
        """Return this slug with '-<suffix>' appended (collision retry).

        The base is cut so the suffixed slug still fits in 63 characters.
        """
        suffix = suffix.lower()
        keep = _SLUG_MAX_LENGTH - 1 - len(suffix)
        if keep < 1:
            raise ValueError("Company slug suffix is too long")
        base = self.value[:keep].rstrip("-")
        return CompanySlug(f"{base}-{suffix}")


@dataclass(frozen=True)
class EmailAddress:
    """Value object for a normalized email address (trimmed, lowercase)."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or "@" not in self.value:
            raise ValueError("Email must contain '@'")
        if self.value != self.value.strip().lower():
            raise ValueError("Email must be normalized; use EmailAddress.normalize()")

    @classmethod
    def normalize(cls, raw: str) -> "EmailAddress":
        return cls(raw.strip().lower())

    def redacted(self) -> str:
        """Return a log-safe form (first two characters of the local part)."""
        local, _, domain = self.value.partition("@")
        return f"{local[:2]}***@{domain}"


@dataclass(frozen=True)
class PasswordPolicy:
    """Password strength rules applied on registration and password change.

    Rules: minimum length, at least one uppercase letter, one lowercase
    letter, one digit and one special character; no spaces; must not
    contain well-known weak patterns.
    """

    min_length: int = 8

    COMMON_PATTERNS: ClassVar[tuple[str, ...]] = (
        "123456",
        "password",
        "qwerty",
        "abc123",
    )
    _SPECIAL_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]"
    )

    def violations(self, password: str) -> list[str]:
        """Return human-readable rule violations (empty when the password is acceptable)."""
        problems: list[str] = []
        if len(password) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters")
        if not re.search(r"[A-Z]", password):
            problems.append("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", password):
            problems.append("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", password):
            problems.append("Password must contain at least one number")
        if not self._SPECIAL_RE.search(password):
            problems.append("Password must contain at least one special character")
        if " " in password:
            problems.append("Password cannot contain spaces")
        lowered = password.lower()
        if any(pattern in lowered for pattern in self.COMMON_PATTERNS):
            problems.append("Password cannot contain common patterns")
        return problems

    def enforce(self, password: str, field: str = "password") -> None:
        """Raise ValidationException with the first violation, if any."""
        problems = self.violations(password)
        if problems:
            raise ValidationException(problems[0], field=field)


@dataclass(frozen=True)
class RecoveryCode:
    """Value object for a 2FA recovery code in display form (XXXX-XXXX-XXXX).

    Each group is four uppercase hex characters. Input is accepted in any
    case and with or without separators; canonical() is the form that is
    hashed and compared.
    """

    value: str

    GROUPS: ClassVar[int] = 3
    GROUP_SIZE: ClassVar[int] = 4
    _DISPLAY_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"^[0-9A-F]{4}(-[0-9A-F]{4}){2}$"
    )

    def __post_init__(self) -> None:
        if not self._DISPLAY_RE.match(self.value):
            raise ValueError("Recovery code must look like XXXX-XXXX-XXXX (hex)")

    @classmethod
    def from_hex(cls, hex_chars: str) -> "RecoveryCode":
        """Build a display code from 12 hex characters."""
        upper = hex_chars.upper()
        size = cls.GROUP_SIZE
        return cls("-".join(upper[i : i + size] for i in range(0, size * cls.GROUPS, size)))

    @staticmethod
    def canonicalize(raw: str) -> str:
        """Return user input reduced to uppercase characters without separators or spaces."""
        return re.sub(r"[\s-]", "", raw).upper()

    def canonical(self) -> str:
        return self.canonicalize(self.value)
