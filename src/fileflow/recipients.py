# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Ordered, duplicate-free list of recipient email addresses.

Addresses are trimmed and lowercased before they are stored, so two entries
can never differ only by case or surrounding whitespace. Validation is the
permissive ``local@domain.tld`` shape, not full RFC 5322.

Example:
    Collecting recipients from typed and pasted input::

        recipients = RecipientSet()
        recipients.add("Alice@Example.com ")
        report = recipients.parse_many("bob@example.com; carol@example.com, nope")
        report.invalid      # ['nope']
        recipients.as_list()
        # ['alice@example.com', 'bob@example.com', 'carol@example.com']
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from .logger import get_logger

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SEPARATOR_PATTERN = re.compile(r"[,;\s]+")

logger = get_logger("Recipients")


class AddOutcome(str, Enum):
    """Result of a single ``RecipientSet.add`` call.

    Attributes:
        ADDED: The address was appended.
        INVALID: The address failed validation, the set is unchanged.
        DUPLICATE: The address was already present, the set is unchanged.
        EMPTY: Blank input, nothing to do.
    """

    ADDED = "added"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    EMPTY = "empty"


@dataclass
class ParseReport:
    """Per-token outcome of ``RecipientSet.parse_many``."""

    added: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.invalid) + len(self.duplicates)


def normalize(candidate: str) -> str:
    return candidate.strip().lower()


def validate(candidate: str) -> bool:
    """Return True when ``candidate`` looks like ``local@domain.tld``."""
    return bool(EMAIL_PATTERN.match(candidate.strip()))


class RecipientSet:
    """Insertion-ordered set of validated recipient addresses."""

    def __init__(self, emails: Iterable[str] | None = None):
        self._emails: list[str] = []
        for email in emails or ():
            self.add(email)

    validate = staticmethod(validate)

    def add(self, candidate: str) -> AddOutcome:
        """Trim, lowercase, validate and append ``candidate``.

        Invalid or duplicate addresses leave the set untouched; the returned
        outcome tells the caller which notice to show.
        """
        email = normalize(candidate)
        if not email:
            return AddOutcome.EMPTY
        if not validate(email):
            logger.debug("Rejected invalid recipient %r", email)
            return AddOutcome.INVALID
        if email in self._emails:
            return AddOutcome.DUPLICATE
        self._emails.append(email)
        return AddOutcome.ADDED

    def remove(self, email: str) -> None:
        """Remove an exact match; no-op if absent."""
        if email in self._emails:
            self._emails.remove(email)

    def remove_last(self) -> str | None:
        """Drop the most recently added address (backspace on empty input)."""
        if not self._emails:
            return None
        return self._emails.pop()

    def clear(self) -> None:
        self._emails.clear()

    def parse_many(self, blob: str) -> ParseReport:
        """Add every address found in a comma/semicolon/whitespace separated blob.

        Each token goes through ``add`` independently, so valid addresses are
        kept even when others in the same blob are rejected.
        """
        report = ParseReport()
        for token in SEPARATOR_PATTERN.split(blob):
            if not token:
                continue
            outcome = self.add(token)
            if outcome is AddOutcome.ADDED:
                report.added.append(normalize(token))
            elif outcome is AddOutcome.INVALID:
                report.invalid.append(normalize(token))
            elif outcome is AddOutcome.DUPLICATE:
                report.duplicates.append(normalize(token))
        return report

    def as_list(self) -> list[str]:
        return list(self._emails)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._emails))

    def __len__(self) -> int:
        return len(self._emails)

    def __bool__(self) -> bool:
        return bool(self._emails)

    def __contains__(self, email: object) -> bool:
        if not isinstance(email, str):
            return False
        return normalize(email) in self._emails

    def __repr__(self) -> str:
        return f"RecipientSet({self._emails!r})"
