"""Error classification for cash-desk API failures.

Each remote operation owns an ordered rule table. Rules are evaluated
top-to-bottom and the first match wins, so the order of every table is part
of its contract: messages routinely match several rules ("terminal not found"
also contains "not found").

A rule matches when any of these hold:

- the HTTP status is one of its explicit ``status_codes``
- the error body was parsed and the lower-cased message contains one of its
  ``phrases``
- the error body was parsed and the status falls in ``status_range``

When the body could not be parsed only explicit status codes apply.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Sequence, Tuple

from .models.errors import ErrorKind, TerminalAPIError

CLIENT_ERROR_RANGE = (400, 500)


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of an operation's classification table."""

    kind: ErrorKind
    phrases: Tuple[str, ...] = ()
    status_codes: FrozenSet[int] = field(default_factory=frozenset)
    status_range: Optional[Tuple[int, int]] = None

    def matches(self, status_code: int, message: str, body_parsed: bool) -> bool:
        if status_code in self.status_codes:
            return True
        if not body_parsed:
            return False
        lowered = message.lower()
        if any(phrase in lowered for phrase in self.phrases):
            return True
        if self.status_range is not None:
            low, high = self.status_range
            return low <= status_code < high
        return False


def classify(
    rules: Sequence[ClassificationRule],
    status_code: int,
    message: str,
    body_parsed: bool = True,
) -> ErrorKind:
    """Return the kind of the first matching rule, or ``unknown``."""
    for rule in rules:
        if rule.matches(status_code, message, body_parsed):
            return rule.kind
    return ErrorKind.UNKNOWN


def classify_api_error(rules: Sequence[ClassificationRule], error: TerminalAPIError) -> ErrorKind:
    return classify(rules, error.status_code, error.message, error.body_parsed)


CREATE_PAYMENT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ErrorKind.TERMINAL_ERROR,
        phrases=("terminal not found", "reader not found"),
    ),
    ClassificationRule(
        ErrorKind.CONFIG_ERROR,
        phrases=("stripe configuration", "resort not found"),
        status_codes=frozenset({401, 403}),
    ),
    ClassificationRule(ErrorKind.VALIDATION, status_range=CLIENT_ERROR_RANGE),
)

CHECK_PAYMENT_STATUS_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ErrorKind.NOT_FOUND,
        phrases=("not found",),
        status_codes=frozenset({404}),
    ),
    ClassificationRule(ErrorKind.VALIDATION, status_range=CLIENT_ERROR_RANGE),
)

RETRY_PAYMENT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ErrorKind.TERMINAL_ERROR,
        phrases=("terminal not found", "reader not found", "reader is currently busy"),
    ),
    ClassificationRule(
        ErrorKind.NOT_FOUND,
        phrases=("not found",),
        status_codes=frozenset({404}),
    ),
    ClassificationRule(
        ErrorKind.ALREADY_PAID,
        phrases=("already paid", "no remaining amount"),
    ),
    ClassificationRule(ErrorKind.VALIDATION, status_range=CLIENT_ERROR_RANGE),
)

CARD_READERS_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(ErrorKind.CONFIG_ERROR, status_codes=frozenset({401, 403})),
    ClassificationRule(ErrorKind.VALIDATION, status_range=CLIENT_ERROR_RANGE),
)
