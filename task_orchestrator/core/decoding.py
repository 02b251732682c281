"""
Response decoding - turns one raw model response into a tagged outcome.

A decoder runs three stages, each raising its own attempt error:

1. parse            raw text  -> JSON value        (ParseError)
2. check_structure  JSON      -> typed response    (SchemaError)
3. check_semantics  response  -> None              (SemanticError)

`decode()` folds whichever error is raised into an AttemptOutcome, so the
retry engine only ever branches on `outcome.kind`.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from ..models.enums import OutcomeKind
from ..utils.exceptions import (
    ParseError,
    RetryableAttemptError,
    SchemaError,
    SemanticError,
    TransportError,
)

T = TypeVar("T")

_KIND_BY_ERROR = (
    (TransportError, OutcomeKind.TRANSPORT_FAILURE),
    (ParseError, OutcomeKind.PARSE_FAILURE),
    (SchemaError, OutcomeKind.SCHEMA_FAILURE),
    (SemanticError, OutcomeKind.SEMANTIC_FAILURE),
)


@dataclass(frozen=True)
class AttemptOutcome(Generic[T]):
    """
    Result of a single attempt.

    Exactly one of `value` (kind OK) or `error` (any failure kind) is set.
    `parsed` holds the JSON value when parsing got that far, so a retry
    prompt can show the model what it produced.
    """
    kind: OutcomeKind
    value: Optional[T] = None
    error: Optional[RetryableAttemptError] = None
    raw_text: Optional[str] = None
    parsed: Any = None

    @classmethod
    def ok(cls, value: T, raw_text: str, parsed: Any) -> "AttemptOutcome[T]":
        return cls(kind=OutcomeKind.OK, value=value, raw_text=raw_text, parsed=parsed)

    @classmethod
    def failure(
        cls,
        error: RetryableAttemptError,
        raw_text: Optional[str] = None,
        parsed: Any = None
    ) -> "AttemptOutcome[T]":
        for error_type, kind in _KIND_BY_ERROR:
            if isinstance(error, error_type):
                return cls(kind=kind, error=error, raw_text=raw_text, parsed=parsed)
        raise TypeError(f"Unsupported attempt error: {type(error).__name__}")

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def errors(self) -> List[str]:
        return list(self.error.errors) if self.error else []

    @property
    def response_for_retry(self) -> Any:
        """What to show the model as its previous (invalid) response."""
        if self.parsed is not None:
            return self.parsed
        return self.raw_text


class ResponseDecoder(ABC, Generic[T]):
    """Base class for phase-specific response decoders."""

    def decode(self, raw_text: str) -> AttemptOutcome[T]:
        try:
            parsed = self.parse(raw_text)
        except ParseError as e:
            return AttemptOutcome.failure(e, raw_text=raw_text)

        try:
            value = self.check_structure(parsed)
            self.check_semantics(value)
        except (SchemaError, SemanticError) as e:
            return AttemptOutcome.failure(e, raw_text=raw_text, parsed=parsed)

        return AttemptOutcome.ok(value, raw_text=raw_text, parsed=parsed)

    def parse(self, raw_text: str) -> Any:
        if raw_text is None or not raw_text.strip():
            raise ParseError("Empty response from AI model")
        try:
            return json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse AI response as JSON: {e}") from e

    @abstractmethod
    def check_structure(self, parsed: Any) -> T:
        """Convert the parsed JSON into the typed response or raise SchemaError."""

    def check_semantics(self, value: T) -> None:
        """Validate the typed response against the catalog; raise SemanticError."""
        return None
