"""
Error taxonomy for decoding, resolution and validation.

- DecodeError and subclasses are raised; per-application ones are
  collected by the decoder, document-level ones abort the decode.
- ResolutionError and ValidationIssue are values carried on outcomes.
"""

from dataclasses import dataclass
from enum import Enum


class ReferenceDataError(Exception):
    """A reference data source could not be read."""


class DecodeError(Exception):
    """An ACES document or one of its App elements could not be decoded."""

    def __init__(self, message: str, source_id: str | None = None):
        self.message = message
        self.source_id = source_id
        super().__init__(message)


class MalformedDocumentError(DecodeError):
    """The payload is not well-formed XML or not an ACES envelope."""


class UnsupportedVersionError(DecodeError):
    """The envelope declares no version, or one outside the supported set."""


class ResolutionErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ResolutionError:
    kind: ResolutionErrorKind
    message: str
    candidates: tuple[int, ...] = ()


class IssueCode(str, Enum):
    MISSING_FIELD = "missing_field"
    UNRESOLVABLE_REFERENCE = "unresolvable_reference"
    OUT_OF_RANGE = "out_of_range"
    INCOMPATIBLE_ATTRIBUTE = "incompatible_attribute"


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    field: str
    message: str

    def __str__(self) -> str:
        return self.message
