"""
Vehicle name normalization for matching make/model/submodel names and
parsing loose "2015 Ford F-150" strings.

- Normalize case, whitespace and separators so "F-150 " matches "f-150".
- Map common make nicknames (chevy, vw) to their VCdb spelling.
- Multi-word makes ("Land Rover") are matched against the known make list.
"""

import re
from dataclasses import dataclass

# Drivetrain tokens that trail a model name in free text
_DRIVETRAIN_TOKENS = {"awd", "4wd", "4x4", "fwd", "rwd", "2wd", "4x2"}

# Common make name variants (raw -> VCdb MakeName)
_MAKE_CANONICAL = {
    "vw": "Volkswagen",
    "mercedes": "Mercedes-Benz",
    "mb": "Mercedes-Benz",
    "chevy": "Chevrolet",
    "lr": "Land Rover",
}


def normalize_name(raw: str | None) -> str:
    """
    Normalize a make/model/submodel name for comparison.
    - Lowercase, strip, collapse whitespace
    - Treat slashes and runs of spaces around dashes as one space
    """
    if not raw:
        return ""
    s = raw.strip().lower()
    s = re.sub(r"\s*/\s*|\s+-\s+", " ", s)
    return " ".join(s.split())


def canonical_make(raw: str) -> str:
    """Map a nickname to the VCdb make spelling; unknown names pass through."""
    return _MAKE_CANONICAL.get(normalize_name(raw), raw.strip())


@dataclass
class ParsedVehicle:
    year: int | None
    make_raw: str | None
    model_raw: str | None
    trim_raw: str | None
    text: str


def parse_vehicle_loose(text: str, known_makes: list[str] | None = None) -> ParsedVehicle:
    """
    Parse a loose vehicle string into year, make, model and a trailing
    drivetrain token. When known_makes is given the longest make name that
    prefixes the remainder wins, so multi-word makes parse correctly.
    """
    norm = " ".join((text or "").split())
    year: int | None = None
    make_raw: str | None = None
    model_raw: str | None = None
    trim_raw: str | None = None

    # Year: 4 digits 1896-2039
    year_match = re.search(r"\b(189[6-9]|19\d\d|20[0-3]\d)\b", norm)
    if year_match:
        year = int(year_match.group(1))
        norm = " ".join((norm[: year_match.start()] + " " + norm[year_match.end() :]).split())

    tokens = norm.split()
    if tokens and tokens[-1].lower() in _DRIVETRAIN_TOKENS and len(tokens) > 2:
        trim_raw = tokens.pop()

    if tokens:
        make_len = 1
        lowered = [t.lower() for t in tokens]
        for make in sorted(known_makes or [], key=lambda m: -len(m.split())):
            parts = normalize_name(make).split()
            if parts and lowered[: len(parts)] == parts:
                make_len = len(parts)
                break
        make_raw = canonical_make(" ".join(tokens[:make_len]))
        model_raw = " ".join(tokens[make_len:]) or None

    return ParsedVehicle(
        year=year,
        make_raw=make_raw,
        model_raw=model_raw,
        trim_raw=trim_raw,
        text=(text or "").strip(),
    )
