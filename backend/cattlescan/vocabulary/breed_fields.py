"""Closed enumerations for breed taxonomy and measurement units."""

from __future__ import annotations

from cattlescan.errors import ValidationFailure

SPECIES_VALUES: tuple[str, ...] = ("Cattle", "Buffalo")
STATUS_VALUES: tuple[str, ...] = ("Indigenous", "Purebred", "Crossbreed", "Composite")
TEMPERAMENT_VALUES: tuple[str, ...] = ("Docile", "Aggressive", "Calm")
CONSERVATION_STATUS_VALUES: tuple[str, ...] = ("Common", "Rare", "Endangered")
MILK_YIELD_UNIT_VALUES: tuple[str, ...] = ("L/day", "L/year")
BODY_WEIGHT_UNIT_VALUES: tuple[str, ...] = ("kg", "lb")

# Legacy spelling still present in older breed exports.
_CONSERVATION_STATUS_SYNONYMS: dict[str, str] = {"commom": "Common"}


def require_vocabulary_value(field_name: str, raw_value: str | None, allowed: tuple[str, ...]) -> str:
    """Return the canonical member for ``raw_value`` or raise ``ValidationFailure``."""

    cleaned = (raw_value or "").strip()
    if not cleaned:
        raise ValidationFailure(f"{field_name} is required")
    if field_name == "conservation_status":
        cleaned = _CONSERVATION_STATUS_SYNONYMS.get(cleaned.lower(), cleaned)
    for member in allowed:
        if member.lower() == cleaned.lower():
            return member
    raise ValidationFailure(f"{field_name} must be one of {', '.join(allowed)}; got {cleaned!r}")
