"""Controlled vocabularies for breed metadata."""

from cattlescan.vocabulary.breed_fields import (
    BODY_WEIGHT_UNIT_VALUES,
    CONSERVATION_STATUS_VALUES,
    MILK_YIELD_UNIT_VALUES,
    SPECIES_VALUES,
    STATUS_VALUES,
    TEMPERAMENT_VALUES,
    require_vocabulary_value,
)

__all__ = [
    "BODY_WEIGHT_UNIT_VALUES",
    "CONSERVATION_STATUS_VALUES",
    "MILK_YIELD_UNIT_VALUES",
    "SPECIES_VALUES",
    "STATUS_VALUES",
    "TEMPERAMENT_VALUES",
    "require_vocabulary_value",
]
