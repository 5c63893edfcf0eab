"""
modules/validation package: turns raw experience rows into canonical records.
"""
from modules.validation.experience_normalizer import (
    ExperienceValidationError,
    ValidationResult,
    from_eventbrite,
    from_google_place,
    from_ticketmaster,
    normalize_all,
    normalize_experience,
    parse_coordinates,
    parse_timestamp,
    validate_experience_record,
)

__all__ = [
    "ExperienceValidationError",
    "ValidationResult",
    "from_eventbrite",
    "from_google_place",
    "from_ticketmaster",
    "normalize_all",
    "normalize_experience",
    "parse_coordinates",
    "parse_timestamp",
    "validate_experience_record",
]
