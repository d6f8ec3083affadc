"""Violation messages for the constraint validator."""

UNIQUENESS_VIOLATION = "Uniqueness constraint violated"
TOTAL_ROLE_VIOLATION = "Total role constraint violated - mandatory participation required"
SUBSET_VIOLATION = "Subset constraint violated"
EQUALITY_VIOLATION = "Equality constraint violated"
EXCLUSION_VIOLATION = "Exclusion constraint violated"
CARDINALITY_MIN_VIOLATION = "Minimum cardinality constraint violated"
CARDINALITY_MAX_VIOLATION = "Maximum cardinality constraint violated"
FREQUENCY_MIN_VIOLATION = "Minimum frequency constraint violated"
FREQUENCY_MAX_VIOLATION = "Maximum frequency constraint violated"
ENUMERATION_VIOLATION = "Value not in allowed enumeration"
NO_EMPTY_VIOLATION = "Object population must not be empty"
