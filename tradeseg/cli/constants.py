"""Exit codes returned by CLI commands."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 10
NOT_FOUND_EXIT_CODE = 20
CONTINUITY_EXIT_CODE = 30
STREAM_STATE_EXIT_CODE = 40
STORAGE_EXIT_CODE = 50

__all__ = [
    "CONTINUITY_EXIT_CODE",
    "NOT_FOUND_EXIT_CODE",
    "STORAGE_EXIT_CODE",
    "STREAM_STATE_EXIT_CODE",
    "SYSTEM_EXIT_CODE",
    "VALIDATION_EXIT_CODE",
]
