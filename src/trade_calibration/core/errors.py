"""Custom exception hierarchy for the calibration engine."""


class CalibrationEngineError(Exception):
    """Base exception for all calibration engine errors."""


# --- Configuration ---
class ConfigError(CalibrationEngineError):
    """Invalid or missing configuration."""


# --- Input ---
class InvalidInputError(CalibrationEngineError):
    """Recommendation stream is empty or contains invalid records."""


class InsufficientDataError(CalibrationEngineError):
    """Too few outcomes to compute a calibration."""

    def __init__(self, found: int, required: int):
        self.found = found
        self.required = required
        super().__init__(
            f"Insufficient data: need at least {required} trades, found {found}. "
            "Widen the calibration window or gather more recommendations."
        )


# --- Storage ---
class StorageError(CalibrationEngineError):
    """Persistence adapter failure. Never raised by the core."""
