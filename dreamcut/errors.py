"""
DREAMCUT error taxonomy.

Only ValidationError and AnalysisError terminate a request without a brief.
Degraded stages are recorded on the run state, persistence failures are
logged by the store and never leave it.
"""

from typing import Dict, List, Optional


class DreamcutError(Exception):
    """Base class for brief engine errors"""


class ValidationError(DreamcutError):
    """Malformed or missing request fields. No stage runs."""

    def __init__(self, details: Dict[str, List[str]], message: str = "Invalid request format"):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict:
        return {"success": False, "error": self.message, "details": self.details}


class AnalysisError(DreamcutError):
    """Query analysis failed or returned nothing usable. The run is aborted."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def to_dict(self) -> Dict:
        return {"success": False, "error": self.message}


class PersistenceWarning(DreamcutError):
    """Brief storage failed. Caught and logged inside the store."""
