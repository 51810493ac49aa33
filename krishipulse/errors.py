# krishipulse/errors.py
from typing import List, Optional


class PipelineError(Exception):
    """Base class for everything the farmer pipeline raises on purpose."""


class LocationError(PipelineError):
    """Farmer location could not be resolved or is out of range. Fatal for the pipeline."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class StageError(PipelineError):
    """A data collection stage failed; the stage degrades to fallback data."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class ImageDecodeError(PipelineError):
    """An uploaded image could not be turned into bytes."""
