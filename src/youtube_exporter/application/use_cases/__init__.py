"""Use case implementations for application workflows."""

from youtube_exporter.application.use_cases.validate_config import ValidateConfigUseCase

__all__ = [
    "ValidateConfigUseCase",
]
