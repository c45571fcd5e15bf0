# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer configuration contracts."""

from dataclasses import dataclass
from typing import Protocol


class ConfigurationError(ValueError):
    """Represent an invalid analyzer configuration detected at construction."""


@dataclass(frozen=True)
class AnalyzerConfig:
    """Static analyzer settings.

    Attributes:
        validation_strictness: Value in [0, 1]; lower values promote borderline
            error findings to warnings.
        thai_validation_enabled: Fold Thai findings into TS 101 756 results.
        government_reporting_enabled: Forward each critical finding to the
            result sink on its own.
    """

    validation_strictness: float = 1.0
    thai_validation_enabled: bool = True
    government_reporting_enabled: bool = False

    def __post_init__(self) -> None:
        strictness = self.validation_strictness
        if strictness != strictness or not 0.0 <= strictness <= 1.0:
            raise ConfigurationError(
                f"validation_strictness must be within [0, 1], got {strictness}"
            )


class ConfigProvider(Protocol):
    """Define the contract for supplying analyzer settings."""

    def load_config(self) -> AnalyzerConfig:
        """Return the settings for one analyzer instance."""
