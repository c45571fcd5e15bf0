# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Thai-language analysis stack for DAB metadata."""

from dabcheck.thai.calendar import BuddhistCalendar, CalendarTable
from dabcheck.thai.characters import CharacterValidation, ThaiCharacterAnalyzer
from dabcheck.thai.cultural import (
    CulturalAnalysis,
    CulturalContentAnalyzer,
    CulturalPolicy,
    KeywordDatabase,
)
from dabcheck.thai.engine import (
    ComplianceStatistics,
    DLSThaiAnalysis,
    ThaiAnalysisEngine,
    ThaiMetadata,
    ThaiTextFields,
)
from dabcheck.thai.profile import CharacterProfileTable

__all__ = [
    "BuddhistCalendar",
    "CalendarTable",
    "CharacterProfileTable",
    "CharacterValidation",
    "ComplianceStatistics",
    "CulturalAnalysis",
    "CulturalContentAnalyzer",
    "CulturalPolicy",
    "DLSThaiAnalysis",
    "KeywordDatabase",
    "ThaiAnalysisEngine",
    "ThaiCharacterAnalyzer",
    "ThaiMetadata",
    "ThaiTextFields",
]
