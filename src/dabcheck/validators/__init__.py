# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Standard validators, selectable by standard tag."""

from dabcheck.model import STANDARD_ORDER, Standard
from dabcheck.thai.engine import ThaiAnalysisEngine
from dabcheck.validator import StandardValidator
from dabcheck.validators.applications import (
    ServiceProgrammeInformationValidator,
    SlideShowValidator,
    TpegValidator,
)
from dabcheck.validators.audio import AudioCodingValidator
from dabcheck.validators.charsets import CharacterSetValidator
from dabcheck.validators.core import CoreStructureValidator
from dabcheck.validators.network import NetworkConfigurationValidator
from dabcheck.validators.service_info import ServiceInformationValidator
from dabcheck.validators.transmission import TransmissionValidator

VALIDATOR_TYPES: dict[Standard, type] = {
    "EN_302_077": TransmissionValidator,
    "EN_300_401": CoreStructureValidator,
    "TS_102_563": AudioCodingValidator,
    "TS_101_756": CharacterSetValidator,
    "TR_101_496_3": NetworkConfigurationValidator,
    "TS_101_499": SlideShowValidator,
    "TS_102_818": ServiceProgrammeInformationValidator,
    "TS_103_551": TpegValidator,
    "TS_103_176": ServiceInformationValidator,
}


def build_validators(
    strictness: float = 1.0, thai_engine: ThaiAnalysisEngine | None = None
) -> dict[Standard, StandardValidator]:
    """Instantiate one validator per standard in standard order.

    Args:
        strictness: Validation strictness in [0, 1].
        thai_engine: Engine for Thai label checks; ``None`` disables them.

    Returns:
        Validators keyed by standard tag.
    """
    validators: dict[Standard, StandardValidator] = {}
    for standard in STANDARD_ORDER:
        validator_type = VALIDATOR_TYPES[standard]
        if validator_type is CharacterSetValidator:
            validators[standard] = CharacterSetValidator(strictness, thai_engine)
        else:
            validators[standard] = validator_type(strictness)
    return validators


__all__ = [
    "AudioCodingValidator",
    "CharacterSetValidator",
    "CoreStructureValidator",
    "NetworkConfigurationValidator",
    "ServiceInformationValidator",
    "ServiceProgrammeInformationValidator",
    "SlideShowValidator",
    "TpegValidator",
    "TransmissionValidator",
    "VALIDATOR_TYPES",
    "build_validators",
]
