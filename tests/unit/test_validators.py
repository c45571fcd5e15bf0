# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the per-standard validators and finding construction."""

from datetime import date

import pytest

from dabcheck.model import STANDARD_ORDER, ComplianceResult
from dabcheck.thai.characters import ThaiCharacterAnalyzer
from dabcheck.thai.engine import ThaiAnalysisEngine
from dabcheck.validator import ResultFactory
from dabcheck.validators import (
    AudioCodingValidator,
    CharacterSetValidator,
    CoreStructureValidator,
    NetworkConfigurationValidator,
    ServiceInformationValidator,
    ServiceProgrammeInformationValidator,
    SlideShowValidator,
    TpegValidator,
    TransmissionValidator,
    build_validators,
)
from frames import (
    ENSEMBLE_ID,
    SERVICE_ID,
    compliant_fic,
    compliant_frame,
    eti_frame,
    fib,
    fic,
    fig,
    fig0_0,
    fig0_1,
    fig0_2,
    fig0_9,
    fig0_10,
    fig0_13,
    fig1,
    mjd,
    subchannel_long,
    superframe_start,
)


def _by_name(results: list[ComplianceResult]) -> dict[str, ComplianceResult]:
    return {result.check_name: result for result in results}


def test_val_001_compliant_frame_passes_every_standard() -> None:
    frame = compliant_frame()
    validators = build_validators(1.0, ThaiAnalysisEngine())

    assert list(validators) == list(STANDARD_ORDER)
    for standard, validator in validators.items():
        results = validator.validate(frame)
        assert results, standard
        assert all(result.passed for result in results), standard
        assert all(result.score == 100.0 for result in results), standard
        assert all(result.standard == standard for result in results)


def test_val_002_short_buffer_yields_single_insufficient_data_finding() -> None:
    results = TransmissionValidator().validate(compliant_frame()[:6])

    assert len(results) == 1
    assert results[0].check_name == "insufficient_data"
    assert results[0].category == "insufficient_data"
    assert results[0].severity == "critical"
    assert results[0].score == 0.0
    assert not results[0].passed


def test_val_003_result_factory_rejects_out_of_range_strictness() -> None:
    with pytest.raises(ValueError):
        ResultFactory("EN_300_401", 1.5)
    with pytest.raises(ValueError):
        ResultFactory("EN_300_401", -0.1)


@pytest.mark.parametrize(
    ("strictness", "score", "expected"),
    [
        (1.0, 80.0, "error"),
        (0.5, 80.0, "warning"),
        (0.5, 77.0, "error"),
        (0.0, 70.0, "warning"),
        (0.0, 69.9, "critical"),
        (1.0, 95.0, "info"),
    ],
)
def test_val_004_strictness_promotes_error_band_scores(
    strictness: float, score: float, expected: str
) -> None:
    assert ResultFactory("EN_300_401", strictness).severity(score) == expected


def test_val_005_transmission_frame_count_out_of_range() -> None:
    results = _by_name(
        TransmissionValidator().validate(eti_frame(compliant_fic(), fct=250))
    )

    assert results["transmission_mode"].metadata["mode"] == "I"
    assert results["frame_count"].score == 50.0
    assert results["frame_count"].severity == "critical"
    assert results["fic_length"].passed


def test_val_006_transmission_fic_length_and_strictness() -> None:
    short_fic = compliant_fic()[:64]

    strict = TransmissionValidator(1.0).validate(short_fic)
    lenient = TransmissionValidator(0.5).validate(short_fic)
    bare = TransmissionValidator().validate(fig0_9(14, 0xE8) + b"\x00\x00\x00")

    assert strict[0].score == 80.0
    assert strict[0].severity == "error"
    assert lenient[0].severity == "warning"
    assert not lenient[0].passed
    assert bare[0].category == "not_applicable"


def test_val_007_transmission_without_fic() -> None:
    results = _by_name(TransmissionValidator().validate(eti_frame()))

    assert results["fic_length"].category == "not_applicable"


def test_val_008_core_frame_length_mismatch() -> None:
    results = _by_name(
        CoreStructureValidator().validate(eti_frame(compliant_fic(), fl=10))
    )

    assert results["frame_length"].score == 40.0
    assert results["frame_length"].metadata["expected_fl"] == "25"
    assert results["header_crc"].passed


def test_val_009_core_crc_failures_are_critical() -> None:
    frame = eti_frame(
        compliant_fic(),
        streams=[(1, superframe_start(144))],
        corrupt_header_crc=True,
        corrupt_mst_crc=True,
    )

    results = _by_name(CoreStructureValidator().validate(frame))

    assert results["header_crc"].severity == "critical"
    assert results["mst_crc"].severity == "critical"
    assert results["frame_sync"].passed


def test_val_010_core_fib_crc_ratio_and_fig_errors() -> None:
    data = fic(fib(fig0_9(14, 0xE8), corrupt_crc=True), fib(), fib())

    fib_results = _by_name(CoreStructureValidator().validate(data))
    fig_results = _by_name(
        CoreStructureValidator().validate(fig0_9(14, 0xE8) + bytes([0x1F, 0x00]))
    )

    assert fib_results["fib_crc"].score == pytest.approx(200.0 / 3.0)
    assert fib_results["frame_sync"].category == "not_applicable"
    assert fig_results["fig_structure"].category == "malformed_structure"
    assert fig_results["fig_structure"].score == 75.0


def test_val_011_core_reserved_fig_type() -> None:
    results = _by_name(
        CoreStructureValidator().validate(fig0_9(14, 0xE8) + fig(3, b"\x01\x02"))
    )

    assert results["fig_structure"].score == 80.0
    assert results["fig_structure"].category == "violation"


def test_val_012_core_truncated_frame_is_malformed() -> None:
    results = _by_name(CoreStructureValidator().validate(compliant_frame()[:40]))

    assert results["mst_crc"].category == "malformed_structure"
    assert results["frame_length"].category == "malformed_structure"


def test_val_013_audio_size_sync_and_idle_payload() -> None:
    frame = eti_frame(compliant_fic(), streams=[(1, b"\x00" * 136)])

    results = _by_name(AudioCodingValidator().validate(frame))

    assert results["subchannel_size"].score == 0.0
    assert results["superframe_sync"].score == 85.0
    assert results["superframe_sync"].category == "insufficient_data"
    assert results["superframe_sync"].severity == "warning"
    assert results["payload_activity"].score == 0.0


def test_val_014_audio_without_service_organisation_checks_every_stream() -> None:
    frame = eti_frame(
        fic(fib(fig0_9(14, 0xE8))), streams=[(3, superframe_start(144))]
    )

    results = _by_name(AudioCodingValidator().validate(frame))

    assert results["superframe_sync"].passed
    assert results["subchannel_size"].passed


def test_val_015_audio_non_dab_plus_service_is_not_applicable() -> None:
    data_fic = fic(fib(fig0_2(SERVICE_ID, [(0, 0x00, 1, True)])))
    frame = eti_frame(data_fic, streams=[(1, b"\x00" * 136)])

    results = AudioCodingValidator().validate(frame)

    assert [result.category for result in results] == ["not_applicable"]


def test_val_016_charset_flags_and_undefined_charset() -> None:
    data = fic(
        fib(fig1(1, SERVICE_ID, b"Radio One", charset=0x05)),
        fib(fig1(1, SERVICE_ID + 1, b"Radio Two", char_flags=0x0000)),
    )

    results = _by_name(CharacterSetValidator().validate(data))

    assert results["label_structure"].passed
    assert results["label_charset"].score == 50.0
    assert results["short_label_flags"].score == 50.0
    assert results["label_decodability"].passed


def test_val_017_charset_thai_profile_labels_use_engine() -> None:
    encoded = ThaiCharacterAnalyzer().convert_to_profile("สถานีเพลง").data
    bad = bytes([0xA1, 0xDC])
    data = fic(
        fib(fig1(1, SERVICE_ID, encoded, charset=0x0E)),
        fib(fig1(1, SERVICE_ID + 1, bad, charset=0x0E)),
    )
    engine = ThaiAnalysisEngine()

    results = CharacterSetValidator(thai_engine=engine).validate(data)
    names = [result.check_name for result in results]

    assert names.count("thai_label_profile") == 2
    assert names.count("thai_label_cultural") == 2
    assert _by_name(results)["label_decodability"].score == 50.0
    profiles = [r for r in results if r.check_name == "thai_label_profile"]
    assert profiles[0].passed
    assert not profiles[1].passed
    assert engine.get_total_analyzed_count() == 2


def test_val_018_charset_without_engine_skips_thai_findings() -> None:
    data = fic(fib(fig1(1, SERVICE_ID, b"\xa1\xa2", charset=0x0E)))

    names = [r.check_name for r in CharacterSetValidator().validate(data)]

    assert "thai_label_profile" not in names


def test_val_019_network_conflicts_overlap_and_mapping() -> None:
    data = fic(
        fib(
            fig0_0(ENSEMBLE_ID),
            fig0_0(0x4FFE),
            fig0_1(subchannel_long(1, 0, 100), subchannel_long(2, 50, 100)),
        ),
        fib(fig0_2(SERVICE_ID, [(0, 0x3F, 1, True), (0, 0x3F, 7, False)])),
    )

    results = _by_name(NetworkConfigurationValidator().validate(data))

    assert results["ensemble_information"].score == 0.0
    assert results["subchannel_identifiers"].passed
    assert results["capacity_units"].passed
    assert results["subchannel_overlap"].score == 0.0
    assert results["component_mapping"].score == 50.0


def test_val_020_network_capacity_and_missing_figs() -> None:
    over = fic(fib(fig0_1(subchannel_long(1, 800, 100))))
    missing = fic(fib(fig0_9(14, 0xE8)))

    over_results = _by_name(NetworkConfigurationValidator().validate(over))
    missing_results = _by_name(NetworkConfigurationValidator().validate(missing))

    assert over_results["capacity_units"].score == 0.0
    assert missing_results["ensemble_information"].score == 60.0
    assert missing_results["subchannel_organisation"].score == 60.0
    assert missing_results["service_organisation"].score == 60.0
    assert "component_mapping" not in missing_results


def test_val_021_network_duplicate_subchannel_definitions_conflict() -> None:
    data = fic(fib(fig0_1(subchannel_long(1, 0, 72), subchannel_long(1, 50, 72))))

    results = _by_name(NetworkConfigurationValidator().validate(data))

    assert results["subchannel_identifiers"].score == 0.0
    assert results["capacity_units"].metadata["used_cu"] == "72"
    assert results["subchannel_overlap"].passed


def test_val_022_slideshow_requires_mot_dscty() -> None:
    data = fic(fib(fig0_13(SERVICE_ID, [(0x002, bytes([0x0C, 0x05]))])))

    results = _by_name(SlideShowValidator().validate(data))

    assert results["application_signalling"].passed
    assert results["xpad_parameters"].score == 0.0


def test_val_023_absent_applications_are_not_applicable() -> None:
    data = fic(fib(fig0_9(14, 0xE8)))

    for validator in (SlideShowValidator(), TpegValidator()):
        results = validator.validate(data)
        assert [r.category for r in results] == ["not_applicable"]


def test_val_024_spi_country_information() -> None:
    announced = fic(fib(fig0_13(SERVICE_ID, [(0x007, b"")])))
    bad_ecc = fic(fib(fig0_13(SERVICE_ID, [(0x007, b"")]), fig0_9(30, 0x00)))

    missing = _by_name(ServiceProgrammeInformationValidator().validate(announced))
    invalid = _by_name(ServiceProgrammeInformationValidator().validate(bad_ecc))

    assert missing["application_signalling"].passed
    assert missing["country_information"].score == 70.0
    assert invalid["country_information"].score == 50.0
    assert "ECC is 0x00" in invalid["country_information"].details


def test_val_025_tpeg_application_data_length() -> None:
    data = fig0_13(SERVICE_ID, [(0x004, bytes(24))])

    results = _by_name(TpegValidator().validate(data))

    assert results["application_data"].score == 0.0


def test_val_026_user_application_overrun_is_malformed() -> None:
    fig_bytes = fig0_13(SERVICE_ID, [(0x002, b"\x01\x02\x03")])
    truncated = bytes([fig_bytes[0] - 2]) + fig_bytes[1:-2]

    results = _by_name(SlideShowValidator().validate(truncated))

    assert results["user_application_structure"].category == "malformed_structure"


def test_val_027_service_information_date_time_ranges() -> None:
    bad_mjd = fic(fib(fig0_10(40000, 10, 0)))
    bad_hour = fic(fib(fig0_10(61331, 25, 0)))

    for data in (bad_mjd, bad_hour):
        results = _by_name(ServiceInformationValidator().validate(data))
        assert results["date_time"].score == 30.0


def test_val_028_service_information_label_coverage() -> None:
    data = fic(
        fib(
            fig0_0(ENSEMBLE_ID),
            fig0_2(SERVICE_ID, [(0, 0x3F, 1, True)]),
            fig0_2(0xE1C1, [(0, 0x3F, 2, True)]),
            fig0_10(mjd(date(2026, 1, 1)), 8, 0),
        ),
        fib(fig1(0, 0x1234, b"Ensemble")),
        fib(fig1(1, SERVICE_ID, b"Radio One")),
    )

    results = _by_name(ServiceInformationValidator().validate(data))

    assert results["date_time"].passed
    assert results["ensemble_label"].score == 50.0
    assert results["service_labels"].score == 50.0
    assert "0xE1C1" in results["service_labels"].details

def test_val_029_frame_header_minimum_applies_to_eti_frames_only() -> None:
    bare = fig0_9(14, 0xE8)
    validators = build_validators(1.0, ThaiAnalysisEngine())

    transmission = TransmissionValidator().validate(bare)
    audio = AudioCodingValidator().validate(bare)

    assert len(bare) == 5
    assert [r.category for r in transmission] == ["not_applicable"]
    assert [r.category for r in audio] == ["not_applicable"]
    for standard, validator in validators.items():
        categories = [r.category for r in validator.validate(bare)]
        assert "insufficient_data" not in categories, standard
    assert AudioCodingValidator().validate(b"")[0].check_name == "insufficient_data"
