# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""TS 103 176 service information checks: date and time, labels."""

from datetime import date, timedelta

from dabcheck.eti import (
    DecodedBuffer,
    DateTime,
    parse_date_time,
    parse_ensemble_info,
    parse_label,
    parse_services,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

MJD_EPOCH = date(1858, 11, 17)
# 2000-01-01 and 2100-01-01
MJD_MIN = 51544
MJD_MAX = 88069


def mjd_to_date(mjd: int) -> date:
    return MJD_EPOCH + timedelta(days=mjd)


def date_time_problems(value: DateTime) -> list[str]:
    """Return the out-of-range fields of a FIG 0/10 date and time."""
    problems: list[str] = []
    if not MJD_MIN <= value.mjd < MJD_MAX:
        problems.append(f"MJD {value.mjd} outside 2000-2099")
    if value.hours > 23:
        problems.append(f"hours {value.hours}")
    if value.minutes > 59:
        problems.append(f"minutes {value.minutes}")
    if value.seconds > 59:
        problems.append(f"seconds {value.seconds}")
    if value.milliseconds > 999:
        problems.append(f"milliseconds {value.milliseconds}")
    return problems


class ServiceInformationValidator(BufferValidator):
    """Check FIG 0/10 date and time and label coverage of signalled services."""

    standard = "TS_103_176"
    minimum_length = 2

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        if not decoded.figs:
            return [
                self.results.not_applicable(
                    "service_information",
                    "Service information features",
                    "Buffer carries no FIGs.",
                )
            ]
        return [
            self._date_time(decoded),
            self._ensemble_label(decoded),
            self._service_labels(decoded),
        ]

    def _date_time(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "date_time"
        description = "FIG 0/10 date and time"
        figs = decoded.figs_of(0, 10)
        if not figs:
            return self.results.not_applicable(
                name, description, "FIG 0/10 is not carried in this buffer."
            )
        value = parse_date_time(figs[0])
        if value is None:
            return self.results.malformed(
                name, description, "FIG 0/10 is too short for its UTC flag."
            )
        problems = date_time_problems(value)
        if problems:
            return self.results.violation(
                name,
                description,
                30.0,
                f"Invalid date and time fields: {', '.join(problems)}.",
                "Synchronise the multiplexer clock and check FIG 0/10 encoding.",
                {"mjd": str(value.mjd)},
            )
        stamp = (
            f"{mjd_to_date(value.mjd).isoformat()} "
            f"{value.hours:02d}:{value.minutes:02d}:{value.seconds:02d} UTC"
        )
        return self.results.ok(
            name, description, f"Broadcast time {stamp}.", {"mjd": str(value.mjd)}
        )

    def _ensemble_label(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "ensemble_label"
        description = "FIG 1/0 ensemble label matches FIG 0/0"
        infos = [
            info
            for info in map(parse_ensemble_info, decoded.figs_of(0, 0))
            if info is not None
        ]
        if not infos:
            return self.results.not_applicable(
                name, description, "Buffer carries no FIG 0/0 ensemble identifier."
            )
        labels = [
            label
            for label in map(parse_label, decoded.figs_of(1, 0))
            if label is not None
        ]
        if not labels:
            return self.results.not_applicable(
                name, description, "FIG 1/0 is not carried in this buffer."
            )
        eid = infos[0].eid
        if any(label.identifier == eid for label in labels):
            return self.results.ok(
                name, description, f"Ensemble 0x{eid:04X} is labelled."
            )
        return self.results.violation(
            name,
            description,
            50.0,
            f"FIG 1/0 labels do not carry ensemble identifier 0x{eid:04X}.",
            "Label the ensemble with the EId signalled in FIG 0/0.",
        )

    def _service_labels(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "service_labels"
        description = "Every FIG 0/2 service has a FIG 1 label"
        sids: set[int] = set()
        for fig in decoded.figs_of(0, 2):
            services, _ = parse_services(fig)
            sids.update(service.sid for service in services)
        if not sids:
            return self.results.not_applicable(
                name, description, "Buffer carries no FIG 0/2 services."
            )
        figs = decoded.figs_of(1, 1) + decoded.figs_of(1, 5)
        labelled = {
            label.identifier for label in map(parse_label, figs) if label is not None
        }
        missing = sorted(sids - labelled)
        details = f"{len(sids) - len(missing)} of {len(sids)} services are labelled."
        if missing:
            details += f" Missing: {', '.join(f'0x{sid:X}' for sid in missing)}."
        return self.results.ratio(
            name,
            description,
            len(sids) - len(missing),
            len(sids),
            details,
            "Transmit a FIG 1/1 or FIG 1/5 label for every service.",
            {"services": str(len(sids))},
        )
