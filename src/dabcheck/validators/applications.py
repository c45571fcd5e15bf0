# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""User application signalling checks for SlideShow, SPI and TPEG."""

from dabcheck.eti import (
    USER_APP_SLIDESHOW,
    USER_APP_SPI,
    USER_APP_TPEG,
    DecodedBuffer,
    UserApplication,
    parse_country_info,
    parse_user_applications,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

# X-PAD data service component type for MOT.
DSCTY_MOT = 60
MAX_TPEG_APP_DATA = 23
MAX_LTO_HALF_HOURS = 24


def user_applications(
    decoded: DecodedBuffer,
) -> tuple[list[UserApplication], list[str]]:
    """Collect all FIG 0/13 entries of a buffer with their decoding errors."""
    apps: list[UserApplication] = []
    errors: list[str] = []
    for fig in decoded.figs_of(0, 13):
        fig_apps, fig_errors = parse_user_applications(fig)
        apps.extend(fig_apps)
        errors.extend(fig_errors)
    return apps, errors


class UserApplicationValidator(BufferValidator):
    """Base for standards announced through FIG 0/13.

    Subclasses set ``app_type`` and ``app_name`` and add their own checks on
    the matching entries.
    """

    app_type: int
    app_name: str

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        apps, errors = user_applications(decoded)
        findings: list[ComplianceResult] = []
        if errors:
            findings.append(
                self.results.malformed(
                    "user_application_structure",
                    "FIG 0/13 entries within bounds",
                    "; ".join(errors),
                )
            )
        matching = [app for app in apps if app.app_type == self.app_type]
        if not matching:
            findings.append(
                self.results.not_applicable(
                    "application_signalling",
                    f"{self.app_name} user application signalling",
                    f"No service announces {self.app_name} "
                    f"(user application type 0x{self.app_type:03X}).",
                )
            )
            return findings
        sids = sorted({app.sid for app in matching})
        findings.append(
            self.results.ok(
                "application_signalling",
                f"{self.app_name} user application signalling",
                f"{self.app_name} announced for "
                f"{', '.join(f'0x{sid:X}' for sid in sids)}.",
                {"services": str(len(sids))},
            )
        )
        findings.extend(self.check_applications(decoded, matching))
        return findings

    def check_applications(
        self, decoded: DecodedBuffer, apps: list[UserApplication]
    ) -> list[ComplianceResult]:
        return []


class SlideShowValidator(UserApplicationValidator):
    """TS 101 499: SlideShow carried as MOT in X-PAD."""

    standard = "TS_101_499"
    minimum_length = 2
    app_type = USER_APP_SLIDESHOW
    app_name = "SlideShow"

    def check_applications(
        self, decoded: DecodedBuffer, apps: list[UserApplication]
    ) -> list[ComplianceResult]:
        xpad = [app for app in apps if app.data]
        packet = len(apps) - len(xpad)
        mot = [
            app
            for app in xpad
            if len(app.data) >= 2 and app.data[1] & 0x3F == DSCTY_MOT
        ]
        details = f"{len(mot)} of {len(xpad)} X-PAD announcements use DSCTy MOT"
        if packet:
            details += f"; {packet} without X-PAD parameters (packet mode)"
        return [
            self.results.ratio(
                "xpad_parameters",
                "SlideShow X-PAD application parameters",
                len(mot),
                len(xpad),
                details + ".",
                "Announce SlideShow X-PAD data with DSCTy 60 (MOT).",
            )
        ]


class ServiceProgrammeInformationValidator(UserApplicationValidator):
    """TS 102 818: SPI announcement with country and time offset signalling."""

    standard = "TS_102_818"
    minimum_length = 2
    app_type = USER_APP_SPI
    app_name = "SPI"

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        findings = super().check(decoded)
        announced = any(
            result.check_name == "application_signalling" and result.category == "ok"
            for result in findings
        )
        findings.append(self._country_information(decoded, announced))
        return findings

    def _country_information(
        self, decoded: DecodedBuffer, announced: bool
    ) -> ComplianceResult:
        name = "country_information"
        description = "FIG 0/9 extended country code and local time offset"
        infos = [
            info
            for info in map(parse_country_info, decoded.figs_of(0, 9))
            if info is not None
        ]
        if not infos:
            if not announced:
                return self.results.not_applicable(
                    name, description, "Buffer carries no FIG 0/9."
                )
            return self.results.violation(
                name,
                description,
                70.0,
                "SPI is announced but no FIG 0/9 supplies the extended country "
                "code needed for service identification.",
                "Transmit FIG 0/9 with the ensemble ECC.",
            )
        info = infos[0]
        metadata = {"ecc": f"0x{info.ecc:02X}", "lto": str(info.lto_half_hours)}
        problems: list[str] = []
        if info.ecc == 0:
            problems.append("ECC is 0x00")
        if abs(info.lto_half_hours) > MAX_LTO_HALF_HOURS:
            problems.append(
                f"local time offset {info.lto_half_hours / 2:+.1f} h exceeds "
                f"{MAX_LTO_HALF_HOURS // 2} h"
            )
        if problems:
            return self.results.violation(
                name,
                description,
                50.0,
                "; ".join(problems) + ".",
                "Configure the ensemble ECC and local time offset.",
                metadata,
            )
        return self.results.ok(
            name,
            description,
            f"ECC 0x{info.ecc:02X}, LTO {info.lto_half_hours / 2:+.1f} h.",
            metadata,
        )


class TpegValidator(UserApplicationValidator):
    """TS 103 551: TPEG announcement with bounded application data."""

    standard = "TS_103_551"
    minimum_length = 2
    app_type = USER_APP_TPEG
    app_name = "TPEG"

    def check_applications(
        self, decoded: DecodedBuffer, apps: list[UserApplication]
    ) -> list[ComplianceResult]:
        bounded = [app for app in apps if len(app.data) <= MAX_TPEG_APP_DATA]
        return [
            self.results.ratio(
                "application_data",
                "TPEG user application data length",
                len(bounded),
                len(apps),
                f"{len(bounded)} of {len(apps)} TPEG announcements carry at most "
                f"{MAX_TPEG_APP_DATA} bytes of application data.",
                f"Limit TPEG user application data to {MAX_TPEG_APP_DATA} bytes.",
            )
        ]
