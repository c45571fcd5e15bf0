# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""TR 101 496-3 multiplex configuration checks."""

from dabcheck.eti import (
    CU_ADDRESS_SPACE,
    DecodedBuffer,
    Service,
    SubChannel,
    parse_ensemble_info,
    parse_services,
    parse_subchannels,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

MISSING_FIG_SCORE = 60.0


class NetworkConfigurationValidator(BufferValidator):
    """Check ensemble, sub-channel and service organisation signalling.

    FIG 0/1 entries are repeated across frames, so identical repeats of one
    sub-channel are collapsed before counting capacity. Conflicting
    definitions of one SubChId are reported once as an identifier conflict;
    capacity and overlap then use the first definition only.
    """

    standard = "TR_101_496_3"
    minimum_length = 2

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        if not decoded.figs:
            return [
                self.results.not_applicable(
                    "multiplex_configuration",
                    "Multiplex configuration information",
                    "Buffer carries no FIGs.",
                )
            ]
        findings = [self._ensemble(decoded)]
        subchannels, errors = self._subchannels(decoded)
        if errors:
            findings.append(
                self.results.malformed(
                    "subchannel_organisation",
                    "FIG 0/1 sub-channel organisation",
                    "; ".join(errors),
                )
            )
        elif not subchannels:
            findings.append(
                self.results.violation(
                    "subchannel_organisation",
                    "FIG 0/1 sub-channel organisation",
                    MISSING_FIG_SCORE,
                    "No FIG 0/1 sub-channel organisation in the buffer.",
                    "Repeat FIG 0/1 for every sub-channel in the fast information "
                    "channel.",
                )
            )
        else:
            findings.append(self._unique_ids(subchannels))
            first_definitions = self._first_definitions(subchannels)
            findings.append(self._capacity(first_definitions))
            findings.append(self._overlap(first_definitions))
        services = self._services(decoded)
        findings.append(self._service_organisation(services))
        if services and subchannels:
            findings.append(self._component_mapping(services, subchannels))
        return findings

    def _ensemble(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "ensemble_information"
        description = "FIG 0/0 ensemble information"
        infos = [
            info
            for info in map(parse_ensemble_info, decoded.figs_of(0, 0))
            if info is not None
        ]
        if not infos:
            return self.results.violation(
                name,
                description,
                MISSING_FIG_SCORE,
                "No decodable FIG 0/0 in the buffer.",
                "Transmit FIG 0/0 in FIB 0 of every frame.",
            )
        eids = {info.eid for info in infos}
        if len(eids) > 1:
            listed = ", ".join(f"0x{eid:04X}" for eid in sorted(eids))
            return self.results.violation(
                name,
                description,
                0.0,
                f"Conflicting ensemble identifiers: {listed}.",
                "Configure a single EId for the ensemble.",
            )
        eid = eids.pop()
        return self.results.ok(
            name, description, f"Ensemble 0x{eid:04X}.", {"eid": f"0x{eid:04X}"}
        )

    def _subchannels(
        self, decoded: DecodedBuffer
    ) -> tuple[list[SubChannel], list[str]]:
        entries: list[SubChannel] = []
        errors: list[str] = []
        for fig in decoded.figs_of(0, 1):
            fig_entries, fig_errors = parse_subchannels(fig)
            entries.extend(fig_entries)
            errors.extend(fig_errors)
        return list(dict.fromkeys(entries)), errors

    def _unique_ids(self, subchannels: list[SubChannel]) -> ComplianceResult:
        seen: dict[int, SubChannel] = {}
        conflicts: set[int] = set()
        for entry in subchannels:
            previous = seen.setdefault(entry.subchid, entry)
            if previous != entry:
                conflicts.add(entry.subchid)
        unique = len(seen)
        return self.results.ratio(
            "subchannel_identifiers",
            "Sub-channel identifiers are unique",
            unique - len(conflicts),
            unique,
            f"{unique} sub-channels, {len(conflicts)} with conflicting definitions.",
            "Give every sub-channel one SubChId with a single start and size.",
            {"subchannels": str(unique)},
        )

    def _first_definitions(self, subchannels: list[SubChannel]) -> list[SubChannel]:
        first: dict[int, SubChannel] = {}
        for entry in subchannels:
            first.setdefault(entry.subchid, entry)
        return list(first.values())

    def _capacity(self, subchannels: list[SubChannel]) -> ComplianceResult:
        name = "capacity_units"
        description = f"Sub-channels fit in {CU_ADDRESS_SPACE} capacity units"
        used = sum(entry.size for entry in subchannels)
        beyond = [
            entry
            for entry in subchannels
            if entry.start_address + entry.size > CU_ADDRESS_SPACE
        ]
        metadata = {"used_cu": str(used)}
        if used > CU_ADDRESS_SPACE or beyond:
            return self.results.violation(
                name,
                description,
                0.0,
                f"{used} CU allocated, {len(beyond)} sub-channels end past CU "
                f"{CU_ADDRESS_SPACE - 1}.",
                "Reduce sub-channel sizes or protection levels.",
                metadata,
            )
        return self.results.ok(
            name, description, f"{used} of {CU_ADDRESS_SPACE} CU allocated.", metadata
        )

    def _overlap(self, subchannels: list[SubChannel]) -> ComplianceResult:
        ordered = sorted(subchannels, key=lambda entry: entry.start_address)
        overlapping: list[str] = []
        for current, following in zip(ordered, ordered[1:]):
            if current.start_address + current.size > following.start_address:
                overlapping.append(f"{current.subchid}/{following.subchid}")
        if overlapping:
            return self.results.violation(
                "subchannel_overlap",
                "Sub-channels do not overlap",
                0.0,
                f"Overlapping sub-channel pairs: {', '.join(overlapping)}.",
                "Re-plan start addresses so each CU belongs to one sub-channel.",
            )
        return self.results.ok(
            "subchannel_overlap",
            "Sub-channels do not overlap",
            f"{len(ordered)} sub-channels occupy disjoint CU ranges.",
        )

    def _services(self, decoded: DecodedBuffer) -> list[Service]:
        services: list[Service] = []
        for fig in decoded.figs_of(0, 2):
            fig_services, _ = parse_services(fig)
            services.extend(fig_services)
        return services

    def _service_organisation(self, services: list[Service]) -> ComplianceResult:
        if not services:
            return self.results.violation(
                "service_organisation",
                "FIG 0/2 service organisation",
                MISSING_FIG_SCORE,
                "No FIG 0/2 service organisation in the buffer.",
                "Signal every service with FIG 0/2.",
            )
        sids = {service.sid for service in services}
        return self.results.ok(
            "service_organisation",
            "FIG 0/2 service organisation",
            f"{len(sids)} services signalled.",
            {"services": str(len(sids))},
        )

    def _component_mapping(
        self, services: list[Service], subchannels: list[SubChannel]
    ) -> ComplianceResult:
        known = {entry.subchid for entry in subchannels}
        # TMId 0 and 1 carry a SubChId; 3 carries an SCId instead.
        components = [
            component
            for service in services
            for component in service.components
            if component.tmid in (0, 1)
        ]
        mapped = [component for component in components if component.subchid in known]
        return self.results.ratio(
            "component_mapping",
            "Service components reference signalled sub-channels",
            len(mapped),
            len(components),
            f"{len(mapped)} of {len(components)} stream components reference a "
            "FIG 0/1 sub-channel.",
            "Add FIG 0/1 entries for the sub-channels used by FIG 0/2.",
        )
