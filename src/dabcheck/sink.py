# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Result sink contracts."""

from typing import Protocol

from dabcheck.model import ComplianceResult, ETIAnalysisReport


class SinkError(RuntimeError):
    """Represent a failed hand-off of results to a sink."""


class ResultSink(Protocol):
    """Define the contract for transmitting analysis output.

    Delivery is fire-and-forget: the analyzer does not retry and does not wait
    for acknowledgment.
    """

    def submit_report(self, report: ETIAnalysisReport) -> None:
        """Accept one assembled report."""

    def submit_result(self, result: ComplianceResult) -> None:
        """Accept one individual finding."""
