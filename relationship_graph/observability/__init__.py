"""
Observability Layer

RESPONSIBILITY: Record degradations, mirror them to the standard logger
ALLOWED INPUTS: Diagnostic records from any component
OUTPUTS: Read-only views over collected diagnostics

WHAT THIS LAYER MUST NOT DO:
============================
- Modify engine behavior
- Raise because something was recorded
- Filter events on the way in (only on the way out)
"""

from __future__ import annotations
import logging
from collections import Counter
from typing import Dict, List, Optional

from ..contracts.diagnostics import Diagnostic, DiagnosticCode

logger = logging.getLogger(__name__)


class DiagnosticsCollector:
    """
    Append-only collector of Diagnostic records.

    Components receive an optional collector; when none is given they
    still log, they just do not keep the record.
    """

    def __init__(self, name: str = "engine"):
        self._name = name
        self._entries: List[Diagnostic] = []

    def collect(self, diagnostic: Diagnostic):
        """Collect a diagnostic (append-only) and mirror it to the log."""
        self._entries.append(diagnostic)
        logger.debug(
            "[%s] %s %s: %s",
            diagnostic.component,
            diagnostic.code.name,
            diagnostic.subject_id or "-",
            diagnostic.message,
        )

    def record(
        self,
        code: DiagnosticCode,
        component: str,
        message: str,
        subject_id: Optional[str] = None,
        **context: object
    ) -> Diagnostic:
        """Helper to build and collect a diagnostic in one call."""
        diagnostic = Diagnostic(
            code=code,
            component=component,
            message=message,
            subject_id=subject_id,
            context=tuple((k, str(v)) for k, v in sorted(context.items())),
        )
        self.collect(diagnostic)
        return diagnostic

    def get_entries(
        self,
        code: Optional[DiagnosticCode] = None,
        component: Optional[str] = None
    ) -> List[Diagnostic]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if code:
            entries = [e for e in entries if e.code == code]

        if component:
            entries = [e for e in entries if e.component == component]

        return list(entries)

    def summary(self) -> Dict[str, int]:
        """Count of entries per diagnostic code name."""
        return dict(Counter(e.code.name for e in self._entries))

    def clear(self):
        self._entries.clear()

    @property
    def name(self) -> str:
        return self._name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


def record_diagnostic(
    collector: Optional[DiagnosticsCollector],
    code: DiagnosticCode,
    component: str,
    message: str,
    subject_id: Optional[str] = None,
    **context: object
):
    """Record into `collector` when one is attached, otherwise only log."""
    if collector is not None:
        collector.record(code, component, message, subject_id, **context)
    else:
        logger.debug("[%s] %s %s: %s", component, code.name, subject_id or "-", message)


__all__ = ['DiagnosticsCollector', 'record_diagnostic']
