"""
Diagnostic Contracts

Degraded input is never raised to the caller. Each degradation is
represented as an immutable Diagnostic so it can be stored and queried.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple


class DiagnosticCode(Enum):
    """
    Enumerated degradations.
    Every "leave as is" branch in the engine maps to exactly one code.
    """
    # Builder
    DANGLING_EDGE = auto()
    DUPLICATE_EDGE = auto()
    MALFORMED_RECORD = auto()

    # Weights
    ZERO_SUM_WEIGHTS = auto()

    # Progress
    UNRESOLVED_LINK = auto()

    # Layout
    UNKNOWN_FOCAL_NODE = auto()
    UNREACHED_NODE = auto()


@dataclass(frozen=True)
class Diagnostic:
    """Immutable record of one degradation."""
    code: DiagnosticCode
    component: str
    message: str
    subject_id: Optional[str] = None
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Diagnostic:
        """Return new Diagnostic with additional context (immutable)."""
        return Diagnostic(
            code=self.code,
            component=self.component,
            message=self.message,
            subject_id=self.subject_id,
            context=self.context + ((key, value),)
        )

    def to_dict(self) -> dict:
        return {
            'code': self.code.name,
            'component': self.component,
            'message': self.message,
            'subject_id': self.subject_id,
            'context': dict(self.context),
        }
