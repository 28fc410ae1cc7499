"""
Domain Record Contracts

Goal and project records as supplied by the surrounding application.
The engine never fetches or persists these; it only reads them.

`from_dict` accepts the camelCase payloads used on the wire
(`linkedGoals: [{goalId, weight}]`, `isProgressAutoCalculated`, ...).
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .base import NodeStatus


def _coerce_number(value: Any, default: float = 0.0) -> float:
    """Numeric field from a payload; bools, garbage, NaN and infinities give `default`."""
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return default
    if not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return value


def _coerce_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class GoalLink:
    """A goal's weighted reference to another goal."""
    goal_id: str
    weight: float


@dataclass(frozen=True)
class ProjectLink:
    """A goal's weighted reference to a project."""
    project_id: str
    weight: float


def _parse_links(raw: Any, id_key: str) -> List[Tuple[str, float]]:
    # Malformed entries are skipped, not fatal.
    parsed: List[Tuple[str, float]] = []
    if not isinstance(raw, (list, tuple)):
        return parsed
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        link_id = _coerce_id(entry.get(id_key))
        if not link_id:
            continue
        parsed.append((link_id, _coerce_number(entry.get("weight"))))
    return parsed


@dataclass(frozen=True)
class GoalRecord:
    """Immutable goal as delivered by a data provider."""
    goal_id: str
    title: str = ""
    status: NodeStatus = NodeStatus.NOT_STARTED
    progress: float = 0.0
    category: Optional[str] = None
    linked_goals: Tuple[GoalLink, ...] = field(default_factory=tuple)
    linked_projects: Tuple[ProjectLink, ...] = field(default_factory=tuple)
    is_progress_auto_calculated: bool = False

    def __post_init__(self):
        if not self.goal_id or not isinstance(self.goal_id, str):
            raise ValueError("GoalRecord goal_id must be a non-empty string")

    def with_progress(self, progress: float) -> GoalRecord:
        return replace(self, progress=progress)

    def project_weights(self) -> Dict[str, float]:
        return {link.project_id: link.weight for link in self.linked_projects}

    def goal_weights(self) -> Dict[str, float]:
        return {link.goal_id: link.weight for link in self.linked_goals}

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> GoalRecord:
        """Build from a camelCase payload. Raises ValueError without an id."""
        if not isinstance(data, Mapping):
            raise TypeError("GoalRecord payload must be a mapping")
        return GoalRecord(
            goal_id=_coerce_id(data.get("id")),
            title=str(data.get("title") or ""),
            status=NodeStatus.parse(data.get("status")),
            progress=_coerce_number(data.get("progress")),
            category=data.get("category"),
            linked_goals=tuple(
                GoalLink(goal_id=i, weight=w)
                for i, w in _parse_links(data.get("linkedGoals"), "goalId")
            ),
            linked_projects=tuple(
                ProjectLink(project_id=i, weight=w)
                for i, w in _parse_links(data.get("linkedProjects"), "projectId")
            ),
            is_progress_auto_calculated=bool(data.get("isProgressAutoCalculated", False)),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.goal_id,
            'title': self.title,
            'status': self.status.value,
            'progress': self.progress,
            'category': self.category,
            'linkedGoals': [
                {'goalId': l.goal_id, 'weight': l.weight} for l in self.linked_goals
            ],
            'linkedProjects': [
                {'projectId': l.project_id, 'weight': l.weight} for l in self.linked_projects
            ],
            'isProgressAutoCalculated': self.is_progress_auto_calculated,
        }


@dataclass(frozen=True)
class ProjectRecord:
    """Immutable project as delivered by a data provider."""
    project_id: str
    name: str = ""
    status: NodeStatus = NodeStatus.PLANNING
    progress: float = 0.0

    def __post_init__(self):
        if not self.project_id or not isinstance(self.project_id, str):
            raise ValueError("ProjectRecord project_id must be a non-empty string")

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ProjectRecord:
        if not isinstance(data, Mapping):
            raise TypeError("ProjectRecord payload must be a mapping")
        return ProjectRecord(
            project_id=_coerce_id(data.get("id")),
            name=str(data.get("name") or data.get("title") or ""),
            status=NodeStatus.parse(data.get("status")),
            progress=_coerce_number(data.get("progress")),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.project_id,
            'name': self.name,
            'status': self.status.value,
            'progress': self.progress,
        }
