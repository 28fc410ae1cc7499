"""
Weight Normalizer
=================

Keeps the weights of one link set (a goal's linked projects, or its linked
goals) summing to exactly 100.

GUARANTEES:
- normalize() never mutates its input and never raises
- Output of a non-empty, non-zero-sum set sums to exactly 100
- normalize(normalize(w)) == normalize(w)
- Rounding drift is absorbed by the first key in iteration order

Weight maps are plain values owned by whichever edit session built them.
There is no module-level weight state.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..contracts.base import LinkCategory, WeightedLink
from ..contracts.diagnostics import DiagnosticCode
from ..observability import DiagnosticsCollector, record_diagnostic

logger = logging.getLogger(__name__)

TARGET_TOTAL = 100


class ZeroSumPolicy(Enum):
    """What to do with a link set whose weights are all zero."""
    LEAVE = "leave"
    DISTRIBUTE_EVENLY = "distribute_evenly"


@dataclass
class WeightConfig:
    """Configuration for weight normalization."""
    zero_sum_policy: ZeroSumPolicy = ZeroSumPolicy.LEAVE


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (floor(x + 0.5)), unlike round()."""
    return int(math.floor(value + 0.5))


def _distribute_evenly(keys) -> Dict[str, int]:
    share = round_half_up(TARGET_TOTAL / len(keys))
    result = {k: share for k in keys}
    result[keys[0]] += TARGET_TOTAL - share * len(keys)
    return result


def normalize(
    weights: Mapping[str, float],
    policy: ZeroSumPolicy = ZeroSumPolicy.LEAVE
) -> Dict[str, float]:
    """
    Rescale sibling weights so they sum to exactly 100.

    - empty: returned as an empty dict
    - sum already 100: unchanged copy
    - sum 0: unchanged copy under LEAVE, even split under DISTRIBUTE_EVENLY
    - otherwise: round_half_up(w / total * 100), residual added to first key

    The whole residual lands on the first key. With many small siblings the
    rounding drift can exceed that key's share and drive it below zero
    (150 equal weights: first key -49, the rest 1). The sum stays 100.
    """
    result = dict(weights)
    keys = list(result)
    if not keys:
        return result

    total = sum(result.values())
    if total == TARGET_TOTAL:
        return result

    if total == 0:
        if policy is ZeroSumPolicy.DISTRIBUTE_EVENLY:
            return _distribute_evenly(keys)
        return result

    for key in keys:
        result[key] = round_half_up(result[key] / total * TARGET_TOTAL)

    new_total = sum(result.values())
    if new_total != TARGET_TOTAL:
        result[keys[0]] += TARGET_TOTAL - new_total

    return result


def seed_equal_weights(
    selected_ids: Iterable[str],
    existing: Optional[Mapping[str, float]] = None
) -> Dict[str, float]:
    """
    Weights for a new link selection, before normalization.

    Newly selected ids (or ids whose weight is 0) start at 100 / len(selected).
    Ids no longer selected are dropped. Order follows the selection.
    """
    selected = list(dict.fromkeys(selected_ids))
    existing = existing or {}
    if not selected:
        return {}

    default = TARGET_TOTAL / len(selected)
    return {
        sid: existing[sid] if existing.get(sid) else default
        for sid in selected
    }


class WeightNormalizer:
    """
    Normalizer bound to a policy and a diagnostics collector.

    Zero-sum sets are not an error; they are recorded and handed back.
    """

    def __init__(
        self,
        config: Optional[WeightConfig] = None,
        diagnostics: Optional[DiagnosticsCollector] = None
    ):
        self._config = config or WeightConfig()
        self._diagnostics = diagnostics

    @property
    def policy(self) -> ZeroSumPolicy:
        return self._config.zero_sum_policy

    def normalize(
        self,
        weights: Mapping[str, float],
        anchor_id: Optional[str] = None
    ) -> Dict[str, float]:
        if weights and sum(weights.values()) == 0:
            record_diagnostic(
                self._diagnostics,
                DiagnosticCode.ZERO_SUM_WEIGHTS,
                "weights",
                "all-zero weight set; policy=%s" % self.policy.value,
                subject_id=anchor_id,
                size=len(weights),
            )
        result = normalize(weights, self.policy)
        logger.debug("normalized %d weights for %s", len(result), anchor_id or "<anonymous>")
        return result


class WeightEditSession:
    """
    One edit session over a single link set.

    Every mutation re-normalizes the whole set, so `weights` always satisfies
    the sum-to-100 invariant (zero-sum sets aside). Unlike the pure
    normalizer this is an edit surface: it rejects negative weights.
    """

    def __init__(
        self,
        anchor_id: str,
        category: LinkCategory,
        weights: Optional[Mapping[str, float]] = None,
        normalizer: Optional[WeightNormalizer] = None
    ):
        self.anchor_id = anchor_id
        self.category = category
        self._normalizer = normalizer or WeightNormalizer()
        initial = dict(weights or {})
        for key, value in initial.items():
            self._check_weight(key, value)
        self._weights = self._normalizer.normalize(initial, anchor_id)

    @staticmethod
    def _check_weight(link_id: str, weight: object):
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValueError(f"weight for {link_id!r} must be a number, got {weight!r}")
        if not math.isfinite(weight):
            raise ValueError(f"weight for {link_id!r} must be finite, got {weight!r}")
        if weight < 0:
            raise ValueError(f"weight for {link_id!r} must not be negative")

    def select(self, link_ids: Iterable[str]) -> Dict[str, float]:
        """Replace the selection; new links get an equal share, then normalize."""
        seeded = seed_equal_weights(link_ids, self._weights)
        self._weights = self._normalizer.normalize(seeded, self.anchor_id)
        return self.weights

    def set_weight(self, link_id: str, weight: float) -> Dict[str, float]:
        """Set one weight, then renormalize the set around it."""
        self._check_weight(link_id, weight)
        updated = dict(self._weights)
        updated[link_id] = weight
        self._weights = self._normalizer.normalize(updated, self.anchor_id)
        return self.weights

    def remove(self, link_id: str) -> Dict[str, float]:
        updated = {k: v for k, v in self._weights.items() if k != link_id}
        self._weights = self._normalizer.normalize(updated, self.anchor_id)
        return self.weights

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    @property
    def total(self) -> float:
        return sum(self._weights.values())

    @property
    def is_balanced(self) -> bool:
        return not self._weights or self.total == TARGET_TOTAL

    def links(self) -> Tuple[WeightedLink, ...]:
        return tuple(WeightedLink(node_id=k, weight=v) for k, v in self._weights.items())
