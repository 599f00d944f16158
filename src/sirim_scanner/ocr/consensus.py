"""Temporal consensus over a rolling window of frame observations.

Single-frame OCR is noisy, so the aggregator defers commitment until the same
value reappears across several frames. Every push recomputes the consensus
from scratch over the window, oldest frame first:

    1. TALLY: keep a running count of each field's upper-cased values
    2. BOOST: raise each reading by ``boost_per_frame`` times its running count,
       so a value seen again outweighs an earlier one-off misread
    3. MERGE: fold boosted readings per field; equal text keeps the higher
       confidence, different text lets the higher confidence win and tags
       CONFLICT
    4. VERDICT: a field is stable once its chosen value recurs
       ``min(3, W // 2)`` times; the result is stable with 3 stable fields, or
       with 2 stable fields (1 when only one field is present) and a mean
       confidence of at least ``success_threshold``

Example:
    >>> aggregator = ConsensusAggregator(window_size=5)
    >>> observation = FrameObservation.from_fields(
    ...     {"serial": FieldValue("TEA1234567", 0.78)}
    ... )
    >>> for _ in range(5):
    ...     result = aggregator.push(observation)
    >>> result.is_stable, result.frame_count
    (True, 5)
"""

import logging
from collections import Counter, deque
from typing import Deque, Dict, Optional

from .config_loader import ConsensusConfig
from .types import (
    SERIAL_KEY,
    ConsensusResult,
    FieldSet,
    FieldValue,
    FrameObservation,
    mean_confidence,
)

logger = logging.getLogger(__name__)


class ConsensusAggregator:
    """Owns one scanning session's window and derives its consensus.

    An aggregator is not shared between sessions; concurrent sessions each
    need their own instance.

    A result needs two stable fields to commit unless only one field is
    present at all: a label carrying just a serial becomes stable once that
    serial has been seen ``stable_threshold`` times with a mean confidence of
    at least ``success_threshold``.

    Args:
        config: Consensus configuration. If None, uses model defaults.
        window_size: Overrides ``config.window_size`` when given.

    Raises:
        ValueError: If the window size is smaller than 1.
    """

    def __init__(
        self,
        config: Optional[ConsensusConfig] = None,
        window_size: Optional[int] = None,
    ):
        self.config = config if config is not None else ConsensusConfig()
        self.window_size = window_size if window_size is not None else self.config.window_size
        if self.window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {self.window_size}")

        self.stable_threshold = max(
            1, min(self.config.max_stable_threshold, self.window_size // 2)
        )
        self._window: Deque[FrameObservation] = deque(maxlen=self.window_size)

        logger.info(
            f"ConsensusAggregator initialized: window={self.window_size}, "
            f"stable_threshold={self.stable_threshold}, "
            f"success_threshold={self.config.success_threshold}"
        )

    @property
    def frame_count(self) -> int:
        return len(self._window)

    def reset(self) -> None:
        """Drop every retained observation (new scanning session)."""
        if self._window:
            logger.info(f"Consensus window reset ({len(self._window)} frame(s) dropped)")
        self._window.clear()

    def push(self, observation: FrameObservation) -> ConsensusResult:
        """Add one frame and recompute the consensus.

        A frame without fields is treated as a scene change: the window is
        cleared and an empty result is returned.

        Args:
            observation: Extraction output of the newest frame.

        Returns:
            Consensus over the retained window.
        """
        if observation.is_empty():
            self.reset()
            return ConsensusResult.empty()

        self._window.append(observation)
        return self._compute()

    def _compute(self) -> ConsensusResult:
        tallies: Dict[str, Counter] = {}
        merged: FieldSet = {}

        for frame in self._window:
            for key, candidate in frame.fields.items():
                tally = tallies.setdefault(key, Counter())
                tally[candidate.text.upper()] += 1
                boosted = self._boost(candidate, tally[candidate.text.upper()])

                existing = merged.get(key)
                if existing is None:
                    merged[key] = boosted
                elif existing.matches(boosted):
                    merged[key] = existing.with_confidence(
                        max(existing.confidence, boosted.confidence)
                    ).with_notes(*boosted.notes)
                else:
                    merged[key] = existing.merge_with(boosted)

        stable_fields = {
            key
            for key, value in merged.items()
            if tallies[key][value.text.upper()] >= self.stable_threshold
        }

        confidence = mean_confidence(merged)
        stable_count = len(stable_fields)
        is_stable = stable_count >= 3 or (
            confidence >= self.config.success_threshold
            and stable_count >= min(2, len(merged))
        )

        logger.debug(
            f"Consensus over {len(self._window)} frame(s): confidence={confidence:.2f}, "
            f"stable_fields={sorted(stable_fields)}, is_stable={is_stable}"
        )

        return ConsensusResult(
            fields=merged,
            confidence=confidence,
            frame_count=len(self._window),
            is_stable=is_stable,
            stable_fields=frozenset(stable_fields),
            qr_field=merged.get(SERIAL_KEY),
        )

    def _boost(self, value: FieldValue, count: int) -> FieldValue:
        if value.confidence >= self.config.boost_cap:
            return value
        boosted = min(value.confidence + self.config.boost_per_frame * count, self.config.boost_cap)
        return value.with_confidence(boosted)
