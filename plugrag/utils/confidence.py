"""Extraction confidence scoring.

Extractors report how much of the expected content they recovered as a
ratio in [0.0, 1.0] (e.g. PDF pages that yielded text over total pages).
The ratio is stored on the document metadata together with a human-readable
:class:`ConfidenceLevel`, and compared against ``min_recovery_ratio`` to set
the ``low_confidence`` flag.  Low confidence is never an error: whether to
ingest such a document is the caller's decision.
"""

from enum import Enum

DEFAULT_MIN_RECOVERY_RATIO = 0.5


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    VERY_LOW = "very_low"    # < 0.2
    LOW = "low"              # 0.2 - 0.4
    MEDIUM = "medium"        # 0.4 - 0.6
    HIGH = "high"            # 0.6 - 0.8
    VERY_HIGH = "very_high"  # >= 0.8


def recovery_ratio(recovered: float, expected: float) -> float:
    """Return ``recovered / expected`` clamped to [0.0, 1.0].

    An ``expected`` of zero means there was nothing to recover, which counts
    as full recovery.

    Raises:
        ValueError: If either argument is negative.
    """
    if recovered < 0 or expected < 0:
        raise ValueError("recovered and expected must be non-negative")
    if expected == 0:
        return 1.0
    return max(0.0, min(1.0, recovered / expected))


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a :class:`ConfidenceLevel`."""
    if score < 0.2:
        return ConfidenceLevel.VERY_LOW
    if score < 0.4:
        return ConfidenceLevel.LOW
    if score < 0.6:
        return ConfidenceLevel.MEDIUM
    if score < 0.8:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH


def is_low_confidence(score: float, min_ratio: float = DEFAULT_MIN_RECOVERY_RATIO) -> bool:
    return score < min_ratio
