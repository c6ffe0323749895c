from collections.abc import Sequence

from fintrack_ai.domain.similarity import calculate_similarity
from fintrack_ai.domain.timefmt import format_time_difference, seconds_between
from fintrack_ai.logger import get_logger
from fintrack_ai.models import DuplicateGroup, SimilarityResult, Transaction

logger = get_logger(__name__)

DUPLICATE_THRESHOLD = 0.8
POTENTIAL_DUPLICATE_THRESHOLD = 0.7
DEFAULT_TIME_WINDOW_HOURS = 24
SECONDS_PER_HOUR = 3600

NO_EXISTING_REASON = "No existing transactions to compare against"


def _format_amount(value: float) -> str:
    # Rounding at 10 places only hides float noise such as 0.1 + 0.2.
    return f"{round(value, 10):.10f}".rstrip("0").rstrip(".")


class DuplicateDetector:
    """
    Flags newly entered transactions that look like ones already recorded.

    Holds nothing but its thresholds, so one instance can serve concurrent
    callers. Scores above ``threshold`` are duplicates; scores above
    ``potential_threshold`` are only surfaced for review by
    ``find_potential_duplicates``.
    """

    def __init__(
        self,
        threshold: float = DUPLICATE_THRESHOLD,
        potential_threshold: float = POTENTIAL_DUPLICATE_THRESHOLD,
    ) -> None:
        self.threshold = threshold
        self.potential_threshold = potential_threshold

    def detect_duplicate(
        self,
        candidate: Transaction,
        existing: Sequence[Transaction] | None,
        time_window_hours: float = DEFAULT_TIME_WINDOW_HOURS,
    ) -> SimilarityResult:
        if not isinstance(existing, (list, tuple)) or not existing:
            return SimilarityResult(
                is_duplicate=False,
                confidence=0.0,
                reasons=[NO_EXISTING_REASON],
            )

        recent = self._within_window(candidate, existing, time_window_hours)
        logger.debug(
            "Comparing '%s' against %d of %d transactions within %sh.",
            (candidate.name or "")[:50],
            len(recent),
            len(existing),
            time_window_hours,
        )

        max_confidence = 0.0
        most_similar: Transaction | None = None
        for other in recent:
            similarity = calculate_similarity(candidate, other)
            if similarity > max_confidence:
                max_confidence = similarity
                most_similar = other

        is_duplicate = max_confidence > self.threshold
        reasons: list[str] = []
        if is_duplicate and most_similar is not None:
            amount_diff = abs((candidate.amount or 0) - (most_similar.amount or 0))
            reasons = [
                f"Similar transaction found: {most_similar.name}",
                f"Amount difference: {_format_amount(amount_diff)}",
                f"Time difference: {format_time_difference(candidate.date, most_similar.date)}",
            ]
            logger.info(
                "Possible duplicate of '%s' (id=%s, confidence %.2f).",
                most_similar.name,
                most_similar.id,
                max_confidence,
            )

        return SimilarityResult(
            is_duplicate=is_duplicate,
            confidence=max_confidence,
            similar_transaction=most_similar,
            reasons=reasons,
        )

    def find_potential_duplicates(
        self, transactions: Sequence[Transaction] | None
    ) -> list[DuplicateGroup]:
        """
        Group every transaction with the later ones it resembles.

        All pairs are compared with no time window, so this is quadratic in
        the number of transactions.
        """
        if not isinstance(transactions, (list, tuple)):
            return []

        groups: list[DuplicateGroup] = []
        for i, current in enumerate(transactions):
            similar: list[Transaction] = []
            best = 0.0
            for other in transactions[i + 1:]:
                similarity = calculate_similarity(current, other)
                if similarity > self.potential_threshold:
                    similar.append(other)
                    best = max(best, similarity)

            if similar:
                groups.append(DuplicateGroup(
                    transaction=current,
                    duplicates=similar,
                    confidence=best,
                ))

        logger.debug(
            "Scanned %d transactions, %d have potential duplicates.",
            len(transactions),
            len(groups),
        )
        return groups

    @staticmethod
    def _within_window(
        candidate: Transaction,
        existing: Sequence[Transaction],
        time_window_hours: float,
    ) -> list[Transaction]:
        if candidate.date is None:
            return []
        window = time_window_hours * SECONDS_PER_HOUR
        return [
            other
            for other in existing
            if other.date is not None and seconds_between(candidate.date, other.date) <= window
        ]
