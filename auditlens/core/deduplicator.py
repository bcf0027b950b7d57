"""
Duplicate removal and priority merging for scanner file findings.

Pass 1 drops exact (path, severity, rule) repeats. Pass 2 collapses every
remaining record for one path into a single record carrying the highest
ranked severity.
"""

import logging

from auditlens.core.models import DuplicateStats, FileFinding, Severity


logger = logging.getLogger(__name__)


class FindingDeduplicator:
    """
    Collapse duplicate and conflicting findings for the same object.

    Running it on its own output changes nothing.
    """

    def __init__(self) -> None:
        """Initialize merge counters."""
        self.exact_duplicates: int = 0
        self.replaced: int = 0
        self.combined: int = 0
        self.dropped: int = 0

    def deduplicate(self, results: list[FileFinding]) -> tuple[list[FileFinding], DuplicateStats]:
        """
        Run both passes over extracted findings.

        Args:
            results: Findings in extraction order

        Returns:
            Tuple of (merged findings, duplicate statistics)
        """
        self.exact_duplicates = 0
        self.replaced = 0
        self.combined = 0
        self.dropped = 0

        unique: list[FileFinding] = self.remove_exact_duplicates(results)
        merged: list[FileFinding] = self.merge_by_priority(unique)
        stats: DuplicateStats = duplicate_stats(len(results), len(merged))

        if stats.duplicates_removed:
            logger.info(
                "Duplicate detection: %d removed (%.2f%%), %d upgraded, %d rule combinations",
                stats.duplicates_removed,
                stats.duplicate_percentage,
                self.replaced,
                self.combined,
            )

        return merged, stats

    def remove_exact_duplicates(self, results: list[FileFinding]) -> list[FileFinding]:
        """
        Drop repeats of (full path, severity, rule name); first wins.

        Args:
            results: Findings in extraction order

        Returns:
            Findings with exact duplicates removed
        """
        seen: set[tuple[str, Severity, str]] = set()
        unique: list[FileFinding] = []

        for result in results:
            key: tuple[str, Severity, str] = result.identity
            if key in seen:
                self.exact_duplicates += 1
                logger.debug(
                    "Duplicate removed: %s (%s) rule %s",
                    result.full_path, result.severity.value, result.rule_name,
                )
                continue
            seen.add(key)
            unique.append(result)

        return unique

    def merge_by_priority(self, results: list[FileFinding]) -> list[FileFinding]:
        """
        Keep one record per full path.

        A higher ranked severity replaces the kept record; an equal rank with
        a different rule appends the rule name to the kept record.

        Args:
            results: Findings without exact duplicates

        Returns:
            One finding per full path, in first-seen path order
        """
        by_path: dict[str, FileFinding] = {}

        for result in results:
            existing: FileFinding | None = by_path.get(result.full_path)

            if existing is None:
                by_path[result.full_path] = result
                continue

            if result.severity.rank > existing.severity.rank:
                logger.debug(
                    "Replacing %s with %s for %s",
                    existing.severity.value, result.severity.value, result.full_path,
                )
                by_path[result.full_path] = result
                self.replaced += 1

            elif result.severity.rank == existing.severity.rank and result.rule_name != existing.rule_name:
                combined_rule: str = f"{existing.rule_name}, {result.rule_name}"
                by_path[result.full_path] = existing.model_copy(update={"rule_name": combined_rule})
                self.combined += 1

            else:
                self.dropped += 1

        return list(by_path.values())


def duplicate_stats(original_count: int, final_count: int) -> DuplicateStats:
    """
    Build duplicate statistics for reporting.

    Args:
        original_count: Findings before merging
        final_count: Findings after merging

    Returns:
        DuplicateStats with the percentage rounded to two places
    """
    removed: int = original_count - final_count
    percentage: float = (removed / original_count) * 100 if original_count > 0 else 0.0

    return DuplicateStats(
        original_count=original_count,
        final_count=final_count,
        duplicates_removed=removed,
        duplicate_percentage=round(percentage, 2),
    )
