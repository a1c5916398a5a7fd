"""Pet analytics: per-pet reports and the concurrent all-pets summary.

The summary fans out one analysis task per pet onto a bounded thread pool,
waits for every task, and folds the results into an AnalyticsReport. The
batch either succeeds as a whole or raises AggregationAppError; a partial
report is never returned.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable

from petclinic.adapters.owners.base import AbstractOwnerRepository
from petclinic.core.errors import AggregationAppError
from petclinic.schemas.analytics import AnalyticsReport, HealthStatus, PetAnalysis
from petclinic.schemas.owners import Owner, Pet

logger = logging.getLogger(__name__)


_CATEGORY_BY_TYPE = {
    "dog": "Canine",
    "cat": "Feline",
    "bird": "Avian",
    "hamster": "Small Mammal",
    "rabbit": "Small Mammal",
}


def categorize_by_type(pet_type: str) -> str:
    """Map a pet type name to its category, ignoring case."""
    return _CATEGORY_BY_TYPE.get(pet_type.lower(), "Other")


def format_date(value: dt.date | None) -> str:
    """Format a date as e.g. ``Sep 07, 2010``; ``Unknown`` when absent."""
    if value is None:
        return "Unknown"
    return value.strftime("%b %d, %Y")


def determine_health_status(visit_count: int) -> HealthStatus:
    """Derive the health status from the number of visits.

    0 → Unknown, 1–2 → Good, 3–5 → Moderate, 6+ → High Maintenance.
    """
    if visit_count == 0:
        return HealthStatus.UNKNOWN
    if visit_count <= 2:
        return HealthStatus.GOOD
    if visit_count <= 5:
        return HealthStatus.MODERATE
    return HealthStatus.HIGH_MAINTENANCE


def calculate_age(birth_date: dt.date | None, today: dt.date) -> int:
    """Age in years as a plain difference of calendar years.

    Month and day are ignored. Unknown birth dates (and birth dates in the
    future) yield 0.
    """
    if birth_date is None:
        return 0
    return max(0, today.year - birth_date.year)


def analyze_pet(pet: Pet, today: dt.date) -> PetAnalysis:
    """Analyze a single pet. Runs on a worker thread."""
    visit_count = len(pet.visits)
    return PetAnalysis(
        name=pet.name,
        type=pet.type,
        age_in_years=calculate_age(pet.birth_date, today),
        visit_count=visit_count,
        health_status=determine_health_status(visit_count),
    )


def summarize(analyses: Iterable[PetAnalysis], analysis_date: dt.date) -> AnalyticsReport:
    """Fold per-pet analyses into an AnalyticsReport.

    The fold only uses counts and integer sums, so the result does not
    depend on the order in which analyses arrive.

    Args:
        analyses: Completed per-pet analyses.
        analysis_date: Day to stamp on the report.

    Returns:
        AnalyticsReport over all given analyses.
    """
    by_type: Counter[str] = Counter()
    by_health: Counter[str] = Counter()
    total_age = 0
    total_visits = 0
    total = 0

    for analysis in analyses:
        total += 1
        by_type[analysis.type] += 1
        by_health[analysis.health_status.value] += 1
        total_age += analysis.age_in_years
        total_visits += analysis.visit_count

    return AnalyticsReport(
        total_pets=total,
        pets_by_type=dict(sorted(by_type.items())),
        pets_by_health_status=dict(sorted(by_health.items())),
        average_age=total_age / total if total else 0.0,
        total_visits=total_visits,
        analysis_date=analysis_date,
    )


def generate_report(pet: Pet) -> str:
    """Build the plain-text report for one pet.

    Args:
        pet: Pet to describe, visits included.

    Returns:
        Multi-line report ending with a newline.
    """
    lines = [
        f"Pet Report for: {pet.name}",
        f"Type: {pet.type}",
        f"Birth Date: {format_date(pet.birth_date)}",
        f"Category: {categorize_by_type(pet.type)}",
    ]

    if pet.visits:
        last_visit = max(pet.visit_dates)
        lines.append(f"Total Visits: {len(pet.visits)}")
        lines.append(f"Last Visit: {format_date(last_visit)}")
    else:
        lines.append("No visits recorded")

    return "\n".join(lines) + "\n"


def flatten_pets(owners: Iterable[Owner]) -> list[Pet]:
    """Collect the pets of every owner into one list."""
    return [pet for owner in owners for pet in owner.pets]


@dataclass(frozen=True)
class PetAnalysisOutcome:
    """Result of one analysis task: either an analysis or an error."""

    pet: Pet
    analysis: PetAnalysis | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None


class PetAnalyticsService:
    """Service computing pet statistics from the owner repository.

    Attributes:
        source: Repository providing owners with pets and visits.
    """

    def __init__(
        self,
        source: AbstractOwnerRepository,
        *,
        max_workers: int = 8,
        task_timeout_seconds: float = 10.0,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        """Initialize the service and its worker pool.

        Args:
            source: Owner repository to read pets from.
            max_workers: Size of the analysis thread pool.
            task_timeout_seconds: Per-pet analysis time limit.
            today: Date source used for ages and the report date.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if task_timeout_seconds <= 0:
            raise ValueError("task_timeout_seconds must be > 0")

        self.source = source
        self._max_workers = max_workers
        self._task_timeout = task_timeout_seconds
        self._today = today
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pet-analysis")

    def close(self) -> None:
        """Stop the worker pool, waiting for running tasks."""
        self._executor.shutdown(wait=True)

    async def _load_pets(self, loop: asyncio.AbstractEventLoop) -> list[Pet]:
        try:
            owners = await loop.run_in_executor(self._executor, self.source.find_all)
        except Exception as exc:
            logger.error(
                "analytics.source_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise AggregationAppError(
                code="entity_source_unavailable",
                message="Owner data could not be loaded.",
            ) from exc
        return flatten_pets(owners)

    async def _analyze_in_pool(
        self,
        loop: asyncio.AbstractEventLoop,
        slots: asyncio.Semaphore,
        pet: Pet,
        today: dt.date,
    ) -> PetAnalysisOutcome:
        # One slot per worker thread, so the timeout only covers running time.
        try:
            async with slots:
                analysis = await asyncio.wait_for(
                    loop.run_in_executor(self._executor, analyze_pet, pet, today),
                    timeout=self._task_timeout,
                )
        except asyncio.TimeoutError:
            logger.warning(
                "analytics.task_timeout",
                extra={"pet_id": pet.id, "timeout_seconds": self._task_timeout},
            )
            return PetAnalysisOutcome(pet=pet, error=f"timed out after {self._task_timeout}s")
        except Exception as exc:
            logger.warning(
                "analytics.task_failed",
                extra={"pet_id": pet.id, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return PetAnalysisOutcome(pet=pet, error=f"{type(exc).__name__}: {exc}")
        return PetAnalysisOutcome(pet=pet, analysis=analysis)

    async def analyze_all(self) -> AnalyticsReport:
        """Analyze every pet concurrently and summarize the results.

        Returns:
            AnalyticsReport over all pets of all owners.

        Raises:
            AggregationAppError: If owners cannot be loaded or any pet
                analysis fails or times out.
        """
        start = time.perf_counter()
        loop = asyncio.get_running_loop()
        today = self._today()

        pets = await self._load_pets(loop)
        slots = asyncio.Semaphore(self._max_workers)
        outcomes = await asyncio.gather(*(self._analyze_in_pool(loop, slots, pet, today) for pet in pets))

        failures = [outcome for outcome in outcomes if not outcome.ok]
        if failures:
            raise AggregationAppError(
                code="pet_analysis_failed",
                message="Pet analysis failed; no report was produced.",
                details={
                    "total_pets": len(pets),
                    "failed_pets": [f"{o.pet.id}:{o.pet.name}" for o in failures],
                },
            )

        report = summarize((outcome.analysis for outcome in outcomes), today)
        logger.info(
            "analytics.completed",
            extra={
                "total_pets": report.total_pets,
                "workers": self._max_workers,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return report
