# app/services/timeline.py
"""
Phase timeline engine.

PlantTimeline is a read-only view over a plant's phase sequence, its event log
and a reference instant. Everything it reports is derived on construction from
those three inputs; its mutation methods hand back a new PlantTimeline built
from a new phase list.

The current phase is the last phase, in sequence order, that has a start
date. Phases before it are completed and phases after it are future,
regardless of how long any of them actually ran.
"""
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from app.schemas.event import PlantEvent
from app.schemas.phase import (
    PhaseInstance, PhaseTemplate, PhaseInfo, PhaseDateRange,
    TimelineSummary, ValidationResult
)
from app.services import phases as phase_ops
from app.services import events as event_ops
from app.utils.dates import days_between, format_day, to_naive_utc, utcnow


class PlantTimeline:
    def __init__(
        self,
        phases: Sequence[PhaseInstance],
        events: Optional[Sequence[PlantEvent]] = None,
        now: Optional[datetime] = None
    ):
        self.phases: List[PhaseInstance] = list(phases)
        self.events: List[PlantEvent] = list(events or [])
        self.now: datetime = to_naive_utc(now) if now is not None else utcnow()
        self.current_phase_index: int = phase_ops.find_current_phase_index(self.phases)
        self.timeline: List[PhaseInfo] = self._build_timeline()

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _estimated_start_dates(self) -> List[datetime]:
        """
        Projected start of every phase if each one runs its maximum duration.

        The projection is anchored on the first phase with a real start date:
        that phase starts on its actual date, later phases follow it back to
        back and earlier phases are projected backwards. With nothing started
        the first phase is projected to start now.
        """
        if not self.phases:
            return []

        anchor = 0
        anchor_date = self.now
        for index, phase in enumerate(self.phases):
            if phase.start_date is not None:
                anchor, anchor_date = index, phase.start_date
                break

        estimates: List[Optional[datetime]] = [None] * len(self.phases)
        estimates[anchor] = anchor_date
        for index in range(anchor + 1, len(self.phases)):
            previous = self.phases[index - 1]
            estimates[index] = estimates[index - 1] + timedelta(days=previous.duration_max)
        for index in range(anchor - 1, -1, -1):
            estimates[index] = estimates[index + 1] - timedelta(days=self.phases[index].duration_max)
        return estimates

    def _days_elapsed(self, index: int) -> int:
        phase = self.phases[index]
        if index > self.current_phase_index or phase.start_date is None:
            return 0
        if index == self.current_phase_index:
            end = self.now
        else:
            next_phase = self.phases[index + 1]
            end = next_phase.start_date if next_phase.start_date is not None else self.now
        # Start dates in the future (or out of order) count as zero days
        return max(0, days_between(phase.start_date, end))

    def _build_timeline(self) -> List[PhaseInfo]:
        estimates = self._estimated_start_dates()
        timeline = []
        for index, phase in enumerate(self.phases):
            is_current = index == self.current_phase_index
            is_completed = index < self.current_phase_index
            days_elapsed = self._days_elapsed(index)

            if is_current:
                progress = min(days_elapsed / phase.duration_max * 100, 100.0)
            elif is_completed:
                progress = 100.0
            else:
                progress = 0.0

            timeline.append(PhaseInfo(
                phase=phase,
                index=index,
                actual_date=phase.start_date,
                estimated_date=estimates[index],
                estimated_end_date=estimates[index] + timedelta(days=phase.duration_max),
                days_elapsed=days_elapsed,
                is_current=is_current,
                is_completed=is_completed,
                is_future=index > self.current_phase_index,
                is_overdue=is_current and days_elapsed > phase.duration_max,
                progress_percentage=progress,
            ))
        return timeline

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def current_phase(self) -> Optional[PhaseInstance]:
        if self.current_phase_index < 0:
            return None
        return self.phases[self.current_phase_index]

    @property
    def current_phase_info(self) -> Optional[PhaseInfo]:
        if self.current_phase_index < 0:
            return None
        return self.timeline[self.current_phase_index]

    def get_phase_by_id(self, phase_id: str) -> Optional[PhaseInstance]:
        index = self.get_phase_index(phase_id)
        return self.phases[index] if index >= 0 else None

    def get_phase_index(self, phase_id: str) -> int:
        return phase_ops.find_phase_index(self.phases, phase_id)

    def _info(self, index: int) -> Optional[PhaseInfo]:
        if 0 <= index < len(self.timeline):
            return self.timeline[index]
        return None

    def is_phase_completed(self, index: int) -> bool:
        info = self._info(index)
        return info is not None and info.is_completed

    def is_phase_active(self, index: int) -> bool:
        info = self._info(index)
        return info is not None and info.is_current

    def is_phase_future(self, index: int) -> bool:
        info = self._info(index)
        return info is not None and info.is_future

    def is_phase_overdue(self, index: int) -> bool:
        info = self._info(index)
        return info is not None and info.is_overdue

    def is_phase_ready_for_next(self, index: int) -> bool:
        """True when the phase is current and has met its minimum dwell time."""
        info = self._info(index)
        return info is not None and info.is_current and info.days_elapsed >= info.phase.duration_min

    # ------------------------------------------------------------------
    # Plant-level metrics
    # ------------------------------------------------------------------

    @property
    def total_progress(self) -> float:
        if not self.phases:
            return 0.0
        completed = sum(1 for info in self.timeline if info.is_completed)
        current = self.current_phase_info
        current_progress = current.progress_percentage if current else 0.0
        return (completed + current_progress / 100) / len(self.phases) * 100

    @property
    def harvest_phase_info(self) -> Optional[PhaseInfo]:
        for info in self.timeline:
            if info.phase.counts_toward_harvest_estimate:
                return info
        return None

    @property
    def estimated_harvest_date(self) -> Optional[datetime]:
        info = self.harvest_phase_info
        return info.estimated_end_date if info else None

    @property
    def days_until_harvest(self) -> Optional[int]:
        """Days until the flagged harvest phase is projected to end; None if no phase is flagged."""
        harvest_date = self.estimated_harvest_date
        if harvest_date is None:
            return None
        return max(0, days_between(self.now, harvest_date))

    @property
    def days_until_next_phase(self) -> Optional[int]:
        """Days left before the current phase meets its minimum duration."""
        current = self.current_phase_info
        if current is None or current.phase.start_date is None:
            return None
        return max(0, current.phase.duration_min - current.days_elapsed)

    def can_advance_to_next_phase(self) -> bool:
        if self.current_phase_index < 0 or self.current_phase_index >= len(self.phases) - 1:
            return False
        return self.is_phase_ready_for_next(self.current_phase_index)

    def next_advanceable_phase(self) -> Optional[PhaseInstance]:
        if not self.can_advance_to_next_phase():
            return None
        return self.phases[self.current_phase_index + 1]

    @property
    def is_overdue(self) -> bool:
        current = self.current_phase_info
        return current is not None and current.is_overdue

    def summary(self) -> TimelineSummary:
        current = self.current_phase
        return TimelineSummary(
            current_phase_index=self.current_phase_index,
            current_phase_id=current.id if current else None,
            current_phase_name=current.name if current else None,
            total_progress=self.total_progress,
            days_until_harvest=self.days_until_harvest,
            days_until_next_phase=self.days_until_next_phase,
            can_advance_to_next_phase=self.can_advance_to_next_phase(),
            estimated_harvest_date=self.estimated_harvest_date,
            is_overdue=self.is_overdue,
        )

    # ------------------------------------------------------------------
    # Date-range validation
    # ------------------------------------------------------------------

    def min_date_for_phase(self, index: int) -> Optional[datetime]:
        """Start date of the nearest preceding phase that has one."""
        for previous in range(index - 1, -1, -1):
            if self.phases[previous].start_date is not None:
                return self.phases[previous].start_date
        return None

    def max_date_for_phase(self, index: int) -> Optional[datetime]:
        """Start date of the nearest following phase that has one."""
        for following in range(index + 1, len(self.phases)):
            if self.phases[following].start_date is not None:
                return self.phases[following].start_date
        return None

    def date_range_for_phase(self, index: int) -> PhaseDateRange:
        return PhaseDateRange(
            phase_id=self.phases[index].id,
            min_date=self.min_date_for_phase(index),
            max_date=self.max_date_for_phase(index),
        )

    def validate_phase_date(self, index: int, date: Optional[datetime]) -> ValidationResult:
        """
        Check a candidate start date for the phase at index.

        Clearing a date is always allowed. Otherwise the date must not fall
        before the previous started phase or after the next started phase.
        """
        if not 0 <= index < len(self.phases):
            return ValidationResult(is_valid=False, error=f"No phase at position {index}", code="phase_not_found")
        if date is None:
            return ValidationResult(is_valid=True)

        date = to_naive_utc(date)
        min_date = self.min_date_for_phase(index)
        if min_date is not None and date < min_date:
            return ValidationResult(
                is_valid=False,
                error=f"Date cannot be earlier than previous phase start date ({self.format_phase_date(min_date)})",
                code="invalid_date_range",
                bound=min_date,
            )

        max_date = self.max_date_for_phase(index)
        if max_date is not None and date > max_date:
            return ValidationResult(
                is_valid=False,
                error=f"Date cannot be later than next phase start date ({self.format_phase_date(max_date)})",
                code="invalid_date_range",
                bound=max_date,
            )

        return ValidationResult(is_valid=True)

    @staticmethod
    def format_phase_date(date: Optional[datetime]) -> str:
        return format_day(date)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def phase_events(self, phase_id: str) -> List[PlantEvent]:
        return event_ops.get_events_by_phase(self.events, phase_id)

    def days_since_last_event(self, event_type: str, phase_id: Optional[str] = None) -> Optional[int]:
        return event_ops.get_days_since_last_event(self.events, event_type, now=self.now, phase_id=phase_id)

    # ------------------------------------------------------------------
    # Mutations (each returns a new PlantTimeline)
    # ------------------------------------------------------------------

    def _with_phases(self, phases: Sequence[PhaseInstance]) -> "PlantTimeline":
        return PlantTimeline(phases, self.events, self.now)

    def update_phase_start_date(self, phase_id: str, date: Optional[datetime]) -> "PlantTimeline":
        """
        Set or clear a phase's start date.

        Callers should run validate_phase_date first; this does not re-check bounds.
        """
        return self._with_phases(phase_ops.update_phase_start_date(self.phases, phase_id, date))

    def advance_to_next(self, force: bool = False) -> "PlantTimeline":
        """
        Start the phase after the current one at self.now.

        Without force this is a no-op unless the current phase has met its
        minimum duration.
        """
        if not force and not self.can_advance_to_next_phase():
            return self
        return self._with_phases(phase_ops.start_next_phase(self.phases, self.now))

    def reorder(self, new_order: Sequence[str]) -> "PlantTimeline":
        return self._with_phases(phase_ops.reorder_phases(self.phases, new_order))

    def move_phase(self, from_index: int, to_index: int) -> "PlantTimeline":
        return self._with_phases(phase_ops.move_phase(self.phases, from_index, to_index))

    def insert_phase(self, template: PhaseTemplate, position: Optional[int] = None) -> "PlantTimeline":
        return self._with_phases(phase_ops.insert_phase(self.phases, template, position))

    def can_delete_phase(self, phase_id: str) -> ValidationResult:
        reason = phase_ops.delete_rejection_reason(self.phases, phase_id)
        if reason:
            return ValidationResult(is_valid=False, error=reason, code="delete_rejected")
        return ValidationResult(is_valid=True)

    def delete_phase(self, phase_id: str) -> "PlantTimeline":
        """Raises DeleteRejected when can_delete_phase would say no."""
        return self._with_phases(phase_ops.delete_phase(self.phases, phase_id))

    def update_phase_details(self, phase_id: str, **changes) -> "PlantTimeline":
        return self._with_phases(phase_ops.update_phase_details(self.phases, phase_id, **changes))


def create_plant_timeline(
    phases: Sequence[PhaseInstance],
    events: Optional[Sequence[PlantEvent]] = None,
    now: Optional[datetime] = None
) -> PlantTimeline:
    return PlantTimeline(phases, events, now)
