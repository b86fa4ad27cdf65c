# app/services/phases.py
"""
Phase template instantiation and phase-sequence mutation helpers.

Every function here is pure: it takes a phase list and returns a new one,
leaving its input untouched. The cached is_active / is_completed flags are
recomputed on every returned list, since any edit can shift which phase is
current.
"""
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from app.schemas.phase import PhaseTemplate, PhaseInstance, PhaseImport, AutomationSettings
from app.utils.dates import to_naive_utc, utcnow


class PhaseError(ValueError):
    """A phase mutation was invoked in a way its caller must prevent."""


class DeleteRejected(PhaseError):
    pass


class InvalidPhaseOrder(PhaseError):
    pass


class InvalidPhaseDuration(PhaseError):
    pass


class PhaseNotFound(PhaseError):
    pass


PHOTOPERIOD_PHASES: List[PhaseTemplate] = [
    PhaseTemplate(
        name="Germination", duration_min=5, duration_max=10,
        description="Seeds sprouting and developing first roots",
        automation_settings=AutomationSettings(vpd_target=0.8),
    ),
    PhaseTemplate(
        name="Seedling", duration_min=10, duration_max=21,
        description="First leaves developing, plant establishing",
        automation_settings=AutomationSettings(light_schedule="18/6", vpd_target=0.9),
    ),
    PhaseTemplate(
        name="Vegetation", duration_min=21, duration_max=60,
        description="Rapid growth phase, developing strong structure",
        automation_settings=AutomationSettings(light_schedule="18/6", vpd_target=1.0),
    ),
    PhaseTemplate(
        name="Pre-Flower", duration_min=7, duration_max=14,
        description="Transition phase, showing first signs of flowering",
        automation_settings=AutomationSettings(light_schedule="12/12", vpd_target=1.1),
    ),
    PhaseTemplate(
        name="Flowering", duration_min=49, duration_max=77,
        description="Producing buds, main flowering period",
        counts_toward_harvest_estimate=True,
        automation_settings=AutomationSettings(light_schedule="12/12", vpd_target=1.2),
    ),
    PhaseTemplate(
        name="Flushing", duration_min=7, duration_max=21,
        description="Final weeks, removing nutrients for better taste",
        automation_settings=AutomationSettings(light_schedule="12/12", vpd_target=1.1),
    ),
    PhaseTemplate(
        name="Drying", duration_min=7, duration_max=14,
        description="Drying buds in controlled environment",
        automation_settings=AutomationSettings(vpd_target=0.6),
    ),
    PhaseTemplate(
        name="Curing", duration_min=14, duration_max=60,
        description="Final curing process for optimal quality",
    ),
]

AUTOFLOWER_PHASES: List[PhaseTemplate] = [
    PhaseTemplate(
        name="Germination", duration_min=5, duration_max=10,
        description="Seeds sprouting and developing first roots",
        automation_settings=AutomationSettings(light_schedule="20/4", vpd_target=0.8),
    ),
    PhaseTemplate(
        name="Seedling", duration_min=7, duration_max=14,
        description="First leaves developing, plant establishing",
        automation_settings=AutomationSettings(light_schedule="20/4", vpd_target=0.9),
    ),
    PhaseTemplate(
        name="Vegetation", duration_min=14, duration_max=28,
        description="Rapid growth phase, developing strong structure",
        automation_settings=AutomationSettings(light_schedule="20/4", vpd_target=1.0),
    ),
    PhaseTemplate(
        name="Flowering", duration_min=35, duration_max=49,
        description="Auto-flowering phase, producing buds",
        counts_toward_harvest_estimate=True,
        automation_settings=AutomationSettings(light_schedule="20/4", vpd_target=1.2),
    ),
    PhaseTemplate(
        name="Flushing", duration_min=7, duration_max=14,
        description="Final weeks, removing nutrients for better taste",
        automation_settings=AutomationSettings(light_schedule="20/4", vpd_target=1.1),
    ),
    PhaseTemplate(
        name="Drying", duration_min=7, duration_max=14,
        description="Drying buds in controlled environment",
        automation_settings=AutomationSettings(vpd_target=0.6),
    ),
    PhaseTemplate(
        name="Curing", duration_min=14, duration_max=60,
        description="Final curing process for optimal quality",
    ),
]


def default_phase_templates(is_autoflower: bool = False) -> List[PhaseTemplate]:
    return list(AUTOFLOWER_PHASES if is_autoflower else PHOTOPERIOD_PHASES)


def instance_from_template(template: PhaseTemplate, start_date: Optional[datetime] = None) -> PhaseInstance:
    return PhaseInstance(
        id=str(uuid4()),
        name=template.name,
        duration_min=template.duration_min,
        duration_max=template.duration_max,
        description=template.description,
        start_date=start_date,
        counts_toward_harvest_estimate=template.counts_toward_harvest_estimate,
        automation_settings=template.automation_settings,
    )


def create_plant_phases(
    templates: Sequence[PhaseTemplate],
    is_autoflower: bool = False,
    now: Optional[datetime] = None
) -> List[PhaseInstance]:
    """
    Build the initial phase sequence for a new plant.

    Args:
        templates: The strain's phase templates, in growth order
        is_autoflower: Picks the built-in default set when templates is empty
        now: Start date given to the first phase (defaults to wall-clock now)

    Returns:
        New PhaseInstances with fresh ids; only the first one is started.
    """
    if not templates:
        templates = default_phase_templates(is_autoflower)
    started_at = to_naive_utc(now) if now is not None else utcnow()

    phases = [
        instance_from_template(template, started_at if index == 0 else None)
        for index, template in enumerate(templates)
    ]
    return refresh_phase_flags(phases)


def import_phases(imported: Sequence[PhaseImport]) -> List[PhaseInstance]:
    """Turn imported phase JSON into instances, minting ids where missing."""
    phases = []
    seen_ids = set()
    for item in imported:
        phase_id = item.id if item.id and item.id not in seen_ids else str(uuid4())
        seen_ids.add(phase_id)
        phases.append(PhaseInstance(
            id=phase_id,
            name=item.name,
            duration_min=item.duration_min,
            duration_max=item.duration_max,
            description=item.description,
            start_date=item.start_date,
            counts_toward_harvest_estimate=item.counts_toward_harvest_estimate,
            notes=item.notes,
            automation_settings=item.automation_settings,
        ))
    return refresh_phase_flags(phases)


def export_phase_templates(phases: Sequence[PhaseInstance]) -> List[PhaseTemplate]:
    return [phase.to_template() for phase in phases]


def find_current_phase_index(phases: Sequence[PhaseInstance]) -> int:
    """
    Index of the last phase, in sequence order, that has a start date.

    A later phase may be started before an earlier one (corrections), so this
    is not "the first unfinished phase". Returns -1 when nothing has started.
    """
    current = -1
    for index, phase in enumerate(phases):
        if phase.start_date is not None:
            current = index
    return current


def get_current_phase(phases: Sequence[PhaseInstance]) -> Optional[PhaseInstance]:
    index = find_current_phase_index(phases)
    return phases[index] if index >= 0 else None


def find_phase_index(phases: Sequence[PhaseInstance], phase_id: str) -> int:
    for index, phase in enumerate(phases):
        if phase.id == phase_id:
            return index
    return -1


def refresh_phase_flags(phases: Sequence[PhaseInstance]) -> List[PhaseInstance]:
    """Recompute the cached is_active / is_completed flags from start dates."""
    current = find_current_phase_index(phases)
    refreshed = []
    for index, phase in enumerate(phases):
        is_active = index == current
        is_completed = index < current
        if phase.is_active == is_active and phase.is_completed == is_completed:
            refreshed.append(phase)
        else:
            refreshed.append(phase.model_copy(update={"is_active": is_active, "is_completed": is_completed}))
    return refreshed


def flags_drifted(phases: Sequence[PhaseInstance]) -> bool:
    """True when the stored flags disagree with the derivation."""
    return any(
        stored.is_active != fresh.is_active or stored.is_completed != fresh.is_completed
        for stored, fresh in zip(phases, refresh_phase_flags(phases))
    )


def update_phase_start_date(
    phases: Sequence[PhaseInstance],
    phase_id: str,
    start_date: Optional[datetime]
) -> List[PhaseInstance]:
    """Replace one phase's start date (None clears it)."""
    if find_phase_index(phases, phase_id) < 0:
        raise PhaseNotFound(f"Phase {phase_id} not found")
    start_date = to_naive_utc(start_date)
    updated = [
        phase.model_copy(update={"start_date": start_date}) if phase.id == phase_id else phase
        for phase in phases
    ]
    return refresh_phase_flags(updated)


def start_next_phase(phases: Sequence[PhaseInstance], now: Optional[datetime] = None) -> List[PhaseInstance]:
    """
    Give the phase after the current one a start date of now.

    Unchanged when no phase has started or the current phase is the last one.
    Minimum dwell time is not checked here; see PlantTimeline.advance_to_next.
    """
    current = find_current_phase_index(phases)
    if current < 0 or current >= len(phases) - 1:
        return list(phases)
    started_at = to_naive_utc(now) if now is not None else utcnow()
    updated = [
        phase.model_copy(update={"start_date": started_at}) if index == current + 1 else phase
        for index, phase in enumerate(phases)
    ]
    return refresh_phase_flags(updated)


def reorder_phases(phases: Sequence[PhaseInstance], new_order: Sequence[str]) -> List[PhaseInstance]:
    """
    Rearrange phases into new_order (a permutation of their ids).

    Start dates are untouched; only which phase counts as current may change.
    """
    by_id = {phase.id: phase for phase in phases}
    if len(new_order) != len(phases) or set(new_order) != set(by_id):
        raise InvalidPhaseOrder("New order must list every phase id exactly once")
    return refresh_phase_flags([by_id[phase_id] for phase_id in new_order])


def move_phase(phases: Sequence[PhaseInstance], from_index: int, to_index: int) -> List[PhaseInstance]:
    """Drag-and-drop style move of one phase to another position."""
    if not (0 <= from_index < len(phases)) or not (0 <= to_index < len(phases)):
        raise InvalidPhaseOrder(f"Phase positions must be between 0 and {len(phases) - 1}")
    moved = list(phases)
    phase = moved.pop(from_index)
    moved.insert(to_index, phase)
    return refresh_phase_flags(moved)


def insert_phase(
    phases: Sequence[PhaseInstance],
    template: PhaseTemplate,
    position: Optional[int] = None
) -> List[PhaseInstance]:
    """Insert a new unstarted phase; position is clamped to the sequence bounds."""
    if position is None or position > len(phases):
        position = len(phases)
    position = max(position, 0)
    updated = list(phases)
    updated.insert(position, instance_from_template(template))
    return refresh_phase_flags(updated)


def delete_rejection_reason(phases: Sequence[PhaseInstance], phase_id: str) -> Optional[str]:
    """Why phase_id may not be deleted, or None when deletion is allowed."""
    index = find_phase_index(phases, phase_id)
    if index < 0:
        return f"Phase {phase_id} not found"
    if phases[index].start_date is not None:
        return "Cannot delete a phase that has already started"
    if len(phases) <= 1:
        return "Must have at least one phase"
    return None


def delete_phase(phases: Sequence[PhaseInstance], phase_id: str) -> List[PhaseInstance]:
    """
    Remove an unstarted phase.

    Events linked to the phase keep their phase_id; aggregation treats such
    dangling links as unlinked.
    """
    reason = delete_rejection_reason(phases, phase_id)
    if reason:
        raise DeleteRejected(reason)
    return refresh_phase_flags([phase for phase in phases if phase.id != phase_id])


def update_phase_details(phases: Sequence[PhaseInstance], phase_id: str, **changes) -> List[PhaseInstance]:
    """
    Edit a phase's name, durations, description, notes or harvest flag.

    None values are ignored. Start dates go through update_phase_start_date.
    """
    allowed = {"name", "duration_min", "duration_max", "description", "notes", "counts_toward_harvest_estimate"}
    unknown = set(changes) - allowed
    if unknown:
        raise PhaseError(f"Cannot edit phase fields: {', '.join(sorted(unknown))}")

    index = find_phase_index(phases, phase_id)
    if index < 0:
        raise PhaseNotFound(f"Phase {phase_id} not found")

    update = {key: value for key, value in changes.items() if value is not None}
    if "name" in update:
        update["name"] = update["name"].strip()
        if not update["name"]:
            raise PhaseError("Phase name cannot be empty")
    if "description" in update:
        update["description"] = update["description"].strip() or None

    phase = phases[index]
    duration_min = update.get("duration_min", phase.duration_min)
    duration_max = update.get("duration_max", phase.duration_max)
    if duration_min > duration_max:
        raise InvalidPhaseDuration("Minimum duration cannot be greater than maximum duration")

    updated = list(phases)
    try:
        updated[index] = PhaseInstance.model_validate({**phase.model_dump(), **update})
    except ValidationError as e:
        raise PhaseError(f"Invalid phase details: {e.errors()[0]['msg']}")
    return refresh_phase_flags(updated)
