from app.schemas.event import EventData, PlantEvent
from app.services.events import (
    EVENT_TYPES,
    QUICK_EVENT_TEMPLATES,
    add_event_to_plant,
    create_event,
    delete_event,
    find_event,
    get_event_stats,
    get_events_by_phase,
    get_events_by_type,
    get_events_in_date_range,
    get_last_event_of_type,
    link_event_to_current_phase,
    resolve_event_phase,
    unlinked_events,
    update_event,
)
from app.services.phases import delete_phase

from conftest import day, make_phases


def sample_events():
    events = []
    for event in [
        create_event("watering", "Plain Water", EventData(amount_ml=500), timestamp=day(1), phase_id="phase-a"),
        create_event("feeding", "Bloom", timestamp=day(6), phase_id="phase-b"),
        create_event("watering", "Deep Watering", timestamp=day(9), phase_id="phase-b"),
        create_event("observation", "Pest Check", timestamp=day(-25)),
    ]:
        events = add_event_to_plant(events, event)
    return events


def test_events_kept_newest_first():
    events = sample_events()
    assert [e.timestamp for e in events] == [day(9), day(6), day(1), day(-25)]


def test_link_event_to_current_phase():
    event = create_event("training", "LST")

    linked = link_event_to_current_phase(event, make_phases(day(0), day(3)))
    assert linked.phase_id == "phase-b"
    assert event.phase_id is None
    assert link_event_to_current_phase(event, make_phases()).phase_id is None


def test_filters():
    events = sample_events()

    assert len(get_events_by_type(events, "watering")) == 2
    assert [e.title for e in get_events_by_phase(events, "phase-b")] == ["Deep Watering", "Bloom"]
    assert [e.title for e in get_events_in_date_range(events, day(1), day(6))] == ["Bloom", "Plain Water"]
    assert len(get_events_in_date_range(events, start=day(0))) == 3
    assert len(get_events_in_date_range(events, end=day(0))) == 1


def test_last_event_of_type():
    events = sample_events()
    assert get_last_event_of_type(events, "watering").title == "Deep Watering"
    assert get_last_event_of_type(events, "watering", phase_id="phase-a").title == "Plain Water"
    assert get_last_event_of_type(events, "harvest") is None


def test_update_event_keeps_id_and_resorts():
    events = sample_events()
    target = events[-1]

    updated = update_event(events, target.id, id="hijack", title="Mites", timestamp=day(12), notes=None)
    moved = find_event(updated, target.id)

    assert moved is not None
    assert moved.title == "Mites"
    assert updated[0].id == target.id
    assert find_event(updated, "hijack") is None


def test_delete_event():
    events = sample_events()
    remaining = delete_event(events, events[0].id)
    assert len(remaining) == 3
    assert events[0].id not in {e.id for e in remaining}


def test_dangling_phase_reference_is_unlinked():
    phases = make_phases(day(0))
    events = sample_events()

    phases = delete_phase(phases, "phase-b")
    orphaned = [e for e in events if e.phase_id == "phase-b"]

    assert all(resolve_event_phase(e, phases) is None for e in orphaned)
    assert len(unlinked_events(events, phases)) == 3
    assert resolve_event_phase(events[2], phases).name == "A"


def test_event_stats(now):
    stats = get_event_stats(sample_events(), now)

    assert stats.total == 4
    assert stats.by_type == {"watering": 2, "feeding": 1, "observation": 1}
    assert stats.this_week == 2
    assert stats.this_month == 3
    assert stats.by_type_this_week == {"feeding": 1, "watering": 1}
    assert stats.by_type_this_month == {"feeding": 1, "watering": 2}


def test_event_timestamp_parsing():
    parsed = PlantEvent(type="custom", title="x", timestamp="2024-03-01T09:00:00+00:00")
    assert parsed.timestamp == day(0)

    fallback = PlantEvent(type="custom", title="x", timestamp="")
    assert fallback.timestamp is not None


def test_event_metadata_covers_every_kind():
    assert set(EVENT_TYPES) == {"watering", "feeding", "observation", "training", "harvest", "transplant", "custom"}
    assert set(QUICK_EVENT_TEMPLATES) <= set(EVENT_TYPES)
    for templates in QUICK_EVENT_TEMPLATES.values():
        for template in templates:
            EventData.model_validate(template["data"])
