import pytest
from hypothesis import given
from hypothesis import strategies as st

from diagbus.events import (
    EVENT_TYPES,
    ContextWindow,
    DiagnosticBus,
    Heartbeat,
    MessageProcessed,
    ModelUsage,
    SessionState,
    SessionStuck,
    UsageCounts,
    WebhookCounts,
    WebhookReceived,
    event_from_dict,
)
from diagbus.exceptions import InvalidEventError, UnknownEventKindError


def test_event_types_cover_every_kind():
    assert set(EVENT_TYPES) == {
        "model.usage",
        "webhook.received",
        "webhook.processed",
        "webhook.error",
        "message.queued",
        "message.processed",
        "session.state",
        "session.stuck",
        "queue.lane.enqueue",
        "queue.lane.dequeue",
        "run.attempt",
        "diagnostic.heartbeat",
    }
    for kind, cls in EVENT_TYPES.items():
        assert cls.kind == kind


def test_raw_event_is_not_enriched():
    event = WebhookReceived(channel="telegram")
    assert event.sequence is None
    assert not event.is_enriched
    assert event.enrich(1, 1000).is_enriched


def test_missing_required_field_is_type_error():
    with pytest.raises(TypeError):
        WebhookReceived()
    with pytest.raises(TypeError):
        ModelUsage(channel="telegram")


def test_invalid_outcome_rejected():
    with pytest.raises(InvalidEventError, match="outcome"):
        MessageProcessed(channel="telegram", outcome="done")


def test_invalid_session_states_rejected():
    with pytest.raises(InvalidEventError):
        SessionState(state="sleeping")
    with pytest.raises(InvalidEventError, match="prev_state"):
        SessionState(state="idle", prev_state="gone")
    with pytest.raises(ValueError):
        SessionStuck(state="stuck", age_ms=1000)


def test_events_are_immutable():
    event = WebhookReceived(channel="telegram")
    with pytest.raises(AttributeError):
        event.channel = "slack"


def test_to_dict_omits_unset_fields():
    event = ModelUsage(
        usage=UsageCounts(input=10, output=20),
        context=ContextWindow(limit=8000),
        provider="anthropic",
    ).enrich(3, 1234)

    assert event.to_dict() == {
        "kind": "model.usage",
        "sequence": 3,
        "timestamp": 1234,
        "usage": {"input": 10, "output": 20},
        "context": {"limit": 8000},
        "provider": "anthropic",
    }


def test_from_dict_rebuilds_nested_records():
    event = event_from_dict(
        {
            "kind": "diagnostic.heartbeat",
            "webhooks": {"received": 3, "processed": 2, "errors": 1},
            "active": 1,
            "waiting": 0,
            "queued": 4,
        }
    )
    assert isinstance(event, Heartbeat)
    assert event.webhooks == WebhookCounts(received=3, processed=2, errors=1)


def test_from_dict_unknown_kind():
    with pytest.raises(UnknownEventKindError):
        event_from_dict({"kind": "webhook.exploded", "channel": "x"})
    with pytest.raises(UnknownEventKindError):
        event_from_dict({"channel": "x"})


def test_from_dict_unknown_field():
    with pytest.raises(InvalidEventError, match="colour"):
        event_from_dict({"kind": "webhook.received", "channel": "x", "colour": "red"})


def test_from_dict_missing_field():
    with pytest.raises(InvalidEventError):
        event_from_dict({"kind": "queue.lane.dequeue", "lane": "main", "queue_size": 1})


_events = st.one_of(
    st.builds(
        WebhookReceived,
        channel=st.text(min_size=1, max_size=10),
        chat_id=st.one_of(st.none(), st.integers(), st.text(max_size=10)),
    ),
    st.builds(
        MessageProcessed,
        channel=st.text(min_size=1, max_size=10),
        outcome=st.sampled_from(["completed", "skipped", "error"]),
        duration_ms=st.one_of(st.none(), st.floats(min_value=0, max_value=1e6)),
    ),
    st.builds(
        ModelUsage,
        usage=st.builds(UsageCounts, input=st.integers(0, 10**6), output=st.integers(0, 10**6)),
    ),
)


@given(_events)
def test_to_dict_from_dict_consistent(event):
    assert event_from_dict(event.to_dict()) == event


@given(st.lists(_events, max_size=30))
def test_sequences_are_one_to_n(events):
    bus = DiagnosticBus()
    seen = []
    bus.subscribe(lambda e: seen.append(e.sequence))

    for event in events:
        bus.emit(event)

    assert seen == list(range(1, len(events) + 1))
