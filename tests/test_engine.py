"""
Engine Tests

Stream events flow through the revision gate into both reconcilers and
out to the tables; the tick ages rows out without any further events.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW, SECOND_NS, lease_payload
from leasewatch.engine import STATUS_CONNECTION_FAILURE, InvalidRecord, LeaseWatchEngine
from leasewatch.observability import metrics
from leasewatch.observability.metrics import EVENTS_STALE_DISCARDED, LEASES_EXPIRED_SWEPT
from leasewatch.render import lease_table, policy_table


def leases_event(resource, revision, *leases, stats=None):
    event = {"resource": resource, "revision": revision, "leases": list(leases)}
    if stats is not None:
        event["stats"] = stats
    return json.dumps(event)


def test_policy_then_stats_renders_consumption(engine: LeaseWatchEngine):
    engine.handle_event(
        "policies", json.dumps({"policies": [{"resource": "gpu", "strategy": "instance", "limit": 4}]})
    )
    row = engine.policy_view.get("policy-gpu")
    assert row.to_dict()["cells"] == {"program": "gpu", "consumed": "", "available": "", "total": "4"}

    engine.handle_event("leases", leases_event("gpu", 1, stats={"instance": {"consumed": 3}}))

    cells = engine.policy_view.get("policy-gpu").to_dict()["cells"]
    assert cells == {"program": "gpu", "consumed": "3", "available": "1", "total": "4"}


def test_stats_for_unknown_policy_then_policy_then_fresh_stats(engine: LeaseWatchEngine):
    engine.handle_event("leases", leases_event("gpu", 1, stats={"instance": {"consumed": 3}}))
    assert len(engine.policy_view) == 0

    engine.handle_event("policies", {"policies": [{"resource": "gpu", "limit": 4}]})
    assert engine.policies.get("gpu").consumed is None

    engine.handle_event("leases", leases_event("gpu", 2, stats={"instance": {"consumed": 1}}))
    assert engine.policies.get("gpu").available == 3


def test_stale_event_is_discarded_whole(engine: LeaseWatchEngine):
    engine.handle_event("policies", {"policies": [{"resource": "gpu", "limit": 4}]})
    engine.handle_event(
        "leases", leases_event("gpu", 5, lease_payload("a"), stats={"instance": {"consumed": 1}})
    )

    result = engine.handle_event(
        "leases", leases_event("gpu", 4, lease_payload("b"), stats={"instance": {"consumed": 2}})
    )

    assert result is None
    assert "b" not in engine.leases
    assert "a" in engine.leases
    assert engine.policies.get("gpu").consumed == 1, "Stats of a stale event must not apply"
    assert metrics.counter(EVENTS_STALE_DISCARDED) == 1


def test_replay_of_stale_data_is_idempotent(clock):
    """Interleaving duplicates and older revisions yields the same view as the clean sequence."""
    snapshots = {
        1: [lease_payload("a"), lease_payload("b")],
        2: [lease_payload("a"), lease_payload("c")],
        3: [lease_payload("c", status="released", released=NOW)],
        4: [lease_payload("c", status="released", released=NOW), lease_payload("d")],
    }

    def build():
        return LeaseWatchEngine(lease_view=lease_table(clock), policy_view=policy_table(clock), clock=clock)

    clean = build()
    for revision in (1, 2, 3, 4):
        clean.handle_event("leases", leases_event("gpu", revision, *snapshots[revision]))

    noisy = build()
    for revision in (1, 2, 1, 3, 2, 2, 4, 3, 1, 4):
        noisy.handle_event("leases", leases_event("gpu", revision, *snapshots[revision]))

    def dump(e):
        return sorted((row.model_dump() for row in e.leases.rows()), key=lambda r: r["id"])

    assert dump(noisy) == dump(clean)
    assert noisy.lease_view.snapshot() == clean.lease_view.snapshot()
    assert [row["id"] for row in clean.lease_view.snapshot()] == ["d", "c"]


def test_full_list_removes_absent_rows_of_its_resource_only(engine: LeaseWatchEngine):
    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("g1"), lease_payload("g2")))
    engine.handle_event("leases", leases_event("cad", 1, lease_payload("c1", resource="cad")))

    engine.handle_event("leases", leases_event("gpu", 2, lease_payload("g2")))

    assert "g1" not in engine.lease_view
    assert "g2" in engine.lease_view
    assert "c1" in engine.lease_view


def test_released_lease_boundary_on_tick(engine: LeaseWatchEngine, clock):
    payload = lease_payload("r", status="released", released=NOW)
    payload["decay"] = 5 * SECOND_NS
    engine.handle_event("leases", leases_event("gpu", 1, payload))
    assert engine.leases.get("r").death == datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc)

    engine.tick(datetime(2024, 1, 1, 0, 0, 4, tzinfo=timezone.utc))
    assert "r" in engine.lease_view

    engine.tick(datetime(2024, 1, 1, 0, 0, 4, 999999, tzinfo=timezone.utc))
    assert "r" in engine.lease_view, "Must be visible strictly before T+D"

    diff = engine.tick(datetime(2024, 1, 1, 0, 0, 6, tzinfo=timezone.utc))
    assert diff.removed == ["r"]
    assert "r" not in engine.lease_view
    assert "r" not in engine.leases
    assert metrics.counter(LEASES_EXPIRED_SWEPT) == 1


def test_active_lease_removed_at_renewed_plus_duration_plus_decay(engine: LeaseWatchEngine):
    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("a", duration_s=60, decay_s=5)))

    engine.tick(NOW + timedelta(seconds=64))
    assert "a" in engine.lease_view

    engine.tick(NOW + timedelta(seconds=65))
    assert "a" not in engine.lease_view


def test_tick_refreshes_relative_labels(engine: LeaseWatchEngine, clock):
    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("a", duration_s=60, decay_s=5)))
    cells = engine.lease_view.get("a").to_dict()["cells"]
    assert cells["started"] == "0:05:00"
    assert cells["remaining"] == "0:01:05"

    engine.tick(clock.advance(seconds=30))

    cells = engine.lease_view.get("a").to_dict()["cells"]
    assert cells["started"] == "0:05:30"
    assert cells["remaining"] == "0:00:35"


def test_transport_interruption_keeps_state_and_clears_on_next_event(engine: LeaseWatchEngine):
    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("a", duration_s=10, decay_s=0)))
    engine.handle_event("policies", {"policies": [{"resource": "gpu", "limit": 4}]})

    engine.transport_interrupted("connection reset")

    assert engine.status == STATUS_CONNECTION_FAILURE
    assert engine.connected is False
    assert "a" in engine.lease_view
    assert "policy-gpu" in engine.policy_view

    # Rows keep aging out while disconnected
    engine.tick(NOW + timedelta(seconds=10))
    assert "a" not in engine.lease_view

    engine.handle_event("policies", {"policies": [{"resource": "gpu", "limit": 4}]})
    assert engine.status == ""
    assert engine.connected is True


def test_invalid_record_leaves_rows_and_gate_untouched(engine: LeaseWatchEngine):
    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("a")))

    broken = lease_payload("b")
    broken["instance"] = {}
    with pytest.raises(InvalidRecord):
        engine.handle_event("leases", leases_event("gpu", 2, lease_payload("c"), broken))

    assert [row.id for row in engine.leases.rows()] == ["a"]
    assert engine.gate.last("gpu") == 1

    engine.handle_event("leases", leases_event("gpu", 2, lease_payload("c")))
    assert "c" in engine.lease_view
    assert "a" not in engine.lease_view


def test_undecodable_payloads_are_invalid_records(engine: LeaseWatchEngine):
    with pytest.raises(InvalidRecord):
        engine.handle_event("leases", "{not json")

    with pytest.raises(InvalidRecord):
        engine.handle_event("leases", {"leases": "nope"})


def test_unknown_events_are_ignored(engine: LeaseWatchEngine):
    assert engine.handle_event("message", "hello") is None
    assert len(engine.leases) == 0


def test_unscoped_event_is_not_revision_gated(engine: LeaseWatchEngine):
    engine.handle_event("leases", json.dumps({"revision": 3, "leases": [lease_payload("a")]}))
    engine.handle_event("leases", json.dumps({"revision": 1, "leases": [lease_payload("b")]}))

    assert "b" in engine.lease_view
    assert "a" in engine.lease_view


def test_rebuild_replays_rows_into_cleared_views(engine: LeaseWatchEngine):
    engine.handle_event("policies", {"policies": [{"resource": "gpu", "limit": 4}]})
    engine.handle_event(
        "leases", leases_event("gpu", 1, lease_payload("a"), stats={"instance": {"consumed": 1}})
    )
    before = (engine.lease_view.snapshot(), engine.policy_view.snapshot())

    engine.lease_view.clear()
    engine.policy_view.clear()
    engine.rebuild()

    assert (engine.lease_view.snapshot(), engine.policy_view.snapshot()) == before


def test_rebuild_drops_rows_that_expired_since_the_last_tick(engine: LeaseWatchEngine, clock):
    engine.handle_event(
        "leases", leases_event("gpu", 1, lease_payload("a"), lease_payload("b", duration_s=600))
    )
    clock.advance(seconds=70)

    engine.rebuild()

    assert "a" not in engine.lease_view
    assert "b" in engine.lease_view
    assert "a" not in engine.leases
    assert metrics.counter(LEASES_EXPIRED_SWEPT) == 1


def test_engine_without_views_still_reconciles():
    engine = LeaseWatchEngine(clock=lambda: NOW)

    engine.handle_event("leases", leases_event("gpu", 1, lease_payload("a")))
    diff = engine.tick(NOW + timedelta(minutes=5))

    assert diff.removed == ["a"]
