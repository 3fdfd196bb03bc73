"""Tests for the fanout engine (fresh events)."""

import logging
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from fanout_debugger.services.fanout import EventInput


def _stages(result) -> list[str]:
    return [log.stage for log in result.logs]


def test_comment_fans_out_to_owner_and_followers(fanout_service, social_graph) -> None:
    alice, bob = social_graph["alice"], social_graph["bob"]
    result = fanout_service.process_event(
        EventInput(actor_id=alice.id, type="comment", target_id=bob.id)
    )

    assert _stages(result) == [
        "RECEIVED",
        "VALIDATED",
        "RECIPIENT_RESOLVED",
        "NOTIFICATION_CREATED",
        "NOTIFICATION_CREATED",
        "NOTIFICATION_CREATED",
        "COMPLETED",
    ]
    resolved = result.logs[2].data
    assert resolved["recipient_usernames"] == ["bob", "carol", "dave"]
    assert resolved["recipient_count"] == 3
    assert resolved["rule"] == "owner + followers"

    assert [n.user_id for n in result.notifications] == [
        bob.id,
        social_graph["carol"].id,
        social_graph["dave"].id,
    ]
    assert {n.message for n in result.notifications} == {"alice commented on a post"}
    assert all(n.event_id == result.event.id for n in result.notifications)
    assert result.logs[-1].data["total_notifications"] == 3


def test_received_payload_snapshots_input(fanout_service, social_graph) -> None:
    alice, bob = social_graph["alice"], social_graph["bob"]
    result = fanout_service.process_event(
        EventInput(actor_id=alice.id, type="like", target_id=bob.id, metadata={"post": 42})
    )
    assert result.logs[0].data == {
        "actor_id": alice.id,
        "type": "like",
        "target_id": bob.id,
        "metadata": {"post": 42},
    }
    assert result.logs[1].data == {"is_valid": True, "errors": []}


def test_like_notifies_owner_once(fanout_service, social_graph) -> None:
    result = fanout_service.process_event(
        EventInput(
            actor_id=social_graph["alice"].id,
            type="like",
            target_id=social_graph["bob"].id,
        )
    )
    assert _stages(result) == [
        "RECEIVED",
        "VALIDATED",
        "RECIPIENT_RESOLVED",
        "NOTIFICATION_CREATED",
        "COMPLETED",
    ]
    assert len(result.notifications) == 1
    assert result.notifications[0].message == "alice liked your content"
    created = result.logs[3].data
    assert created == {
        "notification_id": result.notifications[0].id,
        "user_id": social_graph["bob"].id,
        "username": "bob",
        "message": "alice liked your content",
    }


def test_follow_message(fanout_service, social_graph) -> None:
    result = fanout_service.process_event(
        EventInput(
            actor_id=social_graph["carol"].id,
            type="follow",
            target_id=social_graph["bob"].id,
        )
    )
    assert [n.message for n in result.notifications] == ["carol started following you"]
    assert result.logs[2].data["rule"] == "followed user"


def test_self_like_creates_no_notification(fanout_service, social_graph) -> None:
    bob = social_graph["bob"]
    result = fanout_service.process_event(EventInput(actor_id=bob.id, type="like", target_id=bob.id))

    assert _stages(result) == ["RECEIVED", "VALIDATED", "RECIPIENT_RESOLVED", "COMPLETED"]
    assert result.logs[2].data["recipient_ids"] == [bob.id]
    assert result.notifications == []
    assert result.logs[-1].data["total_notifications"] == 0


def test_actor_following_target_is_skipped_on_comment(fanout_service, social_graph, follow) -> None:
    alice, bob = social_graph["alice"], social_graph["bob"]
    follow(alice, bob)
    result = fanout_service.process_event(
        EventInput(actor_id=alice.id, type="comment", target_id=bob.id)
    )
    assert result.logs[2].data["recipient_count"] == 4
    assert alice.id not in {n.user_id for n in result.notifications}
    assert len(result.notifications) == 3


def test_missing_actor_defaults_to_someone(fanout_service, social_graph) -> None:
    ghost = str(uuid.uuid4())
    result = fanout_service.process_event(
        EventInput(actor_id=ghost, type="like", target_id=social_graph["bob"].id)
    )
    assert result.logs[-1].stage == "COMPLETED"
    assert [n.message for n in result.notifications] == ["Someone liked your content"]


def test_missing_target_completes_with_no_recipients(fanout_service, social_graph) -> None:
    result = fanout_service.process_event(
        EventInput(actor_id=social_graph["alice"].id, type="like", target_id=str(uuid.uuid4()))
    )
    assert _stages(result) == ["RECEIVED", "VALIDATED", "RECIPIENT_RESOLVED", "COMPLETED"]
    assert result.logs[2].data["recipient_count"] == 0


def test_invalid_type_ends_with_error_stage(fanout_service, social_graph, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="fanout_debugger.services.fanout")
    result = fanout_service.process_event(
        EventInput(
            actor_id=social_graph["alice"].id,
            type="poke",
            target_id=social_graph["bob"].id,
        )
    )
    assert _stages(result) == ["RECEIVED", "VALIDATED", "ERROR"]
    assert result.logs[1].data == {"is_valid": False, "errors": ["Invalid event type: poke"]}
    assert result.logs[2].data == {
        "message": "Event validation failed",
        "errors": ["Invalid event type: poke"],
    }
    assert result.notifications == []
    assert "failed validation" in caplog.text


@pytest.mark.parametrize("field", ["actor_id", "target_id"])
def test_missing_ids_fail_validation(fanout_service, field) -> None:
    values = {"actor_id": "a", "type": "like", "target_id": "b", field: ""}
    result = fanout_service.process_event(EventInput(**values))
    assert result.logs[1].data["is_valid"] is False
    assert result.logs[1].data["errors"] == [f"{field} is required"]
    assert _stages(result) == ["RECEIVED", "VALIDATED", "ERROR"]


def test_completed_reports_duration(fanout_service, social_graph) -> None:
    result = fanout_service.process_event(
        EventInput(
            actor_id=social_graph["alice"].id,
            type="like",
            target_id=social_graph["bob"].id,
        )
    )
    duration = result.logs[-1].data["duration_ms"]
    assert isinstance(duration, int)
    assert duration >= 0


def test_trace_is_persisted_in_emission_order(fanout_service, repo, social_graph) -> None:
    result = fanout_service.process_event(
        EventInput(
            actor_id=social_graph["alice"].id,
            type="comment",
            target_id=social_graph["bob"].id,
        )
    )
    stored = repo.get_fanout_logs(result.event.id)
    assert [log.id for log in stored] == [log.id for log in result.logs]


def test_persistence_failure_propagates_and_keeps_prefix(
    fanout_service, repo, social_graph, mocker
) -> None:
    mocker.patch.object(
        repo,
        "create_notification",
        side_effect=OperationalError("INSERT", {}, Exception("disk full")),
    )
    with pytest.raises(OperationalError):
        fanout_service.process_event(
            EventInput(
                actor_id=social_graph["alice"].id,
                type="like",
                target_id=social_graph["bob"].id,
            )
        )

    events = repo.list_events()
    assert len(events) == 1
    stored = repo.get_fanout_logs(events[0].id)
    assert [log.stage for log in stored] == ["RECEIVED", "VALIDATED", "RECIPIENT_RESOLVED"]
