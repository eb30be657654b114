"""Task state machine: Available -> Claimed -> [PendingApproval] -> Completed."""

from datetime import timedelta

import pytest

from peachy.core.errors import ErrorReason, NotFound, PermissionDenied, StateConflict, ValidationError
from peachy.models.points import PointSource
from peachy.models.task import TaskFrequency, TaskStatus


@pytest.fixture
def dishes(tasks):
    return tasks.create(created_by="parent", title="Do the dishes", point_value=10)


@pytest.fixture
def room(tasks):
    return tasks.create(created_by="parent", title="Clean your room", point_value=25, requires_proof=True)


class TestCreate:
    def test_new_task_is_available(self, dishes):
        assert dishes.status == TaskStatus.AVAILABLE
        assert dishes.assigned_to is None
        assert dishes.frequency == TaskFrequency.ONCE

    @pytest.mark.parametrize("points", [0, -5])
    def test_point_value_must_be_positive(self, tasks, points):
        with pytest.raises(ValidationError):
            tasks.create(created_by="parent", title="Nothing", point_value=points)

    def test_title_required(self, tasks):
        with pytest.raises(ValidationError) as exc:
            tasks.create(created_by="parent", title="   ", point_value=5)
        assert exc.value.reason == ErrorReason.INVALID_TASK

    def test_recurring_frequency_is_only_a_label(self, tasks, ledger):
        t = tasks.create(created_by="parent", title="Feed the cat", point_value=3, frequency="daily")
        tasks.claim(t.id, "kid")
        tasks.complete(t.id, "kid")
        assert t.frequency == TaskFrequency.DAILY
        assert tasks.list_available() == []


class TestClaim:
    def test_claim_once(self, tasks, dishes):
        t = tasks.claim(dishes.id, "kid")
        assert t.status == TaskStatus.CLAIMED
        assert t.assigned_to == "kid"

    def test_second_claim_conflicts(self, tasks, dishes):
        tasks.claim(dishes.id, "kid")
        with pytest.raises(StateConflict) as exc:
            tasks.claim(dishes.id, "sibling")
        assert exc.value.reason == ErrorReason.ALREADY_CLAIMED
        assert tasks.get(dishes.id).assigned_to == "kid"

    def test_claim_unknown_task(self, tasks):
        with pytest.raises(NotFound):
            tasks.claim("missing", "kid")

    def test_pre_assigned_task_only_claimable_by_assignee(self, tasks):
        t = tasks.create(created_by="parent", title="Walk the dog", point_value=5, assigned_to="kid")
        with pytest.raises(StateConflict):
            tasks.claim(t.id, "sibling")
        assert tasks.claim(t.id, "kid").status == TaskStatus.CLAIMED

    def test_completed_task_cannot_be_claimed(self, tasks, dishes):
        tasks.claim(dishes.id, "kid")
        tasks.complete(dishes.id, "kid")
        with pytest.raises(StateConflict) as exc:
            tasks.claim(dishes.id, "kid")
        assert exc.value.reason == ErrorReason.ALREADY_COMPLETED


class TestCompleteWithoutProof:
    def test_completion_awards_points_once(self, tasks, ledger, dishes):
        tasks.claim(dishes.id, "kid")
        t = tasks.complete(dishes.id, "kid")
        assert t.status == TaskStatus.COMPLETED
        assert t.completed_at is not None
        assert ledger.balance("kid") == 10
        [row] = ledger.history("kid")
        assert row.source == PointSource.TASK
        assert row.reference_id == dishes.id

    def test_approve_after_completion_never_reawards(self, tasks, ledger, dishes):
        tasks.claim(dishes.id, "kid")
        tasks.complete(dishes.id, "kid")
        with pytest.raises(StateConflict):
            tasks.approve(dishes.id, approver_id="parent", is_admin=True)
        assert ledger.balance("kid") == 10

    def test_complete_twice_conflicts(self, tasks, ledger, dishes):
        tasks.claim(dishes.id, "kid")
        tasks.complete(dishes.id, "kid")
        with pytest.raises(StateConflict):
            tasks.complete(dishes.id, "kid")
        assert ledger.balance("kid") == 10

    def test_only_assignee_can_complete(self, tasks, ledger, dishes):
        tasks.claim(dishes.id, "kid")
        with pytest.raises(PermissionDenied) as exc:
            tasks.complete(dishes.id, "sibling")
        assert exc.value.reason == ErrorReason.NOT_ASSIGNEE
        assert tasks.get(dishes.id).status == TaskStatus.CLAIMED
        assert ledger.balance("sibling") == 0

    def test_unclaimed_task_cannot_be_completed(self, tasks, dishes):
        with pytest.raises(StateConflict) as exc:
            tasks.complete(dishes.id, "kid")
        assert exc.value.reason == ErrorReason.INVALID_TRANSITION

    def test_completion_event(self, tasks, dishes, seen_events):
        tasks.claim(dishes.id, "kid")
        tasks.complete(dishes.id, "kid")
        names = [e.name for e in seen_events]
        assert names == ["task.claimed", "points.awarded", "task.completed"]


class TestProofAndApproval:
    def test_missing_proof_rejected(self, tasks, ledger, room):
        tasks.claim(room.id, "kid")
        with pytest.raises(ValidationError) as exc:
            tasks.complete(room.id, "kid")
        assert exc.value.reason == ErrorReason.PROOF_REQUIRED
        assert tasks.get(room.id).status == TaskStatus.CLAIMED
        assert ledger.balance("kid") == 0

    def test_proof_moves_to_pending_without_points(self, tasks, ledger, room):
        tasks.claim(room.id, "kid")
        t = tasks.complete(room.id, "kid", proof_ref="photos/room.jpg")
        assert t.status == TaskStatus.PENDING_APPROVAL
        assert t.proof_ref == "photos/room.jpg"
        assert ledger.balance("kid") == 0
        assert [p.id for p in tasks.list_pending_approval()] == [room.id]

    def test_approval_requires_admin(self, tasks, ledger, room):
        tasks.claim(room.id, "kid")
        tasks.complete(room.id, "kid", proof_ref="photos/room.jpg")
        with pytest.raises(PermissionDenied) as exc:
            tasks.approve(room.id, approver_id="kid", is_admin=False)
        assert exc.value.reason == ErrorReason.ADMIN_REQUIRED
        assert tasks.get(room.id).status == TaskStatus.PENDING_APPROVAL
        assert ledger.balance("kid") == 0

    def test_approval_awards_once(self, tasks, ledger, room):
        tasks.claim(room.id, "kid")
        tasks.complete(room.id, "kid", proof_ref="photos/room.jpg")
        t = tasks.approve(room.id, approver_id="parent", is_admin=True)
        assert t.status == TaskStatus.COMPLETED
        assert t.approved_by == "parent"
        assert ledger.balance("kid") == 25

        with pytest.raises(StateConflict) as exc:
            tasks.approve(room.id, approver_id="parent", is_admin=True)
        assert exc.value.reason == ErrorReason.ALREADY_COMPLETED
        assert ledger.balance("kid") == 25

    def test_approve_claimed_task_is_invalid(self, tasks, room):
        tasks.claim(room.id, "kid")
        with pytest.raises(StateConflict) as exc:
            tasks.approve(room.id, approver_id="parent", is_admin=True)
        assert exc.value.reason == ErrorReason.INVALID_TRANSITION


class TestQueriesAndDelete:
    def test_lists(self, tasks, dishes, room):
        assert {t.id for t in tasks.list_available()} == {dishes.id, room.id}
        tasks.claim(dishes.id, "kid")
        assert [t.id for t in tasks.list_available()] == [room.id]
        assert [t.id for t in tasks.list_for_user("kid")] == [dishes.id]

    def test_overdue(self, tasks, clock):
        t = tasks.create(created_by="parent", title="Homework", point_value=5,
                         due_date=clock() + timedelta(hours=1))
        assert not t.is_overdue(clock())
        clock.advance(hours=2)
        assert t.is_overdue(clock())
        tasks.claim(t.id, "kid")
        tasks.complete(t.id, "kid")
        assert not t.is_overdue(clock())

    def test_creator_can_delete(self, tasks, dishes):
        tasks.delete(dishes.id, user_id="parent", is_admin=False)
        with pytest.raises(NotFound):
            tasks.get(dishes.id)

    def test_stranger_cannot_delete(self, tasks, dishes):
        with pytest.raises(PermissionDenied):
            tasks.delete(dishes.id, user_id="kid", is_admin=False)
        assert tasks.get(dishes.id) is not None

    def test_completed_task_cannot_be_deleted(self, tasks, dishes):
        tasks.claim(dishes.id, "kid")
        tasks.complete(dishes.id, "kid")
        with pytest.raises(StateConflict):
            tasks.delete(dishes.id, user_id="parent", is_admin=True)
