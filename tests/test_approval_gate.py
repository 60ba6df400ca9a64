"""
Approval gate tests.

Covers:
    - Free toggling in both directions
    - Idempotent writes
    - Independence from status and category
    - Administrator-only access
"""

import pytest

from taskhub.core.exceptions import AuthorizationError, NotFoundError
from taskhub.models.action_item import ActionItem
from taskhub.services import approval_gate, task_lifecycle


class TestApplyApproval:
    def test_changed_flag(self):
        item = ActionItem(is_approved=False)
        assert approval_gate.apply_approval(item, True) is True
        assert item.is_approved is True
        assert approval_gate.apply_approval(item, True) is False
        assert approval_gate.apply_approval(item, False) is True
        assert item.is_approved is False


class TestSetApproval:
    def test_approve_and_revoke(self, make_task, admin):
        task = make_task()
        assert approval_gate.set_approval(task.id, True, admin).is_approved is True
        assert approval_gate.set_approval(task.id, False, admin).is_approved is False

    def test_status_and_category_untouched(self, make_task, admin):
        task = make_task(category="ALLORO", status="in_progress")
        item = approval_gate.set_approval(task.id, True, admin)
        assert item.status == "in_progress"
        assert item.category == "ALLORO"
        assert item.completed_at is None

    def test_archived_item_can_be_approved(self, make_task, admin):
        task = make_task()
        task_lifecycle.archive_task(task.id, admin)
        item = approval_gate.set_approval(task.id, True, admin)
        assert item.is_approved is True
        assert item.status == "archived"

    def test_manager_may_not_approve(self, make_task, manager):
        task = make_task()
        with pytest.raises(AuthorizationError):
            approval_gate.set_approval(task.id, True, manager)

    def test_unknown_task(self, admin):
        with pytest.raises(NotFoundError):
            approval_gate.set_approval(424242, True, admin)
