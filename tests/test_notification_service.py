"""Tests for notification rows and fan-out."""

import asyncio
from unittest.mock import MagicMock

import pytest
from conftest import ADMIN_ID, SUPPLIER_ID, FakeProfileRepository

from eproc_portal.models.auth import Role
from eproc_portal.models.notification import NotificationContent, NotificationCreate, NotificationType
from eproc_portal.services.notification_service import NotificationService, NotificationServiceError


def run(coro):
    return asyncio.run(coro)


def _row(**overrides):
    row = {
        "id": "n1",
        "user_id": SUPPLIER_ID,
        "title": "New tender",
        "message": "A tender matching your category was published.",
        "type": "tender",
        "entity_type": "tender",
        "entity_id": "t1",
        "action_url": "/tenders/t1",
        "metadata": None,
        "read": False,
        "created_at": "2024-05-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def service(client) -> NotificationService:
    return NotificationService(client, FakeProfileRepository({ADMIN_ID: "admin", "a2": "admin", SUPPLIER_ID: "supplier"}))


class TestListing:
    def test_list_with_counts(self, service, client) -> None:
        table = client.table.return_value
        page = MagicMock(data=[_row(), _row(id="n2", read=True)], count=7)
        unread = MagicMock(data=[], count=3)
        table.select.return_value.eq.return_value.order.return_value.range.return_value.execute.return_value = page
        table.select.return_value.eq.return_value.eq.return_value.execute.return_value = unread

        result = run(service.list_for_user(SUPPLIER_ID, limit=2, offset=4))

        assert [n.id for n in result.items] == ["n1", "n2"]
        assert result.items[0].metadata == {}
        assert result.total == 7
        assert result.unread == 3
        assert (result.limit, result.offset) == (2, 4)
        table.select.return_value.eq.return_value.order.return_value.range.assert_called_once_with(4, 5)

    def test_query_error(self, service, client) -> None:
        client.table.side_effect = RuntimeError("connection refused")
        with pytest.raises(NotificationServiceError):
            run(service.list_for_user(SUPPLIER_ID))


class TestMarkRead:
    def test_scoped_to_caller(self, service, client) -> None:
        table = client.table.return_value
        chain = table.update.return_value.eq.return_value.in_.return_value
        chain.execute.return_value = MagicMock(data=[_row(read=True)])

        result = run(service.mark_read(SUPPLIER_ID, ["n1", "n-other"]))

        table.update.assert_called_once_with({"read": True})
        table.update.return_value.eq.assert_called_once_with("user_id", SUPPLIER_ID)
        table.update.return_value.eq.return_value.in_.assert_called_once_with("id", ["n1", "n-other"])
        assert result.updated == 1
        assert result.notifications[0].read is True


class TestCreate:
    def test_create_single(self, service, client) -> None:
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[_row()])
        created = run(service.create(NotificationCreate(
            user_id=SUPPLIER_ID, title="New tender", message="Published.", type=NotificationType.TENDER,
        )))
        inserted = client.table.return_value.insert.call_args[0][0]
        assert inserted["type"] == "tender"
        assert created.id == "n1"

    def test_notify_admins_fans_out(self, service, client) -> None:
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[_row(id="a", user_id=ADMIN_ID), _row(id="b", user_id="a2")]
        )
        content = NotificationContent(title="Proposal received", message="Check it.", type=NotificationType.PROPOSAL)

        created = run(service.notify_admins(content))

        rows = client.table.return_value.insert.call_args[0][0]
        assert sorted(r["user_id"] for r in rows) == sorted([ADMIN_ID, "a2"])
        assert all(r["title"] == "Proposal received" for r in rows)
        assert len(created) == 2

    def test_no_recipients(self, client) -> None:
        service = NotificationService(client, FakeProfileRepository({SUPPLIER_ID: "supplier"}))
        content = NotificationContent(title="t", message="m", type=NotificationType.INFO)
        assert run(service.notify_role(Role.ADMIN, content)) == []
        client.table.return_value.insert.assert_not_called()

    def test_notify_supplier_reaches_linked_users(self, client) -> None:
        profiles = FakeProfileRepository(
            {SUPPLIER_ID: "supplier", "s2": "supplier", "s3": "supplier"},
            suppliers={SUPPLIER_ID: "sup-1", "s2": "sup-1", "s3": "sup-2"},
        )
        service = NotificationService(client, profiles)
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[_row(id="a"), _row(id="b", user_id="s2")]
        )
        content = NotificationContent(title="Order issued", message="OC-1", type=NotificationType.SUCCESS)

        run(service.notify_supplier("sup-1", content))

        rows = client.table.return_value.insert.call_args[0][0]
        assert sorted(r["user_id"] for r in rows) == sorted([SUPPLIER_ID, "s2"])

    def test_notify_supplier_without_users(self, service, client) -> None:
        content = NotificationContent(title="t", message="m", type=NotificationType.INFO)
        assert run(service.notify_supplier("sup-unknown", content)) == []
        client.table.return_value.insert.assert_not_called()

    def test_notify_supplier_lookup_failure(self, client) -> None:
        service = NotificationService(client, FakeProfileRepository(fail=True))
        content = NotificationContent(title="t", message="m", type=NotificationType.INFO)
        with pytest.raises(NotificationServiceError):
            run(service.notify_supplier("sup-1", content))
