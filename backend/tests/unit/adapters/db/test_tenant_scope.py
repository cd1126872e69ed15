"""Unit tests for OrganizationScope."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from manageros.adapters.db.app_db import AppDatabase, decode_json
from manageros.adapters.db.tenant_scope import OrganizationScope
from manageros.core.exceptions import NotFoundInOrganization
from manageros.models import NotificationResponseStatus


class TestOrganizationScope:
    """Every query issued through a scope is constrained to its organization."""

    @pytest.fixture
    def mock_db(self) -> AsyncMock:
        """Return a mock database."""
        mock = AsyncMock()
        mock.fetch_all.return_value = []
        mock.fetch_one.return_value = None
        return mock

    @pytest.fixture
    def scope(self, mock_db: AsyncMock, organization_id: uuid.UUID) -> OrganizationScope:
        """Return a scope bound to the sample organization."""
        return OrganizationScope(mock_db, organization_id)

    def test_for_organization_binds_id(self, organization_id: uuid.UUID) -> None:
        """AppDatabase hands out scopes bound to the given organization."""
        scope = AppDatabase("postgresql://localhost/test").for_organization(organization_id)

        assert isinstance(scope, OrganizationScope)
        assert scope.organization_id == organization_id

    async def test_reads_pass_organization_first(
        self, scope: OrganizationScope, mock_db: AsyncMock, organization_id: uuid.UUID
    ) -> None:
        """List queries pass the organization as the first parameter."""
        await scope.list_report_birthdays()
        await scope.list_active_reports()
        await scope.list_overdue_tasks(datetime.now(UTC))
        await scope.list_notifications_for_user(uuid.uuid4(), limit=5)

        for call in mock_db.fetch_all.call_args_list:
            query, first_param = call.args[0], call.args[1]
            assert "organization_id = $1" in query
            assert first_param == organization_id

    async def test_get_user_is_scoped(
        self, scope: OrganizationScope, mock_db: AsyncMock, organization_id: uuid.UUID
    ) -> None:
        """Users are only found inside the organization."""
        user_id = uuid.uuid4()

        assert await scope.get_user(user_id) is None
        assert mock_db.fetch_one.call_args.args[1:] == (organization_id, user_id)

    async def test_create_notification_rejects_foreign_user(
        self, scope: OrganizationScope, mock_db: AsyncMock
    ) -> None:
        """A target user outside the organization is rejected before insert."""
        with pytest.raises(NotFoundInOrganization):
            await scope.create_notification("Hi", "There", user_id=uuid.uuid4())

        mock_db.execute_returning.assert_not_called()

    async def test_create_notification_stamps_organization(
        self, scope: OrganizationScope, mock_db: AsyncMock, organization_id: uuid.UUID
    ) -> None:
        """Inserts carry the scope's organization and JSON metadata."""
        mock_db.execute_returning.return_value = {"id": uuid.uuid4()}

        await scope.create_notification(
            "Hi", "There", type="warning", metadata={"deduplicationKey": "k"}
        )

        args = mock_db.execute_returning.call_args.args
        assert args[1] == organization_id
        assert args[2] is None
        assert args[5] == "warning"
        assert json.loads(args[6]) == {"deduplicationKey": "k"}

    async def test_has_recent_notification(
        self, scope: OrganizationScope, mock_db: AsyncMock, organization_id: uuid.UUID
    ) -> None:
        """Deduplication looks up the key inside the organization."""
        mock_db.fetch_value.return_value = True
        since = datetime.now(UTC)
        user_id = uuid.uuid4()

        assert await scope.has_recent_notification(user_id, "k", since) is True
        assert mock_db.fetch_value.call_args.args[1:] == (organization_id, user_id, "k", since)

    async def test_get_last_activity_checks_sources_in_order(
        self, scope: OrganizationScope, mock_db: AsyncMock
    ) -> None:
        """Tasks win over one-on-ones and feedback."""
        seen = datetime.now(UTC)
        mock_db.fetch_one.side_effect = [None, {"scheduled_at": seen}]

        result = await scope.get_last_activity(uuid.uuid4(), seen)

        assert result == ("one-on-one", seen)
        assert mock_db.fetch_one.call_count == 2

    async def test_get_last_activity_inactive(
        self, scope: OrganizationScope, mock_db: AsyncMock
    ) -> None:
        """No activity in any source returns None."""
        assert await scope.get_last_activity(uuid.uuid4(), datetime.now(UTC)) is None
        assert mock_db.fetch_one.call_count == 3

    async def test_respond_to_invisible_notification(
        self, scope: OrganizationScope, mock_db: AsyncMock
    ) -> None:
        """Responses to notifications outside the organization are rejected."""
        with pytest.raises(NotFoundInOrganization):
            await scope.respond_to_notification(
                uuid.uuid4(), uuid.uuid4(), NotificationResponseStatus.READ
            )

        mock_db.execute_returning.assert_not_called()

    async def test_dismiss_sets_dismissed_at(
        self, scope: OrganizationScope, mock_db: AsyncMock
    ) -> None:
        """Dismissing stamps dismissed_at."""
        notification_id = uuid.uuid4()
        mock_db.fetch_one.return_value = {"id": notification_id}
        mock_db.execute_returning.return_value = {"status": "dismissed"}

        await scope.respond_to_notification(
            notification_id, uuid.uuid4(), NotificationResponseStatus.DISMISSED
        )

        query = mock_db.execute_returning.call_args.args[0]
        assert "dismissed_at" in query
        assert "read_at" not in query


class TestDecodeJson:
    """Tests for decode_json."""

    def test_decodes_text(self) -> None:
        """JSON text is parsed."""
        assert decode_json('{"a": 1}') == {"a": 1}

    def test_passes_through_objects(self) -> None:
        """Already-decoded values and None are returned unchanged."""
        assert decode_json({"a": 1}) == {"a": 1}
        assert decode_json(None) is None
