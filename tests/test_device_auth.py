"""Tests for device link endpoints (pairing code issue and exchange)."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.auth import get_current_user
from src.database import get_db
from src.main import app
from src.services.device_service import (
    DeviceTokenStoreError,
    LinkedDevice,
    PairingCode,
    PairingCodeError,
)


def _mock_user(user_id=None):
    user = MagicMock()
    user.id = user_id or uuid.uuid4()
    user.email = "driver@example.com"
    user.is_active = True
    return user


@pytest.fixture
def mock_db():
    db = AsyncMock()
    app.dependency_overrides[get_db] = lambda: db
    yield db
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def signed_in_user():
    user = _mock_user()
    app.dependency_overrides[get_current_user] = lambda: user
    yield user
    app.dependency_overrides.pop(get_current_user, None)


class TestIssueDeviceCode:
    """Tests for POST /api/auth/device."""

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.post("/api/auth/device")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_returns_code_and_expiry(self, client, mock_db, signed_in_user):
        expires_at = datetime.now(UTC) + timedelta(minutes=5)
        pairing = PairingCode(code="482913", expires_at=expires_at, expires_in_seconds=300)

        with (
            patch(
                "src.routers.device_auth.issue_pairing_code",
                new_callable=AsyncMock,
                return_value=pairing,
            ) as mock_issue,
            patch(
                "src.routers.device_auth.log_event",
                new_callable=AsyncMock,
            ) as mock_audit,
        ):
            response = await client.post("/api/auth/device")

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == "482913"
        assert data["expires_in_seconds"] == 300
        assert datetime.fromisoformat(data["expires_at"]) == expires_at
        mock_issue.assert_awaited_once_with(mock_db, signed_in_user.id)
        assert mock_audit.call_args.kwargs["event_type"] == "device.code_issued"

    @pytest.mark.asyncio
    async def test_store_failure_returns_500(self, client, mock_db, signed_in_user):
        with patch(
            "src.routers.device_auth.issue_pairing_code",
            new_callable=AsyncMock,
            side_effect=DeviceTokenStoreError("boom"),
        ):
            response = await client.post("/api/auth/device")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to generate code"


class TestVerifyDeviceCode:
    """Tests for POST /api/auth/device/verify."""

    @pytest.mark.asyncio
    async def test_successful_exchange(self, client, mock_db):
        user_id = uuid.uuid4()
        expires_at = datetime.now(UTC) + timedelta(days=30)
        linked = LinkedDevice(
            access_token="vtc_" + "f" * 32,
            user_id=user_id,
            display_name="Trucker Tom",
            avatar_url="https://cdn.example.com/a.png",
            expires_at=expires_at,
        )

        with (
            patch(
                "src.routers.device_auth.exchange_pairing_code",
                new_callable=AsyncMock,
                return_value=linked,
            ) as mock_exchange,
            patch("src.routers.device_auth.log_event", new_callable=AsyncMock),
        ):
            response = await client.post(
                "/api/auth/device/verify",
                json={"code": "482913", "device_name": "  Rig PC  "},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"] == linked.access_token
        assert data["user_id"] == str(user_id)
        assert data["display_name"] == "Trucker Tom"
        assert data["avatar_url"] == "https://cdn.example.com/a.png"
        mock_exchange.assert_awaited_once_with(mock_db, "482913", "Rig PC")

    @pytest.mark.asyncio
    async def test_blank_device_name_passed_as_none(self, client, mock_db):
        linked = LinkedDevice(
            access_token="vtc_" + "0" * 32,
            user_id=uuid.uuid4(),
            display_name="Driver",
            avatar_url=None,
            expires_at=datetime.now(UTC) + timedelta(days=30),
        )
        with (
            patch(
                "src.routers.device_auth.exchange_pairing_code",
                new_callable=AsyncMock,
                return_value=linked,
            ) as mock_exchange,
            patch("src.routers.device_auth.log_event", new_callable=AsyncMock),
        ):
            await client.post(
                "/api/auth/device/verify",
                json={"code": "482913", "device_name": "   "},
            )

        mock_exchange.assert_awaited_once_with(mock_db, "482913", None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["12345", "abcdef", "1234567"])
    async def test_malformed_code_returns_400(self, client, mock_db, code):
        response = await client.post("/api/auth/device/verify", json={"code": code})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid code format"
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_or_expired_code_returns_400(self, client, mock_db):
        with (
            patch(
                "src.routers.device_auth.exchange_pairing_code",
                new_callable=AsyncMock,
                side_effect=PairingCodeError("Invalid or expired code"),
            ),
            patch(
                "src.routers.device_auth.log_event",
                new_callable=AsyncMock,
            ) as mock_audit,
        ):
            response = await client.post(
                "/api/auth/device/verify", json={"code": "482913"}
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired code"
        assert mock_audit.call_args.kwargs["event_type"] == "device.link_failed"

    @pytest.mark.asyncio
    async def test_missing_code_returns_400_with_field_errors(self, client, mock_db):
        response = await client.post("/api/auth/device/verify", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Invalid request"
        assert body["errors"][0]["field"] == "code"

    @pytest.mark.asyncio
    async def test_store_failure_returns_500(self, client, mock_db):
        with patch(
            "src.routers.device_auth.exchange_pairing_code",
            new_callable=AsyncMock,
            side_effect=DeviceTokenStoreError("boom"),
        ):
            response = await client.post(
                "/api/auth/device/verify", json={"code": "482913"}
            )

        assert response.status_code == 500


class TestLinkedDevices:
    """Tests for GET/DELETE /api/auth/devices."""

    @pytest.mark.asyncio
    async def test_lists_devices_without_tokens(self, client, mock_db, signed_in_user):
        now = datetime.now(UTC)
        device = MagicMock()
        device.id = uuid.uuid4()
        device.device_name = "VTC Desktop"
        device.last_used_at = now
        device.expires_at = now + timedelta(days=30)
        device.created_at = now
        device.access_token = "vtc_" + "1" * 32

        with patch(
            "src.routers.device_auth.list_linked_devices",
            new_callable=AsyncMock,
            return_value=[device],
        ):
            response = await client.get("/api/auth/devices")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["devices"][0]["id"] == str(device.id)
        assert "access_token" not in data["devices"][0]

    @pytest.mark.asyncio
    async def test_revoke_returns_204(self, client, mock_db, signed_in_user):
        device_id = uuid.uuid4()
        with (
            patch(
                "src.routers.device_auth.revoke_device_token",
                new_callable=AsyncMock,
                return_value=True,
            ) as mock_revoke,
            patch(
                "src.routers.device_auth.log_event",
                new_callable=AsyncMock,
            ) as mock_audit,
        ):
            response = await client.delete(f"/api/auth/devices/{device_id}")

        assert response.status_code == 204
        mock_revoke.assert_awaited_once_with(mock_db, device_id, signed_in_user.id)
        assert mock_audit.call_args.kwargs["event_type"] == "device.revoked"

    @pytest.mark.asyncio
    async def test_revoke_unknown_returns_404(self, client, mock_db, signed_in_user):
        with patch(
            "src.routers.device_auth.revoke_device_token",
            new_callable=AsyncMock,
            return_value=False,
        ):
            response = await client.delete(f"/api/auth/devices/{uuid.uuid4()}")

        assert response.status_code == 404
