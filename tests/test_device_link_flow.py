"""End-to-end device link flow over HTTP against a SQLite store.

Pairing code issue -> exchange -> heartbeat -> job -> disconnect, with
real services and persistence.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from src.models import DeviceToken, Job, SecurityAuditLog, Truck, User


async def _link_device(db_client, session_headers) -> dict:
    issued = await db_client.post("/api/auth/device", headers=session_headers)
    assert issued.status_code == 200
    verified = await db_client.post(
        "/api/auth/device/verify",
        json={"code": issued.json()["code"], "device_name": "Rig PC"},
    )
    assert verified.status_code == 200
    return verified.json()


class TestDeviceLinkFlow:
    @pytest.mark.asyncio
    async def test_full_session(
        self, db_client, session_factory, driver, session_headers
    ):
        linked = await _link_device(db_client, session_headers)
        assert linked["display_name"] == "Trucker Tom"
        assert linked["user_id"] == str(driver.id)
        bearer = {"Authorization": f"Bearer {linked['access_token']}"}

        async with session_factory() as db:
            truck = Truck(user_id=driver.id, game="ets2", brand="Volvo", model="FH16")
            db.add(truck)
            await db.commit()

        heartbeat = await db_client.post(
            "/api/telemetry/heartbeat", headers=bearer, json={"game_running": True}
        )
        assert heartbeat.status_code == 200
        assert heartbeat.json()["next_heartbeat_in"] == 30
        async with session_factory() as db:
            assert (await db.get(User, driver.id)).is_online is True

        submitted = await db_client.post(
            "/api/telemetry/job",
            headers=bearer,
            json={
                "game": "ets2",
                "cargo": "Machinery",
                "source_city": "Hamburg",
                "destination_city": "Wien",
                "distance_km": 1500.6,
                "revenue": 2499.995,
                "damage_percent": 3.456,
                "truck_id": str(truck.id),
                "telemetry_data": {"fuel": 0.3},
            },
        )
        assert submitted.status_code == 200
        job_id = submitted.json()["job_id"]

        async with session_factory() as db:
            job = (await db.execute(select(Job))).scalar_one()
            bumped = await db.get(Truck, truck.id)
        assert str(job.id) == job_id
        assert job.distance_km == 1501
        assert job.revenue == Decimal("2500.00")
        assert job.damage_percent == Decimal("3.46")
        assert job.status == "approved"
        assert bumped.total_km == 1501
        assert bumped.total_revenue == Decimal("2500.00")
        assert bumped.total_jobs == 1

        disconnected = await db_client.delete(
            "/api/telemetry/heartbeat", headers=bearer
        )
        assert disconnected.json() == {"success": True}
        async with session_factory() as db:
            assert (await db.get(User, driver.id)).is_online is False

        async with session_factory() as db:
            events = (
                await db.execute(
                    select(SecurityAuditLog.event_type).order_by(
                        SecurityAuditLog.created_at
                    )
                )
            ).scalars().all()
        assert set(events) == {"device.code_issued", "device.linked"}

    @pytest.mark.asyncio
    async def test_code_exchange_is_single_use(self, db_client, session_headers):
        issued = await db_client.post("/api/auth/device", headers=session_headers)
        code = issued.json()["code"]

        first = await db_client.post("/api/auth/device/verify", json={"code": code})
        second = await db_client.post("/api/auth/device/verify", json={"code": code})

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["detail"] == "Invalid or expired code"

    @pytest.mark.asyncio
    async def test_revoked_device_loses_access(
        self, db_client, session_factory, session_headers
    ):
        linked = await _link_device(db_client, session_headers)
        bearer = {"Authorization": f"Bearer {linked['access_token']}"}

        listed = await db_client.get("/api/auth/devices", headers=session_headers)
        assert listed.json()["total"] == 1
        device = listed.json()["devices"][0]
        assert device["device_name"] == "Rig PC"

        revoked = await db_client.delete(
            f"/api/auth/devices/{device['id']}", headers=session_headers
        )
        assert revoked.status_code == 204

        heartbeat = await db_client.post("/api/telemetry/heartbeat", headers=bearer)
        assert heartbeat.status_code == 401

        async with session_factory() as db:
            assert (await db.execute(select(DeviceToken))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_session_cookie_also_accepted(self, db_client, session_headers):
        token = session_headers["Authorization"].removeprefix("Bearer ")

        issued = await db_client.post(
            "/api/auth/device", headers={"Cookie": f"vtc_session={token}"}
        )

        assert issued.status_code == 200

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_lose_linked_device(
        self, db_client, sqlite_engine, session_headers
    ):
        async with sqlite_engine.begin() as conn:
            await conn.run_sync(SecurityAuditLog.__table__.drop)

        linked = await _link_device(db_client, session_headers)
        bearer = {"Authorization": f"Bearer {linked['access_token']}"}

        heartbeat = await db_client.post("/api/telemetry/heartbeat", headers=bearer)
        assert heartbeat.status_code == 200

        listed = await db_client.get("/api/auth/devices", headers=session_headers)
        device_id = listed.json()["devices"][0]["id"]
        revoked = await db_client.delete(
            f"/api/auth/devices/{device_id}", headers=session_headers
        )
        assert revoked.status_code == 204
