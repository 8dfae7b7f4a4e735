from datetime import timedelta

from spacesync.core.audit_log import AuditEventType, get_audit_logger
from spacesync.core.rate_limiter import DEFAULT_RATE_LIMITS, RateLimitRule
from conftest import T1, USER_ID

SYNC = "/api/v1/sync"

def space(record_id="space_1", updated_at=T1, **extra):
    data = {
        "id": record_id,
        "userId": USER_ID,
        "name": "Groceries",
        "icon": "🛒",
        "updatedAt": updated_at.isoformat(),
    }
    data.update(extra)
    return data

def push(client, headers, device_id="device_a", **changes):
    return client.post(f"{SYNC}/push", json={"deviceId": device_id, "changes": changes}, headers=headers)

class TestPushRoute:
    def test_push_success(self, client, auth_headers):
        response = push(client, auth_headers, spaces=[space()])

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] == {"spaces": 1, "categories": 0, "items": 0, "preferences": 0}
        assert data["rejected"]["spaces"] == 0
        assert data["conflicts"] == []
        assert "syncedAt" in data

    def test_push_conflict_shape(self, client, auth_headers):
        push(client, auth_headers, spaces=[space()])

        response = push(client, auth_headers, spaces=[space(updated_at=T1 - timedelta(seconds=1))])

        assert response.status_code == 200
        conflict = response.json()["conflicts"][0]
        assert conflict["id"] == "space_1"
        assert conflict["entityType"] == "spaces"
        assert conflict["reason"] == "OLDER_TIMESTAMP"
        assert conflict["serverUpdatedAt"].startswith("2025-01-01T12:00:00")
        assert conflict["clientUpdatedAt"].startswith("2025-01-01T11:59:59")

    def test_push_empty_changes(self, client, auth_headers):
        response = push(client, auth_headers)

        assert response.status_code == 200
        assert response.json()["accepted"]["spaces"] == 0

    def test_push_missing_device_id(self, client, auth_headers):
        response = client.post(f"{SYNC}/push", json={"changes": {}}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": {"code": "MISSING_DEVICE_ID", "message": "deviceId is required"}
        }

    def test_push_without_body(self, client, auth_headers):
        response = client.post(f"{SYNC}/push", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_DEVICE_ID"

    def test_push_record_without_owner(self, client, auth_headers):
        ownerless = space("space_2")
        del ownerless["userId"]

        response = push(client, auth_headers, spaces=[space(), ownerless])

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"]["spaces"] == 1
        assert data["rejected"]["spaces"] == 1
        assert data["conflicts"] == []

    def test_push_missing_changes(self, client, auth_headers):
        response = client.post(f"{SYNC}/push", json={"deviceId": "device_a"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_CHANGES"

    def test_push_invalid_record(self, client, auth_headers):
        response = push(client, auth_headers, spaces=[{"id": "space_1", "userId": USER_ID, "name": "No timestamp"}])

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    def test_push_unauthorized(self, client):
        response = client.post(f"{SYNC}/push", json={"deviceId": "device_a", "changes": {}})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"
        events = get_audit_logger().get_events(event_type=AuditEventType.UNAUTHORIZED_ACCESS)
        assert len(events) == 1

    def test_push_invalid_token(self, client):
        response = client.post(
            f"{SYNC}/push",
            json={"deviceId": "device_a", "changes": {}},
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401

class TestPullRoute:
    def test_pull_from_other_device(self, client, auth_headers):
        push(client, auth_headers, device_id="device_a", spaces=[space()])

        response = client.get(f"{SYNC}/pull", params={"deviceId": "device_b"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["hasMore"] is False
        assert data["changes"]["preferences"] is None
        pulled = data["changes"]["spaces"][0]
        assert pulled["id"] == "space_1"
        assert pulled["userId"] == USER_ID
        assert pulled["deviceId"] == "device_a"
        assert pulled["isHidden"] is False
        assert pulled["icon"] == "🛒"

    def test_pull_excludes_own_device(self, client, auth_headers):
        push(client, auth_headers, device_id="device_a", spaces=[space()])

        response = client.get(f"{SYNC}/pull", params={"deviceId": "device_a"}, headers=auth_headers)

        assert response.json()["changes"]["spaces"] == []

    def test_pull_since(self, client, auth_headers):
        push(client, auth_headers, spaces=[space("space_old"), space("space_new", updated_at=T1 + timedelta(hours=1))])

        response = client.get(
            f"{SYNC}/pull",
            params={"deviceId": "device_b", "lastSyncAt": "2025-01-01T12:30:00Z"},
            headers=auth_headers
        )

        assert [s["id"] for s in response.json()["changes"]["spaces"]] == ["space_new"]

    def test_pull_other_user_sees_nothing(self, client, auth_headers, other_auth_headers):
        push(client, auth_headers, spaces=[space()])

        response = client.get(f"{SYNC}/pull", params={"deviceId": "device_b"}, headers=other_auth_headers)

        assert response.json()["changes"]["spaces"] == []

    def test_pull_missing_device_id(self, client, auth_headers):
        response = client.get(f"{SYNC}/pull", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_DEVICE_ID"

    def test_pull_invalid_watermark(self, client, auth_headers):
        response = client.get(
            f"{SYNC}/pull",
            params={"deviceId": "device_b", "lastSyncAt": "yesterday"},
            headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

class TestBackupRoutes:
    def test_backup(self, client, auth_headers):
        push(client, auth_headers, spaces=[space(), space("space_2", deleted=True)])

        response = client.post(f"{SYNC}/backup", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == USER_ID
        assert data["version"] == "1.0"
        assert "backupAt" in data
        assert len(data["spaces"]) == 2
        assert "X-API-Deprecated" not in response.headers

    def test_legacy_backup_route(self, client, auth_headers):
        response = client.get(f"{SYNC}/backup", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["X-API-Deprecated"] == "true"
        assert "POST /sync/backup" in response.headers["X-API-Deprecation-Info"]
        assert response.headers["X-API-Sunset-Date"] == "2026-03-01"

    def test_restore_roundtrip(self, client, auth_headers):
        push(client, auth_headers, spaces=[space()])
        backup = client.post(f"{SYNC}/backup", headers=auth_headers).json()
        backup["spaces"][0]["updatedAt"] = "2999-01-01T00:00:00Z"
        backup["spaces"][0]["name"] = "Restored"

        response = client.post(
            f"{SYNC}/restore",
            json={"deviceId": "device_r", "backupData": backup},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["restored"] == {"spaces": 1, "categories": 0, "items": 0, "preferences": 0}

        pulled = client.get(f"{SYNC}/pull", params={"deviceId": "device_a"}, headers=auth_headers).json()
        assert pulled["changes"]["spaces"][0]["name"] == "Restored"
        assert pulled["changes"]["spaces"][0]["deleted"] is False

    def test_restore_missing_backup_data(self, client, auth_headers):
        response = client.post(f"{SYNC}/restore", json={"deviceId": "device_r"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_BACKUP_DATA"

    def test_restore_without_body(self, client, auth_headers):
        for path in ("restore", "backup/restore"):
            response = client.post(f"{SYNC}/{path}", headers=auth_headers)

            assert response.status_code == 400
            assert response.json()["error"]["code"] == "MISSING_DEVICE_ID"

    def test_restore_missing_device_id(self, client, auth_headers):
        response = client.post(f"{SYNC}/restore", json={"backupData": {}}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_DEVICE_ID"

    def test_legacy_restore_route(self, client, auth_headers):
        response = client.post(
            f"{SYNC}/backup/restore",
            json={"deviceId": "device_r", "backupData": {}},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.headers["X-API-Deprecated"] == "true"
        assert "POST /sync/restore" in response.headers["X-API-Deprecation-Info"]

class TestRateLimiting:
    def test_limit_exceeded(self, client, auth_headers, monkeypatch):
        monkeypatch.setitem(DEFAULT_RATE_LIMITS, "sync", RateLimitRule(max_requests=2, window_seconds=60))

        for _ in range(2):
            assert client.get(f"{SYNC}/pull", params={"deviceId": "d"}, headers=auth_headers).status_code == 200

        response = client.get(f"{SYNC}/pull", params={"deviceId": "d"}, headers=auth_headers)

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(response.headers["Retry-After"]) >= 1
        events = get_audit_logger().get_events(user_id=USER_ID, event_type=AuditEventType.RATE_LIMIT_EXCEEDED)
        assert len(events) == 1

    def test_limit_is_per_user(self, client, auth_headers, other_auth_headers, monkeypatch):
        monkeypatch.setitem(DEFAULT_RATE_LIMITS, "sync", RateLimitRule(max_requests=1, window_seconds=60))

        assert client.get(f"{SYNC}/pull", params={"deviceId": "d"}, headers=auth_headers).status_code == 200
        assert client.get(f"{SYNC}/pull", params={"deviceId": "d"}, headers=other_auth_headers).status_code == 200
        assert client.get(f"{SYNC}/pull", params={"deviceId": "d"}, headers=auth_headers).status_code == 429

class TestAppRoutes:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "timestamp" in data

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Route not found"}
        }
