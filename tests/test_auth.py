from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from farmops.auth.dependencies import get_current_user
from farmops.auth.jwt import AuthError, create_access_token, create_refresh_token, decode_token
from farmops.auth.passwords import hash_password, verify_password
from farmops.main import app
from farmops.models.enums import UserRoleEnum
from farmops.services.auth_service import AuthService
from farmops.services.crop_cycle_service import CropCycleService


def _user(role: UserRoleEnum, user_id: UUID | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id or uuid4(),
        name="Test User",
        email=f"{role}@test.local",
        role=role,
        is_active=True,
        created_at=datetime.now(UTC),
    )


def _cycle_body() -> dict[str, str]:
    return {
        "land_parcel_id": str(uuid4()),
        "crop_type_id": str(uuid4()),
        "planned_start_date": "2025-01-10",
        "planned_end_date": "2025-03-01",
    }


def test_jwt_create_decode_roundtrip(auth_user_id: UUID) -> None:
    token = create_access_token(str(auth_user_id), role="manager", expires_minutes=5)
    payload = decode_token(token, expected_type="access")
    assert payload["sub"] == str(auth_user_id)
    assert payload["typ"] == "access"
    assert payload["role"] == "manager"


def test_decode_invalid_token_raises_auth_error() -> None:
    with pytest.raises(AuthError) as exc_info:
        decode_token("invalid.token.payload", expected_type="access")
    assert exc_info.value.code == "token_invalid"


def test_refresh_token_is_not_an_access_token(auth_user_id: UUID) -> None:
    token = create_refresh_token(str(auth_user_id))
    with pytest.raises(AuthError) as exc_info:
        decode_token(token, expected_type="access")
    assert exc_info.value.code == "token_type_invalid"


def test_expired_token_rejected(auth_user_id: UUID) -> None:
    token = create_access_token(str(auth_user_id), expires_minutes=-1)
    with pytest.raises(AuthError) as exc_info:
        decode_token(token, expected_type="access")
    assert exc_info.value.code == "token_expired"


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


@pytest.mark.asyncio
async def test_missing_jwt_rejected_on_protected_endpoint(auth_client: AsyncClient) -> None:
    response = await auth_client.get("/api/v1/crop-cycles")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "auth_required"


@pytest.mark.asyncio
async def test_garbage_jwt_rejected(auth_client: AsyncClient) -> None:
    response = await auth_client.get(
        "/api/v1/crop-cycles",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "token_invalid"


@pytest.mark.asyncio
async def test_viewer_cannot_plan_cycles(
    auth_client: AsyncClient,
    fake_db_session: object,
    access_token: str,
    auth_user_id: UUID,
) -> None:
    fake_db_session.execute.return_value = MagicMock(
        scalar_one_or_none=MagicMock(return_value=_user(UserRoleEnum.viewer, auth_user_id))
    )

    response = await auth_client.post(
        "/api/v1/crop-cycles",
        json=_cycle_body(),
        headers={"Authorization": f"Bearer {access_token}"},
    )

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "forbidden"


@pytest.mark.asyncio
async def test_field_worker_can_read_cycles(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _field_worker() -> object:
        return _user(UserRoleEnum.field_worker)

    async def fake_list(self: CropCycleService, **_: object) -> list[object]:
        return []

    app.dependency_overrides[get_current_user] = _field_worker
    monkeypatch.setattr(CropCycleService, "list_crop_cycles", fake_list)

    listed = await client.get("/api/v1/crop-cycles")
    created = await client.post("/api/v1/crop-cycles", json=_cycle_body())

    assert listed.status_code == 200
    assert listed.json() == {"items": []}
    assert created.status_code == 403


@pytest.mark.asyncio
async def test_login_returns_token_pair(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    user = _user(UserRoleEnum.manager)

    async def fake_authenticate(self: AuthService, email: str, password: str) -> object:
        return user

    monkeypatch.setattr(AuthService, "authenticate", fake_authenticate)

    response = await client.post("/api/v1/auth/login", json={"email": "m@test.local", "password": "secret"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    claims = decode_token(body["access_token"], expected_type="access")
    assert claims["sub"] == str(user.id)
    assert claims["role"] == "manager"
    assert decode_token(body["refresh_token"], expected_type="refresh")["sub"] == str(user.id)


@pytest.mark.asyncio
async def test_login_with_bad_credentials(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_authenticate(self: AuthService, email: str, password: str) -> object:
        raise AuthError(code="invalid_credentials", detail="Invalid email or password")

    monkeypatch.setattr(AuthService, "authenticate", fake_authenticate)

    response = await client.post("/api/v1/auth/login", json={"email": "m@test.local", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "invalid_credentials"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_register(self: AuthService, name: str, email: str, password: str) -> object:
        raise ValueError("Email is already registered")

    monkeypatch.setattr(AuthService, "register", fake_register)

    response = await client.post(
        "/api/v1/auth/register",
        json={"name": "Lan", "email": "lan@test.local", "password": "long-enough"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "email_taken"


@pytest.mark.asyncio
async def test_rate_limit_per_identity(
    fake_redis: object,
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    @dataclass
    class _SettingsStub:
        rate_limit_user_per_minute: int = 1
        rate_limit_anonymous_per_minute: int = 1

    async def fake_list(self: CropCycleService, **_: object) -> list[object]:
        return []

    monkeypatch.setattr(app.state, "redis", fake_redis, raising=False)
    monkeypatch.setattr("farmops.middleware.rate_limit.get_settings", lambda: _SettingsStub())
    monkeypatch.setattr(CropCycleService, "list_crop_cycles", fake_list)

    first = await client.get("/api/v1/crop-cycles")
    second = await client.get("/api/v1/crop-cycles")
    health = await client.get("/health")

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["detail"]["error"] == "rate_limited"
    assert second.headers["retry-after"] == "60"
    assert health.status_code == 200
