"""Integration tests for platform role management and organization listing."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.audit.logger import AuditLogger
from backend.app.db.models import AuditLog
from backend.app.models.common import AuditAction, AuditEntityType
from tests.tenants import Tenants


async def _platform_role_entries(
    audit_logger: AuditLogger, session_factory: async_sessionmaker[AsyncSession]
) -> list[AuditLog]:
    """Platform role entries carry no organization, so read them straight from the table."""
    await audit_logger.drain()
    async with session_factory() as session:
        result = await session.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == AuditEntityType.platform_role.value)
            .order_by(AuditLog.created_at)
        )
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_owner_grants_platform_role(
    client: AsyncClient,
    tenants: Tenants,
    audit_logger: AuditLogger,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A first grant creates the role and logs a create."""
    response = await client.patch(
        f"/platform/users/{tenants.user_a}/platform-role",
        json={"role": "platform_admin"},
        headers=tenants.bearer(tenants.owner),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user_id"] == str(tenants.user_a)
    assert body["data"]["role"] == "platform_admin"

    entries = await _platform_role_entries(audit_logger, session_factory)
    assert len(entries) == 1
    assert entries[0].action == AuditAction.create.value
    assert entries[0].entity_id == tenants.user_a
    assert entries[0].organization_id is None
    assert entries[0].new_values["role"] == "platform_admin"


@pytest.mark.asyncio
async def test_regrant_logs_update(
    client: AsyncClient,
    tenants: Tenants,
    audit_logger: AuditLogger,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Changing an existing role logs an update with the role diff."""
    url = f"/platform/users/{tenants.user_a}/platform-role"
    await client.patch(url, json={"role": "platform_admin"}, headers=tenants.bearer(tenants.owner))
    response = await client.patch(
        url, json={"role": "platform_owner"}, headers=tenants.bearer(tenants.owner)
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "platform_owner"

    entries = await _platform_role_entries(audit_logger, session_factory)
    assert [e.action for e in entries] == ["create", "update"]
    assert entries[1].changed_fields == ["role"]
    assert entries[1].old_values == {"role": "platform_admin"}
    assert entries[1].new_values == {"role": "platform_owner"}


@pytest.mark.asyncio
async def test_grant_same_role_twice_logs_nothing_new(
    client: AsyncClient,
    tenants: Tenants,
    audit_logger: AuditLogger,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    url = f"/platform/users/{tenants.user_a}/platform-role"
    for _ in range(2):
        response = await client.patch(
            url, json={"role": "platform_admin"}, headers=tenants.bearer(tenants.owner)
        )
        assert response.status_code == 200

    entries = await _platform_role_entries(audit_logger, session_factory)
    assert [e.action for e in entries] == ["create"]


@pytest.mark.asyncio
async def test_non_owner_cannot_manage_roles(client: AsyncClient, tenants: Tenants) -> None:
    """Regular users and platform admins are forbidden."""
    url = f"/platform/users/{tenants.user_b}/platform-role"

    regular = await client.patch(
        url, json={"role": "platform_admin"}, headers=tenants.bearer(tenants.user_a)
    )
    assert regular.status_code == 403
    assert "only platform owners" in regular.json()["detail"]

    await client.patch(
        f"/platform/users/{tenants.user_a}/platform-role",
        json={"role": "platform_admin"},
        headers=tenants.bearer(tenants.owner),
    )
    admin = await client.delete(url, headers=tenants.bearer(tenants.user_a))
    assert admin.status_code == 403


@pytest.mark.asyncio
async def test_unauthenticated_is_unauthorized(client: AsyncClient, tenants: Tenants) -> None:
    response = await client.patch(
        f"/platform/users/{tenants.user_a}/platform-role", json={"role": "platform_admin"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_grant_to_unknown_user_is_not_found(client: AsyncClient, tenants: Tenants) -> None:
    response = await client.patch(
        f"/platform/users/{uuid.uuid4()}/platform-role",
        json={"role": "platform_admin"},
        headers=tenants.bearer(tenants.owner),
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_grant_rejects_unknown_role(client: AsyncClient, tenants: Tenants) -> None:
    response = await client.patch(
        f"/platform/users/{tenants.user_a}/platform-role",
        json={"role": "superuser"},
        headers=tenants.bearer(tenants.owner),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_revoke_platform_role(
    client: AsyncClient,
    tenants: Tenants,
    audit_logger: AuditLogger,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Revoking removes the role and logs a delete with the old row."""
    url = f"/platform/users/{tenants.user_a}/platform-role"
    await client.patch(url, json={"role": "platform_admin"}, headers=tenants.bearer(tenants.owner))

    response = await client.delete(url, headers=tenants.bearer(tenants.owner))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Platform role revoked"}

    again = await client.delete(url, headers=tenants.bearer(tenants.owner))
    assert again.status_code == 404

    entries = await _platform_role_entries(audit_logger, session_factory)
    assert [e.action for e in entries] == ["create", "delete"]
    assert entries[1].old_values["role"] == "platform_admin"
    assert entries[1].new_values is None


@pytest.mark.asyncio
async def test_owner_cannot_revoke_own_role(client: AsyncClient, tenants: Tenants) -> None:
    response = await client.delete(
        f"/platform/users/{tenants.owner}/platform-role", headers=tenants.bearer(tenants.owner)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_revoked_user_loses_tenant_switching(client: AsyncClient, tenants: Tenants) -> None:
    """After revocation the selection cookie is ignored again."""
    url = f"/platform/users/{tenants.user_a}/platform-role"
    await client.patch(url, json={"role": "platform_admin"}, headers=tenants.bearer(tenants.owner))
    client.cookies.set("orbit_current_org", str(tenants.org_b))

    switched = await client.post(
        "/companies", json={"name": "In B"}, headers=tenants.bearer(tenants.user_a)
    )
    assert switched.json()["organization_id"] == str(tenants.org_b)

    await client.delete(url, headers=tenants.bearer(tenants.owner))

    home = await client.post(
        "/companies", json={"name": "In A"}, headers=tenants.bearer(tenants.user_a)
    )
    assert home.json()["organization_id"] == str(tenants.org_a)


class TestMyOrganizations:
    """GET /organizations/my-organizations."""

    @pytest.mark.asyncio
    async def test_regular_user_sees_own_org(self, client: AsyncClient, tenants: Tenants) -> None:
        response = await client.get(
            "/organizations/my-organizations", headers=tenants.bearer(tenants.user_b)
        )

        assert response.status_code == 200
        body = response.json()
        assert [org["id"] for org in body["data"]] == [str(tenants.org_b)]
        assert body["current_organization_id"] == str(tenants.org_b)
        assert body["user_role"] == "user"
        assert body["platform_role"] is None

    @pytest.mark.asyncio
    async def test_platform_user_sees_all_orgs(self, client: AsyncClient, tenants: Tenants) -> None:
        response = await client.get(
            "/organizations/my-organizations", headers=tenants.bearer(tenants.owner)
        )

        body = response.json()
        assert [org["name"] for org in body["data"]] == ["Acme Agency", "Beta Client"]
        assert body["current_organization_id"] == str(tenants.org_a)
        assert body["platform_role"] == "platform_owner"

    @pytest.mark.asyncio
    async def test_user_without_org_sees_nothing(self, client: AsyncClient, tenants: Tenants) -> None:
        response = await client.get(
            "/organizations/my-organizations", headers=tenants.bearer(tenants.orphan)
        )

        body = response.json()
        assert body["data"] == []
        assert body["current_organization_id"] is None

    @pytest.mark.asyncio
    async def test_unknown_profile_is_not_found(self, client: AsyncClient, tenants: Tenants) -> None:
        response = await client.get(
            "/organizations/my-organizations", headers=tenants.bearer(uuid.uuid4())
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient, tenants: Tenants) -> None:
        response = await client.get("/organizations/my-organizations")

        assert response.status_code == 401
