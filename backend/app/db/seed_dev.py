"""Dev seeding helper for the bearer-token stub."""

import asyncio
import uuid

from sqlalchemy import select

from backend.app.db.engine import get_session_factory
from backend.app.db.models import Organization, PlatformRole, Profile
from backend.app.models.common import OrgRole, PlatformRoleName

# Fixed IDs; use "Authorization: Bearer <DEV_OWNER_ID>:owner@example.com" locally
DEV_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEV_OWNER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")


async def seed_dev_tenant() -> None:
    """Seed a dev organization, a regular user and a platform owner.

    Idempotent - safe to run multiple times.
    """
    async with get_session_factory()() as session:
        org = await session.get(Organization, DEV_ORG_ID)
        if org is None:
            print(f"Creating dev organization {DEV_ORG_ID}...")
            session.add(Organization(id=DEV_ORG_ID, name="Dev Agency", slug="dev-agency", type="agency"))
        else:
            print(f"Dev organization already exists: {org.name}")

        for user_id, role, name in (
            (DEV_OWNER_ID, OrgRole.owner, "Dev Owner"),
            (DEV_USER_ID, OrgRole.user, "Dev User"),
        ):
            if await session.get(Profile, user_id) is None:
                print(f"Creating profile {name} ({user_id})...")
                session.add(
                    Profile(id=user_id, organization_id=DEV_ORG_ID, role=role.value, full_name=name)
                )

        # Profiles must exist before the platform role FK
        await session.flush()

        result = await session.execute(
            select(PlatformRole).where(PlatformRole.user_id == DEV_OWNER_ID)
        )
        if result.scalar_one_or_none() is None:
            print(f"Granting platform_owner to {DEV_OWNER_ID}...")
            session.add(PlatformRole(user_id=DEV_OWNER_ID, role=PlatformRoleName.platform_owner.value))

        await session.commit()
        print("Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_tenant())
