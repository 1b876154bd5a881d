# prizepool/database/repo/admins.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.database.models import Admin, AdminRole, User


async def grant_role(
    session: AsyncSession,
    *,
    user: User,
    role: AdminRole,
    display_name: str | None = None,
) -> tuple[bool, Admin]:
    """
    Creates or updates the admin row for `user`.
    Returns (created, admin).
    """
    admin = await session.scalar(select(Admin).where(Admin.user_id == user.id))
    if admin is not None:
        admin.role = role
        if display_name:
            admin.display_name = display_name
        await session.flush()
        return False, admin

    admin = Admin(user_id=user.id, role=role, display_name=display_name)
    session.add(admin)
    await session.flush()
    return True, admin


async def list_admins(session: AsyncSession) -> list[tuple[Admin, User]]:
    res = await session.execute(
        select(Admin, User).join(User, User.id == Admin.user_id).order_by(Admin.id.asc())
    )
    return [(admin, user) for admin, user in res.all()]
