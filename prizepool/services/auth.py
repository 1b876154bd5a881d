# prizepool/services/auth.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.config import Settings
from prizepool.database.models import Admin, AdminRole, User


@dataclass(frozen=True, slots=True)
class AuthResult:
    is_owner: bool
    is_staff: bool
    role: str  # "owner" | "staff" | "public"


PUBLIC = AuthResult(is_owner=False, is_staff=False, role="public")


class AuthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def resolve(self, session: AsyncSession, user: User) -> AuthResult:
        # Owners from env always take precedence.
        if user.telegram_id in self.settings.owner_ids:
            return AuthResult(is_owner=True, is_staff=True, role=AdminRole.OWNER.value)

        res = await session.execute(select(Admin).where(Admin.user_id == user.id))
        admin = res.scalar_one_or_none()
        if admin is None:
            return PUBLIC

        return AuthResult(
            is_owner=admin.role == AdminRole.OWNER,
            is_staff=True,
            role=admin.role.value,
        )

    async def resolve_by_telegram(self, session: AsyncSession, telegram_id: int) -> AuthResult:
        if telegram_id in self.settings.owner_ids:
            return AuthResult(is_owner=True, is_staff=True, role=AdminRole.OWNER.value)

        user = await session.scalar(select(User).where(User.telegram_id == telegram_id))
        if user is None:
            return PUBLIC
        return await self.resolve(session, user)
