from __future__ import annotations

import unittest
from types import SimpleNamespace

from prizepool.config import Settings
from prizepool.database import Database
from prizepool.database.models import AdminRole
from prizepool.database.repo.action_log_repo import log_admin_action, recent_actions
from prizepool.database.repo.admins import grant_role, list_admins
from prizepool.database.repo.users import upsert_user_from_event
from prizepool.services.auth import AuthService


def message_from(telegram_id: int, username: str) -> SimpleNamespace:
    return SimpleNamespace(
        from_user=SimpleNamespace(id=telegram_id, username=username, first_name="F", last_name=None)
    )


class AuthServiceTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = Database("sqlite+aiosqlite://")
        await self.db.init_models()
        self.auth = AuthService(Settings(bot_token="t", owner_ids=(1,)))

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def test_env_owner_without_user_row(self) -> None:
        async with self.db.session() as session:
            result = await self.auth.resolve_by_telegram(session, 1)
        self.assertTrue(result.is_owner)
        self.assertTrue(result.is_staff)

    async def test_unknown_user_is_public(self) -> None:
        async with self.db.session() as session:
            result = await self.auth.resolve_by_telegram(session, 999)
        self.assertFalse(result.is_staff)
        self.assertEqual(result.role, "public")

    async def test_granted_roles(self) -> None:
        async with self.db.session() as session:
            staff, created = await upsert_user_from_event(session, message_from(10, "sam"))
            self.assertTrue(created)
            owner, _ = await upsert_user_from_event(session, message_from(11, "olive"))
            await grant_role(session, user=staff, role=AdminRole.STAFF)
            await grant_role(session, user=owner, role=AdminRole.OWNER, display_name="Olive")
            await session.commit()

        async with self.db.session() as session:
            staff_auth = await self.auth.resolve_by_telegram(session, 10)
            owner_auth = await self.auth.resolve_by_telegram(session, 11)
            admins = await list_admins(session)

        self.assertTrue(staff_auth.is_staff)
        self.assertFalse(staff_auth.is_owner)
        self.assertTrue(owner_auth.is_owner)
        self.assertEqual([user.telegram_id for _, user in admins], [10, 11])

    async def test_regrant_updates_role(self) -> None:
        async with self.db.session() as session:
            user, _ = await upsert_user_from_event(session, message_from(10, "sam"))
            created, _ = await grant_role(session, user=user, role=AdminRole.STAFF)
            self.assertTrue(created)
            created, admin = await grant_role(session, user=user, role=AdminRole.OWNER)
            self.assertFalse(created)
            self.assertEqual(admin.role, AdminRole.OWNER)


class UserRepoTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = Database("sqlite+aiosqlite://")
        await self.db.init_models()

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def test_upsert_reports_changes_only(self) -> None:
        async with self.db.session() as session:
            await upsert_user_from_event(session, message_from(5, "old"))
            await session.commit()

            user, dirty = await upsert_user_from_event(session, message_from(5, "old"))
            self.assertFalse(dirty)

            user, dirty = await upsert_user_from_event(session, message_from(5, "new"))
            self.assertTrue(dirty)
            self.assertEqual(user.username, "new")

    async def test_event_without_user(self) -> None:
        async with self.db.session() as session:
            user, dirty = await upsert_user_from_event(session, SimpleNamespace())
        self.assertIsNone(user)
        self.assertFalse(dirty)

    async def test_action_log_keeps_newest_first(self) -> None:
        async with self.db.session() as session:
            user, _ = await upsert_user_from_event(session, message_from(5, "sam"))
            await log_admin_action(session, actor_user_id=user.id, action="spin", state_version=2)
            await log_admin_action(
                session, actor_user_id=user.id, action="reset", state_version=3, payload={"a": 1}
            )
            await session.commit()
            rows = await recent_actions(session, limit=5)

        self.assertEqual([r.action for r in rows], ["reset", "spin"])
        self.assertEqual(rows[0].payload_json, '{"a": 1}')


if __name__ == "__main__":
    unittest.main()
