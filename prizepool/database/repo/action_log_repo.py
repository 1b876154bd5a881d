# prizepool/database/repo/action_log_repo.py
from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.database.models import AdminActionLog

_MAX_PAYLOAD = 2000


async def log_admin_action(
    session: AsyncSession,
    *,
    actor_user_id: int | None,
    action: str,
    state_version: int | None = None,
    payload: dict[str, Any] | None = None,
) -> AdminActionLog:
    payload_json = None
    if payload:
        payload_json = json.dumps(payload, ensure_ascii=False)[:_MAX_PAYLOAD]

    row = AdminActionLog(
        actor_user_id=actor_user_id,
        action=action,
        state_version=state_version,
        payload_json=payload_json,
    )
    session.add(row)
    await session.flush()
    return row


async def recent_actions(session: AsyncSession, *, limit: int = 10) -> list[AdminActionLog]:
    res = await session.execute(
        select(AdminActionLog).order_by(AdminActionLog.id.desc()).limit(limit)
    )
    return list(res.scalars().all())
