# prizepool/utils/render.py
"""HTML message bodies for the public and staff views."""

from __future__ import annotations

from typing import Any, Iterable

from aiogram.utils.text_decorations import html_decoration as hd


def _record_line(r: dict[str, Any]) -> str:
    return (
        f"#{hd.quote(r['auctionNumber'])} · {hd.quote(r['username'])} → "
        f"<b>{hd.quote(r['item'])}</b>"
    )


def _progress(p: dict[str, Any]) -> str:
    return (
        f"🎁 Remaining: <b>{p['remainingCount']}</b> / {p['totalCount']} "
        f"({p['progressPercent']:.0f}% drawn)"
    )


def _giveaway_lines(p: dict[str, Any]) -> list[str]:
    lines: list[str] = []
    pending = p.get("currentBuyersGiveawayItem")
    if pending:
        lines.append(f"🎟 Next buyer's giveaway: <b>{hd.quote(pending)}</b>")
    result = p.get("buyersGiveaway")
    if result:
        lines.append(
            f"🏆 Buyer's giveaway: <b>{hd.quote(result['itemName'])}</b> won by "
            f"<b>{hd.quote(result['winnerUsername'])}</b> ({result['sourceEntryCount']} entries)"
        )
    return lines


def render_public(p: dict[str, Any], *, history_lines: int = 5) -> str:
    if p.get("isOffline"):
        return "🌙 <b>The prize pool is offline right now.</b>\nCheck back soon!"

    lines = ["🎰 <b>Live prize pool</b>", _progress(p)]
    if p.get("selectedItem"):
        lines.append(f"✨ Last drawn: <b>{hd.quote(p['selectedItem'])}</b>")
    lines.extend(_giveaway_lines(p))

    history = p.get("history") or []
    if history:
        lines.append("")
        lines.append("<b>Recent spins</b>")
        lines.extend(_record_line(r) for r in history[:history_lines])

    lines.append("")
    lines.append(f"<i>v{p['version']} · {hd.quote(p['updatedAt'])}</i>")
    return "\n".join(lines)


def render_admin(p: dict[str, Any], *, history_lines: int = 10) -> str:
    flags = []
    if p.get("isOffline"):
        flags.append("🌙 public view OFFLINE")
    if p.get("isTestingMode"):
        flags.append("⚠️ TESTING MODE ON: auction numbers may repeat")

    lines = ["🛠 <b>Spin admin</b>" + (" (owner)" if p.get("isOwner") else "")]
    lines.extend(flags)
    lines.append(_progress(p))
    if p.get("selectedItem"):
        lines.append(f"✨ Selected: <b>{hd.quote(p['selectedItem'])}</b>")
    lines.extend(_giveaway_lines(p))

    bulk = p.get("recentBulkResults") or []
    if bulk:
        lines.append("")
        lines.append(f"<b>Last bulk ({len(bulk)})</b>")
        lines.extend(_record_line(r) for r in bulk)

    history = p.get("history") or []
    if history:
        lines.append("")
        lines.append("<b>History</b>")
        lines.extend(_record_line(r) for r in history[:history_lines])

    lines.append("")
    lines.append(f"<i>v{p['version']} · {hd.quote(p['updatedAt'])}</i>")
    return "\n".join(lines)


def render_spin(record: dict[str, Any] | None, remaining: int) -> str:
    if record is None:
        return "🫙 The pool is empty. Nothing was drawn. Use /reset to start a new round."
    return f"🎰 {_record_line(record)}\n🎁 {remaining} left in the pool."


def render_bulk(records: Iterable[dict[str, Any]], requested: int, remaining: int) -> str:
    records = list(records)
    if not records:
        return "🫙 The pool is empty. Nothing was drawn. Use /reset to start a new round."
    lines = [f"🎰 <b>Bulk spin</b> ({len(records)}/{requested})"]
    lines.extend(_record_line(r) for r in records)
    if len(records) < requested:
        lines.append(f"⚠️ Only {len(records)} left in the pool, {requested - len(records)} not drawn.")
    lines.append(f"🎁 {remaining} left in the pool.")
    return "\n".join(lines)
