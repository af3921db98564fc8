"""Test doubles for the realtime runtime."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from teamcall.runtime.connections import Connection


class FakeSocket:
    """Records what the server sends; optionally fails every send."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[Any] = []
        self.fail = fail
        self.closed_with: tuple[int, str | None] | None = None

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket is closing")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = (code, reason)


def drain(conn: Connection) -> list[BaseModel]:
    """Pop everything queued for a connection without sending it."""
    out: list[BaseModel] = []
    while not conn.outbox.empty():
        out.append(conn.outbox.get_nowait())
        conn.outbox.task_done()
    return out


def of_type(messages: list[Any], kind: str) -> list[Any]:
    """Filter models or JSON dicts by their `type` field."""
    return [
        m for m in messages
        if (m.get("type") if isinstance(m, dict) else getattr(m, "type", None)) == kind
    ]
