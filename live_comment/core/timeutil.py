"""
live_comment.core.timeutil
~~~~~~~~~~~~~~~~~~~~~~~~~~

时间戳工具。所有记录统一使用 UTC 的 ISO-8601 字符串。
"""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now_iso() -> str:
    """当前 UTC 时间的 ISO 格式字符串。"""
    return datetime.now(timezone.utc).isoformat()
