"""
How the service worker renders an incoming push.

The web app's service worker applies the same defaults and actions.
"""

import json
from typing import Any, Optional, Union

DEFAULT_TITLE = "Tarefas do Dia"
DEFAULT_BODY = "Você tem tarefas pendentes"
FALLBACK_TITLE = "Nova notificação"
DEFAULT_URL = "/tasks"
ICON = "/icons/icon-192x192.png"
BADGE = "/icons/icon-72x72.png"
VIBRATE = [100, 50, 100]
ACTIONS = [
    {"action": "open", "title": "Ver Tarefas"},
    {"action": "dismiss", "title": "Dispensar"},
]


def build_push_display(raw: Optional[Union[str, bytes]]) -> dict[str, Any]:
    """Turn a raw push body into {title, body, icon, badge, vibrate, data, actions}"""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    raw = raw or ""

    try:
        payload = json.loads(raw)
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        return {
            "title": FALLBACK_TITLE,
            "body": raw,
            "icon": ICON,
            "badge": BADGE,
            "vibrate": list(VIBRATE),
            "data": {"url": DEFAULT_URL},
            "actions": [dict(a) for a in ACTIONS],
        }

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    return {
        "title": payload.get("title") or DEFAULT_TITLE,
        "body": payload.get("body") or DEFAULT_BODY,
        "icon": payload.get("icon") or ICON,
        "badge": payload.get("badge") or BADGE,
        "vibrate": list(VIBRATE),
        "data": {**data, "url": data.get("url") or payload.get("url") or DEFAULT_URL},
        "actions": [dict(a) for a in ACTIONS],
    }
