from __future__ import annotations

import json
from typing import Any

from fastapi import Request

from ..service import Services


async def json_payload(request: Request) -> dict[str, Any]:
    """Request body as a JSON object; anything else (empty, invalid, array) is ``{}``."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def get_services(request: Request) -> Services:
    return request.app.state.services
