from datetime import datetime
from typing import Optional

from ..config import Settings
from ..results import Failure, Result, Success
from ..utils.clock import isoformat, utcnow
from .relay import UpstreamRelay


def proxy_demo(relay: UpstreamRelay, settings: Settings, now: Optional[datetime] = None) -> Result:
    result = relay.send("GET", settings.PROXY_DEMO_URL, label="Demo API")
    if isinstance(result, Failure):
        return result
    title = result.body.get("title") if isinstance(result.body, dict) else None
    return Success({
        "banner": f'External API says: "{title}"',
        "when": isoformat(now or utcnow()),
    })
