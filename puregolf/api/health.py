import platform
import time
from typing import Any, Dict

from puregolf import __version__
from puregolf.config import get_settings
from puregolf.metrics import BUILD_VERSION, GIT_SHA


async def health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "package": __version__,
        "git": GIT_SHA,
        "ts": time.time(),
        "caddy": {
            "store_timeout_s": settings.store_timeout_s,
            "free_advice_limit": settings.free_advice_limit,
        },
        "runtime": {
            "python": platform.python_version(),
        },
    }
