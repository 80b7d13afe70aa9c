import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Request

from .config import APP_ENV
from .errors import UpgradeRequiredError

logger = logging.getLogger(__name__)

CLIENT_TYPES = ("web", "ios", "android", "tablet", "unknown")


def detect_client_type(client_type_header: Optional[str], user_agent: Optional[str]) -> str:
    """Client type from the X-Client-Type header, else guessed from the user agent."""
    if client_type_header:
        return client_type_header.lower()

    agent = (user_agent or "").lower()
    if "ipad" in agent:
        return "tablet"
    if "iphone" in agent:
        return "ios"
    if "android" in agent:
        return "tablet" if "tablet" in agent else "android"
    return "web"


async def client_detection(request: Request, call_next):
    """Tag each request with the calling client's type, app version and device id."""
    request.state.client_type = detect_client_type(
        request.headers.get("x-client-type"),
        request.headers.get("user-agent"),
    )
    request.state.app_version = request.headers.get("x-app-version")
    request.state.device_id = request.headers.get("x-device-id")

    if APP_ENV == "development":
        version = f" v{request.state.app_version}" if request.state.app_version else ""
        logger.info(
            "[%s] %s %s - Client: %s%s",
            datetime.utcnow().isoformat(),
            request.method,
            request.url.path,
            request.state.client_type,
            version,
        )

    return await call_next(request)


def _parse_version(version: str) -> List[int]:
    parts = []
    for part in version.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return parts


def is_version_supported(app_version: str, min_version: str) -> bool:
    """Dotted numeric comparison; missing parts count as zero."""
    current = _parse_version(app_version)
    minimum = _parse_version(min_version)
    for i, required in enumerate(minimum):
        have = current[i] if i < len(current) else 0
        if have < required:
            return False
        if have > required:
            return True
    return True


def require_min_version(min_version: str):
    """Build a dependency rejecting client apps older than ``min_version``."""

    def dependency(request: Request) -> None:
        app_version = getattr(request.state, "app_version", None) or request.headers.get("x-app-version")
        if not app_version:
            return
        if not is_version_supported(app_version, min_version):
            raise UpgradeRequiredError(app_version, min_version)

    return dependency
