"""User profile directory — the height / weight collaborator used at session start.

Architecture
~~~~~~~~~~~~
* **ProfileDirectory** — abstract source of :class:`BodyMetrics`.
* **InMemoryProfileDirectory / HttpProfileDirectory** — concrete sources.
* **lookup_body_metrics()** — turns any directory outcome (including an
  exception) into ``BodyMetrics | LookupFailed``.
* **resolve_body_metrics()** — collapses that result into usable values,
  substituting the 175 cm / 70 kg defaults on failure.

A lookup failure is never allowed to reach the scoring path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from workout_monitor.models import BodyMetrics, parse_number
from workout_monitor.physiology.sensitivity import DEFAULT_HEIGHT_CM, DEFAULT_WEIGHT_KG

if TYPE_CHECKING:
    from workout_monitor.config import Settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LookupFailed:
    """Why a profile could not be resolved."""

    user_id: str
    reason: str


# ── Abstract directory ────────────────────────────────────────


class ProfileDirectory(ABC):
    """Contract for user profile sources.

    :meth:`get_body_metrics` returns ``None`` when the user is unknown.
    Implementations are async and may raise on transport errors; callers
    go through :func:`lookup_body_metrics`, which absorbs them.
    """

    name: str = "base"

    @abstractmethod
    async def get_body_metrics(self, user_id: str) -> BodyMetrics | None:
        """Return the user's height and weight, or ``None`` if not found."""

    async def aclose(self) -> None:
        """Release any connections held by the directory."""


# ── Concrete directories ──────────────────────────────────────


class InMemoryProfileDirectory(ProfileDirectory):
    """Dictionary-backed directory, used when no profile service is configured."""

    name = "memory"

    def __init__(self, profiles: dict[str, BodyMetrics] | None = None) -> None:
        self._profiles: dict[str, BodyMetrics] = dict(profiles or {})

    def register(self, user_id: str, *, height_cm: float, weight_kg: float) -> None:
        self._profiles[user_id] = BodyMetrics(height_cm=height_cm, weight_kg=weight_kg)

    async def get_body_metrics(self, user_id: str) -> BodyMetrics | None:
        return self._profiles.get(user_id)


class HttpProfileDirectory(ProfileDirectory):
    """Fetch profiles from the identity service's ``GET /user/{user_id}``.

    The service answers ``{"success": true, "user": {"height": .., "weight": ..}}``
    for known users and ``{"success": false}`` (or a 404) otherwise.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport,
        )

    async def get_body_metrics(self, user_id: str) -> BodyMetrics | None:
        resp = await self._client.get(f"/user/{user_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        body = resp.json()
        if not body.get("success", True) or not body.get("user"):
            return None
        return _metrics_from_user(body["user"])

    async def aclose(self) -> None:
        await self._client.aclose()


def _metrics_from_user(user: dict[str, Any]) -> BodyMetrics:
    # Falsy height/weight (missing, 0, "") fall back to the defaults.
    height = parse_number(user.get("height")) or DEFAULT_HEIGHT_CM
    weight = parse_number(user.get("weight")) or DEFAULT_WEIGHT_KG
    return BodyMetrics(height_cm=height, weight_kg=weight)


# ── Lookup / resolution ───────────────────────────────────────


async def lookup_body_metrics(directory: ProfileDirectory, user_id: str) -> BodyMetrics | LookupFailed:
    """Query *directory*, converting not-found and errors into :class:`LookupFailed`."""
    try:
        metrics = await directory.get_body_metrics(user_id)
    except Exception as exc:
        logger.warning(
            "profile.lookup_failed",
            user_id=user_id,
            directory=directory.name,
            error=str(exc),
        )
        return LookupFailed(user_id=user_id, reason=str(exc) or type(exc).__name__)
    if metrics is None:
        return LookupFailed(user_id=user_id, reason="not_found")
    return metrics


def resolve_body_metrics(result: BodyMetrics | LookupFailed) -> BodyMetrics:
    """Always yield usable body metrics, using defaults for a failed lookup."""
    if isinstance(result, LookupFailed):
        logger.debug("profile.defaults_used", user_id=result.user_id, reason=result.reason)
        return BodyMetrics(height_cm=DEFAULT_HEIGHT_CM, weight_kg=DEFAULT_WEIGHT_KG)
    return result


def create_profile_directory(settings: Settings) -> ProfileDirectory:
    """Build the profile directory selected by ``settings.profile_service_url``."""
    if settings.profile_service_url:
        return HttpProfileDirectory(
            settings.profile_service_url, timeout=settings.profile_request_timeout,
        )
    return InMemoryProfileDirectory()
