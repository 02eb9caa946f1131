from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from ..models.config_models import GeocodingConfig
from ..models.geo import GeoPoint
from .throttle import RequestThrottle

"""Geocoding client: one free-text address -> one coordinate pair.

Backed by geopy's Nominatim geocoder. Three outcomes are distinguished for
diagnostics only:
- RESOLVED: the service returned a location
- NOT_FOUND: the service answered but had no match (logged as info)
- FAILED: transport or service error (logged as error)
Callers treat NOT_FOUND and FAILED the same way: no coordinate available.
"""

__all__ = [
    "GeocodeResult",
    "GeocodeStatus",
    "GeocodingClient",
]

logger = logging.getLogger(__name__)


class GeocodeStatus(Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class GeocodeResult:
    address: str
    status: GeocodeStatus
    point: GeoPoint | None = None
    display_name: str | None = None
    error: str | None = None

    @property
    def resolved(self) -> bool:
        return self.status is GeocodeStatus.RESOLVED and self.point is not None


class GeocodingClient:
    """Resolves addresses through a geopy geocoder.

    ``geocoder`` may be any object with geopy's ``geocode(query, exactly_one=...)``
    signature; by default a Nominatim instance is built from the config.
    Calls go through a RequestThrottle, so consecutive lookups start at least
    ``min_interval_seconds`` apart; setting ``cancel_event`` stops the next one.
    """

    def __init__(
        self,
        config: GeocodingConfig | None = None,
        geocoder: Any = None,
        *,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.config = config or GeocodingConfig()
        if geocoder is None:
            geocoder = Nominatim(
                user_agent=self.config.user_agent,
                domain=self.config.domain,
                timeout=self.config.timeout_seconds,
            )
        self._geocoder = geocoder
        self.throttle = RequestThrottle(
            geocoder.geocode,
            self.config.min_interval_seconds,
            cancel_event=cancel_event,
            clock=clock,
            sleep=sleep,
        )

    @property
    def cancel_event(self) -> threading.Event | None:
        return self.throttle.cancel_event

    @cancel_event.setter
    def cancel_event(self, event: threading.Event | None) -> None:
        self.throttle.cancel_event = event

    def geocode(self, address: str) -> GeocodeResult:
        query = address.strip()
        if not query:
            return GeocodeResult(address=address, status=GeocodeStatus.NOT_FOUND)
        try:
            location = self.throttle(query, exactly_one=True)
        except GeopyError as e:
            logger.error("geocoding failed address=%r err=%s", query, e)
            return GeocodeResult(address=address, status=GeocodeStatus.FAILED, error=str(e))

        if location is None:
            logger.info("address not found: %r", query)
            return GeocodeResult(address=address, status=GeocodeStatus.NOT_FOUND)

        try:
            point = GeoPoint(lat=float(location.latitude), lng=float(location.longitude))
        except (TypeError, ValueError) as e:
            logger.error("geocoder returned unusable coordinates address=%r err=%s", query, e)
            return GeocodeResult(address=address, status=GeocodeStatus.FAILED, error=str(e))

        logger.debug("geocoded %r -> [%s, %s]", query, point.lat, point.lng)
        return GeocodeResult(
            address=address,
            status=GeocodeStatus.RESOLVED,
            point=point,
            display_name=getattr(location, "address", None),
        )
