"""Best-effort coordinate lookup for scan enrichment."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http import client as http_client
from typing import Protocol
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from cattlescan.config import get_settings

logger = logging.getLogger(__name__)

IP_LOCATION_ACCURACY_M = 50_000.0


class LocationError(RuntimeError):
    """Raised when a location cannot be resolved; never fatal to callers."""


@dataclass(slots=True, frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy_m: float


class LocationResolver(Protocol):
    """Protocol for pluggable location lookups."""

    def resolve(self) -> Coordinates:
        """Return coordinates or raise ``LocationError``."""


@dataclass(slots=True)
class IpInfoLocationResolver:
    """IP geolocation via ipinfo.io using stdlib HTTP (city-level, ~50 km)."""

    token: str | None
    ip_address: str | None = None
    timeout_seconds: int = 5
    base_url: str = "https://ipinfo.io"

    def resolve(self) -> Coordinates:
        if not self.token:
            raise LocationError("Missing IPInfo token")

        path = f"/{urllib_parse.quote(self.ip_address)}/json" if self.ip_address else "/json"
        url = f"{self.base_url.rstrip('/')}{path}?{urllib_parse.urlencode({'token': self.token})}"
        req = urllib_request.Request(url=url, method="GET", headers={"Accept": "application/json"})
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            raise LocationError(f"IPInfo HTTP {exc.code}") from exc
        except (urllib_error.URLError, OSError, http_client.HTTPException) as exc:
            raise LocationError(f"IPInfo request failed: {exc!r}") from exc
        except UnicodeDecodeError as exc:
            raise LocationError("IPInfo response was not valid UTF-8") from exc

        return parse_ipinfo_location(raw)


def parse_ipinfo_location(raw: str) -> Coordinates:
    """Parse the ``loc="lat,lng"`` field of an ipinfo payload."""

    try:
        decoded = json.loads(raw)
        lat_text, lng_text = str(decoded["loc"]).split(",")
        latitude = float(lat_text)
        longitude = float(lng_text)
    except (KeyError, TypeError, ValueError, json.JSONDecodeError) as exc:
        raise LocationError("IPInfo response had no usable location") from exc
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        raise LocationError(f"IPInfo returned out-of-range coordinates: {latitude},{longitude}")
    return Coordinates(latitude=latitude, longitude=longitude, accuracy_m=IP_LOCATION_ACCURACY_M)


def get_default_location_resolver(ip_address: str | None = None) -> IpInfoLocationResolver:
    """Return the configured resolver, optionally pinned to the caller's IP."""

    settings = get_settings()
    return IpInfoLocationResolver(
        token=settings.ipinfo_token,
        ip_address=ip_address,
        timeout_seconds=settings.location_timeout_seconds,
    )


def resolve_location_or_none(resolver: LocationResolver | None) -> Coordinates | None:
    """Resolve a location, degrading any failure to ``None``."""

    if resolver is None:
        return None
    try:
        return resolver.resolve()
    except LocationError as exc:
        logger.warning("location.resolve_failed reason=%s", exc)
        return None
    except Exception:
        logger.exception("location.resolve_failed reason=unexpected resolver error")
        return None
