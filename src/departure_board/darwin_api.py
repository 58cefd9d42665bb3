from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import DarwinSettings
from .errors import ConfigurationError
from .models import BoardPage, CallingPoint, RawService, ServiceDetails, Station

logger = logging.getLogger(__name__)


class DarwinError(RuntimeError):
    """Raised when the Darwin web service returns an error."""


class DarwinClient:
    """Async client for the Darwin departure board and service detail calls."""

    def __init__(
        self,
        settings: DarwinSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers["x-apikey"] = settings.api_key
        self._client = httpx.AsyncClient(
            timeout=settings.timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DarwinClient":  # pragma: no cover - convenience
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - convenience
        await self.close()

    async def get_departure_board(
        self,
        crs: str,
        *,
        filter_crs: Optional[str] = None,
        time_offset: Optional[int] = None,
        num_rows: Optional[int] = None,
    ) -> BoardPage:
        """Return one page of departures from ``crs``, optionally towards ``filter_crs``."""

        self._require_api_key()
        params: dict[str, str] = {}
        if filter_crs:
            params["filterCrs"] = filter_crs.upper()
        if time_offset is not None:
            params["timeOffset"] = str(time_offset)
        if num_rows is not None:
            params["numRows"] = str(num_rows)

        url = f"{self._settings.board_url}/GetDepartureBoard/{crs.upper()}"
        logger.debug("Requesting departure board %s %s", crs, params)
        response = await self._client.get(url, params=params)
        payload = await self._json_or_error(response, "requesting departures")

        return BoardPage(
            nrcc_messages=tuple(self._parse_messages(payload.get("nrccMessages"))),
            train_services=tuple(
                self._parse_service(item) for item in payload.get("trainServices") or []
            ),
            bus_services=tuple(
                self._parse_service(item) for item in payload.get("busServices") or []
            ),
        )

    async def get_service_details(self, service_id: str) -> ServiceDetails:
        """Return the calling points a service makes after departure."""

        self._require_api_key()
        url = f"{self._settings.service_url}/GetServiceDetails/{quote(service_id, safe='')}"
        response = await self._client.get(url)
        payload = await self._json_or_error(response, "requesting service details")
        payload = payload.get("GetServiceDetailsResult") or payload

        return ServiceDetails(
            service_id=service_id,
            calling_points=tuple(self._parse_calling_points(payload)),
        )

    def _require_api_key(self) -> None:
        if not self._settings.has_api_key:
            raise ConfigurationError("No Darwin API key configured.")

    async def _json_or_error(self, response: httpx.Response, action: str) -> dict[str, Any]:
        if response.status_code >= 400:
            raise DarwinError(
                f"Darwin error {response.status_code} while {action}: {response.text[:200]}"
            )
        snippet = response.text[:200] or "<empty body>"
        try:
            payload = response.json()
        except ValueError as exc:
            content_type = response.headers.get("content-type", "unknown")
            raise DarwinError(
                "Darwin returned a non-JSON response while "
                f"{action} (status {response.status_code}, content-type {content_type}): {snippet}"
            ) from exc
        # Board and service detail responses are always JSON objects.
        if not isinstance(payload, dict):
            raise DarwinError(
                f"Darwin returned {type(payload).__name__} instead of an object while "
                f"{action}: {snippet}"
            )
        return payload

    @staticmethod
    def _parse_messages(messages: Any) -> list[str]:
        if not messages:
            return []
        if isinstance(messages, dict):
            messages = messages.get("message") or []
        parsed: list[str] = []
        for message in messages:
            if isinstance(message, dict):
                message = message.get("Value") or message.get("value") or ""
            parsed.append(message)
        return parsed

    @staticmethod
    def _parse_service(data: dict[str, Any]) -> RawService:
        return RawService(
            origin=DarwinClient._first_location(data.get("origin")),
            destination=DarwinClient._first_location(data.get("destination")),
            std=data.get("std"),
            etd=data.get("etd"),
            platform=data.get("platform") or None,
            operator=data.get("operator"),
            service_id=data.get("serviceID") or data.get("serviceId") or "",
        )

    @staticmethod
    def _first_location(locations: Any) -> Station:
        if isinstance(locations, dict):
            locations = locations.get("location")
        if not locations:
            return Station(name="Unknown", code="")
        location = locations[0]
        if "location" in location:
            return DarwinClient._first_location(location["location"])
        return Station(
            name=location.get("locationName", "Unknown"),
            code=(location.get("crs") or "").upper(),
        )

    @staticmethod
    def _parse_calling_points(detail: dict[str, Any]) -> list[CallingPoint]:
        lists = detail.get("subsequentCallingPoints") or []
        if isinstance(lists, dict):
            lists = lists.get("callingPointList") or []
        if not lists:
            return []
        points = lists[0].get("callingPoint") or []
        return [
            CallingPoint(
                name=point.get("locationName", ""),
                code=(point.get("crs") or "").upper(),
                scheduled_time=point.get("st"),
                estimated_time=point.get("et"),
            )
            for point in points
        ]


def create_darwin_client(settings: DarwinSettings) -> DarwinClient:
    """Factory helper to create a Darwin client."""

    return DarwinClient(settings)
