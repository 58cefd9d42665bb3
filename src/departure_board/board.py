from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import replace
from typing import Optional, Protocol, Sequence

import httpx

from .darwin_api import DarwinError
from .errors import UpstreamError
from .models import (
    BoardPage,
    DepartureBoard,
    RawService,
    RequestedRoute,
    ResolvedService,
    ServiceDetails,
    Station,
)
from .stations import StationCatalog
from .timing import compute_duration, format_duration

logger = logging.getLogger(__name__)

# Darwin only returns the next two hours; a second page extends the board.
NEXT_PAGE_OFFSET_MINUTES = 119

_UPSTREAM_ERRORS = (DarwinError, httpx.HTTPError)

# Any tag except <a ...> and </a>.
_NON_ANCHOR_TAG = re.compile(r"</?((([^/a>]|a[^> ])[^>]*)|)>", re.IGNORECASE)


class BoardClient(Protocol):
    async def get_departure_board(
        self,
        crs: str,
        *,
        filter_crs: Optional[str] = None,
        time_offset: Optional[int] = None,
        num_rows: Optional[int] = None,
    ) -> BoardPage: ...

    async def get_service_details(self, service_id: str) -> ServiceDetails: ...


def remove_html_tags_except_anchor(text: Optional[str]) -> str:
    if not text:
        return ""
    return _NON_ANCHOR_TAG.sub("", text)


def reformat_nrcc_message(text: Optional[str]) -> str:
    """Strip markup from an advisory message and point its links at https."""

    sanitised = remove_html_tags_except_anchor(text)
    return sanitised.replace('"http://nationalrail.', '"https://www.nationalrail.')


class DepartureBoardAssembler:
    """Builds a departure board from Darwin's paginated responses.

    When the route names a destination every service is checked against its
    calling points, and services that never call there are dropped.
    """

    def __init__(self, client: BoardClient, catalog: StationCatalog) -> None:
        self._client = client
        self._catalog = catalog

    async def assemble(self, route: RequestedRoute) -> DepartureBoard:
        origin = route.from_station
        destination = route.to_station
        filter_crs = destination.code if destination else None

        try:
            first_page = await self._client.get_departure_board(
                origin.code, filter_crs=filter_crs
            )
        except _UPSTREAM_ERRORS as exc:
            logger.exception("Departure board request failed for %s", origin.code)
            raise UpstreamError(f"Departure board request failed for {origin.code}") from exc

        try:
            next_page = await self._client.get_departure_board(
                origin.code,
                filter_crs=filter_crs,
                time_offset=NEXT_PAGE_OFFSET_MINUTES,
            )
        except _UPSTREAM_ERRORS:
            logger.warning(
                "Next page of departures failed for %s, continuing without it",
                origin.code,
                exc_info=True,
            )
            next_page = BoardPage()

        train_services = [*first_page.train_services, *next_page.train_services]
        bus_services = [*first_page.bus_services, *next_page.bus_services]

        return DepartureBoard(
            origin_station=origin,
            destination_station=destination,
            nrcc_messages=tuple(
                reformat_nrcc_message(message) for message in first_page.nrcc_messages
            ),
            train_services=tuple(await self._resolve_services(train_services, destination)),
            bus_services=tuple(await self._resolve_services(bus_services, destination)),
        )

    async def _resolve_services(
        self,
        services: Sequence[RawService],
        destination: Optional[Station],
    ) -> list[ResolvedService]:
        resolved = [_partial_service(service) for service in services]
        if destination is None:
            return [_with_duration(service) for service in resolved]

        details = await self._fetch_all_details(resolved)
        resolved = [
            _with_duration(self._with_arrival(service, detail, destination))
            for service, detail in zip(resolved, details)
        ]

        kept = [service for service in resolved if service.arrival_matches_request]
        if len(kept) != len(resolved):
            logger.debug(
                "Dropped %d services not calling at %s",
                len(resolved) - len(kept),
                destination.code,
            )
        return kept

    async def _fetch_all_details(
        self, services: Sequence[ResolvedService]
    ) -> list[ServiceDetails]:
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(self._fetch_details(service.service_id))
                    for service in services
                ]
        except ExceptionGroup as errors:
            failures = errors.subgroup(UpstreamError)
            if failures is not None:
                raise failures.exceptions[0]
            logger.error("Service detail requests failed", exc_info=errors)
            raise UpstreamError("Service detail requests failed") from errors
        return [task.result() for task in tasks]

    async def _fetch_details(self, service_id: str) -> ServiceDetails:
        try:
            return await self._client.get_service_details(service_id)
        except _UPSTREAM_ERRORS as exc:
            logger.exception("Service detail request failed for %s", service_id)
            raise UpstreamError(f"Service detail request failed for {service_id}") from exc

    def _with_arrival(
        self,
        service: ResolvedService,
        details: ServiceDetails,
        destination: Station,
    ) -> ResolvedService:
        calling_points = details.calling_points
        for point in calling_points:
            if point.code == destination.code:
                return replace(
                    service,
                    scheduled_arrival=point.scheduled_time,
                    estimated_arrival=point.estimated_time,
                    arrival_station_name=self._catalog.name_for_code(destination.code)
                    or destination.name,
                    arrival_matches_request=True,
                )

        if not calling_points:
            return service

        last = calling_points[-1]
        return replace(
            service,
            scheduled_arrival=last.scheduled_time,
            estimated_arrival=last.estimated_time,
            arrival_station_name=self._catalog.name_for_code(last.code) or last.name,
            arrival_matches_request=False,
        )


def _partial_service(service: RawService) -> ResolvedService:
    return ResolvedService(
        origin=service.origin,
        destination=service.destination,
        std=service.std,
        etd=service.etd,
        platform=service.platform or None,
        operator=service.operator,
        service_id=service.service_id,
    )


def _with_duration(service: ResolvedService) -> ResolvedService:
    minutes = compute_duration(service)
    return replace(service, duration_minutes=minutes, duration_label=format_duration(minutes))
