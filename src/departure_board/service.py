from __future__ import annotations

import logging
from typing import Union

from .board import DepartureBoardAssembler
from .config import DarwinSettings
from .errors import ConfigurationError, UpstreamError
from .models import DepartureResponse, ErrorResponse, RequestedRoute

logger = logging.getLogger(__name__)

TITLE_PREFIX = "Departures"
ERROR_TITLE = f"{TITLE_PREFIX}: ERROR"


async def get_departures(
    route: RequestedRoute,
    *,
    assembler: DepartureBoardAssembler,
    settings: DarwinSettings,
) -> Union[DepartureResponse, ErrorResponse]:
    """Assemble a board for ``route`` and reduce failures to a caller-safe message."""

    if not settings.has_api_key:
        logger.error("No Darwin API key set")
        return ErrorResponse(page_title=ERROR_TITLE, error_message="Error: No API key set.")

    try:
        board = await assembler.assemble(route)
    except (UpstreamError, ConfigurationError):
        logger.exception(
            "Getting departures failed for %s", _route_label(route)
        )
        return ErrorResponse(
            page_title=ERROR_TITLE, error_message="Error: Getting departures failed."
        )

    to_code = route.to_station.code if route.to_station else None
    return DepartureResponse(
        board=board,
        page_title=f"{TITLE_PREFIX}: {_route_label(route)}",
        from_code=route.from_station.code,
        to_code=to_code,
    )


def _route_label(route: RequestedRoute) -> str:
    if route.to_station is None:
        return route.from_station.code
    return f"{route.from_station.code} > {route.to_station.code}"
