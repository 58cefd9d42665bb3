from __future__ import annotations

import re
from typing import Optional, Sequence

from .models import DepartureResponse, ResolvedService, Station

_ANCHOR = re.compile(r"<a\b[^>]*?href=\"([^\"]*)\"[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
_ANY_TAG = re.compile(r"</?[^>]*>")


def format_board(response: DepartureResponse, *, limit: Optional[int] = None) -> str:
    """Render a text summary of a departure board for Telegram."""

    board = response.board
    lines = [_format_header(response)]

    messages = [_plain_message(message) for message in board.nrcc_messages]
    messages = [message for message in messages if message]
    if messages:
        lines.append("\n".join(f"⚠️ {message}" for message in messages))

    if not board.train_services and not board.bus_services:
        lines.append("No matching services found.")
        return "\n\n".join(lines)

    trains = list(board.train_services)[:limit] if limit else list(board.train_services)
    buses = list(board.bus_services)[:limit] if limit else list(board.bus_services)

    for idx, service in enumerate(trains, start=1):
        lines.append(_format_service(idx, service))

    if buses:
        lines.append("Bus services:")
        for idx, service in enumerate(buses, start=1):
            lines.append(_format_service(idx, service))

    return "\n\n".join(lines)


def format_stations(stations: Sequence[Station], *, limit: int = 5) -> str:
    if not stations:
        return "No stations found for that search term."
    lines = [f"{station.name} — {station.code}" for station in stations[:limit]]
    return "Station matches:\n" + "\n".join(lines)


def _format_header(response: DepartureResponse) -> str:
    board = response.board
    if board.destination_station:
        base = (
            f"Next services from {board.origin_station.name} "
            f"to {board.destination_station.name}"
        )
    else:
        base = f"Next services departing {board.origin_station.name}"
    return f"{response.page_title}\n{base}"


def _format_service(idx: int, service: ResolvedService) -> str:
    platform = f"Platform {service.platform}" if service.platform else "Platform TBC"
    parts = [
        f"{idx}. {service.std or '--:--'} to {service.destination.name}",
        f"{_format_status(service)} · {platform}",
    ]
    arrival = _format_arrival(service)
    if arrival:
        parts.append(arrival)
    if service.operator:
        parts.append(f"Operator: {service.operator}")
    return "\n".join(parts)


def _format_status(service: ResolvedService) -> str:
    if not service.etd:
        return "No information"
    if service.etd == service.std:
        return "On time"
    return service.etd


def _format_arrival(service: ResolvedService) -> str:
    arrival_time = service.estimated_arrival
    if not arrival_time or arrival_time == "On time":
        arrival_time = service.scheduled_arrival
    if not arrival_time or not service.arrival_station_name:
        return ""
    text = f"Arrives {service.arrival_station_name} {arrival_time}"
    if service.duration_label:
        text += f" ({service.duration_label})"
    return text


def _plain_message(message: str) -> str:
    text = _ANCHOR.sub(lambda match: f"{match.group(2)} ({match.group(1)})", message)
    return _ANY_TAG.sub("", text).strip()
