from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from .board import DepartureBoardAssembler
from .config import BotSettings
from .formatter import format_board, format_stations
from .models import ErrorResponse
from .service import get_departures
from .stations import StationResolver


@dataclass(frozen=True)
class DeparturesRequest:
    origin_query: str
    destination_query: Optional[str]


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send greeting and usage basics."""

    message = (
        "👋 Hi! Send /departures followed by a station, and optionally where you are going, e.g.\n"
        "/departures Cambridge to Kings Cross\n\n"
        "Need a station code? Try /stations <search term>."
    )
    await update.message.reply_text(message)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = (
        "Usage:\n"
        "  /departures <origin> [to <destination>]\n"
        "  /stations <search term>\n\n"
        "Examples:\n"
        "  /departures Manchester Piccadilly to London Euston\n"
        "  /departures LDS to YRK\n"
        "  /departures Paddington"
    )
    await update.message.reply_text(message)


async def stations(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Look up station codes matching a free text query."""

    query = " ".join(context.args) if context.args else ""
    if not query:
        await update.message.reply_text("Please supply a station name, e.g. /stations York")
        return

    settings = _settings(context)
    results = _resolver(context).resolve(query)
    await update.message.reply_text(
        format_stations(results, limit=settings.default_result_limit)
    )


async def departures(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /departures command to list a departure board."""

    if not context.args:
        await update.message.reply_text(
            "Please provide a station, e.g. /departures Bristol Temple Meads to Bath Spa"
        )
        return

    try:
        request = parse_departures_query(" ".join(context.args))
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return

    resolver = _resolver(context)
    route = resolver.resolve_route(request.origin_query, request.destination_query)
    if route is None:
        if not resolver.resolve(request.origin_query):
            await update.message.reply_text("Couldn't find a station matching the origin.")
        else:
            await update.message.reply_text("Couldn't find a station matching the destination.")
        return

    settings = _settings(context)
    response = await get_departures(
        route,
        assembler=_assembler(context),
        settings=settings.darwin_settings,
    )
    if isinstance(response, ErrorResponse):
        await update.message.reply_text(response.error_message)
        return

    await update.message.reply_text(
        format_board(response, limit=settings.default_result_limit)
    )


def parse_departures_query(text: str) -> DeparturesRequest:
    """Parse free text into a DeparturesRequest."""

    parts = re.split(r"\s+(?:to|->)\s+", text.strip(), maxsplit=1, flags=re.IGNORECASE)
    origin_query = _strip_from_keyword(parts[0])
    destination_query = _strip_from_keyword(parts[1]) if len(parts) == 2 else None

    if not origin_query:
        raise ValueError(
            "Couldn't parse request. Use '/departures origin [to destination]'."
        )

    return DeparturesRequest(
        origin_query=origin_query,
        destination_query=destination_query or None,
    )


def _strip_from_keyword(value: str) -> str:
    return re.sub(r"^(?:from|to)\s+", "", value.strip(), flags=re.IGNORECASE)


def _settings(context: ContextTypes.DEFAULT_TYPE) -> BotSettings:
    return context.application.bot_data["settings"]


def _resolver(context: ContextTypes.DEFAULT_TYPE) -> StationResolver:
    return context.application.bot_data["resolver"]


def _assembler(context: ContextTypes.DEFAULT_TYPE) -> DepartureBoardAssembler:
    return context.application.bot_data["assembler"]
