from __future__ import annotations

import logging

from telegram.ext import Application, ApplicationBuilder, CommandHandler

from .board import DepartureBoardAssembler
from .commands import departures, help_command, start, stations
from .config import BotSettings
from .darwin_api import create_darwin_client
from .stations import StationCatalog, StationResolver

logger = logging.getLogger(__name__)


def build_application(settings: BotSettings) -> Application:
    """Configure the Telegram application with command handlers."""

    if not settings.darwin_settings.has_api_key:
        logger.error("No Darwin API key provided; departure requests will fail")

    catalog = StationCatalog.load(settings.station_codes_path, settings.ignore_stations_path)
    darwin_client = create_darwin_client(settings.darwin_settings)

    async def _close_client(application: Application) -> None:  # pragma: no cover - lifecycle
        await darwin_client.close()

    application = (
        ApplicationBuilder()
        .token(settings.telegram_token)
        .post_shutdown(_close_client)
        .build()
    )

    application.bot_data["settings"] = settings
    application.bot_data["resolver"] = StationResolver(catalog)
    application.bot_data["assembler"] = DepartureBoardAssembler(darwin_client, catalog)

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("stations", stations))
    application.add_handler(CommandHandler("departures", departures))

    return application
