from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from .app import build_application
from .config import BotSettings


def main() -> None:
    """Entry point for launching the departure board bot."""

    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = BotSettings.from_env()
    application = build_application(settings)
    application.run_polling()
