from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Self


@dataclass(frozen=True)
class DarwinSettings:
    """Credentials and endpoints for the Darwin live departure board API."""

    api_key: Optional[str]
    board_url: str = "https://api1.raildata.org.uk/1010-live-departure-board-dep1_2/LDBWS/api/20220120"
    service_url: str = "https://api1.raildata.org.uk/1010-service-details1_2/LDBWS/api/20220120"
    timeout: float = 10.0

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> Self:
        api_key = os.environ.get("DARWIN_API_KEY") or None
        board_url = os.environ.get("DARWIN_BOARD_URL", cls.board_url)
        service_url = os.environ.get("DARWIN_SERVICE_URL", cls.service_url)
        timeout = float(os.environ.get("DARWIN_TIMEOUT", cls.timeout))
        return cls(
            api_key=api_key,
            board_url=board_url,
            service_url=service_url,
            timeout=timeout,
        )


@dataclass(frozen=True)
class BotSettings:
    """Configuration options for the Telegram bot."""

    telegram_token: str
    darwin_settings: DarwinSettings
    station_codes_path: Optional[Path] = None
    ignore_stations_path: Optional[Path] = None
    default_result_limit: int = 5

    @classmethod
    def from_env(cls) -> Self:
        """Create settings object from environment variables."""

        try:
            telegram_token = os.environ["TELEGRAM_BOT_TOKEN"]
        except KeyError as exc:  # pragma: no cover - trivial
            missing = exc.args[0]
            raise RuntimeError(
                f"Missing Telegram credential in environment: {missing}"
            ) from None

        codes_path = os.environ.get("STATION_CODES_PATH")
        ignore_path = os.environ.get("IGNORE_STATIONS_PATH")
        limit = int(os.environ.get("DEFAULT_RESULT_LIMIT", 5))
        return cls(
            telegram_token=telegram_token,
            darwin_settings=DarwinSettings.from_env(),
            station_codes_path=Path(codes_path) if codes_path else None,
            ignore_stations_path=Path(ignore_path) if ignore_path else None,
            default_result_limit=limit,
        )
