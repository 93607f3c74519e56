from pydantic import BaseModel

from watchcast.shared.config import config


class AppEnvironConfig(BaseModel):
    DEBUG: bool = (config.get("DEBUG") or "false").strip().lower() == "true"

    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()  # type: ignore
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 8000)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    API_CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in (config.get("API_CORS_ORIGINS") or "*").split(",")
        if origin.strip()
    ]

    # Events API (source of the polled event snapshot)
    EVENTS_API_BASE_URL: str = config.get("EVENTS_API_BASE_URL", "http://localhost:8787/api").strip()  # type: ignore
    EVENTS_API_TIMEOUT_SECONDS: float = config.get_float("EVENTS_API_TIMEOUT_SECONDS", 10.0)

    # Embedded player
    # Templates take a single `{asset_id}` placeholder.
    PLAYER_ORIGIN: str = config.get("PLAYER_ORIGIN", "https://player.example.com").strip()  # type: ignore
    PLAYER_LIVE_EMBED_TEMPLATE: str = config.get(
        "PLAYER_LIVE_EMBED_TEMPLATE",
        "https://player.example.com/{asset_id}/iframe?autoplay=true&muted=false",
    ).strip()  # type: ignore
    PLAYER_RECORDING_EMBED_TEMPLATE: str = config.get(
        "PLAYER_RECORDING_EMBED_TEMPLATE",
        "https://player.example.com/{asset_id}/iframe?autoplay=true",
    ).strip()  # type: ignore

    # Mode resolution thresholds
    PROCESSING_WINDOW_SECONDS: float = config.get_float("PROCESSING_WINDOW_SECONDS", 600.0)
    INACTIVITY_THRESHOLD_SECONDS: float = config.get_float("INACTIVITY_THRESHOLD_SECONDS", 7200.0)

    # Polling cadence
    POLL_INTERVAL_LIVE_SECONDS: float = config.get_float("POLL_INTERVAL_LIVE_SECONDS", 120.0)
    POLL_INTERVAL_LAST_RECORDING_SECONDS: float = config.get_float(
        "POLL_INTERVAL_LAST_RECORDING_SECONDS", 30.0
    )
    POLL_INTERVAL_DEFAULT_SECONDS: float = config.get_float("POLL_INTERVAL_DEFAULT_SECONDS", 60.0)
    COUNTDOWN_FOLLOWUP_SECONDS: float = config.get_float("COUNTDOWN_FOLLOWUP_SECONDS", 5.0)

    # Sequential advance detection
    ADVANCE_CHECK_INTERVAL_SECONDS: float = config.get_float("ADVANCE_CHECK_INTERVAL_SECONDS", 1.0)
    ADVANCE_NEAR_END_SECONDS: float = config.get_float("ADVANCE_NEAR_END_SECONDS", 1.0)
    ADVANCE_STALL_SECONDS: float = config.get_float("ADVANCE_STALL_SECONDS", 10.0)
    ADVANCE_STALL_REMAINING_SECONDS: float = config.get_float("ADVANCE_STALL_REMAINING_SECONDS", 5.0)
    ADVANCE_FALLBACK_TIMEOUT_SECONDS: float = config.get_float(
        "ADVANCE_FALLBACK_TIMEOUT_SECONDS", 120.0
    )

    # Watch sessions not read for this long are stopped and dropped
    WATCH_SESSION_IDLE_TTL_SECONDS: float = config.get_float("WATCH_SESSION_IDLE_TTL_SECONDS", 900.0)
    WATCH_SESSION_SWEEP_INTERVAL_SECONDS: float = config.get_float(
        "WATCH_SESSION_SWEEP_INTERVAL_SECONDS", 60.0
    )


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
