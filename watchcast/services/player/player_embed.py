"""Embed URL builder for the third-party video player.

URL shapes are configuration, not code: each template carries one `{asset_id}`
placeholder which receives a live input id or a recording id.
"""

from urllib.parse import quote

from watchcast.app_config import get_app_environ_config


class PlayerEmbed:
    """Builds player iframe URLs and knows which origin its telemetry comes from."""

    def __init__(self, live_template: str, recording_template: str, origin: str) -> None:
        self.live_template = live_template
        self.recording_template = recording_template
        self.origin = origin.rstrip("/")

    def live_url(self, live_input_id: str) -> str:
        return self.live_template.format(asset_id=quote(live_input_id, safe=""))

    def recording_url(self, asset_id: str) -> str:
        return self.recording_template.format(asset_id=quote(asset_id, safe=""))

    def accepts_origin(self, origin: str | None) -> bool:
        """Whether a message origin belongs to the player host."""
        if not origin:
            return False
        return origin.rstrip("/") == self.origin


def get_player_embed() -> PlayerEmbed:
    cfg = get_app_environ_config()
    return PlayerEmbed(
        live_template=cfg.PLAYER_LIVE_EMBED_TEMPLATE,
        recording_template=cfg.PLAYER_RECORDING_EMBED_TEMPLATE,
        origin=cfg.PLAYER_ORIGIN,
    )
