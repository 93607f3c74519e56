import httpx
from loguru import logger
from pydantic import ValidationError

from watchcast.app_config import get_app_environ_config
from watchcast.schemas import EventSnapshot
from watchcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class EventsApiClient:
    """Fetches the public event record that drives the watch page."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _event_url(self, slug: str) -> str:
        return f"{self.base_url}/events/{slug}"

    async def fetch_event(self, slug: str) -> EventSnapshot:
        """Fetch the current snapshot for `slug`.

        Raises:
            AppError: E_EVENT_NOT_FOUND on 404, E_EVENTS_API_UNAVAILABLE on any other
                transport, status or payload failure.
        """
        url = self._event_url(slug)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    url,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
                if response.status_code == HttpStatusCode.NOT_FOUND:
                    raise AppError(
                        errcode=AppErrorCode.E_EVENT_NOT_FOUND,
                        errmesg=f"Event not found: {slug}",
                        status_code=HttpStatusCode.NOT_FOUND,
                    )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise AppError(
                errcode=AppErrorCode.E_EVENTS_API_UNAVAILABLE,
                errmesg=f"Failed to fetch event {slug}: {type(exc).__name__}: {exc}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from exc
        except ValueError as exc:
            raise AppError(
                errcode=AppErrorCode.E_EVENTS_API_UNAVAILABLE,
                errmesg=f"Events API returned non-JSON body for {slug}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from exc

        # Tolerate the {"success": ..., "results": {...}} envelope as well as a bare record.
        if isinstance(data, dict) and isinstance(data.get("results"), dict) and "success" in data:
            data = data["results"]

        logger.debug(f"fetch_event {slug} response: {data}")
        try:
            return EventSnapshot.model_validate(data)
        except ValidationError as exc:
            logger.exception(f"Failed to validate event snapshot for {slug}")
            raise AppError(
                errcode=AppErrorCode.E_EVENTS_API_UNAVAILABLE,
                errmesg=f"Malformed event payload for {slug}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from exc


def get_events_api_client() -> EventsApiClient:
    cfg = get_app_environ_config()
    return EventsApiClient(cfg.EVENTS_API_BASE_URL, timeout=cfg.EVENTS_API_TIMEOUT_SECONDS)
