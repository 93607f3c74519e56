from .events_api_client import EventsApiClient, get_events_api_client

__all__ = ["EventsApiClient", "get_events_api_client"]
