import time
from datetime import datetime, timezone

utc_now = lambda: datetime.now(timezone.utc)
monotonic_now = lambda: time.monotonic()
ensure_utc = lambda dt: dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)
