from datetime import date, datetime, timezone


def get_today() -> date:
    """
    Current UTC calendar date. Stored timestamps are UTC, so creation dates and
    "reviewed today" counts use the same day boundary. Routers take it as a
    dependency so tests can pin it.
    """
    return datetime.now(timezone.utc).date()
