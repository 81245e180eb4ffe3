"""FastAPI dependencies."""

from umami_models.services.reader import AnalyticsReader, get_reader


async def get_analytics_reader() -> AnalyticsReader:
    """The process-wide reader; tests override this dependency."""
    return get_reader()
