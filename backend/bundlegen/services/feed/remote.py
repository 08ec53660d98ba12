"""Fetch an events feed month over HTTP (GET <url>?month=YYYY-MM&collection=<handle>)."""
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from bundlegen.config import settings
from bundlegen.core.errors import FeedFetchError
from bundlegen.services.feed.types import FeedMonth

logger = logging.getLogger(__name__)


async def fetch_feed_month(
    url: str,
    month: str,
    collection: str,
    *,
    http: httpx.AsyncClient | None = None,
) -> FeedMonth:
    """Non-2xx, invalid JSON or a body without `events` -> FeedFetchError."""
    params = {"month": month, "collection": collection}
    try:
        if http is not None:
            r = await http.get(url, params=params)
        else:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as c:
                r = await c.get(url, params=params)
    except httpx.HTTPError as e:
        raise FeedFetchError(f"feed request failed: {e!s}", ctx={"url": url, "month": month}) from e

    if not r.is_success:
        raise FeedFetchError(
            f"feed HTTP {r.status_code}: {(r.text or '')[:300]}",
            ctx={"url": url, "month": month, "status": r.status_code},
        )
    try:
        body = r.json()
    except ValueError as e:
        raise FeedFetchError(f"feed returned invalid JSON: {(r.text or '')[:200]}", ctx={"url": url}) from e
    if not isinstance(body, dict) or not isinstance(body.get("events"), list):
        raise FeedFetchError("feed body has no 'events' list", ctx={"url": url, "month": month})
    try:
        feed = FeedMonth.model_validate({**body, "month": body.get("month") or month})
    except PydanticValidationError as e:
        raise FeedFetchError(f"feed body malformed: {e}", ctx={"url": url, "month": month}) from e
    logger.info("Fetched feed %s %s: %d days", collection, month, len(feed.events))
    return feed
