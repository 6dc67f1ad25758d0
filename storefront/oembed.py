"""
YouTube oEmbed lookup for the promo banner.

Only title and thumbnail are kept. Any failure yields (None, None) and a
warning; the settings update still succeeds.
"""

from typing import Optional, Tuple

import httpx

from storefront.logger import get_logger

logger = get_logger("oembed")

OEMBED_URL = "https://www.youtube.com/oembed"
OEMBED_TIMEOUT = 10.0


async def fetch_youtube_meta(video_url: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (title, thumbnail_url) for a YouTube video URL."""
    try:
        async with httpx.AsyncClient(timeout=OEMBED_TIMEOUT) as client:
            resp = await client.get(OEMBED_URL, params={"url": video_url, "format": "json"})
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("oembed: lookup failed for %s: %s", video_url, e)
        return None, None
    return data.get("title"), data.get("thumbnail_url")
