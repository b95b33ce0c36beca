"""
Outbound HTTP helpers

Thin aiohttp wrappers shared by the quote, scraping and keyed API clients.
Network errors and non-2xx responses are logged and reported as None so
callers can fall through to the next source.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'ja-JP,ja;q=0.9,en-US;q=0.8,en;q=0.7',
}

JSON_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
    'Accept': 'application/json',
}


async def fetch_text(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    label: str = "HTTP",
) -> Optional[str]:
    """
    GET a page and return its body text

    Args:
        url: Page URL
        headers: Request headers (browser-like headers by default)
        timeout: Total timeout in seconds, None for no limit
        label: Source name used in log lines

    Returns:
        Response text, or None on network error / non-2xx status
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url, headers=headers or BROWSER_HEADERS) as response:
                if response.status < 200 or response.status >= 300:
                    logger.warning(f"[{label}] HTTP {response.status}: {url}")
                    return None
                return await response.text()

    except aiohttp.ClientError as e:
        logger.error(f"[{label}] Network error fetching {url}: {e}")
        return None
    except asyncio.TimeoutError:
        logger.error(f"[{label}] Timed out fetching {url}")
        return None


async def request_json(
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    label: str = "HTTP",
) -> Optional[Any]:
    """
    Send a request and decode the JSON response

    Returns:
        Decoded JSON, or None on network error / non-2xx status / invalid JSON
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.request(method, url, headers=headers or JSON_HEADERS, params=params) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    logger.warning(f"[{label}] HTTP {response.status}: {body[:500]}")
                    return None
                return await response.json(content_type=None)

    except aiohttp.ClientError as e:
        logger.error(f"[{label}] Network error calling {url}: {e}")
        return None
    except asyncio.TimeoutError:
        logger.error(f"[{label}] Timed out calling {url}")
        return None
    except ValueError as e:
        logger.error(f"[{label}] Invalid JSON from {url}: {e}")
        return None


async def fetch_bytes(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    label: str = "HTTP",
) -> Optional[bytes]:
    """GET a binary payload (archives, documents); None on failure"""
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url, params=params) as response:
                if response.status < 200 or response.status >= 300:
                    logger.warning(f"[{label}] HTTP {response.status}: {url}")
                    return None
                return await response.read()

    except aiohttp.ClientError as e:
        logger.error(f"[{label}] Network error fetching {url}: {e}")
        return None
    except asyncio.TimeoutError:
        logger.error(f"[{label}] Timed out fetching {url}")
        return None
