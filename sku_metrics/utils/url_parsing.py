"""
URL parsing utilities for extracting attribution parameters from landing site URLs.
"""
from urllib.parse import urlparse, parse_qs, unquote
from typing import Dict, Optional


def parse_landing_site(url: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Parse a Shopify landing_site URL and extract UTM parameters.

    Only absolute URLs (scheme and host present) are considered valid;
    relative paths and malformed values yield all-None.

    Returns dict with keys:
        utm_source, utm_medium, utm_campaign, utm_term, utm_content
    """
    result = {
        "utm_source": None,
        "utm_medium": None,
        "utm_campaign": None,
        "utm_term": None,
        "utm_content": None,
    }

    if not url or not isinstance(url, str):
        return result

    try:
        parsed = urlparse(url.strip())
        # urlparse raises ValueError on bad netlocs (e.g. unbalanced brackets)
        if not parsed.scheme or not parsed.netloc:
            return result
        params = parse_qs(parsed.query)
    except ValueError:
        return result

    for key in result:
        result[key] = _first(params, key)

    return result


def get_utm_campaign(url: Optional[str]) -> Optional[str]:
    """Shortcut for the utm_campaign value of a landing site, or None."""
    return parse_landing_site(url)["utm_campaign"]


def _first(params: dict, key: str) -> Optional[str]:
    """Get first value for a query parameter, or None."""
    values = params.get(key)
    if values and values[0]:
        return unquote(values[0])
    return None
