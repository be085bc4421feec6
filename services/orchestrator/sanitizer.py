import re

from shared.config import settings

FALLBACK_NOTICE = "I'm processing your request. Please try rephrasing your question."

_LEFTOVER_TAG = re.compile(r"\[FUNCTION:[^\]\n]*\]?", re.IGNORECASE)
_DEBUG_MARKERS = [
    re.compile(r"---\s*Retrieved Data FROM DATABASE\s*---", re.IGNORECASE),
    re.compile(r"(?:⚠️\s*)?CRITICAL:.*?DO NOT INVENT ANY PRODUCTS OR DETAILS\.", re.IGNORECASE | re.DOTALL),
    re.compile(r"If the data is empty.*?DO NOT make up products\.", re.IGNORECASE | re.DOTALL),
    re.compile(r"\b(?:BROWSE_CATEGORIES|SEARCH_PRODUCTS|PRODUCTS_BY_CATEGORY|PRODUCT_DETAILS|VIEW_CART|"
               r"ADD_TO_CART|REMOVE_FROM_CART|CLEAR_CART|CHECKOUT|TRACK_ORDER|GET_CUSTOMER_ORDERS|"
               r"GET_TRACKING):"),
]
_RELATIVE_IMAGE = re.compile(r"(image_url[\"']?\s*[:=]\s*[\"']?)(/?uploads/[^\s\"'\n]+)", re.IGNORECASE)
_BLANK_RUNS = re.compile(r"\n{3,}")


def sanitize_reply(text: str, base_url: str | None = None) -> str:
    """
    Final clean-up of a generated reply: drop leftover function tags and
    prompt markers, make upload paths absolute, and fall back to a fixed
    notice if nothing is left.
    """
    cleaned = _LEFTOVER_TAG.sub("", text or "")
    for marker in _DEBUG_MARKERS:
        cleaned = marker.sub("", cleaned)
    cleaned = _BLANK_RUNS.sub("\n\n", cleaned).strip()
    if not cleaned:
        return FALLBACK_NOTICE

    base = (base_url or settings.SERVER_BASE_URL).rstrip("/")
    return _RELATIVE_IMAGE.sub(lambda m: f"{m.group(1)}{base}/{m.group(2).lstrip('/')}", cleaned)
