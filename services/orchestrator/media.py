"""
Product images mentioned in a reply.

Each ``image_url: ...`` mention becomes one MediaItem. Its caption is
rebuilt from the ten lines above the mention, nearest first:

* name: ``**Name**`` (optionally followed by ``- Rs. 1,500``)
* price: the first ``Rs. 1,500`` / ``Rs 1500``
* stock: ``**Stock**: 3`` or ``**Stock Available**: 3``
* description: a ``Description: ...`` line

Without a name the caption is a generic label. This is a heuristic and
will miss differently formatted replies.
"""
import re

from services.catalog_service.service import absolute_media_url
from services.notification_service.dispatcher import MediaItem

IMAGE_MENTION = re.compile(
    r"image_url[\"']?\s*[:=]\s*[\"']?(https?://[^\s\"'\n]+|/?uploads/[^\s\"'\n]+)", re.IGNORECASE
)
_NAME = re.compile(r"\*\*([^*]+)\*\*(?:\s*-\s*Rs\.?\s*([\d,]+(?:\.\d+)?))?")
_PRICE = re.compile(r"Rs\.?\s*([\d,]+(?:\.\d+)?)")
_STOCK = re.compile(r"\*\*Stock(?:\s+Available)?\*\*[:\s]*(\d+)", re.IGNORECASE)
_DESCRIPTION = re.compile(r"Description:\s*(.+)", re.IGNORECASE)

GENERIC_CAPTION = "🛍️ Product Image"
LOOKBACK_LINES = 10


def build_caption(preceding_text: str) -> str:
    name = price = stock = description = ""
    lines = preceding_text.split("\n")[::-1][:LOOKBACK_LINES]
    for line in lines:
        line = line.strip()
        if not stock:
            match = _STOCK.search(line)
            if match:
                stock = f"Stock: {match.group(1)} available"
        if not name:
            match = _NAME.search(line)
            if match and not match.group(1).strip().lower().startswith("stock"):
                name = match.group(1).strip()
                if match.group(2) and not price:
                    price = f"Rs. {match.group(2)}"
        if not price:
            match = _PRICE.search(line)
            if match:
                price = f"Rs. {match.group(1)}"
        if not description:
            match = _DESCRIPTION.search(line)
            if match:
                description = match.group(1).strip()
        if name and price and (description or stock):
            break

    if not name:
        return GENERIC_CAPTION
    caption = f"🛍️ *{name}*"
    if price:
        caption += f"\n💰 {price}"
    if description:
        caption += f"\n📝 {description}"
    if stock:
        caption += f"\n📦 {stock}"
    return caption


def extract_media(text: str, base_url: str | None = None) -> list[MediaItem]:
    items = []
    seen = set()
    for match in IMAGE_MENTION.finditer(text or ""):
        url = absolute_media_url(match.group(1).strip().rstrip(".,)"), base_url)
        if url in seen or url.startswith("http://example"):
            continue
        seen.add(url)
        items.append(MediaItem(url=url, caption=build_caption(text[: match.start()])))
    return items
