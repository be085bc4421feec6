from typing import Optional

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    """Event posted by the channel gateway for every received message."""
    sender: str = Field(..., min_length=1) # channel address, e.g. 94771234567@c.us
    text: str = ""
    has_media: bool = False
    media_url: Optional[str] = None # already stored by the gateway
    media_mimetype: Optional[str] = None
    from_me: bool = False


class InboundResult(BaseModel):
    replied: bool
    mode: Optional[str] = None
    reply: Optional[str] = None
    media_sent: int = 0
