from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from shared.config.database import Base, utcnow


class MessageLog(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(String(64), nullable=False, index=True)
    sender = Column(String(64), nullable=False)
    body = Column(Text, nullable=False, default="")
    from_me = Column(Boolean, nullable=False, default=False) # True for bot replies
    has_media = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
