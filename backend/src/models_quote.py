from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON

from .models.db import Base


def utcnow():
    return datetime.now(timezone.utc)


class QuoteOfferRecord(Base):
    """One quote offer aggregate stored as a single JSON document.

    Only ``document`` is authoritative. The scalar columns mirror document fields
    so the store can filter, sort and take the max quote number in SQL; they are
    rewritten from the document on every write.
    """

    __tablename__ = "quote_offers"

    id = Column(String, primary_key=True, index=True)

    request_quote_id = Column(String, nullable=True, index=True)

    client_number = Column(String, nullable=True, index=True)

    email_user = Column(String, nullable=True)

    comment = Column(Text, nullable=True)

    status = Column(String, nullable=False, index=True)

    quote_offer_number = Column(Integer, nullable=False, index=True)

    created_date = Column(DateTime, nullable=False, default=utcnow)

    updated_at = Column(DateTime, nullable=False, default=utcnow)

    expiration_date = Column(DateTime, nullable=True)

    document = Column(JSON, nullable=False)
