"""Request-scoped database sessions and the repository built on them."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .models.db import SessionLocal
from .services.quote_offer_repository import QuoteOfferRepository


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_quote_offers(request: Request, db: Session = Depends(get_db)) -> QuoteOfferRepository:
    return QuoteOfferRepository(db, request.app.state.quote_numbers)
