"""Domain errors raised by the quote-offer services and mapped to HTTP responses in main."""


class QuoteOfferNotFoundError(LookupError):
    def __init__(self, quote_offer_id: str):
        super().__init__(f"Quote offer {quote_offer_id} not found")
        self.quote_offer_id = quote_offer_id


class QuoteOfferStateError(ValueError):
    """The current status or the request payload forbids the operation."""


class QuoteNumberSequenceError(RuntimeError):
    """The quote-number sequence could not be initialised from the store."""
