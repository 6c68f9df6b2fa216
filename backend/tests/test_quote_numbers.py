"""
Tests de la séquence des numéros de devis.
"""
import threading

import pytest

from ..src.api.schemas_quote_offer import CreateQuoteOffer
from ..src.services.errors import QuoteNumberSequenceError
from ..src.services.quote_numbers import QuoteNumberSequence
from ..src.services.quote_offer_repository import QuoteOfferRepository


def test_concurrent_next_is_unique_and_gapless():
    """Appels concurrents : aucun numéro réutilisé, aucun trou."""
    sequence = QuoteNumberSequence(1)
    results = []
    lock = threading.Lock()

    def worker():
        local = [sequence.next() for _ in range(200)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == list(range(1, 1601))
    assert sequence.peek() == 1601


def test_from_store_empty_starts_at_one():
    assert QuoteNumberSequence.from_store(lambda: None).next() == 1


def test_from_store_continues_after_max(repo, db):
    for _ in range(3):
        repo.create_quote_offer(CreateQuoteOffer())

    sequence = QuoteNumberSequence.from_store(lambda: QuoteOfferRepository.read_max_number(db))
    assert sequence.next() == 4


def _failing():
    raise RuntimeError("store down")


def test_from_store_failure_falls_back_to_one():
    assert QuoteNumberSequence.from_store(_failing).next() == 1


def test_from_store_failure_is_fatal_when_strict():
    with pytest.raises(QuoteNumberSequenceError):
        QuoteNumberSequence.from_store(_failing, strict=True)


def test_created_numbers_strictly_increase(repo):
    numbers = [repo.require(repo.create_quote_offer(CreateQuoteOffer())).quote_offer_number for _ in range(5)]
    assert numbers == sorted(set(numbers))
    assert numbers[0] == 1
