"""
Tests du client HTTP vers le service des demandes de cotation.
"""
import logging

import httpx

from ..src.services.request_quote_client import RequestQuoteClient


def _client(handler):
    return RequestQuoteClient(base_url="http://requests.test/", transport=httpx.MockTransport(handler))


def test_get_request_quote_ok():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={
            "requestQuoteId": "RQ-1",
            "companyName": "ACME",
            "pickupLocation": {"city": "Lyon", "country": "FR"},
            "cargoType": 0,
            "isDangerousGoods": False,
            "unknownField": "ignored",
        })

    data = _client(handler).get_request_quote("RQ-1")

    assert seen["url"] == "http://requests.test/api/Request/RQ-1"
    assert data.request_quote_id == "RQ-1"
    assert data.company_name == "ACME"
    assert data.pickup_location.city == "Lyon"


def test_not_found_returns_none_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        data = _client(lambda r: httpx.Response(404)).get_request_quote("RQ-404")

    assert data is None
    assert any(r.levelno == logging.WARNING and "not found" in r.getMessage() for r in caplog.records)


def test_server_error_returns_none_with_error(caplog):
    with caplog.at_level(logging.WARNING):
        data = _client(lambda r: httpx.Response(503)).get_request_quote("RQ-1")

    assert data is None
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_transport_failure_returns_none(caplog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with caplog.at_level(logging.WARNING):
        data = _client(handler).get_request_quote("RQ-1")

    assert data is None
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_invalid_body_returns_none():
    assert _client(lambda r: httpx.Response(200, text="not json")).get_request_quote("RQ-1") is None
