"""
HTTP client for the request-quote source system.

Failures never reach the caller: a missing request and an unreachable or failing
service both come back as None, logged at WARNING and ERROR respectively. No retries.
"""
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..api.schemas_request_quote import RequestQuoteData
from ..config import REQUEST_QUOTE_SERVICE_URL, REQUEST_QUOTE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class RequestQuoteClient:
    def __init__(
        self,
        base_url: str = REQUEST_QUOTE_SERVICE_URL,
        timeout: float = REQUEST_QUOTE_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def get_request_quote(self, request_id: str) -> Optional[RequestQuoteData]:
        """
        Fetch one customer request.

        Args:
            request_id: Identifier in the request-quote system

        Returns:
            RequestQuoteData, or None if not found or on any failure
        """
        url = f"{self.base_url}/api/Request/{request_id}"
        logger.info(f"Retrieving request quote {request_id} from {self.base_url}")
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Error retrieving request quote {request_id}: {e}")
            return None

        if response.status_code == 404:
            logger.warning(f"Request quote {request_id} not found")
            return None
        if not response.is_success:
            logger.error(f"Failed to retrieve request quote {request_id}: HTTP {response.status_code}")
            return None

        try:
            return RequestQuoteData.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to read request quote {request_id} response: {e}")
            return None


def get_request_quote_client() -> RequestQuoteClient:
    return RequestQuoteClient()
