"""HTTP client for the booking API.

Used by assistants and scripts that talk to a running server instead of
importing the engine directly.

Pattern: requests.Session with urllib3 Retry for idempotent reads,
tenacity for connection-level retries, and a circuit breaker around
every call. Writes are retried only on connect timeouts. Business
failures (4xx) are returned as response bodies, not raised.
"""
import itertools
import json
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.util.retry import Retry

from salon_booking.circuit_breaker import CircuitBreaker

# tenacity's before_sleep_log expects a stdlib logger
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15

RETRYABLE_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)

# Writes are resent only when the request never reached the server
WRITE_RETRYABLE_ERRORS = (requests.exceptions.ConnectTimeout,)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class BookingAPIError(Exception):
    """Server-side failure (5xx, JSON-RPC error or unreadable body)."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def create_http_session(max_retries: int = 3, backoff_factor: float = 1.0) -> requests.Session:
    """
    Create HTTP session with retry and connection pooling.

    Status retries apply to GET only: a retried POST could book twice.
    The client applies the same rule to connection-level retries.

    Args:
        max_retries: Maximum number of retry attempts
        backoff_factor: Backoff multiplier (delays 1s, 2s, 4s with 1.0)
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=10,
        pool_maxsize=10,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class BookingAPIClient:
    """Thin client for the REST routes and the /mcp JSON-RPC endpoint."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        retry_wait=None,
    ):
        """
        Args:
            base_url: Server root, e.g. http://localhost:4032
            session: Pre-built session (defaults to create_http_session())
            circuit_breaker: Breaker shared by all calls of this client
            timeout: Per-request timeout in seconds
            max_retries: Connection-level retries after the first attempt
                (reads on any connection error or timeout, writes on
                connect timeouts only)
            retry_wait: tenacity wait strategy (exponential 1-8s by default)
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or create_http_session(max_retries=max_retries)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="booking-api")
        self.timeout = timeout
        wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)
        self._read_retrying = self._build_retrying(RETRYABLE_ERRORS, max_retries, wait)
        self._write_retrying = self._build_retrying(WRITE_RETRYABLE_ERRORS, max_retries, wait)
        self._rpc_ids = itertools.count(1)

    @staticmethod
    def _build_retrying(errors, max_retries: int, wait) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max_retries + 1),
            wait=wait,
            retry=retry_if_exception_type(errors),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.request(method, f"{self.base_url}{path}", **kwargs)
        # 5xx counts against the breaker, 4xx is a normal business answer
        if response.status_code >= 500:
            raise BookingAPIError(
                f"{method} {path} failed with status {response.status_code}",
                status_code=response.status_code
            )
        return response

    def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Call the API with retries and circuit breaker protection.

        Returns:
            Decoded JSON body (success=False bodies included)

        Raises:
            CircuitBreakerOpen: breaker is open
            BookingAPIError: 5xx or non-JSON body
            requests.exceptions.RequestException: retries exhausted
        """
        retrying = self._read_retrying if method.upper() in SAFE_METHODS else self._write_retrying
        response = self.circuit_breaker.call(retrying, self._send, method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise BookingAPIError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code
            ) from e

    def _tenant_path(self, tenant_id: str, suffix: str = "") -> str:
        return f"/api/v1/tenants/{tenant_id}{suffix}"

    def health(self) -> Dict[str, Any]:
        return self.request("GET", "/health")

    def get_available_slots(self, tenant_id: str, date: str, service_id: str) -> Dict[str, Any]:
        return self.request(
            "GET",
            self._tenant_path(tenant_id, "/slots"),
            params={"date": date, "service_id": service_id}
        )

    def book_appointment(
        self,
        tenant_id: str,
        customer_name: str,
        phone_number: str,
        service_id: str,
        date: str,
        time: str,
        notes: str = ""
    ) -> Dict[str, Any]:
        payload = {
            "customer_name": customer_name,
            "phone_number": phone_number,
            "service_id": service_id,
            "date": date,
            "time": time,
            "notes": notes,
        }
        return self.request("POST", self._tenant_path(tenant_id, "/appointments"), json=payload)

    def find_appointment(
        self,
        tenant_id: str,
        booking_id: Optional[str] = None,
        phone_number: Optional[str] = None
    ) -> Dict[str, Any]:
        if booking_id:
            return self.request("GET", self._tenant_path(tenant_id, f"/appointments/{booking_id}"))
        return self.request(
            "GET",
            self._tenant_path(tenant_id, "/appointments"),
            params={"phone_number": phone_number} if phone_number else None
        )

    def update_appointment(self, tenant_id: str, booking_id: str, **changes) -> Dict[str, Any]:
        """changes: new_date, new_time, new_service_id, new_notes (omitted keys untouched)."""
        payload = {key: value for key, value in changes.items() if value is not None}
        return self.request(
            "PATCH",
            self._tenant_path(tenant_id, f"/appointments/{booking_id}"),
            json=payload
        )

    def cancel_appointment(self, tenant_id: str, booking_id: str, cancellation_reason: str = "") -> Dict[str, Any]:
        return self.request(
            "POST",
            self._tenant_path(tenant_id, f"/appointments/{booking_id}/cancel"),
            json={"cancellation_reason": cancellation_reason}
        )

    def _rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        envelope = {
            "jsonrpc": "2.0",
            "id": next(self._rpc_ids),
            "method": method,
            "params": params or {},
        }
        body = self.request("POST", "/mcp", json=envelope)
        if "error" in body:
            error = body["error"]
            raise BookingAPIError(error.get("message", "JSON-RPC error"), code=error.get("code"))
        return body["result"]

    def list_tools(self) -> List[Dict[str, Any]]:
        return self._rpc("tools/list")["tools"]

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool over /mcp and decode its JSON text content."""
        result = self._rpc("tools/call", {"name": name, "arguments": arguments})
        return json.loads(result["content"][0]["text"])
