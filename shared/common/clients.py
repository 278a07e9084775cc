# shared/common/clients.py
"""
Service Clients for Inter-Service Communication

Synchronous httpx clients guarded by a per-client circuit breaker. The
breaker is shared between request threads and attempt timer threads, so
its state changes are serialized.
"""

import time
import logging
import threading
from typing import Dict, Optional

import httpx
from django.conf import settings

from .middleware import REQUEST_ID_HEADER, get_request_id

logger = logging.getLogger(__name__)


# =============================================================================
# CIRCUIT BREAKER
# =============================================================================

class CircuitBreakerError(Exception):
    """Exception raised when circuit breaker is open"""
    pass


class CircuitBreaker:
    """
    Opens after failure_threshold consecutive failures, lets a probe
    through after reset_timeout seconds and closes again after
    success_threshold successful probes.
    """

    CLOSED = 'closed'
    OPEN = 'open'
    HALF_OPEN = 'half_open'

    def __init__(self, name: str, failure_threshold: int = 5, success_threshold: int = 2, reset_timeout: float = 30):
        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.reset_timeout = reset_timeout
        self.state = self.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at: Optional[float] = None
        self._lock = threading.Lock()

    def can_execute(self) -> bool:
        with self._lock:
            if self.state == self.OPEN:
                if time.monotonic() - self.opened_at < self.reset_timeout:
                    return False
                self.state = self.HALF_OPEN
                self.success_count = 0
            return True

    def record_success(self) -> None:
        with self._lock:
            if self.state == self.HALF_OPEN:
                self.success_count += 1
                if self.success_count < self.success_threshold:
                    return
                logger.info(f"Circuit breaker for {self.name} closed")
            self.state = self.CLOSED
            self.failure_count = 0

    def record_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
                if self.state != self.OPEN:
                    logger.warning(f"Circuit breaker for {self.name} opened after {self.failure_count} failures")
                self.state = self.OPEN
                self.opened_at = time.monotonic()


# =============================================================================
# BASE SERVICE CLIENT
# =============================================================================

class BaseServiceClient:
    """
    Base class for synchronous service-to-service HTTP communication.

    A transport may be injected (httpx.MockTransport in tests); otherwise
    the default network transport is used.
    """

    def __init__(
        self,
        service_name: str,
        base_url: str = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.service_name = service_name
        self.base_url = (base_url or self._get_service_url(service_name)).rstrip('/')
        self.timeout = httpx.Timeout(timeout, connect=5.0)
        self.auth_token = getattr(settings, 'SERVICE_AUTH_TOKEN', '')
        breaker = getattr(settings, 'CIRCUIT_BREAKER', {})
        self.circuit_breaker = CircuitBreaker(
            service_name,
            failure_threshold=breaker.get('FAILURE_THRESHOLD', 5),
            success_threshold=breaker.get('SUCCESS_THRESHOLD', 2),
            reset_timeout=breaker.get('RESET_TIMEOUT', 30),
        )
        self._transport = transport

    def _get_service_url(self, service_name: str) -> str:
        service_urls = getattr(settings, 'SERVICE_URLS', {})
        return service_urls.get(service_name, f'http://{service_name}:8000')

    def _get_headers(self) -> Dict:
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'X-Service-Auth': self.auth_token,
            'X-Source-Service': getattr(settings, 'SERVICE_NAME', 'unknown'),
        }
        request_id = get_request_id()
        if request_id:
            headers[REQUEST_ID_HEADER] = request_id
        return headers

    def _request(self, method: str, path: str, params: Dict = None, data: Dict = None) -> httpx.Response:
        """
        Make HTTP request to service.

        Returns the raw response for any status below 500; raises
        httpx.HTTPStatusError for 5xx and httpx.RequestError for transport
        failures, both of which count against the circuit breaker.
        """
        if not self.circuit_breaker.can_execute():
            raise CircuitBreakerError(f"Circuit breaker open for {self.service_name}")

        url = f"{self.base_url}{path}"

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = client.request(method, url, params=params, json=data, headers=self._get_headers())
                if response.status_code >= 500:
                    response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"HTTP error calling {self.service_name}: {e.response.status_code}",
                    extra={'url': url, 'status_code': e.response.status_code}
                )
                self.circuit_breaker.record_failure()
                raise
            except httpx.RequestError as e:
                logger.error(f"Request error calling {self.service_name}: {e}", extra={'url': url})
                self.circuit_breaker.record_failure()
                raise

        self.circuit_breaker.record_success()
        return response

    def post(self, path: str, data: Dict = None) -> httpx.Response:
        return self._request('POST', path, data=data)
