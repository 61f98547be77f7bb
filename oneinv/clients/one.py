"""Client for the OpenNebula XML-RPC API."""

import time
import xmlrpc.client
from typing import Any, Optional, Union
from xml.parsers.expat import ExpatError

import httpx

from oneinv.config import settings
from oneinv.core.exceptions import TransportError
from oneinv.models.host import HostPool
from oneinv.models.vm import VmPool
from oneinv.utils.logger import get_logger, log_timer
from oneinv.utils.telemetry import get_tracer, add_span_attributes, add_span_event

logger = get_logger(__name__)
tracer = get_tracer()

# one.vmpool.info arguments: all resources, full id range, any state but DONE
VMPOOL_FILTER_ALL = -2
VMPOOL_RANGE = (-1, -1)
VMPOOL_STATE_ANY = -1


class OneClient:
    """Async client fetching inventory pools over XML-RPC."""

    VM_POOL_METHOD = "one.vmpool.info"
    HOST_POOL_METHOD = "one.hostpool.info"

    def __init__(
        self,
        api_url: Optional[str] = None,
        credentials: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize client.

        Args:
            api_url: XML-RPC endpoint
            credentials: Session string, ``user:password``
            timeout: Request timeout in seconds
        """
        self.api_url = api_url or settings.ONE_API_URL
        self.credentials = credentials or settings.ONE_CREDENTIALS
        self.timeout = timeout or settings.ONE_TIMEOUT
        self.client = httpx.AsyncClient(
            timeout=self.timeout, headers={"Content-Type": "text/xml"}
        )

    async def __aenter__(self) -> "OneClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def call(self, method: str, *params: Any) -> str:
        """
        Perform an XML-RPC call and return the response body.

        OpenNebula answers every call with ``[success, body, error_code]``;
        on failure ``body`` holds the error message.

        Args:
            method: XML-RPC method name
            *params: Arguments following the session string

        Returns:
            Response body (an XML document for pool calls)

        Raises:
            TransportError: If the request or the call fails
        """
        with tracer.start_as_current_span(f"xmlrpc.{method}") as span:
            add_span_attributes(
                **{
                    "xmlrpc.method": method,
                    "xmlrpc.url": self.api_url,
                }
            )

            payload = xmlrpc.client.dumps(
                (self.credentials, *params), methodname=method
            )

            try:
                with log_timer(method, logger):
                    response = await self.client.post(self.api_url, content=payload)
                    response.raise_for_status()

                (result,), _ = xmlrpc.client.loads(response.content)

            except httpx.HTTPStatusError as e:
                logger.error(
                    "XML-RPC call failed",
                    extra={
                        "method": method,
                        "status_code": e.response.status_code,
                        "error": e.response.text,
                        "error_type": "HTTPStatusError",
                    },
                )
                span.record_exception(e)
                raise TransportError(
                    f"{method} failed with HTTP {e.response.status_code}"
                ) from e

            except httpx.RequestError as e:
                logger.error(
                    "XML-RPC request failed",
                    extra={
                        "method": method,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                span.record_exception(e)
                raise TransportError(f"{method} request failed: {str(e)}") from e

            except xmlrpc.client.Fault as e:
                logger.error(
                    "XML-RPC fault",
                    extra={
                        "method": method,
                        "fault_code": e.faultCode,
                        "error": e.faultString,
                    },
                )
                span.record_exception(e)
                raise TransportError(f"{method} fault: {e.faultString}") from e

            except (xmlrpc.client.ResponseError, ExpatError, ValueError) as e:
                logger.error(
                    "Malformed XML-RPC response",
                    extra={
                        "method": method,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                span.record_exception(e)
                raise TransportError(f"{method} returned a malformed response") from e

            if not isinstance(result, list) or len(result) < 2:
                raise TransportError(f"{method} returned an unexpected result")

            success, body = result[0], result[1]
            if not success:
                error_code = result[2] if len(result) > 2 else None
                logger.error(
                    "OpenNebula call rejected",
                    extra={"method": method, "error": body, "error_code": error_code},
                )
                raise TransportError(f"{method} failed: {body}")

            add_span_event("xmlrpc.response", {"bytes": len(response.content)})
            return body

    async def fetch_pool(self, pool: Union[VmPool, HostPool]) -> float:
        """
        Fetch a pool and load it into ``pool``, replacing its contents.

        Args:
            pool: Empty VmPool or HostPool to fill

        Returns:
            Elapsed seconds

        Raises:
            TransportError: If the call fails or the body cannot be parsed
        """
        start = time.perf_counter()

        if isinstance(pool, VmPool):
            body = await self.call(
                self.VM_POOL_METHOD, VMPOOL_FILTER_ALL, *VMPOOL_RANGE, VMPOOL_STATE_ANY
            )
        elif isinstance(pool, HostPool):
            body = await self.call(self.HOST_POOL_METHOD)
        else:
            raise TypeError(f"Unsupported pool type: {type(pool).__name__}")

        pool.load_xml(body)
        elapsed = time.perf_counter() - start

        logger.info(
            "Pool fetched",
            extra={
                "pool": type(pool).__name__,
                "length": len(pool),
                "duration_ms": round(elapsed * 1000, 2),
            },
        )
        return elapsed

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
