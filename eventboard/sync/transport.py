"""HTTP transport for the remote event service.

Wraps the two remote calls (read the collection, submit one event) and turns
every failure into a typed ``SyncError``. There is no retry logic here.
"""

import logging
from typing import Any

import httpx

from ..config import RemoteConfig
from ..models import Event
from .errors import (
    DecodeError,
    NetworkError,
    Result,
    ServerError,
    SyncError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class EventTransport:
    """Async client for the remote event service.

    Endpoints:
    - Read: ``GET {base_url}{read_path}`` returning ``{"data": [...]}``
    - Write: ``POST {base_url}{write_path}`` with a JSON body
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        read_path: str = "/data",
        write_path: str = "/events",
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transport.

        Args:
            base_url: Base URL of the remote service (e.g., "http://localhost:5001").
            timeout: Request timeout in seconds. Expiry yields NetworkError.
            read_path: Path of the collection endpoint.
            write_path: Path of the submit endpoint.
            client: Optional pre-built client, mainly for tests.
        """
        self._base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.read_path = read_path
        self.write_path = write_path
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: RemoteConfig) -> "EventTransport":
        return cls(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            read_path=config.read_path,
            write_path=config.write_path,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        path: str,
        json_data: Any = None,
    ) -> tuple[httpx.Response | None, SyncError | None]:
        """Issue one request, mapping transport failures to NetworkError."""
        if not self._base_url:
            return None, NetworkError("No base URL configured")

        client = await self._get_client()
        try:
            if method == "GET":
                response = await client.get(path)
            else:
                response = await client.post(path, json=json_data)
        except httpx.TimeoutException:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            return None, NetworkError(f"Request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            return None, NetworkError(str(e) or type(e).__name__)

        return response, None

    async def fetch_collection(self) -> Result[list[Event]]:
        """Fetch the full event collection.

        Returns:
            Result holding the events in server order, or a NetworkError,
            ServerError or DecodeError. A missing ``data`` field yields an
            empty list.
        """
        response, error = await self._send("GET", self.read_path)
        if error:
            return Result.failure(error)

        if not response.is_success:
            logger.warning(
                f"Failed to fetch events: HTTP {response.status_code}"
            )
            return Result.failure(
                ServerError(detail=response.text.strip(), status=response.status_code)
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(f"Event collection is not valid JSON: {e}")
            return Result.failure(DecodeError("Response body is not valid JSON"))

        if not isinstance(body, dict):
            logger.warning("Event collection envelope is not an object")
            return Result.failure(DecodeError("Expected an object with a 'data' field"))

        items = body.get("data")
        if items is None:
            return Result.success([])
        if not isinstance(items, list):
            logger.warning("Event collection 'data' field is not a list")
            return Result.failure(DecodeError("'data' field is not a list"))

        try:
            events = [Event.from_dict(item) for item in items]
        except TypeError as e:
            logger.warning(f"Discarding event collection: {e}")
            return Result.failure(DecodeError(str(e)))

        logger.debug(f"Fetched {len(events)} events")
        return Result.success(events)

    async def submit_event(self, payload: dict[str, Any]) -> Result[Event]:
        """Submit a new event.

        Args:
            payload: Fields of the new event, sent as the JSON body.

        Returns:
            Result holding the created Event, or a NetworkError, ServerError,
            ValidationError or DecodeError.
        """
        response, error = await self._send("POST", self.write_path, payload)
        if error:
            return Result.failure(error)

        if not response.is_success:
            text = response.text
            logger.warning(
                f"Failed to add event: HTTP {response.status_code}: {text[:200]}"
            )
            if response.status_code >= 500:
                return Result.failure(
                    ServerError(detail=text.strip(), status=response.status_code)
                )
            return Result.failure(
                ValidationError(message=text, status=response.status_code)
            )

        try:
            event = Event.from_dict(response.json())
        except ValueError:
            logger.warning("Created event is not valid JSON")
            return Result.failure(DecodeError("Response body is not valid JSON"))
        except TypeError as e:
            logger.warning(f"Created event has unexpected shape: {e}")
            return Result.failure(DecodeError(str(e)))

        return Result.success(event)

    async def check_connection(self) -> bool:
        """Check if the remote service answers the read endpoint.

        Returns:
            True if the read endpoint returned a success status.
        """
        response, error = await self._send("GET", self.read_path)
        if error:
            logger.debug(f"Connection check failed: {error.describe()}")
            return False
        return response.is_success
