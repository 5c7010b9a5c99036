"""
Client for the carbon monitoring REST API (the /api/carbon resource).
"""

import logging
import requests
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone
import time

from .models import Reading, ReadingFilter
from .config import DataConfig


logger = logging.getLogger(__name__)


class CarbonAPIError(Exception):
    """Raised when the monitoring API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CarbonAPIClient:
    """
    Client for the carbon data resource.
    Handles retries, response envelopes and conversion to Reading models.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        max_retries: int = 3,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize API client.

        Args:
            base_url: URL of the carbon data resource
            timeout: Request timeout in seconds
            max_retries: Number of attempts for transport and server errors
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: DataConfig) -> 'CarbonAPIClient':
        """
        Create API client from configuration.

        Args:
            config: DataConfig object

        Returns:
            Configured CarbonAPIClient instance
        """
        return cls(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            max_retries=config.api.max_retries
        )

    def _make_request(
        self,
        method: str,
        path: str = '',
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Any] = None
    ) -> requests.Response:
        """
        Make API request with retry logic.

        A 404 response is returned to the caller; other 4xx responses fail
        immediately; transport errors and 5xx responses are retried.

        Raises:
            CarbonAPIError: If the request is rejected or fails after retries
        """
        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    timeout=self.timeout
                )

                if response.status_code == 404:
                    return response

                if 400 <= response.status_code < 500:
                    raise CarbonAPIError(
                        f"API error: {response.status_code} - {self._error_message(response)}",
                        status_code=response.status_code
                    )

                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt  # Exponential backoff
                    logger.warning(
                        "%s %s failed (attempt %d/%d): %s",
                        method, url, attempt + 1, self.max_retries, e
                    )
                    time.sleep(wait_time)
                    continue
                else:
                    status = e.response.status_code if e.response is not None else None
                    raise CarbonAPIError(
                        f"Request failed after {self.max_retries} attempts: {e}",
                        status_code=status
                    )

        raise CarbonAPIError("Unexpected error in request")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract the server's error message, falling back to the reason phrase."""
        try:
            body = response.json()
        except ValueError:
            return response.reason or "Unknown error"
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        return response.reason or "Unknown error"

    @staticmethod
    def _unwrap(response: requests.Response) -> Any:
        """Return the payload, unwrapping a {status, data} envelope if present."""
        try:
            body = response.json()
        except ValueError as e:
            raise CarbonAPIError(f"Invalid JSON in API response: {e}", status_code=response.status_code)
        if isinstance(body, dict) and 'data' in body and 'status' in body:
            return body['data']
        return body

    def get_all_data(self, reading_filter: Optional[ReadingFilter] = None) -> List[Reading]:
        """
        Get all readings matching a filter.

        Args:
            reading_filter: Optional filter sent as query parameters

        Returns:
            List of Reading objects
        """
        params = None
        if reading_filter is not None:
            params = reading_filter.model_dump(mode='json', by_alias=True, exclude_none=True)

        response = self._make_request('GET', params=params)
        items = self._unwrap(response)
        if not isinstance(items, list):
            raise CarbonAPIError("Expected a list of readings in API response")

        readings = [Reading.model_validate(item) for item in items]
        logger.info("Fetched %d readings", len(readings))
        return readings

    def get_data_by_id(self, reading_id: str) -> Optional[Reading]:
        """Get a reading by id, or None if the API reports 404."""
        response = self._make_request('GET', f"/{reading_id}")
        if response.status_code == 404:
            return None
        return Reading.model_validate(self._unwrap(response))

    def create_data(self, data: Reading | Dict[str, Any]) -> Reading:
        """
        Create a reading.

        Args:
            data: Reading or raw mapping; validated locally before sending

        Returns:
            The reading as stored by the API
        """
        reading = data if isinstance(data, Reading) else Reading.model_validate(data)
        response = self._make_request(
            'POST',
            payload=reading.model_dump(mode='json', by_alias=True)
        )
        return Reading.model_validate(self._unwrap(response))

    def update_data(self, reading_id: str, changes: Dict[str, Any]) -> Optional[Reading]:
        """Update a reading; returns None if the API reports 404."""
        response = self._make_request('PUT', f"/{reading_id}", payload=changes)
        if response.status_code == 404:
            return None
        return Reading.model_validate(self._unwrap(response))

    def delete_data(self, reading_id: str) -> bool:
        """Delete a reading; returns False if the API reports 404."""
        response = self._make_request('DELETE', f"/{reading_id}")
        return response.status_code != 404

    def get_building_data(
        self,
        building_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[Reading]:
        """Get readings of one building, optionally limited to a date range."""
        return self.get_all_data(ReadingFilter(
            building_id=building_id,
            start_date=start_date,
            end_date=end_date
        ))

    def get_data_by_date_range(
        self,
        start_date: datetime,
        end_date: datetime,
        building_id: Optional[str] = None
    ) -> List[Reading]:
        """Get readings within an inclusive date range."""
        return self.get_all_data(ReadingFilter(
            building_id=building_id,
            start_date=start_date,
            end_date=end_date
        ))

    def get_todays_data(self, building_id: Optional[str] = None) -> List[Reading]:
        """Get readings from the start of the current UTC day until now."""
        now = datetime.now(timezone.utc)
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return self.get_data_by_date_range(start, now, building_id)

    def bulk_create(self, items: Iterable[Reading | Dict[str, Any]]) -> List[Reading]:
        """Create readings one after another; stops at the first failure."""
        return [self.create_data(item) for item in items]

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
