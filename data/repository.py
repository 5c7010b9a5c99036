"""
CarbonDataRepository: storage and retrieval of carbon emission readings.
Hands analytics an immutable snapshot of the readings matching a filter.
"""

import json
import logging
import math
import pandas as pd
from typing import Any, Dict, Iterable, List, Optional
from pathlib import Path

from pydantic import ValidationError

from .models import Reading, ReadingFilter, ReadingPage, readings_to_frame
from .config import DataConfig, load_config


logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


SORTABLE_FIELDS = {
    'timestamp',
    'building_id',
    'device_id',
    'energy_consumption',
    'carbon_emissions',
}


class CarbonDataRepository:
    """
    Insertion-ordered reading store.
    Optionally mirrors its content to a JSON file after every change.
    """

    def __init__(
        self,
        config: Optional[DataConfig] = None,
        storage_path: Optional[str | Path] = None
    ):
        """
        Initialize repository.

        Args:
            config: Configuration (defaults when None)
            storage_path: JSON file to persist to; overrides config.storage
        """
        self.config = config or DataConfig()

        if storage_path is None and self.config.storage.type == 'file':
            storage_path = self.config.storage.file_path

        self.storage_path: Optional[Path] = Path(storage_path) if storage_path else None
        self._readings: Dict[str, Reading] = {}

        if self.storage_path is not None and self.storage_path.exists():
            self.load()

    @classmethod
    def from_config(cls, config_path: Optional[str | Path] = None) -> 'CarbonDataRepository':
        """
        Create repository from configuration file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configured CarbonDataRepository instance
        """
        config = load_config(config_path)
        return cls(config=config)

    def create(self, data: Reading | Dict[str, Any]) -> Reading:
        """
        Validate and store a reading.

        Args:
            data: Reading or raw mapping (camelCase or snake_case keys)

        Returns:
            The stored Reading

        Raises:
            pydantic.ValidationError: If the reading is invalid
            RepositoryError: If the id already exists
        """
        reading = data if isinstance(data, Reading) else Reading.model_validate(data)

        if reading.id in self._readings:
            raise RepositoryError(f"Reading already exists: {reading.id}")

        self._commit({**self._readings, reading.id: reading})
        logger.info("Created carbon data entry: %s", reading.id)
        return reading

    def bulk_create(self, items: Iterable[Reading | Dict[str, Any]]) -> List[Reading]:
        """
        Validate and store several readings; nothing is stored if any is invalid.

        Args:
            items: Readings or raw mappings

        Returns:
            The stored readings in input order
        """
        readings = [
            item if isinstance(item, Reading) else Reading.model_validate(item)
            for item in items
        ]

        seen = set(self._readings)
        for reading in readings:
            if reading.id in seen:
                raise RepositoryError(f"Reading already exists: {reading.id}")
            seen.add(reading.id)

        self._commit({**self._readings, **{r.id: r for r in readings}})
        logger.info("Created %d carbon data entries", len(readings))
        return readings

    def get(self, reading_id: str) -> Optional[Reading]:
        """Get a reading by id, or None if not found."""
        reading = self._readings.get(reading_id)
        if reading is None:
            logger.warning("Carbon data not found: %s", reading_id)
        return reading

    def update(self, reading_id: str, changes: Dict[str, Any]) -> Optional[Reading]:
        """
        Replace a reading with a re-validated copy carrying the changes.

        Args:
            reading_id: Id of the reading to update
            changes: Fields to change (camelCase or snake_case keys)

        Returns:
            The updated Reading, or None if not found

        Raises:
            pydantic.ValidationError: If the updated reading is invalid
        """
        existing = self._readings.get(reading_id)
        if existing is None:
            logger.warning("Carbon data not found for update: %s", reading_id)
            return None

        merged = existing.model_dump(by_alias=True)
        for key, value in changes.items():
            merged[_to_alias(key)] = value
        merged['id'] = reading_id

        updated = Reading.model_validate(merged)
        self._commit({**self._readings, reading_id: updated})
        logger.info("Updated carbon data: %s", reading_id)
        return updated

    def delete(self, reading_id: str) -> bool:
        """Delete a reading; returns False if it did not exist."""
        if reading_id not in self._readings:
            logger.warning("Carbon data not found for deletion: %s", reading_id)
            return False

        self._commit({k: v for k, v in self._readings.items() if k != reading_id})
        logger.info("Deleted carbon data: %s", reading_id)
        return True

    def query_readings(self, reading_filter: Optional[ReadingFilter] = None) -> List[Reading]:
        """
        Get all readings matching a filter, in insertion order.

        Args:
            reading_filter: Conjunctive filter (None matches everything)

        Returns:
            New list of matching readings
        """
        if reading_filter is None:
            return list(self._readings.values())
        return [r for r in self._readings.values() if reading_filter.matches(r)]

    def find_all(
        self,
        reading_filter: Optional[ReadingFilter] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = 'timestamp',
        descending: bool = True
    ) -> ReadingPage:
        """
        Get one sorted page of matching readings.

        Args:
            reading_filter: Conjunctive filter
            page: 1-based page number
            limit: Page size
            sort_by: Reading field to sort on
            descending: Sort order (newest first by default)

        Returns:
            ReadingPage with data and pagination metadata

        Raises:
            ValueError: If paging parameters or sort field are invalid
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by '{sort_by}'. Available: {', '.join(sorted(SORTABLE_FIELDS))}")

        matching = self.query_readings(reading_filter)
        matching.sort(key=lambda r: getattr(r, sort_by), reverse=descending)

        skip = (page - 1) * limit
        data = matching[skip:skip + limit]
        total = len(matching)

        logger.info("Retrieved %d carbon data entries (page %d, total: %d)", len(data), page, total)

        return ReadingPage(
            data=data,
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit)
        )

    def get_frame(self, reading_filter: Optional[ReadingFilter] = None) -> pd.DataFrame:
        """Get matching readings as a DataFrame."""
        return readings_to_frame(self.query_readings(reading_filter))

    def count(self) -> int:
        """Number of stored readings."""
        return len(self._readings)

    def clear(self) -> None:
        """Remove all readings."""
        self._commit({})

    def load(self) -> None:
        """
        Replace the store with the content of the storage file.

        Raises:
            RepositoryError: If the file cannot be read or holds invalid readings
        """
        if self.storage_path is None:
            raise RepositoryError("No storage file configured")

        try:
            with open(self.storage_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            readings = [Reading.model_validate(item) for item in raw]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            raise RepositoryError(f"Error loading readings from {self.storage_path}: {e}")

        self._readings = {r.id: r for r in readings}
        logger.info("Loaded %d readings from %s", len(readings), self.storage_path)

    def _commit(self, readings: Dict[str, Reading]) -> None:
        """
        Save the new store content, then make it current.

        The in-memory store is left untouched when saving fails.

        Raises:
            RepositoryError: If the storage file cannot be written
        """
        if self.storage_path is not None:
            payload = [r.model_dump(mode='json', by_alias=True) for r in readings.values()]
            try:
                self.storage_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.storage_path, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2)
            except OSError as e:
                raise RepositoryError(f"Error saving readings to {self.storage_path}: {e}")

        self._readings = readings


def _to_alias(key: str) -> str:
    """Map a snake_case field name to its camelCase alias."""
    field = Reading.model_fields.get(key)
    if field is not None and field.alias:
        return field.alias
    return key
