"""
Unit tests for the data module.
Covers reading validation, filters, the repository, configuration,
the API client and the simulator.
"""

import json
import logging
import pytest
import requests
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pydantic import ValidationError

from data import (
    CarbonAPIClient,
    CarbonAPIError,
    CarbonDataRepository,
    DataConfig,
    LoggingSettings,
    Reading,
    ReadingFilter,
    ReadingSimulator,
    RepositoryError,
    readings_to_frame,
    setup_logging
)


START = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)


def make_reading(**overrides):
    """Build a valid reading with overridable fields."""
    fields = {
        'timestamp': START,
        'building_id': 'B-101',
        'device_id': 'D-001',
        'energy_consumption': 10.0,
        'carbon_emissions': 5.0,
    }
    fields.update(overrides)
    return Reading(**fields)


class TestReading:
    """Tests for Reading validation and defaults."""

    def test_valid_reading(self):
        reading = make_reading()

        assert reading.building_id == 'B-101'
        assert reading.energy_consumption == 10.0
        assert reading.id

    def test_camel_case_input(self):
        reading = Reading.model_validate({
            'timestamp': '2024-03-04T08:00:00Z',
            'buildingId': 'B-102',
            'deviceId': 'D-002',
            'energyConsumption': 12.5,
            'carbonEmissions': 4.2,
            'metadata': {'buildingName': 'Community Center', 'deviceType': 'lighting'}
        })

        assert reading.building_id == 'B-102'
        assert reading.timestamp == START
        assert reading.building_name == 'Community Center'
        assert reading.device_type == 'lighting'

    def test_negative_energy_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_reading(energy_consumption=-1.0)

        assert "Energy consumption cannot be negative" in str(exc_info.value)

    def test_negative_emissions_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_reading(carbon_emissions=-0.5)

        assert "Carbon emissions cannot be negative" in str(exc_info.value)

    def test_missing_building_id_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_reading(building_id='')

        assert "Building ID is required" in str(exc_info.value)

    def test_non_finite_values_rejected(self):
        with pytest.raises(ValidationError):
            make_reading(carbon_emissions=float('nan'))

    def test_naive_timestamp_treated_as_utc(self):
        reading = make_reading(timestamp=datetime(2024, 3, 4, 8, 0))
        assert reading.timestamp == START

    def test_metadata_defaults_to_ids(self):
        reading = make_reading()

        assert reading.building_name == 'B-101'
        assert reading.device_type == 'D-001'

    def test_unknown_metadata_keys_kept(self):
        reading = make_reading(metadata={'floor': 3})
        dumped = reading.model_dump(by_alias=True)

        assert dumped['metadata']['floor'] == 3

    def test_reading_is_immutable(self):
        reading = make_reading()
        with pytest.raises(ValidationError):
            reading.carbon_emissions = 99.0

    def test_serializes_camel_case(self):
        dumped = make_reading().model_dump(mode='json', by_alias=True)

        assert 'carbonEmissions' in dumped
        assert 'buildingId' in dumped


class TestReadingFilter:
    """Tests for ReadingFilter matching."""

    def test_empty_filter_matches_everything(self):
        assert ReadingFilter().matches(make_reading())

    def test_filters_are_conjunctive(self):
        reading_filter = ReadingFilter(building_id='B-101', min_emissions=6.0)

        assert not reading_filter.matches(make_reading())
        assert reading_filter.matches(make_reading(carbon_emissions=7.0))
        assert not reading_filter.matches(make_reading(building_id='B-102', carbon_emissions=7.0))

    def test_date_range_is_inclusive(self):
        reading_filter = ReadingFilter(start_date=START, end_date=START + timedelta(hours=1))

        assert reading_filter.matches(make_reading(timestamp=START))
        assert reading_filter.matches(make_reading(timestamp=START + timedelta(hours=1)))
        assert not reading_filter.matches(make_reading(timestamp=START + timedelta(hours=2)))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            ReadingFilter(start_date=START, end_date=START - timedelta(days=1))

    def test_date_strings_parsed(self):
        reading_filter = ReadingFilter(startDate='2024-03-04', endDate='2024-03-05')

        assert reading_filter.start_date == datetime(2024, 3, 4, tzinfo=timezone.utc)


class TestReadingsToFrame:
    """Tests for DataFrame conversion."""

    def test_columns_and_order(self):
        readings = [make_reading(device_id=f'D-00{i}') for i in range(3)]
        frame = readings_to_frame(readings)

        assert list(frame['device_id']) == ['D-000', 'D-001', 'D-002']
        assert str(frame['timestamp'].dt.tz) == 'UTC'

    def test_empty_frame(self):
        frame = readings_to_frame([])

        assert frame.empty
        assert 'carbon_emissions' in frame.columns


class TestCarbonDataRepository:
    """Tests for CarbonDataRepository."""

    @pytest.fixture
    def repository(self):
        repo = CarbonDataRepository()
        repo.bulk_create([
            make_reading(id='r1', timestamp=START, carbon_emissions=1.0),
            make_reading(id='r2', timestamp=START + timedelta(hours=1), carbon_emissions=2.0, building_id='B-102'),
            make_reading(id='r3', timestamp=START + timedelta(hours=2), carbon_emissions=3.0),
        ])
        return repo

    def test_create_and_get(self):
        repo = CarbonDataRepository()
        created = repo.create({'buildingId': 'B-101', 'deviceId': 'D-001', 'carbonEmissions': 1.5})

        assert repo.get(created.id) == created
        assert repo.count() == 1

    def test_duplicate_id_rejected(self, repository):
        with pytest.raises(RepositoryError):
            repository.create(make_reading(id='r1'))

    def test_bulk_create_is_all_or_nothing(self, repository):
        with pytest.raises(ValidationError):
            repository.bulk_create([
                make_reading(id='r4'),
                {'buildingId': 'B-101', 'deviceId': 'D-001', 'carbonEmissions': -1}
            ])

        assert repository.count() == 3

    def test_get_missing_returns_none(self, repository):
        assert repository.get('missing') is None

    def test_update_revalidates(self, repository):
        updated = repository.update('r1', {'carbonEmissions': 9.5})

        assert updated.carbon_emissions == 9.5
        assert updated.id == 'r1'
        assert repository.get('r1').carbon_emissions == 9.5

        with pytest.raises(ValidationError):
            repository.update('r1', {'carbon_emissions': -2})

    def test_update_missing_returns_none(self, repository):
        assert repository.update('missing', {'carbonEmissions': 1.0}) is None

    def test_delete(self, repository):
        assert repository.delete('r2') is True
        assert repository.delete('r2') is False
        assert repository.count() == 2

    def test_query_keeps_insertion_order(self, repository):
        readings = repository.query_readings(ReadingFilter(building_id='B-101'))
        assert [r.id for r in readings] == ['r1', 'r3']

    def test_query_returns_snapshot(self, repository):
        snapshot = repository.query_readings()
        repository.delete('r1')

        assert len(snapshot) == 3

    def test_find_all_paginates_newest_first(self, repository):
        page = repository.find_all(page=1, limit=2)

        assert [r.id for r in page.data] == ['r3', 'r2']
        assert page.total == 3
        assert page.pages == 2

        second = repository.find_all(page=2, limit=2)
        assert [r.id for r in second.data] == ['r1']

    def test_find_all_sort_field(self, repository):
        page = repository.find_all(sort_by='carbon_emissions', descending=False)
        assert [r.id for r in page.data] == ['r1', 'r2', 'r3']

    def test_find_all_invalid_arguments(self, repository):
        with pytest.raises(ValueError):
            repository.find_all(page=0)
        with pytest.raises(ValueError):
            repository.find_all(sort_by='humidity')

    def test_file_persistence(self, tmp_path):
        storage = tmp_path / 'carbon-data.json'
        repo = CarbonDataRepository(storage_path=storage)
        repo.create(make_reading(id='persisted', metadata={'buildingName': 'City Hall'}))

        raw = json.loads(storage.read_text())
        assert raw[0]['buildingId'] == 'B-101'

        reloaded = CarbonDataRepository(storage_path=storage)
        assert reloaded.get('persisted').building_name == 'City Hall'

    def test_failed_save_leaves_store_unchanged(self, tmp_path):
        storage = tmp_path / 'carbon-data.json'
        repo = CarbonDataRepository(storage_path=storage)
        repo.create(make_reading(id='r1', carbon_emissions=1.0))

        # a regular file where the storage directory should be
        blocker = tmp_path / 'blocker'
        blocker.write_text('')
        repo.storage_path = blocker / 'carbon-data.json'

        with pytest.raises(RepositoryError):
            repo.create(make_reading(id='r2'))
        with pytest.raises(RepositoryError):
            repo.update('r1', {'carbonEmissions': 5.0})
        with pytest.raises(RepositoryError):
            repo.delete('r1')
        with pytest.raises(RepositoryError):
            repo.clear()

        assert [r.id for r in repo.query_readings()] == ['r1']
        assert repo.get('r1').carbon_emissions == 1.0

        repo.storage_path = storage
        repo.create(make_reading(id='r2'))

        assert repo.count() == 2
        assert [item['id'] for item in json.loads(storage.read_text())] == ['r1', 'r2']

    def test_corrupt_file_raises(self, tmp_path):
        storage = tmp_path / 'carbon-data.json'
        storage.write_text('not json')

        with pytest.raises(RepositoryError):
            CarbonDataRepository(storage_path=storage)


class TestDataConfig:
    """Tests for configuration loading."""

    def test_defaults(self):
        config = DataConfig()

        assert config.storage.type == 'memory'
        assert config.api.base_url == 'http://localhost:3000/api/carbon'
        assert config.analytics.anomaly_threshold == 2.0
        assert config.reporting.building_names['B-101'] == 'City Hall'

    def test_from_yaml(self, tmp_path):
        config_file = tmp_path / 'carbon_config.yaml'
        config_file.write_text(
            "analytics:\n"
            "  anomaly_threshold: 3.0\n"
            "  trend_interval: week\n"
            "logging:\n"
            "  level: debug\n"
        )

        config = DataConfig.from_yaml(config_file)

        assert config.analytics.anomaly_threshold == 3.0
        assert config.analytics.trend_interval == 'week'
        assert config.logging.level == 'DEBUG'

    def test_from_yaml_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataConfig.from_yaml(tmp_path / 'missing.yaml')

    def test_invalid_values_rejected(self, tmp_path):
        config_file = tmp_path / 'carbon_config.yaml'
        config_file.write_text("analytics:\n  trend_interval: fortnight\n")

        with pytest.raises(ValueError):
            DataConfig.from_yaml(config_file)

    def test_save_yaml_round_trip(self, tmp_path):
        config = DataConfig()
        config.analytics.forecast_periods = 14
        path = tmp_path / 'nested' / 'carbon_config.yaml'

        config.save_yaml(path)

        assert DataConfig.from_yaml(path).analytics.forecast_periods == 14

    def test_logging_level_validation(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level='LOUD')

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'carbon.log'
        setup_logging(LoggingSettings(level='debug', file=str(log_file)))

        logging.getLogger('data.test').debug("file handler check")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "file handler check" in log_file.read_text()

        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()


def mock_response(status_code=200, body=None):
    """Build a requests.Response stand-in."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = 'OK' if status_code < 400 else 'Error'
    response.json.return_value = body
    if status_code >= 500:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Server Error", response=response
        )
    return response


class TestCarbonAPIClient:
    """Tests for CarbonAPIClient with a mocked session."""

    @pytest.fixture
    def session(self):
        return Mock(spec=requests.Session)

    @pytest.fixture
    def client(self, session):
        return CarbonAPIClient('http://api.test/api/carbon/', session=session)

    @pytest.fixture
    def reading_payload(self):
        return make_reading(id='r1').model_dump(mode='json', by_alias=True)

    def test_get_all_data_unwraps_envelope(self, client, session, reading_payload):
        session.request.return_value = mock_response(body={'status': 'success', 'data': [reading_payload]})

        readings = client.get_all_data(ReadingFilter(building_id='B-101'))

        assert [r.id for r in readings] == ['r1']
        method, url = session.request.call_args.args
        assert method == 'GET'
        assert url == 'http://api.test/api/carbon'
        assert session.request.call_args.kwargs['params'] == {'buildingId': 'B-101'}

    def test_get_by_id_not_found(self, client, session):
        session.request.return_value = mock_response(404, {'status': 'error', 'message': 'Not found'})

        assert client.get_data_by_id('missing') is None

    def test_delete_not_found(self, client, session):
        session.request.return_value = mock_response(404)

        assert client.delete_data('missing') is False

    def test_create_validates_locally(self, client, session):
        with pytest.raises(ValidationError):
            client.create_data({'buildingId': 'B-101', 'deviceId': 'D-001', 'energyConsumption': -5})

        session.request.assert_not_called()

    def test_client_error_not_retried(self, client, session):
        session.request.return_value = mock_response(400, {'status': 'error', 'message': 'Bad reading'})

        with pytest.raises(CarbonAPIError) as exc_info:
            client.get_all_data()

        assert exc_info.value.status_code == 400
        assert 'Bad reading' in str(exc_info.value)
        assert session.request.call_count == 1

    @patch('data.api_client.time.sleep')
    def test_server_error_retried_with_backoff(self, mock_sleep, client, session, reading_payload):
        session.request.side_effect = [
            mock_response(503),
            requests.ConnectionError("connection refused"),
            mock_response(body=[reading_payload]),
        ]

        readings = client.get_all_data()

        assert len(readings) == 1
        assert session.request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @patch('data.api_client.time.sleep')
    def test_gives_up_after_max_retries(self, mock_sleep, client, session):
        session.request.return_value = mock_response(500)

        with pytest.raises(CarbonAPIError) as exc_info:
            client.get_all_data()

        assert exc_info.value.status_code == 500
        assert session.request.call_count == 3

    def test_context_manager_closes_session(self, session):
        with CarbonAPIClient('http://api.test', session=session):
            pass

        session.close.assert_called_once()


class TestReadingSimulator:
    """Tests for ReadingSimulator."""

    def test_seeded_output_is_reproducible(self):
        first = ReadingSimulator(seed=7).generate_bulk(5, start=START)
        second = ReadingSimulator(seed=7).generate_bulk(5, start=START)

        assert [r.carbon_emissions for r in first] == [r.carbon_emissions for r in second]

    def test_bulk_spacing_and_metadata(self):
        readings = ReadingSimulator(seed=1).generate_bulk(3, start=START, step=timedelta(minutes=30))

        assert [r.timestamp for r in readings] == [START + timedelta(minutes=30 * i) for i in range(3)]
        for reading in readings:
            assert reading.metadata.building_name
            assert reading.metadata.device_type
            assert reading.carbon_emissions >= 0

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            ReadingSimulator().generate_bulk(-1)
