"""Tests for the station store and the station update protocol."""

import threading

import pytest

from stowkiosk.errors import InvalidTransition, NoOpUpdate, NotFoundError, ValidationError
from stowkiosk.realtime import BroadcastHub
from stowkiosk.state import Station, StationUpdate, StationUpdateProtocol
from stowkiosk.state.models import normalize_status
from stowkiosk.state.protocol import next_status, toggle_end_indicator
from stowkiosk.state.stations import parse_side

from conftest import FakeConnection


class TestParseSide:
    """Test side parsing."""

    @pytest.mark.parametrize('raw,expected', [('a', 'A'), ('A', 'A'), ('b', 'B'), ('B', 'B')])
    def test_case_insensitive(self, raw, expected):
        assert parse_side(raw).value == expected

    def test_invalid_side(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_side('c')
        assert exc_info.value.message == 'Invalid side parameter'


class TestStatusNormalization:
    """Test normalization of stored status values."""

    @pytest.mark.parametrize('status', ['AQ', 'PS', 'Inactive'])
    def test_canonical_is_identity(self, status):
        assert normalize_status(status) == (status, None)

    @pytest.mark.parametrize('legacy', ['AQ+PS', 'PS+AQ'])
    def test_legacy_composite(self, legacy):
        assert normalize_status(legacy) == ('AQ', 'PS')

    def test_unknown_reads_inactive(self):
        assert normalize_status('Broken') == ('Inactive', None)


class TestCycleHelpers:
    """Test the status cycle and indicator toggle."""

    def test_cycle_order(self):
        assert next_status('AQ').value == 'PS'
        assert next_status('PS').value == 'Inactive'
        assert next_status('Inactive').value == 'AQ'

    @pytest.mark.parametrize('start', ['AQ', 'PS', 'Inactive'])
    def test_three_steps_return_to_start(self, start):
        status = start
        for _ in range(3):
            status = next_status(status)
        assert status.value == start

    def test_legacy_cycles_as_aq(self):
        assert next_status('AQ+PS').value == 'PS'

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidTransition):
            next_status('Broken')

    @pytest.mark.parametrize('start', ['Hi', 'Lo'])
    def test_toggle_twice_is_identity(self, start):
        assert toggle_end_indicator(toggle_end_indicator(start)).value == start

    def test_toggle_unknown_rejected(self):
        with pytest.raises(InvalidTransition):
            toggle_end_indicator('Mid')


class TestStationUpdate:
    """Test the partial update value object."""

    def test_coerces_strings(self):
        update = StationUpdate(status='PS', end_indicator='Lo')
        assert update.to_columns() == {'status': 'PS', 'end_indicator': 'Lo'}

    def test_empty(self):
        assert StationUpdate().is_empty

    def test_invalid_status(self):
        with pytest.raises(InvalidTransition):
            StationUpdate(status='Done')

    def test_invalid_indicator(self):
        with pytest.raises(InvalidTransition):
            StationUpdate(end_indicator='Up')


class TestStationStore:
    """Test StationStore reads and writes."""

    def test_create_and_get(self, stations):
        created = stations.create('a', level=1, station_number=123)

        station = stations.get(created['id'])

        assert station['side'] == 'A'
        assert station['status'] == 'Inactive'
        assert station['end_indicator'] == 'Hi'
        assert station['updated_at'].endswith('Z')
        assert 'secondary_status' not in station

    def test_duplicate_position_rejected(self, stations):
        stations.create('A', level=1, station_number=123)
        with pytest.raises(ValidationError):
            stations.create('A', level=1, station_number=123)

    def test_get_missing(self, stations):
        with pytest.raises(NotFoundError):
            stations.get(999)

    def test_list_by_side_ordering(self, stations):
        stations.create('A', level=2, station_number=150)
        stations.create('A', level=1, station_number=102)
        stations.create('A', level=1, station_number=101)
        stations.create('B', level=1, station_number=100)

        result = stations.list_by_side('a')

        assert [(s['level'], s['station_number']) for s in result] == [(1, 101), (1, 102), (2, 150)]

    def test_apply_status_keeps_indicator(self, stations):
        created = stations.create('A', level=1, station_number=123, status='AQ', end_indicator='Lo')

        updated = stations.apply(created['id'], StationUpdate(status='PS'))

        assert updated['status'] == 'PS'
        assert updated['end_indicator'] == 'Lo'

    def test_apply_indicator_keeps_status(self, stations):
        created = stations.create('A', level=1, station_number=123, status='AQ')

        updated = stations.apply(created['id'], StationUpdate(end_indicator='Lo'))

        assert updated['status'] == 'AQ'
        assert updated['end_indicator'] == 'Lo'

    def test_sequential_field_writes_both_survive(self, stations):
        created = stations.create('A', level=1, station_number=123, status='AQ', end_indicator='Hi')

        stations.apply(created['id'], StationUpdate(status='PS'))
        stations.apply(created['id'], StationUpdate(end_indicator='Lo'))

        station = stations.get(created['id'])
        assert (station['status'], station['end_indicator']) == ('PS', 'Lo')

    def test_concurrent_field_writes_both_survive(self, stations):
        ids = [
            stations.create('A', level=1, station_number=n, status='AQ', end_indicator='Hi')['id']
            for n in range(1, 21)
        ]
        barrier = threading.Barrier(2)
        errors = []

        def writer(update):
            try:
                for station_id in ids:
                    barrier.wait(timeout=5)
                    stations.apply(station_id, update)
            except Exception as e:
                errors.append(e)
                barrier.abort()

        threads = [
            threading.Thread(target=writer, args=(StationUpdate(status='PS'),)),
            threading.Thread(target=writer, args=(StationUpdate(end_indicator='Lo'),)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        for station_id in ids:
            station = stations.get(station_id)
            assert (station['status'], station['end_indicator']) == ('PS', 'Lo')

    def test_empty_update_rejected_before_lookup(self, stations):
        with pytest.raises(NoOpUpdate):
            stations.apply(999, StationUpdate())

    def test_apply_missing(self, stations):
        with pytest.raises(NotFoundError):
            stations.apply(999, StationUpdate(status='AQ'))

    def test_legacy_status_normalized_on_read(self, stations, database):
        with database.session() as session:
            station = Station(side='A', level=1, station_number=175, status='AQ+PS', end_indicator='Hi')
            session.add(station)
            session.flush()
            station_id = station.id

        station = stations.get(station_id)

        assert station['status'] == 'AQ'
        assert station['secondary_status'] == 'PS'

    def test_count(self, stations):
        stations.create('A', level=1, station_number=1)
        stations.create('B', level=1, station_number=1)
        assert stations.count() == 2


class TestStationUpdateProtocol:
    """Test validate, persist, broadcast."""

    @pytest.fixture
    def protocol(self, stations):
        return StationUpdateProtocol(stations, BroadcastHub())

    def test_apply_broadcasts_post_write_record(self, stations, protocol):
        created = stations.create('A', level=1, station_number=123, status='AQ')
        conn = FakeConnection()
        protocol.hub.register(conn)

        station = protocol.apply(created['id'], status='PS')

        events = conn.messages()
        assert events[0] == {'type': 'info', 'message': 'Connected to WebSocket'}
        assert events[1] == {'type': 'stationUpdate', 'data': station}
        assert len(events) == 2

    def test_invalid_value_not_written_or_broadcast(self, stations, protocol):
        created = stations.create('A', level=1, station_number=123, status='AQ')
        conn = FakeConnection()
        protocol.hub.register(conn)

        with pytest.raises(InvalidTransition):
            protocol.apply(created['id'], status='Done')

        assert stations.get(created['id'])['status'] == 'AQ'
        assert len(conn.sent) == 1

    def test_cycle_status(self, stations, protocol):
        created = stations.create('A', level=1, station_number=123, status='Inactive')
        assert protocol.cycle_status(created['id'], 'Inactive')['status'] == 'AQ'

    def test_toggle_indicator(self, stations, protocol):
        created = stations.create('A', level=1, station_number=123)
        assert protocol.toggle_indicator(created['id'], 'Hi')['end_indicator'] == 'Lo'
