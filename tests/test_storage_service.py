import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from kiosk_app.lib import database
from kiosk_app.lib.constants import (
    CORRUPTED_VISITS_KEY,
    LocationType,
    RESET_STATE_KEY,
    VISITS_KEY,
    VisitorCategory,
)
from kiosk_app.lib.database import get_db
from kiosk_app.lib.models.dto import ResetStateDTO
from kiosk_app.lib.models.store_models import Base
from kiosk_app.lib.services.storage_service import KeyValueStore, StorageError, StorageService

from conftest import KL


def write_raw(key, value):
    with get_db() as db:
        KeyValueStore(db).set_item(key, value)


def read_raw(key):
    with get_db() as db:
        return KeyValueStore(db).get_item(key)


def test_empty_store(storage):
    assert storage.get_visits() == []
    assert storage.get_reset_state() == ResetStateDTO()


def test_save_visit_assigns_numbers_and_persists(storage, clock):
    first = storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    clock.advance(minutes=5)
    second = storage.save_visit(VisitorCategory.VISITOR, LocationType.ARTS_GALLERY)

    assert (first.daily_number, second.daily_number) == (1, 2)
    assert second.yearly_number == 2
    assert second.timestamp == clock.now
    assert first.id != second.id

    visits = storage.get_visits()
    assert [v.id for v in visits] == [second.id, first.id]
    assert visits[0] == second

    state = storage.get_reset_state()
    assert state.current_daily_count == 2
    assert state.current_weekly_count == 2


def test_records_are_json_text(storage):
    visit = storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)

    stored = json.loads(read_raw(VISITS_KEY))
    assert stored[0]['id'] == visit.id
    assert stored[0]['category'] == 'Student'
    assert stored[0]['location'] == 'Museum'
    assert json.loads(read_raw(RESET_STATE_KEY))['current_daily_count'] == 1


def test_group_visit_consumes_several_numbers(storage):
    group = storage.save_visit(VisitorCategory.GROUP, LocationType.MUSEUM,
                               group_info='SMK Taman Melawati', group_size=30)
    student = storage.save_visit('Student', 'Museum')

    assert group.daily_number == 30
    assert group.group_info == 'SMK Taman Melawati'
    assert student.daily_number == 31
    assert student.group_size == 1


def test_counter_resets_on_the_next_day(storage, clock):
    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    clock.set(2024, 5, 16, 9, 0)

    visit = storage.save_visit(VisitorCategory.VISITOR, LocationType.MUSEUM)

    assert visit.daily_number == 1
    assert visit.weekly_number == 3


def test_only_groups_carry_group_details(storage):
    with pytest.raises(ValidationError):
        storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM, group_size=5)
    with pytest.raises(ValidationError):
        storage.save_visit(VisitorCategory.VISITOR, LocationType.MUSEUM, group_info='Family')
    assert storage.get_visits() == []


def test_invalid_group_size_is_rejected(storage):
    with pytest.raises(ValidationError):
        storage.save_visit(VisitorCategory.GROUP, LocationType.MUSEUM, group_size=0)
    with pytest.raises(ValidationError):
        storage.save_visit(VisitorCategory.GROUP, LocationType.MUSEUM, group_size=None)
    assert storage.get_reset_state() == ResetStateDTO()


def test_unknown_location_is_rejected(storage):
    with pytest.raises(ValidationError):
        storage.save_visit(VisitorCategory.STUDENT, 'Aquarium')


def test_blank_group_name_is_dropped(storage):
    visit = storage.save_visit(VisitorCategory.GROUP, LocationType.MUSEUM, group_info='   ', group_size=3)
    assert visit.group_info is None


def test_corrupted_visit_log_reads_as_empty(storage):
    write_raw(VISITS_KEY, '{not json')

    assert storage.get_visits() == []
    visit = storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    assert storage.get_visits() == [visit]


def test_corrupted_reset_state_starts_from_zero(storage):
    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    write_raw(RESET_STATE_KEY, '["oops"]')

    visit = storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    assert visit.daily_number == 1
    assert len(storage.get_visits()) == 2


def test_invalid_entries_are_skipped(storage):
    good = storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    stored = json.loads(read_raw(VISITS_KEY))
    write_raw(VISITS_KEY, json.dumps(stored + [{"id": "broken"}, 42]))

    assert storage.get_visits() == [good]


def test_clear_all_data(storage):
    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    storage.clear_all_data()

    assert read_raw(VISITS_KEY) is None
    assert read_raw(RESET_STATE_KEY) is None
    assert storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM).daily_number == 1


def test_unavailable_store_raises_storage_error(storage):
    Base.metadata.drop_all(database.engine)

    with pytest.raises(StorageError):
        storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    with pytest.raises(StorageError):
        storage.get_visits()


def test_invalid_entries_survive_the_next_check_in(storage):
    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)
    stored = json.loads(read_raw(VISITS_KEY))
    write_raw(VISITS_KEY, json.dumps(stored + [{"id": "broken"}]))

    storage.save_visit(VisitorCategory.VISITOR, LocationType.MUSEUM)

    entries = json.loads(read_raw(VISITS_KEY))
    assert len(entries) == 3
    assert entries[-1] == {"id": "broken"}
    assert len(storage.get_visits()) == 2


def test_corrupted_log_is_kept_before_being_overwritten(storage):
    write_raw(VISITS_KEY, '{not json')

    storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM)

    assert read_raw(CORRUPTED_VISITS_KEY) == '{not json'
    storage.clear_all_data()
    assert read_raw(CORRUPTED_VISITS_KEY) is None


def test_concurrent_check_ins_get_distinct_numbers(tmp_path, clock):
    database.configure_database(f"sqlite:///{tmp_path / 'kiosk.db'}")
    database.init_db()
    storage = StorageService(tz=KL, clock=clock)

    def check_in_five_times():
        return [storage.save_visit(VisitorCategory.STUDENT, LocationType.MUSEUM).daily_number
                for _ in range(5)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(check_in_five_times) for _ in range(8)]
        numbers = [n for future in futures for n in future.result()]

    assert sorted(numbers) == list(range(1, 41))
    assert len(storage.get_visits()) == 40
    assert storage.get_reset_state().current_daily_count == 40
