"""Unit tests for ContactRepository. No Redis; in-memory store only."""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from rolodex.application import NEXT_ID_KEY, ContactRepository, CorruptContactRecord
from rolodex.domain import Contact, ContactPatch
from rolodex.infrastructure import InMemoryKeyValueStore

ANAKIN = ContactPatch(
    first_name="Anakin",
    last_name="Skywalker",
    job="Jedi Knight",
    description="The Chosen one",
)
BOBA = ContactPatch(
    first_name="Boba",
    last_name="Fett",
    job="Bounty Hunter",
    description="Son of Jango Fett",
)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repo(store) -> ContactRepository:
    return ContactRepository(store)


def _snapshot(store: InMemoryKeyValueStore) -> dict[str, str | None]:
    return {key: store.get(key) for key in store.keys()}


def test_create_assigns_first_id_and_stores_fields(repo) -> None:
    contact = repo.create(ANAKIN)
    assert contact == Contact(
        id=1,
        first_name="Anakin",
        last_name="Skywalker",
        job="Jedi Knight",
        description="The Chosen one",
    )


def test_create_then_get_returns_equal_record(repo) -> None:
    created = repo.create(ANAKIN)
    assert repo.get(created.id) == created


def test_create_stores_record_under_stringified_id(repo, store) -> None:
    repo.create(ANAKIN)
    stored = json.loads(store.get("1"))
    assert stored["id"] == 1
    assert stored["first_name"] == "Anakin"


def test_create_without_fields_stores_them_as_absent(repo) -> None:
    contact = repo.create()
    assert contact.id == 1
    assert contact.first_name is None
    assert contact.last_name is None
    assert contact.job is None
    assert contact.description is None
    assert repo.get(1) == contact


def test_create_partial_fields(repo) -> None:
    contact = repo.create(ContactPatch(first_name="Yoda"))
    assert contact.first_name == "Yoda"
    assert contact.last_name is None


def test_second_create_gets_next_id_and_listing_is_ordered(repo) -> None:
    repo.create(ANAKIN)
    second = repo.create(BOBA)
    assert second.id == 2
    assert [c.id for c in repo.list_all()] == [1, 2]


def test_list_all_orders_numerically_not_lexically(repo) -> None:
    for _ in range(11):
        repo.create(ANAKIN)
    assert [c.id for c in repo.list_all()] == list(range(1, 12))


def test_list_all_matches_list_ids_then_get(repo) -> None:
    for fields in (ANAKIN, BOBA, ANAKIN):
        repo.create(fields)
    repo.delete(2)
    expected = [repo.get(i) for i in sorted(repo.list_ids())]
    assert repo.list_all() == expected


def test_list_ids_ignores_counter_and_foreign_keys(repo, store) -> None:
    repo.create(ANAKIN)
    repo.create(BOBA)
    store.set("0", "{}")
    store.set("12abc", "x")
    store.set("session:1", "x")
    assert repo.list_ids() == {1, 2}
    assert NEXT_ID_KEY in store.keys()


def test_list_on_empty_store(repo) -> None:
    assert repo.list_ids() == set()
    assert repo.list_all() == []


def test_update_overwrites_given_fields_and_keeps_others(repo) -> None:
    repo.create(ANAKIN)
    updated = repo.update(1, ContactPatch(first_name="Darth"))
    assert updated == Contact(
        id=1,
        first_name="Darth",
        last_name="Skywalker",
        job="Jedi Knight",
        description="The Chosen one",
    )
    assert repo.get(1) == updated


def test_update_with_empty_patch_is_noop(repo, store) -> None:
    created = repo.create(ANAKIN)
    before = _snapshot(store)
    assert repo.update(1, ContactPatch()) == created
    assert _snapshot(store) == before


def test_update_with_none_clears_field(repo) -> None:
    repo.create(ANAKIN)
    updated = repo.update(1, ContactPatch(job=None))
    assert updated.job is None
    assert updated.first_name == "Anakin"


def test_update_ignores_id_in_patch_mapping(repo) -> None:
    repo.create(ANAKIN)
    repo.create(BOBA)
    patch = ContactPatch.from_mapping({"id": 2, "job": "Sith Lord"})
    updated = repo.update(1, patch)
    assert updated.id == 1
    assert updated.job == "Sith Lord"
    assert repo.get(2).first_name == "Boba"


def test_delete_returns_record_and_get_is_not_found(repo) -> None:
    repo.create(ANAKIN)
    boba = repo.create(BOBA)
    deleted = repo.delete(2)
    assert deleted == boba
    assert repo.get(2) is None
    assert [c.id for c in repo.list_all()] == [1]


def test_deleted_ids_are_not_reused(repo) -> None:
    repo.create(ANAKIN)
    repo.create(BOBA)
    repo.delete(2)
    assert repo.create(BOBA).id == 3


def test_delete_twice_returns_not_found_the_second_time(repo) -> None:
    repo.create(ANAKIN)
    assert repo.delete(1) is not None
    assert repo.delete(1) is None


@pytest.mark.parametrize("contact_id", [999, 1, 0, -1])
def test_operations_on_unknown_id_are_not_found_without_mutation(
    repo, store, contact_id
) -> None:
    before = _snapshot(store)
    assert repo.get(contact_id) is None
    assert repo.update(contact_id, ContactPatch(first_name="Darth")) is None
    assert repo.delete(contact_id) is None
    assert _snapshot(store) == before


def test_allocate_id_is_monotonic_and_persisted_in_store(repo, store) -> None:
    assert repo.allocate_id() == 1
    assert repo.allocate_id() == 2
    assert store.get(NEXT_ID_KEY) == "2"
    # A fresh repository over the same store continues the sequence.
    assert ContactRepository(store).allocate_id() == 3


def test_concurrent_allocations_are_distinct(repo) -> None:
    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = list(pool.map(lambda _: repo.allocate_id(), range(500)))
    assert len(set(ids)) == 500
    assert set(ids) == set(range(1, 501))


def test_concurrent_creates_get_distinct_retrievable_ids(repo) -> None:
    with ThreadPoolExecutor(max_workers=2) as pool:
        created = list(pool.map(repo.create, [ANAKIN, BOBA]))
    assert {c.id for c in created} == {1, 2}
    for contact in created:
        assert repo.get(contact.id) == contact


def test_update_does_not_resurrect_concurrently_deleted_contact() -> None:
    class DeleteBeforeWrite(InMemoryKeyValueStore):
        """Simulates a delete landing between update's read and write."""

        def set(self, key, value, *, only_if_exists=False):
            if only_if_exists:
                self.delete(key)
            return super().set(key, value, only_if_exists=only_if_exists)

    racing_store = DeleteBeforeWrite()
    repo = ContactRepository(racing_store)
    repo.create(ANAKIN)
    assert repo.update(1, ContactPatch(first_name="Darth")) is None
    assert repo.get(1) is None


def test_concurrent_deletes_return_record_once(repo) -> None:
    repo.create(ANAKIN)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(repo.delete, [1] * 8))
    assert sum(r is not None for r in results) == 1


@pytest.mark.parametrize(
    "raw",
    ["", "not json", "[1, 2]", '{"first_name": "Anakin"}', '{"id": 2}', '{"id": "1"}'],
)
def test_present_but_unreadable_record_is_corrupt_not_missing(repo, store, raw) -> None:
    store.set("1", raw)
    with pytest.raises(CorruptContactRecord) as exc_info:
        repo.get(1)
    assert exc_info.value.key == "1"


def test_list_all_skips_contact_deleted_after_listing() -> None:
    class VanishingStore(InMemoryKeyValueStore):
        def get(self, key):
            if key == "1":
                return None
            return super().get(key)

    repo = ContactRepository(VanishingStore())
    repo.create(ANAKIN)
    repo.create(BOBA)
    assert [c.id for c in repo.list_all()] == [2]


def test_delete_of_corrupt_record_raises_and_keeps_it(repo, store) -> None:
    store.set("1", '{"first_name": "Anakin"}')
    with pytest.raises(CorruptContactRecord):
        repo.delete(1)
    assert store.get("1") == '{"first_name": "Anakin"}'


def test_non_text_field_in_stored_record_is_corrupt(repo, store) -> None:
    store.set("1", json.dumps({"id": 1, "first_name": {"x": [1]}}))
    with pytest.raises(CorruptContactRecord):
        repo.get(1)


def test_list_ids_skips_zero_padded_keys(repo, store) -> None:
    repo.create(ANAKIN)
    store.set("02", json.dumps({"id": 2}))
    assert repo.list_ids() == {1}
