import pytest

from domain.enums import Platform, Region
from domain.errors import StoreError
from tests.conftest import DAY_MS, make_match, make_timeline, now_ms


def test_store_match_is_idempotent(store):
    payload = make_match("EUW1_1")
    assert store.store_match(payload, Region.EUROPE) is True
    assert store.store_match(payload, Region.EUROPE) is False
    match = store.get_match("EUW1_1")
    assert len(match.participants) == 10
    assert match.patch == "14.23"
    assert match.timeline is None


def test_match_exists_returns_stored_subset(store):
    store.store_match(make_match("EUW1_1"), Region.EUROPE)
    store.store_match(make_match("EUW1_2"), Region.EUROPE)
    assert store.match_exists(["EUW1_1", "EUW1_3", "EUW1_2", ""]) == {"EUW1_1", "EUW1_2"}
    assert store.match_exists([]) == set()


def test_store_and_backfill_timeline(store):
    store.store_match(make_match("EUW1_1"), Region.EUROPE)
    assert store.store_timeline("EUW1_1", make_timeline())
    assert store.get_match("EUW1_1").has_timeline
    assert not store.store_timeline("EUW1_404", make_timeline())


def test_remake_flag_is_stored(store):
    store.store_match(make_match("EUW1_9", remake=True), Region.EUROPE)
    assert all(p.is_remake for p in store.get_match("EUW1_9").participants)


def test_derived_fields_merge_partially(store):
    payload = make_match("EUW1_1")
    store.store_match(payload, Region.EUROPE)
    puuid = payload["info"]["participants"][0]["puuid"]

    assert store.update_participant_derived_fields("EUW1_1", puuid, {"build_order": "3020", "score": 61})
    assert store.update_participant_derived_fields("EUW1_1", puuid, {"first_buy": "1055"})
    derived = store.get_match("EUW1_1").participant(puuid).derived
    assert derived == {"build_order": "3020", "score": 61, "first_buy": "1055"}
    assert not store.update_participant_derived_fields("EUW1_1", "nobody", {"x": 1})


def test_candidate_sources(store):
    store.store_match(make_match("EUW1_1", game_creation=now_ms() - 2 * DAY_MS), Region.EUROPE)
    store.store_match(make_match("EUW1_2", game_creation=now_ms() - DAY_MS), Region.EUROPE)
    puuids = store.recent_participant_puuids(Region.EUROPE, 500)
    assert len(puuids) == 20
    assert puuids[0].startswith("EUW1_2")
    assert store.recent_participant_puuids(Region.ASIA, 500) == []

    assert store.recent_players(Region.EUROPE, 10) == []
    store.upsert_player("alpha", Platform.EUW1)
    store.upsert_player("beta", Platform.KR)
    assert store.recent_players(Region.EUROPE, 10) == ["alpha"]
    assert store.recent_players(Region.ASIA, 10) == ["beta"]


def test_patches(store):
    assert store.current_patch() is None
    store.store_match(make_match("EUW1_1", version="14.9.1", game_creation=now_ms() - 3 * DAY_MS), Region.EUROPE)
    store.store_match(make_match("EUW1_2", version="14.10.1", game_creation=now_ms() - 2 * DAY_MS), Region.EUROPE)
    store.store_match(make_match("EUW1_3", version="14.8.1", game_creation=now_ms() - 4 * DAY_MS), Region.EUROPE)
    store.store_match(make_match("EUW1_4", version="14.7.1", game_creation=now_ms() - 5 * DAY_MS), Region.EUROPE)
    assert store.current_patch() == "14.10"
    assert store.accepted_patches(3) == ["14.10", "14.9", "14.8"]


def test_recent_matches_without_timeline(store):
    store.store_match(make_match("EUW1_1"), Region.EUROPE)
    store.store_match(make_match("EUW1_2"), Region.EUROPE, timeline=make_timeline())
    store.store_match(make_match("EUW1_3", game_creation=now_ms() - 40 * DAY_MS), Region.EUROPE)
    picked = store.recent_matches_without_timeline(["EUW1_1", "EUW1_2", "EUW1_3", "EUW1_4"], 30 * DAY_MS, 3)
    assert picked == ["EUW1_1"]


def test_scrape_state_roundtrip(state_repo):
    state = state_repo.load(Region.SEA)
    assert state.current_puuid_index == 0 and state.matches_scraped == 0
    state_repo.save(Region.SEA, 7, 3, last_run=123)
    state_repo.save(Region.SEA, 2, 4, last_run=456)
    state = state_repo.load(Region.SEA)
    assert (state.current_puuid_index, state.matches_scraped, state.last_run) == (2, 7, 456)


def test_directory_order_is_stable_across_upserts(store):
    for puuid in ("a", "b", "c"):
        store.upsert_player(puuid, Platform.EUW1)
    store.upsert_player("a", Platform.EUW1)
    store.upsert_player("d", Platform.EUN1)
    assert store.recent_players(Region.EUROPE, 10) == ["a", "b", "c", "d"]
    assert store.recent_players(Region.EUROPE, 2) == ["c", "d"]


def test_query_errors_surface_as_store_errors(db):
    with pytest.raises(StoreError):
        with db.connect() as conn:
            conn.execute("SELECT * FROM no_such_table")
