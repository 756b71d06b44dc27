"""Lobby lifecycle: create, join/leave, votes, start time, cancel."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from conftest import MAPS, OWNER
from cogs.game_night import (
    AlreadyMember,
    GameType,
    InvalidMapIndex,
    LobbyEngine,
    LobbyExists,
    LobbyNotFound,
    LobbyStore,
    NotMember,
    Unauthorized,
    Unparseable,
    leaderboard_index,
)
from utils.settings import BUILTIN_DEFAULT_MAPS

run = asyncio.run


def _tally_ok(lobby) -> bool:
    return (
        sum(lobby.vote_counts.values()) == len(lobby.voter_choice)
        and all(v >= 0 for v in lobby.vote_counts.values())
        and set(lobby.voter_choice) <= lobby.members
    )


# ---------------- create ----------------

def test_create_truncates_to_25_in_order(engine):
    maps = [f"Map {i}" for i in range(30)]
    _, lobby = engine.create_lobby(OWNER, GameType.PVP, maps)
    assert list(lobby.maps) == maps[:25]


def test_create_uses_defaults_when_empty(engine):
    _, lobby = engine.create_lobby(OWNER, GameType.COOP_CAMPAIGN, [])
    assert lobby.maps == BUILTIN_DEFAULT_MAPS

    _, lobby = engine.create_lobby(OWNER, GameType.COOP_CAMPAIGN, ["  ", ""])
    assert lobby.maps == BUILTIN_DEFAULT_MAPS


def test_create_uses_configured_defaults():
    eng = LobbyEngine(LobbyStore(), default_maps=("Tundra", "Nomad"))
    _, lobby = eng.create_lobby(OWNER, GameType.SKIRMISH_VS_BOTS)
    assert lobby.maps == ("Tundra", "Nomad")


def test_create_owner_is_member_with_no_votes(engine):
    _, lobby = engine.create_lobby(OWNER, GameType.PVP, MAPS)
    assert lobby.members == {OWNER}
    assert lobby.vote_counts == {}
    assert lobby.voter_choice == {}
    assert leaderboard_index(lobby) is None


def test_create_with_parsed_time(engine, morning):
    _, lobby = engine.create_lobby(OWNER, GameType.PVP, MAPS, "in 45m", now=morning)
    assert lobby.start_at == morning + timedelta(minutes=45)
    assert lobby.show_time_poll() is False


def test_create_with_unreadable_time_leaves_it_unset(engine, morning):
    _, lobby = engine.create_lobby(OWNER, GameType.PVP, MAPS, "whenever", now=morning)
    assert lobby.start_at is None
    assert lobby.show_time_poll() is True


def test_create_with_out_of_range_time_falls_back_to_poll(engine, morning):
    _, lobby = engine.create_lobby(OWNER, GameType.PVP, MAPS, "in 99999999h", now=morning)
    assert lobby.start_at is None
    assert lobby.show_time_poll() is True


def test_build_without_now_reads_host_local_time(engine):
    lobby = engine.build_lobby(OWNER, GameType.PVP, MAPS, "today 7pm")
    local = datetime.now().astimezone()
    assert (lobby.start_at.hour, lobby.start_at.minute) == (19, 0)
    assert lobby.start_at.utcoffset() == local.utcoffset()


def test_create_with_external_id_and_duplicate(engine):
    lid, _ = engine.create_lobby(OWNER, GameType.PVP, MAPS, lobby_id=1234567890123456789)
    assert lid == 1234567890123456789
    with pytest.raises(LobbyExists):
        engine.create_lobby(OWNER, GameType.PVP, MAPS, lobby_id=lid)


def test_build_then_register(engine, morning):
    draft = engine.build_lobby(OWNER, GameType.PVP, MAPS, "today 7pm", now=morning, channel_id=55)
    assert engine.list_lobbies() == []

    lid, lobby = engine.create_lobby(OWNER, GameType.PVP, lobby=draft, lobby_id=777)
    assert lid == 777
    assert lobby.channel_id == 55
    assert lobby.start_at == datetime(2025, 9, 18, 19, 0, tzinfo=timezone.utc)


def test_allocated_ids_are_unique(engine):
    ids = {engine.create_lobby(OWNER, GameType.PVP, MAPS)[0] for _ in range(5)}
    assert len(ids) == 5


# ---------------- join / leave ----------------

def test_join_twice_is_refused(engine, lobby_id):
    lobby = run(engine.join(1, lobby_id))
    assert lobby.members == {OWNER, 1}

    with pytest.raises(AlreadyMember):
        run(engine.join(1, lobby_id))
    assert len(engine.get_lobby(lobby_id).members) == 2


def test_owner_cannot_join_again(engine, lobby_id):
    with pytest.raises(AlreadyMember):
        run(engine.join(OWNER, lobby_id))


def test_actions_on_missing_lobby(engine):
    with pytest.raises(LobbyNotFound):
        run(engine.join(1, 999))
    with pytest.raises(LobbyNotFound):
        run(engine.leave(1, 999))
    with pytest.raises(LobbyNotFound):
        run(engine.vote(1, 999, 0))
    with pytest.raises(LobbyNotFound):
        run(engine.cancel(OWNER, 999))
    with pytest.raises(LobbyNotFound):
        engine.get_lobby(999)


def test_leave_requires_membership(engine, lobby_id):
    with pytest.raises(NotMember):
        run(engine.leave(1, lobby_id))


def test_leave_after_vote_removes_tally_once(engine, lobby_id):
    run(engine.join(1, lobby_id))
    run(engine.vote(1, lobby_id, 2))
    run(engine.vote(OWNER, lobby_id, 2))

    lobby = run(engine.leave(1, lobby_id))
    assert lobby.members == {OWNER}
    assert lobby.votes_for(2) == 1
    assert 1 not in lobby.voter_choice
    assert _tally_ok(lobby)


def test_leave_without_vote_keeps_tallies(engine, lobby_id):
    run(engine.join(1, lobby_id))
    run(engine.vote(OWNER, lobby_id, 0))
    before = dict(engine.get_lobby(lobby_id).vote_counts)

    lobby = run(engine.leave(1, lobby_id))
    assert lobby.vote_counts == before


def test_owner_can_leave(engine, lobby_id):
    lobby = run(engine.leave(OWNER, lobby_id))
    assert lobby.members == set()
    assert lobby.owner_id == OWNER


# ---------------- votes ----------------

def test_vote_swap_moves_single_vote(engine, lobby_id):
    lobby = run(engine.vote(OWNER, lobby_id, 0))
    assert lobby.votes_for(0) == 1

    lobby = run(engine.vote(OWNER, lobby_id, 3))
    assert lobby.votes_for(0) == 0
    assert lobby.votes_for(3) == 1
    assert lobby.voter_choice == {OWNER: 3}
    assert _tally_ok(lobby)


def test_same_vote_twice_counts_once(engine, lobby_id):
    run(engine.vote(OWNER, lobby_id, 1))
    lobby = run(engine.vote(OWNER, lobby_id, 1))
    assert lobby.votes_for(1) == 1
    assert _tally_ok(lobby)


@pytest.mark.parametrize("index", [-1, len(MAPS), 99, "x", None])
def test_invalid_map_index(engine, lobby_id, index):
    with pytest.raises(InvalidMapIndex):
        run(engine.vote(OWNER, lobby_id, index))
    lobby = engine.get_lobby(lobby_id)
    assert lobby.vote_counts == {}
    assert lobby.voter_choice == {}


def test_vote_from_non_member_joins_them(engine, lobby_id):
    lobby = run(engine.vote(7, lobby_id, 1))
    assert 7 in lobby.members
    assert lobby.voter_choice[7] == 1


def test_vote_can_require_join():
    eng = LobbyEngine(LobbyStore(), vote_requires_join=True)
    lid, _ = eng.create_lobby(OWNER, GameType.PVP, MAPS)

    with pytest.raises(NotMember):
        run(eng.vote(7, lid, 1))
    assert eng.get_lobby(lid).vote_counts == {}

    run(eng.join(7, lid))
    assert run(eng.vote(7, lid, 1)).votes_for(1) == 1


def test_tally_invariant_over_random_actions(engine, lobby_id):
    rng = random.Random(1234)
    actors = list(range(1, 9))

    async def scenario():
        for _ in range(300):
            actor = rng.choice(actors)
            action = rng.random()
            try:
                if action < 0.6:
                    lobby = await engine.vote(actor, lobby_id, rng.randrange(len(MAPS)))
                elif action < 0.8:
                    lobby = await engine.join(actor, lobby_id)
                else:
                    lobby = await engine.leave(actor, lobby_id)
            except (AlreadyMember, NotMember):
                lobby = engine.get_lobby(lobby_id)
            assert _tally_ok(lobby)

    run(scenario())


def test_concurrent_votes_keep_tally(engine, lobby_id):
    async def scenario():
        voters = range(1, 41)
        await asyncio.gather(*(engine.join(v, lobby_id) for v in voters))
        await asyncio.gather(*(engine.vote(v, lobby_id, v % len(MAPS)) for v in voters))
        await asyncio.gather(*(engine.vote(v, lobby_id, (v + 1) % len(MAPS)) for v in voters))
        return engine.get_lobby(lobby_id)

    lobby = run(scenario())
    assert len(lobby.members) == 41
    assert sum(lobby.vote_counts.values()) == 40
    assert all(lobby.votes_for(i) == 10 for i in range(len(MAPS)))
    assert _tally_ok(lobby)


def test_snapshot_is_detached(engine, lobby_id):
    lobby = run(engine.vote(OWNER, lobby_id, 0))
    lobby.members.add(555)
    lobby.vote_counts[0] = 42

    stored = engine.get_lobby(lobby_id)
    assert 555 not in stored.members
    assert stored.votes_for(0) == 1


# ---------------- leaderboard ----------------

def test_leaderboard_first_max_wins(engine):
    _, draft = engine.create_lobby(OWNER, GameType.PVP, MAPS)
    picks = [0, 0, 1, 1, 1, 2, 2, 2, 3]  # tallies [2, 3, 3, 1]
    for voter, idx in enumerate(picks, start=1):
        draft.members.add(voter)
        draft.change_vote(voter, idx)

    assert [draft.votes_for(i) for i in range(4)] == [2, 3, 3, 1]
    assert leaderboard_index(draft) == 1


def test_leaderboard_none_after_votes_withdrawn(engine, lobby_id):
    run(engine.join(1, lobby_id))
    run(engine.vote(1, lobby_id, 2))
    lobby = run(engine.leave(1, lobby_id))
    assert leaderboard_index(lobby) is None


# ---------------- start time ----------------

def test_set_start_time_owner_only_by_default(engine, lobby_id, morning):
    when = morning + timedelta(hours=3)
    with pytest.raises(Unauthorized):
        run(engine.set_start_time(1, lobby_id, when))
    assert engine.get_lobby(lobby_id).start_at is None

    lobby = run(engine.set_start_time(OWNER, lobby_id, when))
    assert lobby.start_at == when


def test_set_start_time_by_admin_overwrites(engine, lobby_id, morning):
    run(engine.set_start_time(OWNER, lobby_id, morning))
    later = morning + timedelta(days=1)

    lobby = run(engine.set_start_time(1, lobby_id, later, authorize=lambda actor, lob: True))
    assert lobby.start_at == later
    assert lobby.show_time_poll() is False


def test_set_start_time_text(engine, lobby_id, morning):
    lobby = run(engine.set_start_time_text(OWNER, lobby_id, "tomorrow 8:30pm", now=morning))
    assert lobby.start_at == datetime(2025, 9, 19, 20, 30, tzinfo=timezone.utc)

    with pytest.raises(Unparseable):
        run(engine.set_start_time_text(OWNER, lobby_id, "later maybe", now=morning))
    assert engine.get_lobby(lobby_id).start_at == datetime(2025, 9, 19, 20, 30, tzinfo=timezone.utc)


# ---------------- cancel / list ----------------

def test_cancel_by_stranger_is_refused(engine, lobby_id):
    with pytest.raises(Unauthorized):
        run(engine.cancel(1, lobby_id))
    assert engine.get_lobby(lobby_id).owner_id == OWNER


def test_cancel_by_owner_removes_lobby(engine, lobby_id):
    lobby = run(engine.cancel(OWNER, lobby_id))
    assert lobby.owner_id == OWNER
    assert engine.list_lobbies() == []

    with pytest.raises(LobbyNotFound):
        run(engine.cancel(OWNER, lobby_id))


def test_cancel_by_admin(engine, lobby_id):
    run(engine.cancel(1, lobby_id, authorize=lambda actor, lob: actor == 1))
    with pytest.raises(LobbyNotFound):
        engine.get_lobby(lobby_id)


def test_list_in_creation_order(engine):
    ids = [engine.create_lobby(OWNER, t, MAPS)[0] for t in GameType]
    listed = engine.list_lobbies()
    assert [lid for lid, _ in listed] == ids
    assert [lob.game_type for _, lob in listed] == list(GameType)
