from letterdash.logic.enums import Language
from letterdash.logic.settings import GameSettings
from letterdash.session.manager import SessionManager
from letterdash.tests.conftest import TEST_CATEGORIES, sequential_codes
from letterdash.tests.helpers.session import create_room_with_players, start_round
from letterdash.tests.mocks.connection import MockConnection


class TestCreateRoom:
    async def test_creator_gets_code_and_state(self, session_manager):
        host = MockConnection("conn-host")

        await session_manager.create_room(host, "Alice")

        created, state = host.sent_messages
        assert created == {"type": "room_created", "room_code": "ROOM2", "player_id": "conn-host"}
        assert state["type"] == "room_state"
        assert state["host_id"] == "conn-host"
        assert state["status"] == "lobby"
        assert state["round"] == 0
        assert state["categories"] == list(TEST_CATEGORIES)
        assert state["players"] == [{"id": "conn-host", "name": "Alice", "is_host": True, "submitted": False}]
        assert state["totals"] == [{"id": "conn-host", "name": "Alice", "score": 0, "present": True}]

    async def test_create_twice_rejected(self, session_manager):
        host = MockConnection()
        await session_manager.create_room(host, "Alice")
        host.clear()

        await session_manager.create_room(host, "Alice")

        assert host.sent_messages == [
            {"type": "error", "code": "already_in_room", "message": "Leave your current room first"},
        ]
        assert session_manager.room_count == 1

    async def test_server_full(self, game_settings):
        manager = SessionManager(game_settings, code_generator=sequential_codes(), max_rooms=1)
        await manager.create_room(MockConnection(), "A")
        second = MockConnection()

        await manager.create_room(second, "B")

        assert second.last_of_type("error")["code"] == "server_full"
        assert manager.room_count == 1


class TestJoinRoom:
    async def test_joiner_gets_ack_snapshot_and_state(self, session_manager):
        code, (host,) = await create_room_with_players(session_manager, ["Alice"])
        guest = MockConnection("conn-bob")

        await session_manager.join_room(guest, code.lower(), "Bob")

        joined, snapshot, state = guest.sent_messages
        assert joined == {"type": "room_joined", "room_code": code, "player_id": "conn-bob"}
        assert snapshot == {"type": "submissions_snapshot", "room_code": code, "round": 0, "submissions": []}
        assert [p["id"] for p in state["players"]] == ["conn-alice", "conn-bob"]
        assert host.sent_messages == [state]

    async def test_unknown_room(self, session_manager):
        guest = MockConnection()

        await session_manager.join_room(guest, "NOPE", "Bob")

        assert guest.sent_messages == [{"type": "error", "code": "room_not_found", "message": "Room does not exist"}]
        assert not session_manager.is_in_room(guest.connection_id)

    async def test_join_while_in_another_room(self, session_manager):
        code, _ = await create_room_with_players(session_manager, ["Alice"])
        other = MockConnection()
        await session_manager.create_room(other, "Zed")
        other.clear()

        await session_manager.join_room(other, code, "Zed")

        assert other.last_of_type("error")["code"] == "already_in_room"
        assert len(session_manager.get_room(code).players) == 1

    async def test_blank_name_gets_default(self, session_manager):
        code, _ = await create_room_with_players(session_manager, ["Alice"])
        guest = MockConnection()

        await session_manager.join_room(guest, code, "   ")

        assert session_manager.get_room(code).players[guest.connection_id].name == "Player"

    async def test_late_joiner_sees_who_submitted_but_not_answers(self, session_manager):
        code, (host, bob) = await create_room_with_players(session_manager, ["Alice", "Bob"])
        await start_round(session_manager, code, host)
        await session_manager.submit_answers(bob, code, {"name": "Bea"})
        late = MockConnection("conn-late")

        await session_manager.join_room(late, code, "Late")

        snapshot = late.last_of_type("submissions_snapshot")
        assert snapshot["round"] == 1
        assert snapshot["submissions"] == [
            {"player_id": "conn-bob", "name": "Bob", "answers": None, "round_points": None, "breakdown": None},
        ]
        state = late.last_of_type("room_state")
        assert state["status"] == "playing"
        assert state["submitted"] == ["conn-bob"]
        assert state["submissions"] is None

    async def test_late_joiner_during_review_sees_results(self, session_manager):
        code, (host, bob) = await create_room_with_players(session_manager, ["Alice", "Bob"])
        await start_round(session_manager, code, host)
        await session_manager.submit_answers(host, code, {"name": "Ann"})
        await session_manager.submit_answers(bob, code, {"name": "Bea"})
        late = MockConnection("conn-late")

        await session_manager.join_room(late, code, "Late")

        snapshot = late.last_of_type("submissions_snapshot")
        by_player = {entry["player_id"]: entry for entry in snapshot["submissions"]}
        assert by_player["conn-bob"]["answers"] == {"name": "Bea", "city": "", "animal": ""}
        assert by_player["conn-bob"]["round_points"] == 20
        assert by_player["conn-bob"]["breakdown"] == {"name": 20, "city": 0, "animal": 0}
        # the late joiner is not part of the reviewed round
        assert "conn-late" not in by_player

    async def test_late_joiner_can_submit(self, session_manager):
        code, (host,) = await create_room_with_players(session_manager, ["Alice"])
        await start_round(session_manager, code, host)
        late = MockConnection("conn-late")
        await session_manager.join_room(late, code, "Late")

        await session_manager.submit_answers(late, code, {"name": "Lou"})

        assert late.last_of_type("answers_accepted") == {"type": "answers_accepted", "room_code": code, "round": 1}


class TestLeaveRoom:
    async def test_leaver_notified_and_others_get_state(self, session_manager):
        code, (alice, bob) = await create_room_with_players(session_manager, ["Alice", "Bob"])

        await session_manager.leave_room(bob)

        assert bob.sent_messages == [{"type": "room_left"}]
        state = alice.last_of_type("room_state")
        assert [p["id"] for p in state["players"]] == ["conn-alice"]
        assert not session_manager.is_in_room("conn-bob")

    async def test_leave_without_room_is_ignored(self, session_manager):
        connection = MockConnection()

        await session_manager.leave_room(connection)

        assert connection.sent_messages == []

    async def test_host_leave_promotes_earliest_joined(self, session_manager):
        code, (alice, bob, cara) = await create_room_with_players(session_manager, ["Alice", "Bob", "Cara"])

        await session_manager.leave_room(alice)

        state = cara.last_of_type("room_state")
        assert state["host_id"] == "conn-bob"
        assert state["players"][0] == {"id": "conn-bob", "name": "Bob", "is_host": True, "submitted": False}
        assert bob.last_of_type("room_state") == state

    async def test_new_host_can_start_round(self, session_manager):
        code, (alice, bob) = await create_room_with_players(session_manager, ["Alice", "Bob"])
        await session_manager.leave_room(alice)

        await session_manager.start_round(bob, code)

        assert session_manager.get_room(code).round == 1

    async def test_last_leave_destroys_room(self, session_manager):
        code, (alice,) = await create_room_with_players(session_manager, ["Alice"])

        await session_manager.leave_room(alice)

        assert session_manager.get_room(code) is None
        assert session_manager.room_count == 0

        guest = MockConnection()
        await session_manager.join_room(guest, code, "Bob")
        assert guest.last_of_type("error")["code"] == "room_not_found"

    async def test_last_leave_mid_round_cancels_timer(self, session_manager):
        code, (alice,) = await create_room_with_players(session_manager, ["Alice"])
        await start_round(session_manager, code, alice)
        assert session_manager.is_timer_armed(code)

        await session_manager.leave_room(alice, notify_player=False)

        assert not session_manager.is_timer_armed(code)
        assert alice.sent_messages == []

    async def test_host_disconnect_mid_round_keeps_round_running(self, session_manager):
        code, (alice, bob, cara) = await create_room_with_players(session_manager, ["Alice", "Bob", "Cara"])
        await start_round(session_manager, code, alice)

        await session_manager.leave_room(alice, notify_player=False)

        room = session_manager.get_room(code)
        assert room.status == "playing"
        assert room.host_connection_id == "conn-bob"
        assert session_manager.is_timer_armed(code)

    async def test_departure_completing_submissions_closes_round(self, session_manager):
        code, (alice, bob, cara) = await create_room_with_players(session_manager, ["Alice", "Bob", "Cara"])
        await start_round(session_manager, code, alice)
        await session_manager.submit_answers(alice, code, {"name": "Ann"})
        await session_manager.submit_answers(bob, code, {"name": "Bea"})

        await session_manager.leave_room(cara)

        scores = alice.last_of_type("scores_update")
        assert scores["round_points"] == {"conn-alice": 20, "conn-bob": 20}
        assert session_manager.get_room(code).status == "review"
        assert not session_manager.is_timer_armed(code)

    async def test_departed_player_total_frozen(self, session_manager):
        code, (alice, bob) = await create_room_with_players(session_manager, ["Alice", "Bob"])
        await start_round(session_manager, code, alice)
        await session_manager.submit_answers(alice, code, {"name": "Ann"})
        await session_manager.submit_answers(bob, code, {"name": "Bea", "city": "Bonn"})

        await session_manager.leave_room(bob)

        totals = {entry["id"]: entry for entry in alice.last_of_type("room_state")["totals"]}
        assert totals["conn-bob"] == {"id": "conn-bob", "name": "Bob", "score": 40, "present": False}
        assert totals["conn-alice"]["present"] is True

    async def test_departed_player_total_dropped_when_configured(self):
        settings = GameSettings(
            categories=TEST_CATEGORIES,
            default_language=Language.ENGLISH,
            retain_scores_on_leave=False,
        )
        manager = SessionManager(settings, code_generator=sequential_codes())
        code, (alice, bob) = await create_room_with_players(manager, ["Alice", "Bob"])

        await manager.leave_room(bob)

        assert [entry["id"] for entry in alice.last_of_type("room_state")["totals"]] == ["conn-alice"]
