"""
Tests for rooms (seats, turns, outcomes).

Tests:
- Seat and mark assignment
- Start preconditions
- Move validation order
- Win / draw handling
- Reset
- Vacate and destruction
- Threaded callers
"""

from concurrent.futures import ThreadPoolExecutor
import random
import threading

import pytest

from ..engine_core.board import Mark, evaluate_winner
from ..engine_core.result import Rejection
from ..session.events import GameReset, GameStarted, MoveMade, PlayerJoined, PlayerLeft
from ..session.room import RoomPhase, Session
from .conftest import GUEST, HOST, play


class TestSeating:
    """Tests for seat()."""

    def test_first_seat_is_host_with_x(self, room):
        result = room.seat(HOST)

        assert result.success
        assert result.mark == Mark.X
        assert result.is_host
        assert result.seat_index == 0

    def test_second_seat_is_guest_with_o(self, room):
        room.seat(HOST)
        result = room.seat(GUEST)

        assert result.success
        assert result.mark == Mark.O
        assert not result.is_host
        assert result.seat_index == 1

    def test_seat_emits_player_joined(self, room):
        room.seat(HOST)
        result = room.seat(GUEST)

        assert result.events == [
            PlayerJoined(player_id=GUEST, symbol=Mark.O, player_count=2, is_host=False)
        ]

    def test_third_seat_rejected_without_mutation(self, full_room):
        """A full room refuses and changes nothing."""
        before = list(full_room.seats)
        result = full_room.seat("player_third")

        assert not result.success
        assert result.rejection == Rejection.ROOM_FULL
        assert result.events == []
        assert full_room.seats == before

    def test_seat_count_never_exceeds_two(self, room):
        for i in range(10):
            room.seat(f"player_{i}")
            assert room.player_count <= 2
        assert room.seats[0].mark == Mark.X and room.seats[0].is_host
        assert room.seats[1].mark == Mark.O and not room.seats[1].is_host

    def test_same_connection_cannot_take_two_seats(self, room):
        room.seat(HOST)
        result = room.seat(HOST)

        assert result.rejection == Rejection.ALREADY_SEATED
        assert room.player_count == 1

    def test_phases(self, room):
        assert room.phase == RoomPhase.EMPTY
        room.seat(HOST)
        assert room.phase == RoomPhase.SEATING
        room.seat(GUEST)
        assert room.phase == RoomPhase.READY
        room.start(HOST)
        assert room.phase == RoomPhase.PLAYING


class TestStart:
    """Tests for start()."""

    def test_host_starts_full_room(self, full_room):
        result = full_room.start(HOST)

        assert result.success
        assert full_room.started
        assert result.events == [GameStarted(squares=[None] * 9, current_player=Mark.X)]

    def test_guest_cannot_start(self, full_room):
        result = full_room.start(GUEST)

        assert result.rejection == Rejection.NOT_HOST
        assert not full_room.started

    def test_host_alone_cannot_start(self, room):
        room.seat(HOST)
        result = room.start(HOST)

        assert result.rejection == Rejection.INCOMPLETE_ROSTER
        assert not room.started

    def test_outsider_cannot_start(self, full_room):
        assert full_room.start("player_outsider").rejection == Rejection.NOT_SEATED

    def test_restart_clears_board(self, started_room):
        play(started_room, [0, 3, 1, 4, 2])
        assert started_room.winner == Mark.X

        result = started_room.start(HOST)

        assert result.success
        assert started_room.squares == [None] * 9
        assert started_room.winner is None
        assert started_room.current_player == Mark.X


class TestMove:
    """Tests for move()."""

    def test_scenario_first_move_center(self, started_room):
        """X plays the centre: broadcast carries placed X and next turn O."""
        result = started_room.move(HOST, 4)

        assert result.success
        [event] = result.events
        assert isinstance(event, MoveMade)
        assert event.position == 4
        assert event.symbol == Mark.X
        assert event.current_player == Mark.O
        assert event.winner is None
        assert event.is_draw is False
        assert event.move_number == 1
        assert event.squares[4] == Mark.X

    def test_move_before_start_rejected(self, full_room):
        assert full_room.move(HOST, 0).rejection == Rejection.NOT_STARTED

    def test_not_your_turn(self, started_room):
        result = started_room.move(GUEST, 0)

        assert result.rejection == Rejection.NOT_YOUR_TURN
        assert started_room.squares[0] is None

    @pytest.mark.parametrize("position", [-1, 9, 42])
    def test_invalid_index(self, started_room, position):
        assert started_room.move(HOST, position).rejection == Rejection.INVALID_INDEX

    def test_invalid_index_checked_before_turn(self, started_room):
        """Out-of-range cells reject as InvalidIndex even off-turn."""
        assert started_room.move(GUEST, 12).rejection == Rejection.INVALID_INDEX

    def test_cell_occupied(self, started_room):
        started_room.move(HOST, 0)
        result = started_room.move(GUEST, 0)

        assert result.rejection == Rejection.CELL_OCCUPIED
        assert started_room.squares[0] == Mark.X
        assert started_room.current_player == Mark.O

    def test_every_marked_cell_is_occupied(self, started_room):
        play(started_room, [0, 1, 2, 4, 3, 5])
        for position in [0, 1, 2, 3, 4, 5]:
            assert started_room.move(HOST, position).rejection == Rejection.CELL_OCCUPIED

    def test_outsider_move_rejected(self, started_room):
        assert started_room.move("player_outsider", 0).rejection == Rejection.NOT_SEATED

    def test_turn_alternates(self, started_room):
        expected = [Mark.O, Mark.X, Mark.O, Mark.X]
        for position, players_turn, after in zip([0, 4, 8, 2], [HOST, GUEST] * 2, expected):
            result = started_room.move(players_turn, position)
            assert result.events[0].current_player == after


class TestOutcome:
    """Tests for win and draw handling."""

    def test_scenario_top_row_win(self, started_room):
        result = play(started_room, [0, 3, 1, 4, 2])

        assert started_room.squares[:3] == [Mark.X, Mark.X, Mark.X]
        assert evaluate_winner(started_room.squares) == Mark.X
        assert result.winner == Mark.X
        assert not result.is_draw
        assert started_room.phase == RoomPhase.OVER

    def test_winning_move_does_not_flip_turn(self, started_room):
        result = play(started_room, [0, 3, 1, 4, 2])
        event = result.events[0]

        assert event.symbol == Mark.X
        assert event.current_player == Mark.X
        assert event.winner == Mark.X

    def test_o_win_reports_o_as_placed(self, started_room):
        result = play(started_room, [0, 3, 1, 4, 8, 5])
        event = result.events[0]

        assert event.winner == Mark.O
        assert event.symbol == Mark.O
        assert event.current_player == Mark.O

    def test_moves_after_win_rejected(self, started_room):
        play(started_room, [0, 3, 1, 4, 2])

        for who in (HOST, GUEST):
            assert started_room.move(who, 8).rejection == Rejection.GAME_OVER
        assert started_room.current_player == Mark.X

    def test_scenario_draw(self, started_room):
        # X O X / X O O / O X X
        result = play(started_room, [0, 1, 2, 4, 3, 5, 7, 6, 8])

        assert result.is_draw
        assert result.winner is None
        assert started_room.is_draw
        assert result.events[0].is_draw is True
        assert started_room.move(GUEST, 0).rejection == Rejection.GAME_OVER

    def test_random_games_keep_outcome_consistent(self):
        """After every accepted move exactly one outcome holds and agrees with the board."""
        rng = random.Random(1234)
        for _ in range(50):
            room = Session(room_id="room_random")
            room.seat(HOST)
            room.seat(GUEST)
            room.start(HOST)
            previous_turn = room.current_player

            while not room.is_terminal:
                mover = HOST if room.current_player == Mark.X else GUEST
                free = [i for i, cell in enumerate(room.squares) if cell is None]
                result = room.move(mover, rng.choice(free))
                assert result.success

                assert not (result.winner is not None and result.is_draw)
                assert result.winner == evaluate_winner(room.squares)
                if not result.game_over:
                    assert room.current_player != previous_turn
                previous_turn = room.current_player


class TestReset:
    """Tests for reset()."""

    def test_reset_after_win(self, started_room):
        play(started_room, [0, 3, 1, 4, 2])
        result = started_room.reset(GUEST)

        assert result.success
        assert started_room.squares == [None] * 9
        assert started_room.current_player == Mark.X
        assert started_room.winner is None
        assert not started_room.is_draw
        assert started_room.started
        assert started_room.phase == RoomPhase.PLAYING
        assert result.events == [GameReset(squares=[None] * 9, current_player=Mark.X)]

    def test_reset_after_draw_allows_play(self, started_room):
        play(started_room, [0, 1, 2, 4, 3, 5, 7, 6, 8])
        started_room.reset()

        assert started_room.move(HOST, 4).success

    def test_reset_mid_game_hands_turn_to_x(self, started_room):
        started_room.move(HOST, 0)
        started_room.reset()

        assert started_room.current_player == Mark.X
        assert started_room.move_count == 0

    def test_reset_keeps_unstarted_room_unstarted(self, full_room):
        assert full_room.reset().success
        assert not full_room.started

    def test_reset_keeps_seats(self, started_room):
        seats = list(started_room.seats)
        started_room.reset()
        assert started_room.seats == seats


class TestVacate:
    """Tests for vacate()."""

    def test_guest_leaves(self, full_room):
        result = full_room.vacate(GUEST)

        assert result.success
        assert not result.now_empty
        assert result.events == [PlayerLeft(player_id=GUEST, player_count=1, host_id=HOST)]
        assert full_room.player_count == 1

    def test_last_player_leaving_destroys(self, room):
        room.seat(HOST)
        result = room.vacate(HOST)

        assert result.now_empty
        assert room.destroyed
        assert room.seat("player_new").rejection == Rejection.ROOM_CLOSED
        assert room.reset().rejection == Rejection.ROOM_CLOSED

    def test_vacate_unknown_is_noop(self, full_room):
        result = full_room.vacate("player_outsider")

        assert result.rejection == Rejection.NOT_SEATED
        assert full_room.player_count == 2

    def test_host_leaving_promotes_guest(self, full_room):
        full_room.vacate(HOST)

        [seat] = full_room.seats
        assert seat.connection_id == GUEST
        assert seat.is_host
        assert seat.mark == Mark.O

    def test_host_leaving_names_new_host(self, full_room):
        result = full_room.vacate(HOST)

        assert result.events == [PlayerLeft(player_id=HOST, player_count=1, host_id=GUEST)]

    def test_newcomer_takes_free_mark(self, full_room):
        full_room.vacate(HOST)
        result = full_room.seat("player_new")

        assert result.mark == Mark.X
        assert not result.is_host
        assert {s.mark for s in full_room.seats} == {Mark.X, Mark.O}

    def test_vacate_mid_game(self, started_room):
        started_room.move(HOST, 4)
        assert started_room.vacate(GUEST).success
        assert started_room.vacate(HOST).now_empty


class TestThreadedCallers:
    """The room lock keeps concurrent operations from interleaving."""

    def test_racing_seats_fill_exactly_two(self, room):
        barrier = threading.Barrier(20)

        def join(n):
            barrier.wait()
            return room.seat(f"player_{n}")

        with ThreadPoolExecutor(max_workers=20) as pool:
            results = list(pool.map(join, range(20)))

        accepted = [r for r in results if r.success]
        assert len(accepted) == 2
        assert all(r.rejection == Rejection.ROOM_FULL for r in results if not r.success)
        assert [s.mark for s in room.seats] == [Mark.X, Mark.O]
        assert [s.is_host for s in room.seats] == [True, False]

    def test_racing_moves_accept_one_per_turn(self, started_room):
        """Both seats hammer every cell; turns still alternate strictly."""
        barrier = threading.Barrier(2)

        def hammer(player):
            barrier.wait()
            return [started_room.move(player, position) for position in range(9) for _ in range(3)]

        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = list(pool.map(hammer, [HOST, GUEST]))

        accepted = sorted(
            (r for results in outcomes for r in results if r.success),
            key=lambda r: r.move_number,
        )
        assert [r.move_number for r in accepted] == list(range(1, len(accepted) + 1))
        for i, result in enumerate(accepted):
            assert result.placed == (Mark.X if i % 2 == 0 else Mark.O)
        assert len({r.position for r in accepted}) == len(accepted)
        assert sum(cell is not None for cell in started_room.squares) == len(accepted)
