"""
Unit tests for the tennis scoring engine.
"""
import copy
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_core.errors import InvalidInput, InvalidState
from tournament_core.tennis import (
    TennisConfig,
    TennisState,
    HISTORY_LIMIT,
    init_tennis_state,
    point_to_string,
    get_point_display,
    get_game_status,
    get_next_first_server,
    get_match_winner,
    count_sets_won,
    score_point,
    score_ace,
    score_fault,
    undo,
    set_server,
    detect_match_point,
)

GAME = [1, 1, 1, 1]
GAME_P2 = [2, 2, 2, 2]


class TestConfig:
    """Tests for TennisConfig validation."""

    def test_defaults(self):
        """Test best of three with ad scoring and 7 point tiebreaks."""
        config = TennisConfig()
        assert config.sets_to_win == 2
        assert config.is_ad_scoring is True
        assert config.set_tiebreak_target == 7
        assert config.match_tiebreak_target == 10

    def test_rejects_zero_sets(self):
        """Test sets_to_win must be positive."""
        with pytest.raises(InvalidInput):
            TennisConfig(sets_to_win=0)

    def test_rejects_non_integer(self):
        """Test string values are rejected."""
        with pytest.raises(InvalidInput):
            TennisConfig(set_tiebreak_target='7')

    def test_config_baked_into_state(self):
        """Test init copies the rules into the state."""
        state = init_tennis_state(TennisConfig(sets_to_win=3, is_ad_scoring=False), 2)
        assert state.sets_to_win == 3
        assert state.is_ad_scoring is False
        assert state.serving_participant == 2
        assert state.first_server_of_set == 2

    def test_rejects_bad_first_server(self):
        """Test first server must be 1 or 2."""
        with pytest.raises(InvalidInput):
            init_tennis_state(TennisConfig(), 3)


class TestPointDisplay:
    """Tests for 0/15/30/40/Ad display."""

    def test_regular_points(self):
        """Test counters map to tennis terms."""
        assert [point_to_string(p, 0, True) for p in range(4)] == ['0', '15', '30', '40']

    def test_deuce_shows_40(self):
        """Test both players show 40 at deuce."""
        assert get_point_display([3, 3], 0, True, False) == '40'
        assert get_point_display([5, 5], 1, True, False) == '40'

    def test_advantage(self):
        """Test the leader shows Ad and the trailer 40."""
        assert get_point_display([4, 3], 0, True, False) == 'Ad'
        assert get_point_display([4, 3], 1, True, False) == '40'

    def test_no_ad_never_shows_ad(self):
        """Test no-ad scoring stays at 40."""
        assert get_point_display([4, 3], 0, False, False) == '40'

    def test_tiebreak_raw_numbers(self):
        """Test tiebreak points are shown as numbers."""
        assert get_point_display([5, 3], 0, True, True) == '5'


class TestGameStatus:
    """Tests for get_game_status."""

    def test_deuce(self):
        """Test deuce status."""
        assert get_game_status([3, 3], True, False, 1) == "Deuce"

    def test_advantage(self):
        """Test advantage names the leader."""
        assert get_game_status([3, 4], True, False, 1, names=("Ana", "Ben")) == "Advantage Ben"

    def test_deciding_point(self):
        """Test no-ad deciding point names the receiver."""
        assert get_game_status([3, 3], False, False, 1) == "Deciding Point (Player 2 chooses side)"

    def test_tiebreaks(self):
        """Test tiebreak and match tiebreak labels."""
        assert get_game_status([2, 1], True, True, 1) == "Tiebreak"
        assert get_game_status([2, 1], True, True, 1, 'match') == "Match Tiebreak"

    def test_nothing_special(self):
        """Test no status for an ordinary score."""
        assert get_game_status([2, 1], True, False, 1) is None


class TestGames:
    """Tests for point and game progression."""

    def test_four_points_win_game(self, tennis_state, play_tennis):
        """Test love game for player 1 rotates serve."""
        state = play_tennis(tennis_state, GAME)
        assert state.current_set_games == [1, 0]
        assert state.current_game_points == [0, 0]
        assert state.serving_participant == 2

    def test_advantage_then_game(self, tennis_state):
        """Test deuce, advantage, game."""
        tennis_state.current_game_points = [3, 3]
        state = score_point(tennis_state, 1)
        assert state.current_game_points == [4, 3]
        assert get_point_display(state.current_game_points, 0, True, False) == 'Ad'
        assert state.current_set_games == [0, 0]

        state = score_point(state, 1)
        assert state.current_set_games == [1, 0]
        assert state.current_game_points == [0, 0]

    def test_advantage_lost_returns_to_deuce(self, tennis_state):
        """Test a point against the advantage goes back to 40-40."""
        tennis_state.current_game_points = [3, 3]
        state = score_point(tennis_state, 1)
        state = score_point(state, 2)
        assert state.current_game_points == [3, 3]
        assert state.current_set_games == [0, 0]

    def test_no_ad_deciding_point(self):
        """Test no-ad scoring decides the game on the point after 40-40."""
        state = init_tennis_state(TennisConfig(is_ad_scoring=False), 1)
        state.current_game_points = [3, 3]
        state = score_point(state, 2)
        assert state.current_set_games == [0, 1]

    def test_game_from_40_30(self, tennis_state):
        """Test 40-30 plus a point wins the game."""
        tennis_state.current_game_points = [3, 2]
        state = score_point(tennis_state, 1)
        assert state.current_set_games == [1, 0]

    def test_invalid_winner(self, tennis_state):
        """Test winner must be 1 or 2."""
        for bad in (0, 3, True, None):
            with pytest.raises(InvalidInput):
                score_point(tennis_state, bad)

    def test_input_state_not_modified(self, tennis_state):
        """Test scoring returns a new state."""
        before = copy.deepcopy(tennis_state)
        score_point(tennis_state, 1)
        assert tennis_state == before


class TestSets:
    """Tests for set completion and serve alternation."""

    def test_six_love_set(self, tennis_state, play_tennis):
        """Test a 6-0 set is recorded and games reset."""
        state = play_tennis(tennis_state, GAME * 6)
        assert state.sets == [[6, 0]]
        assert state.current_set_games == [0, 0]
        assert state.is_match_complete is False

    def test_first_server_after_even_set(self, tennis_state, play_tennis):
        """Test the same player serves first after an even number of games."""
        state = play_tennis(tennis_state, GAME * 6)
        assert state.first_server_of_set == 1
        assert state.serving_participant == 1

    def test_first_server_after_odd_set(self, tennis_state, play_tennis):
        """Test the other player serves first after an odd number of games."""
        state = play_tennis(tennis_state, GAME_P2 + GAME * 6)
        assert state.sets == [[6, 1]]
        assert state.first_server_of_set == 2
        assert state.serving_participant == 2

    def test_next_first_server(self):
        """Test alternation helper."""
        assert get_next_first_server(1, [6, 4]) == 1
        assert get_next_first_server(1, [7, 6]) == 2

    def test_six_five_continues(self, tennis_state):
        """Test 6-5 is not a set."""
        tennis_state.current_set_games = [5, 5]
        state = score_point(tennis_state, 1)
        for _ in range(3):
            state = score_point(state, 1)
        assert state.current_set_games == [6, 5]
        assert state.sets == []

    def test_seven_five_wins_set(self, tennis_state, play_tennis):
        """Test 7-5 completes the set."""
        tennis_state.current_set_games = [6, 5]
        state = play_tennis(tennis_state, GAME)
        assert state.sets == [[7, 5]]

    def test_count_sets_won(self):
        """Test sets are counted by strictly more games."""
        assert count_sets_won([[6, 4], [3, 6], [7, 6]]) == (2, 1)


class TestTiebreak:
    """Tests for tiebreak entry, scoring and serve."""

    def test_six_all_starts_tiebreak(self, tennis_state, play_tennis):
        """Test 6-6 enters a tiebreak."""
        tennis_state.current_set_games = [6, 5]
        state = play_tennis(tennis_state, GAME_P2)
        assert state.current_set_games == [6, 6]
        assert state.is_tiebreak is True
        assert state.tiebreak_target == 7
        assert state.tiebreak_mode == 'set'

    def test_tiebreak_needs_two_point_lead(self):
        """Test 7-6 in the tiebreak does not end it."""
        state = TennisState(current_set_games=[6, 6], is_tiebreak=True, tiebreak_points=[6, 6], tiebreak_mode='set')
        state = score_point(state, 1)
        assert state.is_tiebreak is True
        assert state.tiebreak_points == [7, 6]

    def test_tiebreak_win_records_seven_six(self):
        """Test tiebreak winner takes the set 7-6."""
        state = TennisState(current_set_games=[6, 6], is_tiebreak=True, tiebreak_points=[6, 5], tiebreak_mode='set')
        state = score_point(state, 1)
        assert state.sets == [[7, 6]]
        assert state.is_tiebreak is False
        assert state.current_set_games == [0, 0]
        assert state.tiebreak_points == [0, 0]

    def test_tiebreak_completes_match(self):
        """Test winning the tiebreak of the deciding set ends the match."""
        state = TennisState(sets=[[6, 4]], current_set_games=[6, 6], is_tiebreak=True,
                            tiebreak_points=[6, 5], tiebreak_mode='set')
        state = score_point(state, 1)
        assert state.sets == [[6, 4], [7, 6]]
        assert state.is_match_complete is True
        assert get_match_winner(state) == 1

        with pytest.raises(InvalidState):
            score_point(state, 2)

    def test_tiebreak_serve_rotation(self):
        """Test serve changes after the first point, then every two points."""
        state = TennisState(current_set_games=[6, 6], is_tiebreak=True, tiebreak_mode='set', serving_participant=1)
        servers = []
        for winner in (1, 2, 1, 2, 1):
            state = score_point(state, winner)
            servers.append(state.serving_participant)
        assert servers == [2, 2, 1, 1, 2]

    def test_final_set_tiebreak_target(self, play_tennis):
        """Test the deciding set uses its own tiebreak target."""
        state = TennisState(sets=[[6, 4], [4, 6]], current_set_games=[6, 5],
                            final_set_tiebreak_target=10)
        state = play_tennis(state, GAME_P2)
        assert state.is_tiebreak is True
        assert state.tiebreak_target == 10

    def test_match_tiebreak(self, play_tennis):
        """Test a match tiebreak replaces the deciding set and is recorded as the set score."""
        state = init_tennis_state(TennisConfig(use_match_tiebreak=True), 1)
        state = play_tennis(state, GAME * 6 + GAME_P2 * 6)
        assert state.sets == [[6, 0], [0, 6]]
        assert state.is_tiebreak is True
        assert state.tiebreak_mode == 'match'
        assert state.tiebreak_target == 10

        state = play_tennis(state, [1] * 10)
        assert state.sets == [[6, 0], [0, 6], [10, 0]]
        assert state.is_match_complete is True
        assert get_match_winner(state) == 1


class TestMatch:
    """Tests for match completion."""

    def test_straight_sets(self, tennis_state, play_tennis):
        """Test two sets to nil completes a best of three."""
        state = play_tennis(tennis_state, GAME * 12)
        assert state.sets == [[6, 0], [6, 0]]
        assert state.is_match_complete is True

    def test_rejection_leaves_state_unchanged(self, tennis_state, play_tennis):
        """Test repeated scoring on a finished match always fails without changes."""
        state = play_tennis(tennis_state, GAME * 12)
        before = copy.deepcopy(state)
        for _ in range(3):
            with pytest.raises(InvalidState):
                score_point(state, 1)
            with pytest.raises(InvalidState):
                score_ace(state)
        assert state == before


class TestServeEvents:
    """Tests for aces and faults."""

    def test_ace(self, tennis_state):
        """Test an ace is a point for the server."""
        state = score_ace(tennis_state)
        assert state.aces == [1, 0]
        assert state.current_game_points == [1, 0]

    def test_single_fault(self, tennis_state):
        """Test a first fault only marks the second serve."""
        state = score_fault(tennis_state)
        assert state.fault_state == 1
        assert state.current_game_points == [0, 0]
        assert len(state.history) == 1

    def test_double_fault(self, tennis_state):
        """Test a double fault gives the point to the receiver."""
        state = score_fault(score_fault(tennis_state))
        assert state.double_faults == [1, 0]
        assert state.current_game_points == [0, 1]
        assert state.fault_state == 0

    def test_point_clears_fault(self, tennis_state):
        """Test a rally after a fault resets the serve count."""
        state = score_point(score_fault(tennis_state), 1)
        assert state.fault_state == 0
        assert state.double_faults == [0, 0]

    def test_undo_fault(self, tennis_state):
        """Test a single fault can be undone."""
        state = undo(score_fault(tennis_state))
        assert state == tennis_state


class TestUndo:
    """Tests for undo and history."""

    def test_round_trip(self, tennis_state, play_tennis):
        """Test score then undo restores an equal state."""
        before = play_tennis(tennis_state, [1, 2, 2])
        for winner in (1, 2):
            assert undo(score_point(before, winner)) == before

    def test_round_trip_across_game(self, tennis_state, play_tennis):
        """Test undo of a game-winning point restores games and server."""
        before = play_tennis(tennis_state, [1, 1, 1])
        after = score_point(before, 1)
        assert undo(after) == before

    def test_empty_history(self, tennis_state):
        """Test undo without history is an error."""
        with pytest.raises(InvalidState):
            undo(tennis_state)

    def test_undo_completed_match(self, tennis_state, play_tennis):
        """Test the winning point can be undone unless disallowed."""
        state = play_tennis(tennis_state, GAME * 12)
        reopened = undo(state)
        assert reopened.is_match_complete is False
        assert reopened.sets == [[6, 0]]
        assert reopened.current_set_games == [5, 0]

        with pytest.raises(InvalidState):
            undo(state, allow_undo_completed=False)

    def test_history_cap(self):
        """Test history keeps the newest entries only."""
        state = init_tennis_state(TennisConfig(sets_to_win=3), 1)
        for _ in range(HISTORY_LIMIT + 10):
            state = score_point(state, 1)
        assert len(state.history) == HISTORY_LIMIT

    def test_set_server_not_in_history(self, tennis_state):
        """Test server correction is not undoable."""
        state = set_server(tennis_state, 2)
        assert state.serving_participant == 2
        assert state.history == []
        with pytest.raises(InvalidInput):
            set_server(tennis_state, 0)


class TestMatchPoint:
    """Tests for detect_match_point."""

    def test_match_point_in_game(self):
        """Test 40-0 at 5-0 one set up is match point."""
        state = TennisState(sets=[[6, 0]], current_set_games=[5, 0], current_game_points=[3, 0])
        assert detect_match_point(state) == 1

    def test_break_point_is_not_match_point(self):
        """Test the player a set down has no match point."""
        state = TennisState(sets=[[6, 0]], current_set_games=[5, 0], current_game_points=[0, 3])
        assert detect_match_point(state) is None

    def test_first_set_has_no_match_point(self, tennis_state):
        """Test set point in the first set is not match point."""
        tennis_state.current_set_games = [5, 0]
        tennis_state.current_game_points = [3, 0]
        assert detect_match_point(tennis_state) is None

    def test_tiebreak_match_point(self):
        """Test 6-5 in the deciding tiebreak."""
        state = TennisState(sets=[[6, 0], [0, 6]], current_set_games=[6, 6], is_tiebreak=True,
                            tiebreak_points=[5, 6], tiebreak_mode='set')
        assert detect_match_point(state) == 2

    def test_no_ad_deciding_point(self):
        """Test 40-40 under no-ad is match point for a player about to win the set."""
        state = TennisState(sets=[[6, 0]], current_set_games=[5, 4], current_game_points=[3, 3],
                            is_ad_scoring=False)
        assert detect_match_point(state) == 1

    def test_completed_match(self, tennis_state, play_tennis):
        """Test no match point once the match is over."""
        state = play_tennis(tennis_state, GAME * 12)
        assert detect_match_point(state) is None


class TestSerialization:
    """Tests for dict conversion."""

    def test_round_trip(self, tennis_state, play_tennis):
        """Test to_dict/from_dict preserve the state, history included."""
        state = play_tennis(tennis_state, [1, 2, 1, 1, 2])
        assert TennisState.from_dict(state.to_dict()) == state
