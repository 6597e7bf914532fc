"""
Unit tests for rule variants.
Tests: MoveHistory, StandardRules, InfinityRules, create_rules
"""
import pytest

from shared.board import Symbol
from shared.errors import InvalidMove
from shared.rules import (
    INFINITY_THRESHOLD,
    GameState,
    InfinityRules,
    Move,
    MoveHistory,
    RuleMode,
    StandardRules,
    create_rules,
)


def play(rules, positions):
    """Alternate X and O over ``positions``; returns the outcomes."""
    outcomes = []
    symbol = Symbol.X
    for pos in positions:
        outcomes.append(rules.apply(pos, symbol))
        symbol = symbol.opponent
    return outcomes


class TestMoveHistory:
    """Tests for MoveHistory."""

    def test_unbounded_never_evicts(self):
        history = MoveHistory()
        for i in range(20):
            assert history.push(Move(i, Symbol.X, i + 1)) is None
        assert len(history) == 20

    def test_bounded_returns_evicted_head(self):
        history = MoveHistory(capacity=2)
        first = Move(0, Symbol.X, 1)
        history.push(first)
        history.push(Move(1, Symbol.O, 2))
        evicted = history.push(Move(2, Symbol.X, 3))
        assert evicted == first
        assert len(history) == 2
        assert history.oldest.position == 1

    def test_to_list(self):
        history = MoveHistory()
        history.push(Move(4, Symbol.O, 1, timestamp='t'))
        assert history.to_list() == [{'position': 4, 'symbol': 'O', 'turn': 1, 'timestamp': 't'}]


class TestStandardRules:
    """Tests for StandardRules."""

    def test_x_wins_top_row(self):
        rules = StandardRules(3)
        outcomes = play(rules, [0, 3, 1, 4, 2])
        assert outcomes[-1].state == GameState.WON
        assert outcomes[-1].winner is Symbol.X
        assert outcomes[-1].winning_line == (0, 1, 2)
        assert all(o.state == GameState.IN_PROGRESS for o in outcomes[:-1])

    def test_draw(self):
        rules = StandardRules(3)
        outcomes = play(rules, [0, 1, 2, 4, 3, 5, 7, 6, 8])
        assert outcomes[-1].state == GameState.DRAW
        assert outcomes[-1].winner is None
        assert GameState.DRAW.is_terminal

    def test_occupied_cell_raises(self):
        rules = StandardRules(3)
        rules.apply(4, Symbol.X)
        with pytest.raises(InvalidMove) as exc:
            rules.apply(4, Symbol.O)
        assert exc.value.position == 4
        assert rules.turn == 1
        assert rules.state == GameState.ERROR

    def test_illegal_move_closes_board(self):
        rules = StandardRules(3)
        rules.apply(4, Symbol.X)
        with pytest.raises(InvalidMove):
            rules.apply(4, Symbol.O)
        with pytest.raises(InvalidMove):
            rules.apply(0, Symbol.O)
        assert rules.board.count(0) == 8

    def test_finished_board_rejects_moves(self):
        rules = StandardRules(3)
        play(rules, [0, 3, 1, 4, 2])
        assert rules.state == GameState.WON
        with pytest.raises(InvalidMove):
            rules.apply(8, Symbol.O)
        assert rules.state == GameState.WON
        assert rules.turn == 5

    def test_forfeit_marks_error(self):
        rules = StandardRules(3)
        rules.apply(0, Symbol.X)
        assert rules.state == GameState.IN_PROGRESS
        rules.forfeit()
        assert rules.state == GameState.ERROR
        assert GameState.ERROR.is_terminal

    def test_forfeit_keeps_finished_result(self):
        rules = StandardRules(3)
        play(rules, [0, 1, 2, 4, 3, 5, 7, 6, 8])
        rules.forfeit()
        assert rules.state == GameState.DRAW

    def test_out_of_range_raises(self):
        rules = StandardRules(3)
        with pytest.raises(InvalidMove):
            rules.apply(9, Symbol.X)

    def test_snapshot_is_a_copy(self):
        rules = StandardRules(5)
        snapshot = rules.snapshot()
        snapshot[0] = 1
        assert rules.board[0] == 0
        assert len(snapshot) == 25

    def test_five_by_five_win(self):
        rules = StandardRules(5)
        outcomes = play(rules, [0, 5, 1, 6, 2, 7, 3, 8, 4])
        assert outcomes[-1].winning_line == (0, 1, 2, 3, 4)


class TestInfinityRules:
    """Tests for the sliding-window variant."""

    def test_first_five_moves_never_evict(self):
        rules = InfinityRules(3)
        outcomes = play(rules, [0, 4, 8, 2, 6])
        assert all(o.evicted is None for o in outcomes)

    def test_sixth_move_evicts_oldest(self):
        rules = InfinityRules(3)
        play(rules, [0, 4, 8, 2, 6])
        oldest = rules.history[0]
        outcome = rules.apply(1, Symbol.O)
        assert outcome.evicted == oldest
        assert outcome.evicted.position == 0
        assert rules.board[0] == 0
        assert rules.board[1] == Symbol.O.cell

    def test_history_never_exceeds_threshold(self):
        rules = InfinityRules(3)
        symbol = Symbol.X
        for _ in range(40):
            freed_before = rules.history[0] if len(rules.history) == INFINITY_THRESHOLD - 1 else None
            pos = rules.board.index(0)
            outcome = rules.apply(pos, symbol)
            assert len(rules.history) <= INFINITY_THRESHOLD
            if freed_before is not None:
                assert outcome.evicted == freed_before
            if outcome.state.is_terminal:
                break
            symbol = symbol.opponent
        assert sum(1 for c in rules.board if c) <= INFINITY_THRESHOLD - 1

    def test_evicts_regardless_of_owner(self):
        rules = InfinityRules(3)
        play(rules, [0, 1, 2, 3, 5])
        outcome = rules.apply(7, Symbol.O)
        assert outcome.evicted.symbol is Symbol.X
        outcome = rules.apply(8, Symbol.X)
        assert outcome.evicted.symbol is Symbol.O
        assert outcome.evicted.position == 1

    def test_win_after_eviction(self):
        """The board is evaluated after the oldest mark is removed."""
        rules = InfinityRules(3)
        play(rules, [3, 0, 4, 1, 8])
        outcome = rules.apply(2, Symbol.O)
        assert outcome.evicted.position == 3
        assert outcome.state == GameState.WON
        assert outcome.winner is Symbol.O
        assert outcome.winning_line == (0, 1, 2)

    def test_never_draws_on_three_by_three(self):
        rules = InfinityRules(3)
        outcomes = play(rules, [0, 1, 2, 4, 3, 5, 7, 6, 8])
        assert all(o.state != GameState.DRAW for o in outcomes)


class TestCreateRules:
    """Tests for create_rules factory."""

    def test_standard(self):
        rules = create_rules('standard', 5)
        assert type(rules) is StandardRules
        assert rules.size == 5

    def test_infinity(self):
        rules = create_rules(RuleMode.INFINITY)
        assert isinstance(rules, InfinityRules)
        assert rules.mode is RuleMode.INFINITY

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_rules('chaos')
