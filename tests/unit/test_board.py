"""Unit tests for client/board.py - StrokeBoard."""
from client.board import StrokeBoard
from session.protocol import Chat, Clear, CursorMove, Draw, DrawEnd, DrawStart


def start(x=0, y=0, color="#000", size=3, eraser=False):
    return DrawStart(x=x, y=y, color=color, size=size, eraser=eraser)


class TestStrokes:

    def test_stroke_lifecycle(self):
        board = StrokeBoard()

        board.apply(start(1, 1, color="#f00"), "a")
        board.apply(Draw(x=2, y=2), "a")
        board.apply(DrawEnd(), "a")

        assert len(board.strokes) == 1
        stroke = board.strokes[0]
        assert stroke.origin == "a"
        assert stroke.color == "#f00"
        assert stroke.points == [(1, 1), (2, 2)]
        assert stroke.finished
        assert board.active_stroke("a") is None

    def test_concurrent_strokes_stay_separate(self):
        board = StrokeBoard()

        board.apply(start(0, 0), "a")
        board.apply(start(100, 100), "b")
        board.apply(Draw(x=1, y=1), "a")
        board.apply(Draw(x=101, y=101), "b")

        a, b = board.strokes
        assert a.points == [(0, 0), (1, 1)]
        assert b.points == [(100, 100), (101, 101)]

    def test_draw_without_start_ignored(self):
        board = StrokeBoard()

        assert board.apply(Draw(x=1, y=1), "a") is True
        assert board.strokes == []

    def test_eraser_flag_kept(self):
        board = StrokeBoard()

        board.apply(start(eraser=True), "a")

        assert board.strokes[0].eraser is True

    def test_clear(self):
        board = StrokeBoard()
        board.apply(start(), "a")
        board.apply(Draw(x=1, y=1), "a")

        board.apply(Clear(), "b")

        assert board.strokes == []
        assert board.active_stroke("a") is None
        assert board.point_count() == 0

    def test_non_drawing_message(self):
        assert StrokeBoard().apply(Chat(nickname="a", message="b"), "a") is False


class TestCursors:

    def test_cursor_tracked_per_origin(self):
        board = StrokeBoard()

        board.apply(CursorMove(x=1, y=2, color="#111"), "a")
        board.apply(CursorMove(x=3, y=4, color="#222"), "a")
        board.apply(CursorMove(x=5, y=6, color="#333"), "b")

        assert (board.cursors["a"].x, board.cursors["a"].y) == (3, 4)
        assert board.cursors["b"].color == "#333"

    def test_remove_cursor(self):
        board = StrokeBoard()
        board.apply(CursorMove(x=1, y=2, color="#111"), "a")
        board.apply(start(), "a")

        board.remove_cursor("a")
        board.remove_cursor("missing")

        assert "a" not in board.cursors
        assert board.active_stroke("a") is None
