"""
Set of test for the presentation layer.
"""
from unittest import TestCase, main

from game2048 import GameEngine, Status, new_board
from view import MERGE_TILE, MOVE_TILE, NEW_TILE, BoardView, KeyboardController, classify_tile


class FirstCellRandom:
    """Always spawns a 2 in the first empty cell."""

    def choice(self, seq):
        return seq[0]

    def random(self):
        return 0.5


def board_with_row(row):
    board = new_board()
    board[0] = list(row)
    return board


class TestClassifyTile(TestCase):
    def test_rules(self):
        self.assertEqual(classify_tile(0, 2), NEW_TILE)
        self.assertEqual(classify_tile(2, 4), MERGE_TILE)
        self.assertEqual(classify_tile(4, 2), MOVE_TILE)
        self.assertIsNone(classify_tile(2, 2))
        self.assertIsNone(classify_tile(2, 0))
        self.assertIsNone(classify_tile(0, 0))


class TestBoardView(TestCase):
    """Test for the BoardView class."""

    def setUp(self):
        self.engine = GameEngine(board_with_row([2, 2, 0, 0]), rng=FirstCellRandom())
        self.view = BoardView(self.engine)

    def test_first_render(self):
        frame = self.view.render()
        self.assertEqual(frame.score, 0)
        self.assertEqual(frame.score_delta, 0)
        self.assertEqual(frame.status, Status.IDLE)
        self.assertEqual(frame.message, "start")
        self.assertEqual(frame.button_label, "Start")
        self.assertEqual(sorted(frame.hidden_messages), ["lose", "win"])
        self.assertEqual(frame.cells[0][0].css_classes, ["field-cell", "field-cell--2"])
        self.assertEqual(frame.cells[0][2].css_classes, ["field-cell"])
        self.assertEqual(frame.cells[0][2].text, "")

    def test_render_after_move(self):
        self.view.render()
        self.engine.move_left()
        frame = self.view.render()

        # [2, 2, 0, 0] -> [4, 0, 0, 0], then a 2 spawns at (0, 1)
        self.assertIn(MERGE_TILE, frame.cells[0][0].css_classes)
        self.assertEqual(frame.cells[0][1].value, 2)
        self.assertIsNone(frame.cells[0][1].animation)
        self.assertEqual(frame.score, 4)
        self.assertEqual(frame.score_delta, 4)
        self.assertIsNone(frame.message)
        self.assertEqual(frame.button_label, "Restart")
        self.assertEqual(frame.button_class, "restart")

    def test_restored_previous_snapshot(self):
        view = BoardView(self.engine, previous_board=new_board(), previous_score=0)
        frame = view.render()
        self.assertEqual(frame.cells[0][0].animation, NEW_TILE)

    def test_score_delta_only_when_score_grows(self):
        self.view.render()
        self.engine.move_left()
        self.view.render()
        self.engine.restart()
        frame = self.view.render()
        self.assertEqual(frame.score_delta, 0)

    def test_reset_history(self):
        self.view.render()
        self.engine.move_left()
        self.view.reset_history()
        frame = self.view.render()
        self.assertTrue(all(cell.animation is None for row in frame.cells for cell in row))

    def test_win_message(self):
        engine = GameEngine(board_with_row([1024, 1024, 0, 0]), rng=FirstCellRandom())
        engine.move_left()
        frame = BoardView(engine).render()
        self.assertEqual(frame.message, "win")
        self.assertEqual(frame.to_dict()["status"], "win")


class TestKeyboardController(TestCase):
    """Test key and button handling."""

    def setUp(self):
        self.engine = GameEngine(board_with_row([2, 2, 0, 0]), rng=FirstCellRandom())
        self.controller = KeyboardController(self.engine)

    def test_unknown_key(self):
        self.assertFalse(self.controller.handle_key("Enter"))
        self.assertEqual(self.engine.get_status(), Status.IDLE)

    def test_non_string_key(self):
        self.assertFalse(self.controller.handle_key(["ArrowUp"]))
        self.assertFalse(self.controller.handle_key(None))
        self.assertEqual(self.engine.get_status(), Status.IDLE)

    def test_first_key_starts_game(self):
        self.assertTrue(self.controller.handle_key("ArrowLeft"))
        self.assertEqual(self.engine.get_status(), Status.PLAYING)
        # start() replaces the board with two fresh tiles, the key itself is not applied
        self.assertEqual(self.engine.get_state()[0], [2, 2, 0, 0])
        self.assertEqual(self.engine.get_score(), 0)

    def test_key_moves_while_playing(self):
        self.controller.handle_key("ArrowLeft")
        self.assertTrue(self.controller.handle_key("ArrowLeft"))
        self.assertEqual(self.engine.get_score(), 4)
        self.assertFalse(self.controller.handle_key("ArrowLeft"))

    def test_keys_ignored_after_win(self):
        engine = GameEngine(board_with_row([1024, 1024, 0, 0]), rng=FirstCellRandom())
        engine.move_left()
        self.assertFalse(KeyboardController(engine).handle_key("ArrowDown"))

    def test_button_toggles_start_and_restart(self):
        self.controller.press_button()
        self.assertEqual(self.engine.get_status(), Status.PLAYING)
        state = self.controller.press_button()
        self.assertEqual(self.engine.get_status(), Status.IDLE)
        self.assertEqual(state, board_with_row([2, 2, 0, 0]))


if __name__ == "__main__":
    main()
