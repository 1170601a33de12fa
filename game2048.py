import logging
import random
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

SIZE = 4  # 棋盘大小：4x4
WIN_TILE = 2048  # 达到该数字即获胜
FOUR_CHANCE = 0.1  # 新生成数字为 4 的概率
Board = List[List[int]]
Row = List[int]

logger = logging.getLogger(__name__)


class Status(str, Enum):
    """游戏状态。"""

    IDLE = "idle"
    PLAYING = "playing"
    WIN = "win"
    LOSE = "lose"


TERMINAL_STATUSES = (Status.WIN, Status.LOSE)
DIRECTIONS = ("left", "right", "up", "down")


def new_board() -> Board:
    """创建一个空棋盘。"""
    return [[0] * SIZE for _ in range(SIZE)]


def copy_grid(board: Board) -> Board:
    """深拷贝二维网格。"""
    return [list(row) for row in board]


def is_valid_board(board: Any) -> bool:
    """判断传入的是否为 SIZE x SIZE 的非负整数网格。"""
    if not isinstance(board, (list, tuple)) or len(board) != SIZE:
        return False
    for row in board:
        if not isinstance(row, (list, tuple)) or len(row) != SIZE:
            return False
        for value in row:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return False
    return True


def add_random_tile(board: Board, rng: Any = random) -> Optional[Tuple[int, int]]:
    """
    在空格随机生成一个 2 或 4
    返回生成的位置 (r, c)，如果棋盘已满返回 None
    """
    empty_cells = [
        (r, c)
        for r in range(SIZE)
        for c in range(SIZE)
        if board[r][c] == 0
    ]
    if not empty_cells:
        return None

    r, c = rng.choice(empty_cells)
    board[r][c] = 4 if rng.random() < FOUR_CHANCE else 2
    return r, c


def compress_and_merge_row(row: Row) -> Tuple[Row, int]:
    """
    向左挤压并合并一行，同时返回本行增加的分数。
    例如: [2, 0, 2, 4] -> [4, 4, 0, 0], score_gain = 4
    每个数字在一次移动中最多合并一次: [2, 2, 2, 2] -> [4, 4, 0, 0]
    """
    arr = [x for x in row if x != 0]
    new_row: Row = []
    score_gain = 0
    i = 0

    while i < len(arr):
        if i + 1 < len(arr) and arr[i] == arr[i + 1]:
            merged = arr[i] * 2
            new_row.append(merged)
            score_gain += merged
            i += 2
        else:
            new_row.append(arr[i])
            i += 1

    new_row += [0] * (len(row) - len(new_row))
    return new_row, score_gain


def reverse_rows(board: Board) -> Board:
    """每一行做反转。"""
    return [list(reversed(row)) for row in board]


def transpose(board: Board) -> Board:
    """矩阵转置。"""
    return [list(row) for row in zip(*board)]


def slide(board: Board, direction: str) -> Tuple[Board, int]:
    """
    整盘向 direction 移动，返回新棋盘和本次增加的分数。

    先把棋盘摆正成"向左"（上下方向先转置，右下方向再反转每一行），
    统一用 compress_and_merge_row 处理，最后按相反顺序还原。
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"unknown direction: {direction!r}")

    vertical = direction in ("up", "down")
    backward = direction in ("right", "down")

    oriented = transpose(board) if vertical else copy_grid(board)
    if backward:
        oriented = reverse_rows(oriented)

    moved: Board = []
    total_gain = 0
    for row in oriented:
        new_row, gain = compress_and_merge_row(row)
        moved.append(new_row)
        total_gain += gain

    if backward:
        moved = reverse_rows(moved)
    if vertical:
        moved = transpose(moved)
    return moved, total_gain


def has_won(board: Board) -> bool:
    """是否已有数字达到 WIN_TILE。"""
    return any(value >= WIN_TILE for row in board for value in row)


def can_move(board: Board) -> bool:
    """判断是否还能继续游戏。"""
    for r in range(SIZE):
        for c in range(SIZE):
            if board[r][c] == 0:
                return True

    for r in range(SIZE):
        for c in range(SIZE - 1):
            if board[r][c] == board[r][c + 1]:
                return True

    for c in range(SIZE):
        for r in range(SIZE - 1):
            if board[r][c] == board[r + 1][c]:
                return True

    return False


def get_max_tile(board: Board) -> int:
    """取得当前最大的数字。"""
    return max(max(row) for row in board)


class GameEngine:
    """
    2048 游戏核心（与界面无关）。

    对外接口：
      - GameEngine(initial_board=None, rng=None)
      - get_state(), get_score(), get_status()
      - move_left(), move_right(), move_up(), move_down(), move(direction)
      - start(), restart()

    rng 为随机数来源，只需要提供 choice() 与 random() 两个方法，
    测试时可以注入固定序列。
    """

    def __init__(self, initial_board: Optional[Board] = None, rng: Any = None) -> None:
        if initial_board is not None and not is_valid_board(initial_board):
            logger.debug("ignoring malformed initial board: %r", initial_board)
            initial_board = None

        self._initial: Board = copy_grid(initial_board) if initial_board is not None else new_board()
        self._board: Board = copy_grid(self._initial)
        self._score = 0
        self._status = Status.IDLE
        self._rng = rng if rng is not None else random.Random()

    # ---------- 读取 ----------
    def get_state(self) -> Board:
        return copy_grid(self._board)

    def get_score(self) -> int:
        return self._score

    def get_status(self) -> Status:
        return self._status

    # ---------- 生命周期 ----------
    def start(self) -> Board:
        """清空棋盘并随机放置两个数字，进入 playing 状态。"""
        self._board = new_board()
        self._score = 0
        self._status = Status.PLAYING
        add_random_tile(self._board, self._rng)
        add_random_tile(self._board, self._rng)
        logger.debug("game started: %s", self._board)
        return self.get_state()

    def restart(self) -> Board:
        """恢复构造时传入的初始棋盘（不生成新数字），回到 idle 状态。"""
        self._board = copy_grid(self._initial)
        self._score = 0
        self._status = Status.IDLE
        return self.get_state()

    # ---------- 移动 ----------
    def move_left(self) -> bool:
        return self.move("left")

    def move_right(self) -> bool:
        return self.move("right")

    def move_up(self) -> bool:
        return self.move("up")

    def move_down(self) -> bool:
        return self.move("down")

    def move(self, direction: str) -> bool:
        """
        尝试向 direction 移动。

        棋盘发生变化或有得分时视为有效移动：得分累加、生成一个新数字，
        然后依次判断胜利、失败。无效移动不改变任何状态并返回 False。
        """
        if self._status in TERMINAL_STATUSES:
            return False

        original = copy_grid(self._board)
        moved, gained = slide(self._board, direction)

        if moved == original and gained == 0:
            self._board = original
            return False

        self._board = moved
        if self._status == Status.IDLE:
            self._status = Status.PLAYING

        self._score += gained
        add_random_tile(self._board, self._rng)

        # 胜利优先于失败
        if has_won(self._board):
            self._status = Status.WIN
        elif not can_move(self._board):
            self._status = Status.LOSE

        if self._status in TERMINAL_STATUSES:
            logger.info("game over (%s) with score %d", self._status.value, self._score)
        return True

    # ---------- session 序列化 ----------
    def to_dict(self) -> Dict[str, Any]:
        """导出可以放进 session 的状态。"""
        return {
            "board": copy_grid(self._board),
            "initial": copy_grid(self._initial),
            "score": self._score,
            "status": self._status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rng: Any = None) -> "GameEngine":
        """从 to_dict() 的结果恢复；缺失或损坏的字段退回默认值。"""
        engine = cls(data.get("initial"), rng=rng)

        board = data.get("board")
        if is_valid_board(board):
            engine._board = copy_grid(board)

        score = data.get("score", 0)
        engine._score = score if isinstance(score, int) and score >= 0 else 0

        try:
            engine._status = Status(data.get("status", Status.IDLE.value))
        except ValueError:
            engine._status = Status.IDLE
        return engine

    def __repr__(self) -> str:
        return f"GameEngine(status={self._status.value!r}, score={self._score})"
