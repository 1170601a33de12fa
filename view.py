from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from game2048 import SIZE, Board, GameEngine, Status

# 动画 CSS 类
NEW_TILE = "new-tile"
MERGE_TILE = "merge-tile"
MOVE_TILE = "move-tile"

# 三条互斥的提示信息
MESSAGES = {
    Status.IDLE: "start",
    Status.WIN: "win",
    Status.LOSE: "lose",
}

KEY_TO_DIRECTION = {
    "ArrowLeft": "left",
    "ArrowRight": "right",
    "ArrowUp": "up",
    "ArrowDown": "down",
    "left": "left",
    "right": "right",
    "up": "up",
    "down": "down",
}


def classify_tile(prev_val: int, val: int) -> Optional[str]:
    """
    根据上一帧和当前帧的数值决定格子的动画：
    新出现 -> new-tile，翻倍 -> merge-tile，换成别的数字 -> move-tile。
    """
    if not val:
        return None
    if prev_val == 0:
        return NEW_TILE
    if val == prev_val * 2:
        return MERGE_TILE
    if val != prev_val:
        return MOVE_TILE
    return None


@dataclass
class Cell:
    value: int
    animation: Optional[str] = None

    @property
    def css_classes(self) -> List[str]:
        classes = ["field-cell"]
        if self.value:
            classes.append(f"field-cell--{self.value}")
        if self.animation:
            classes.append(self.animation)
        return classes

    @property
    def text(self) -> str:
        return str(self.value) if self.value else ""


@dataclass
class Frame:
    """一次渲染所需的全部数据。"""

    cells: List[List[Cell]]
    score: int
    score_delta: int
    status: Status
    message: Optional[str]
    button_label: str
    button_class: str
    hidden_messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "cells": [
                [{"value": c.value, "classes": c.css_classes} for c in row]
                for row in self.cells
            ],
            "score": self.score,
            "score_delta": self.score_delta,
            "status": self.status.value,
            "message": self.message,
            "button": self.button_label,
        }


class BoardView:
    """
    把引擎状态渲染成 Frame，并记住上一帧用于比较。

    previous_board / previous_score 可以从 session 中恢复，
    这样每个请求都能重新构造 BoardView 而不丢失动画信息。
    """

    def __init__(
        self,
        engine: GameEngine,
        previous_board: Optional[Board] = None,
        previous_score: int = 0,
    ) -> None:
        self.engine = engine
        self.previous_board = previous_board
        self.previous_score = previous_score

    def reset_history(self) -> None:
        self.previous_board = None
        self.previous_score = 0

    def render(self) -> Frame:
        state = self.engine.get_state()
        score = self.engine.get_score()
        status = self.engine.get_status()
        first_render = self.previous_board is None

        cells: List[List[Cell]] = []
        for r in range(SIZE):
            row: List[Cell] = []
            for c in range(SIZE):
                val = state[r][c]
                animation = None
                if not first_render:
                    animation = classify_tile(self.previous_board[r][c], val)
                row.append(Cell(val, animation))
            cells.append(row)

        # 只有分数上涨时才显示 "+N"
        delta = score - self.previous_score
        if first_render or delta <= 0:
            delta = 0

        message = MESSAGES.get(status)
        if status == Status.IDLE:
            button_label, button_class = "Start", "start"
        else:
            button_label, button_class = "Restart", "restart"

        self.previous_board = state
        self.previous_score = score

        return Frame(
            cells=cells,
            score=score,
            score_delta=delta,
            status=status,
            message=message,
            button_label=button_label,
            button_class=button_class,
            hidden_messages=[m for m in MESSAGES.values() if m != message],
        )


class KeyboardController:
    """把按键和按钮点击转换成引擎调用。"""

    def __init__(self, engine: GameEngine) -> None:
        self.engine = engine
        self._moves: Dict[str, Callable[[], bool]] = {
            "left": engine.move_left,
            "right": engine.move_right,
            "up": engine.move_up,
            "down": engine.move_down,
        }

    def handle_key(self, key: str) -> bool:
        """
        处理一次按键，返回是否需要重新渲染。

        idle 状态下第一次按方向键只会开始游戏，不会执行这次移动。
        """
        direction = KEY_TO_DIRECTION.get(key) if isinstance(key, str) else None
        if direction is None:
            return False

        status = self.engine.get_status()
        if status == Status.IDLE:
            self.engine.start()
            return True

        if status == Status.PLAYING:
            moved = self._moves[direction]()
            return moved or self.engine.get_status() == Status.LOSE

        return False

    def press_button(self) -> Board:
        """idle 时开始游戏，否则重新开始。"""
        if self.engine.get_status() == Status.IDLE:
            return self.engine.start()
        return self.engine.restart()
