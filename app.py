import os
import random
from typing import Any, Mapping, Optional, Tuple

from flask import Flask, current_app, jsonify, redirect, render_template, request, session, url_for

from game2048 import DIRECTIONS, GameEngine, Status, get_max_tile
from serve import DEFAULT_CONTENT_ROOT, create_static_blueprint
from view import BoardView, KeyboardController

# 默认配置，可被 GAME2048_* 环境变量或 test_config 覆盖
DEFAULT_CONFIG = {
    "SECRET_KEY": "change_this_to_a_random_secret_key",
    "CONTENT_ROOT": DEFAULT_CONTENT_ROOT,
    "RANDOM_SEED": None,  # 设置后随机数序列可复现
    "INITIAL_BOARD": None,  # 自定义初始棋盘，restart 时恢复
    "PORT": 5000,
}


def load_game() -> Tuple[GameEngine, BoardView]:
    """从 session 恢复引擎和上一帧。"""
    rng = current_app.extensions["game2048_rng"]
    data = session.get("game") or {"initial": current_app.config["INITIAL_BOARD"]}
    engine = GameEngine.from_dict(data, rng=rng)
    view = BoardView(
        engine,
        previous_board=session.get("previous_board"),
        previous_score=session.get("previous_score", 0),
    )
    return engine, view


def save_game(engine: GameEngine, view: Optional[BoardView] = None) -> None:
    """保存游戏状态到 session。"""
    session["game"] = engine.to_dict()
    if view is not None:
        session["previous_board"] = view.previous_board
        session["previous_score"] = view.previous_score


def state_payload(engine: GameEngine) -> Mapping[str, Any]:
    return {
        "board": engine.get_state(),
        "score": engine.get_score(),
        "status": engine.get_status().value,
    }


def read_key() -> str:
    """取出请求中的按键名；格式不对时返回空字符串（视为未知按键）。"""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        pressed = data.get("key")
    else:
        pressed = request.form.get("key")
    return pressed if isinstance(pressed, str) else ""


def create_app(test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    """创建 Flask 应用。"""
    app = Flask(__name__, static_folder=None)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env(prefix="GAME2048")
    if test_config is not None:
        app.config.from_mapping(test_config)

    app.extensions["game2048_rng"] = random.Random(app.config["RANDOM_SEED"])

    @app.route("/")
    def index():
        """游戏主页面。"""
        engine, view = load_game()
        frame = view.render()
        save_game(engine, view)

        return render_template(
            "index.html",
            frame=frame,
            max_tile=get_max_tile(engine.get_state()),
        )

    @app.route("/state")
    def state():
        """以 JSON 返回当前棋盘、分数和状态。"""
        engine, _ = load_game()
        return jsonify(state_payload(engine))

    @app.route("/move", methods=["POST"])
    def move():
        """处理移动操作。"""
        direction = request.form.get("direction")
        if direction not in DIRECTIONS:
            app.logger.warning("invalid direction: %r", direction)
            return redirect(url_for("index"))

        engine, _ = load_game()
        moved = engine.move(direction)
        app.logger.debug("move %s -> %s", direction, moved)
        save_game(engine)
        return redirect(url_for("index"))

    @app.route("/key", methods=["POST"])
    def key():
        """处理方向键；idle 状态下第一次按键会自动开始游戏。"""
        engine, view = load_game()
        changed = KeyboardController(engine).handle_key(read_key())
        # 上一帧只由页面渲染更新，这里不保存 view
        save_game(engine)

        if request.is_json:
            payload = dict(state_payload(engine))
            payload["changed"] = changed
            payload["frame"] = view.render().to_dict()
            return jsonify(payload)
        return redirect(url_for("index"))

    @app.route("/button", methods=["POST"])
    def button():
        """开始 / 重新开始按钮。"""
        engine, view = load_game()
        KeyboardController(engine).press_button()
        if engine.get_status() == Status.IDLE:
            # 重新开始后不播放动画
            view.reset_history()
        app.logger.info("button pressed, status is now %s", engine.get_status().value)
        save_game(engine, view)
        return redirect(url_for("index"))

    app.register_blueprint(
        create_static_blueprint(app.config["CONTENT_ROOT"]),
        url_prefix="/assets",
    )
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=int(os.environ.get("PORT", app.config["PORT"])))
