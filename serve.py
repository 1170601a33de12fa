import logging
import os
from typing import Tuple

from flask import Blueprint, Flask, Response
from werkzeug.exceptions import InternalServerError, NotFound

PORT = 3000  # 单独运行时的端口：python serve.py
INDEX_DOCUMENT = "index.html"
DEFAULT_CONTENT_ROOT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")

MIME_TYPES = {
    ".html": "text/html",
    ".js": "text/javascript",
    ".css": "text/css",
    ".scss": "text/css",  # 开发时直接把 SCSS 当作 CSS
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".json": "application/json",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

logger = logging.getLogger(__name__)


def content_type_for(path: str) -> str:
    """根据扩展名选择 Content-Type。"""
    _, ext = os.path.splitext(path)
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


def resolve_path(root: str, request_path: str) -> str:
    """
    把请求路径映射到 root 下的文件路径，根路径对应 INDEX_DOCUMENT。
    跳出 root 的路径视为不存在。
    """
    relative = request_path.strip("/") or INDEX_DOCUMENT
    root = os.path.abspath(root)
    file_path = os.path.abspath(os.path.join(root, relative))
    if os.path.commonpath([root, file_path]) != root:
        raise NotFound()
    return file_path


def read_static(root: str, request_path: str) -> Tuple[bytes, str]:
    """读取静态文件，返回 (内容, Content-Type)。"""
    file_path = resolve_path(root, request_path)
    try:
        with open(file_path, "rb") as f:
            content = f.read()
    except (FileNotFoundError, IsADirectoryError, ValueError) as exc:
        logger.error("Error: %s", exc)
        raise NotFound() from exc
    except OSError as exc:
        logger.error("Error: %s", exc)
        raise InternalServerError() from exc
    return content, content_type_for(file_path)


def create_static_blueprint(root: str = DEFAULT_CONTENT_ROOT, name: str = "assets") -> Blueprint:
    """创建一个把请求映射到 root 下文件的蓝图。"""
    bp = Blueprint(name, __name__)

    @bp.route("/", defaults={"path": ""})
    @bp.route("/<path:path>")
    def static_file(path: str) -> Response:
        logger.info("Request for /%s", path)
        content, content_type = read_static(root, path)
        return Response(content, status=200, content_type=content_type)

    return bp


def create_dev_app(root: str = DEFAULT_CONTENT_ROOT) -> Flask:
    """只提供静态文件的开发服务器。"""
    app = Flask(__name__, static_folder=None)
    app.register_blueprint(create_static_blueprint(root))
    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    app = create_dev_app()
    logger.info("Server running at http://localhost:%d/", PORT)
    app.run(port=PORT)


if __name__ == "__main__":
    main()
