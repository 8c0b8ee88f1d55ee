import logging
from types import SimpleNamespace

from flask import Flask, current_app, jsonify, request

from .config import Settings
from .logging_setup import setup_logging
from .store import append_record, open_kv, read_collection
from .telegram import TelegramClient
from .webapp_auth import validate_webapp_data

logger = logging.getLogger(__name__)

# placeholder, not a signed credential
DEMO_TOKEN = "demo-token"

WELCOME_TEXT = "Добро пожаловать в Premium Business!"
PROMPT_TEXT = "Нажмите кнопку ниже, чтобы открыть рабочее пространство."
BUTTON_TEXT = "Открыть рабочее пространство"


# ── helpers ────────────────────────────────────────────────────────────────

def cors_headers(origin: str | None) -> dict:
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    }


def json_response(obj, status: int = 200):
    resp = jsonify(obj)
    resp.status_code = status
    resp.headers.update(cors_headers(request.headers.get("Origin")))
    return resp


def json_body() -> dict:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def workspace() -> SimpleNamespace:
    return current_app.extensions["workspace"]


def _dig(obj, *keys):
    for k in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(k)
    return obj


def webapp_keyboard(url: str) -> dict:
    return {"inline_keyboard": [[{"text": BUTTON_TEXT, "web_app": {"url": url}}]]}


# ── health ──────────────────────────────────────────────────────────────────

def health():
    return json_response({"ok": True})


# ── telegram webhook ────────────────────────────────────────────────────────

def bot_webhook():
    ws = workspace()

    # verify Telegram's secret header if configured
    if ws.settings.webhook_secret:
        if request.headers.get("X-Telegram-Bot-Api-Secret-Token") != ws.settings.webhook_secret:
            return "", 403

    update = json_body()
    chat_id = (
        _dig(update, "message", "chat", "id")
        or _dig(update, "edited_message", "chat", "id")
        or _dig(update, "callback_query", "message", "chat", "id")
    )
    text = _dig(update, "message", "text")
    text = text.strip() if isinstance(text, str) else None

    if chat_id:
        reply = WELCOME_TEXT if text == "/start" else PROMPT_TEXT
        # send result is ignored, Telegram must not retry the update
        ws.telegram.send_message(chat_id, reply, reply_markup=webapp_keyboard(ws.settings.frontend_url))

    return json_response({"ok": True})


# ── webapp auth ─────────────────────────────────────────────────────────────

def auth_telegram():
    body = json_body()
    if not validate_webapp_data(body.get("initData"), workspace().settings.bot_token):
        logger.info("webapp auth failed")
        return json_response({"error": "auth_failed"}, 401)
    return json_response({"ok": True, "token": DEMO_TOKEN})


# ── collections ─────────────────────────────────────────────────────────────

def list_collection(key: str):
    return json_response(read_collection(workspace().kv, key))


def add_to_collection(key: str):
    item = append_record(workspace().kv, key, json_body())
    return json_response({"id": item["id"]})


ROUTES = [
    ("GET", "/health", health),
    ("POST", "/bot", bot_webhook),
    ("POST", "/api/auth/telegram", auth_telegram),
    ("GET", "/api/crm/clients", lambda: list_collection("clients")),
    ("POST", "/api/crm/clients", lambda: add_to_collection("clients")),
    ("GET", "/api/tasks", lambda: list_collection("tasks")),
    ("POST", "/api/tasks", lambda: add_to_collection("tasks")),
]


# ── app ─────────────────────────────────────────────────────────────────────

def create_app(settings: Settings | None = None, kv=None, telegram=None) -> Flask:
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.json.sort_keys = False
    # backend faults always get the generic 500, debug or not
    app.config["PROPAGATE_EXCEPTIONS"] = False
    app.extensions["workspace"] = SimpleNamespace(
        settings=settings,
        kv=kv if kv is not None else open_kv(settings.kv_path),
        telegram=telegram or TelegramClient(settings.bot_token, settings.telegram_api_url),
    )

    for method, path, view in ROUTES:
        app.add_url_rule(
            path,
            endpoint=f"{method} {path}",
            view_func=view,
            methods=[method],
            provide_automatic_options=False,
        )

    @app.before_request
    def preflight():
        # CORS preflight, any path
        if request.method == "OPTIONS":
            return "", 200, cors_headers(request.headers.get("Origin"))

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        return "Not found", 404, {"Content-Type": "text/plain; charset=utf-8"}

    @app.errorhandler(500)
    def server_error(e):
        return json_response({"error": "internal_error"}, 500)

    return app


def run():
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    app = create_app(settings)
    app.run(host=settings.host, port=settings.port, debug=settings.debug)


if __name__ == "__main__":
    run()
