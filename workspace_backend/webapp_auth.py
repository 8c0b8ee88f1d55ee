"""Telegram WebApp initData signature check.

https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

import hashlib
import hmac
from urllib.parse import parse_qsl, urlencode

WEBAPP_KEY = b"WebAppData"


def _data_check_string(fields: dict) -> str:
    # sorted key=value pairs joined by \n
    return "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))


def _signature(data_check_string: str, bot_token: str) -> str:
    # secret key = HMAC-SHA256 of bot token, keyed with "WebAppData"
    secret_key = hmac.new(WEBAPP_KEY, bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def validate_webapp_data(init_data, bot_token: str) -> bool:
    if not init_data or not isinstance(init_data, str):
        return False

    # last value wins on repeated keys
    data = dict(parse_qsl(init_data, keep_blank_values=True))

    received_hash = data.pop("hash", None)
    if not received_hash:
        return False

    expected_hash = _signature(_data_check_string(data), bot_token or "")
    return hmac.compare_digest(expected_hash.encode(), received_hash.encode())


def sign_webapp_data(fields: dict, bot_token: str) -> str:
    """Build an initData query string signed the way Telegram signs it."""
    fields = {k: str(v) for k, v in fields.items() if k != "hash"}
    signed = dict(fields, hash=_signature(_data_check_string(fields), bot_token))
    return urlencode(signed)
