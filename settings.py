"""
settings.json を読み込んで Bot / Webhook / ステータスAPI 用の設定を提供するモジュール。
settings-template.json を複製して settings.json を作成してください。
"""

import json
from pathlib import Path

CONFIG_PATH = Path(__file__).with_name("settings.json")

TRACKING_MODES = ("all", "watched")
MOVE_POLICIES = ("single", "split", "carry")


def _load_config() -> dict:
    if not CONFIG_PATH.exists():
        raise FileNotFoundError(
            "settings.json が見つかりません。settings-template.json をコピーして値を設定してください。"
        )

    try:
        with CONFIG_PATH.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"settings.json の読み込みに失敗しました: {e}") from e


def _require(config: dict, key: str):
    if key not in config:
        raise KeyError(f"settings.json に {key} が設定されていません。")
    value = config[key]
    if value in (None, ""):
        raise ValueError(f"settings.json の {key} が空です。")
    return value


def _require_str(config: dict, key: str) -> str:
    value = _require(config, key)
    return str(value)


def _optional_str(config: dict, key: str, default: str | None = None) -> str:
    value = config.get(key, default)
    if value is None:
        return ""
    return str(value)


def _optional_int(config: dict, key: str, default: int) -> int:
    value = config.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"settings.json の {key} は数値で指定してください。") from e


def _optional_bool(config: dict, key: str, default: bool) -> bool:
    value = config.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _choice(config: dict, key: str, choices: tuple, default: str) -> str:
    value = _optional_str(config, key, default).strip().lower() or default
    if value not in choices:
        raise ValueError(f"settings.json の {key} は {' / '.join(choices)} のいずれかを指定してください。")
    return value


def _id_list(config: dict, key: str) -> list[str]:
    value = config.get(key) or []
    if isinstance(value, (str, int)):
        value = str(value).split(",")
    return [str(v).strip() for v in value if str(v).strip()]


_config = _load_config()

# Discord Bot Token
TOKEN = _require_str(_config, "TOKEN")

# Webhook 送信先（文字列 / CSV / 配列 / {"url": ...}）
WEBHOOK_URLS = _config.get("WEBHOOK_URLS") or _config.get("WEBHOOK_URL") or []
WEBHOOK_TIMEOUT_SEC = _optional_int(_config, "WEBHOOK_TIMEOUT_SEC", 10)

# 追跡モード / 監視対象VC / 移動時の扱い
TRACKING_MODE = _choice(_config, "TRACKING_MODE", TRACKING_MODES, "all")
WATCHED_CHANNEL_IDS = _id_list(_config, "WATCHED_CHANNEL_IDS")
MOVE_POLICY = _choice(_config, "MOVE_POLICY", MOVE_POLICIES, "single")

TIMEZONE = _optional_str(_config, "TIMEZONE", "America/Sao_Paulo") or "America/Sao_Paulo"

# ステータスAPI
STATUS_API_ENABLED = _optional_bool(_config, "STATUS_API_ENABLED", True)
STATUS_API_HOST = _optional_str(_config, "STATUS_API_HOST", "0.0.0.0") or "0.0.0.0"
STATUS_API_PORT = _optional_int(_config, "STATUS_API_PORT", 49162)

LOG_LEVEL = (_optional_str(_config, "LOG_LEVEL", "INFO") or "INFO").upper()
