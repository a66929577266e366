import copy
import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv

from services.clock import parse_time, parse_utc_offset
from services.errors import ConfigurationError

DEFAULT_CONFIG = {
    "reconciliation": {
        "run_time": "23:00",
        "auto_checkout_time": "16:30",
        "utc_offset": "+05:00",
    },
    "datastore": {
        "url": "",
        "key": "",
        "timeout_seconds": 30,
        "tables": {
            "users": "users",
            "holidays": "holidays",
            "attendance": "attendance_logs",
            "absences": "absentees",
        },
    },
    "notification": {
        "enabled": False,
        "endpoint": "http://localhost:4000/send-singlenotifications",
        "title": "Auto Check Out",
        "body": "You are Checked Out Automatically for today on [{time}] PKT",
    },
    "slack": {
        "enabled": True,
        "notify_channel": "",
    },
    "reminders": [
        {"time": "08:45", "message": "🌞 Good Morning! Please Don't Forget To Check In."},
        {"time": "12:45", "message": "🔔 Reminder: Please Dont Forget To start Break!"},
        {"time": "13:45", "message": "🔔 Reminder: Please Dont Forget To End Break!"},
        {"time": "16:45", "message": "Hello Everyone! Ensure You Have Checked Out From EMS."},
    ],
    "logging": {
        "level": "INFO",
    },
}

# 環境変数 → 設定キーのパス
ENV_OVERRIDES = {
    "SUPABASE_URL": ("datastore", "url"),
    "SUPABASE_ANON_KEY": ("datastore", "key"),
    "SLACK_NOTIFY_CHANNEL": ("slack", "notify_channel"),
    "NOTIFICATION_ENDPOINT": ("notification", "endpoint"),
    "LOG_LEVEL": ("logging", "level"),
}

_HHMM_RE = re.compile(r"^\d{1,2}:\d{2}$")


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env(config: dict) -> dict:
    """環境変数（.env含む）で設定を上書きする"""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[section][key] = value
    return config


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定・環境変数とマージして返す"""
    load_dotenv()
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        config = _deep_merge(config, user_config)
    return _apply_env(config)


def _check_time(value, name: str):
    if not isinstance(value, str) or not _HHMM_RE.match(value):
        raise ConfigurationError(f"{name} は HH:MM 形式で指定してください: {value!r}")
    try:
        parse_time(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} が不正です: {value!r}") from e


def validate_config(config: dict) -> dict:
    """必須設定と書式を検証する（不備があれば ConfigurationError）"""
    datastore = config["datastore"]
    if not datastore.get("url"):
        raise ConfigurationError("データストアURL (SUPABASE_URL) が設定されていません")
    if not datastore.get("key"):
        raise ConfigurationError("データストアキー (SUPABASE_ANON_KEY) が設定されていません")

    rules = config["reconciliation"]
    _check_time(rules.get("run_time"), "reconciliation.run_time")
    _check_time(rules.get("auto_checkout_time"), "reconciliation.auto_checkout_time")
    try:
        parse_utc_offset(str(rules.get("utc_offset", "")))
    except ValueError as e:
        raise ConfigurationError(f"reconciliation.utc_offset が不正です: {e}") from e

    for i, reminder in enumerate(config.get("reminders") or []):
        if not reminder.get("message"):
            raise ConfigurationError(f"reminders[{i}] に message がありません")
        _check_time(reminder.get("time"), f"reminders[{i}].time")

    if config["notification"]["enabled"] and not config["notification"].get("endpoint"):
        raise ConfigurationError("notification.endpoint が設定されていません")
    return config


def reconciliation_timezone(config: dict):
    """突合に使う固定オフセットのタイムゾーン"""
    return parse_utc_offset(config["reconciliation"]["utc_offset"])
