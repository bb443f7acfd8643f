import copy
import os
from pathlib import Path

import yaml

DEFAULT_CONFIG = {
    "store": {
        "backend": "sheets",
        "spreadsheet_id": "",
        "credentials_path": "credentials.json",
        "timeout_seconds": 15,
    },
    "sheets": {
        "roster": "Staff Roster",
        "dashboard": "Dashboard",
        "break_log": "Break Log",
    },
    "time": {
        "timezone": "Europe/London",
        "date_format": "%m/%d/%Y",
        "time_format": "%H:%M:%S",
    },
    "index": {
        "refresh_interval_minutes": 10,
    },
    "slack": {
        "enabled": False,
        "notify_channel": "",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
        "log_level": "INFO",
    },
}

# 環境変数 -> (セクション, キー)
ENV_OVERRIDES = {
    "GOOGLE_SHEETS_ID": ("store", "spreadsheet_id"),
    "GOOGLE_CREDENTIALS_PATH": ("store", "credentials_path"),
    "STORE_BACKEND": ("store", "backend"),
    "SLACK_NOTIFY_CHANNEL": ("slack", "notify_channel"),
}


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env(config: dict, environ) -> dict:
    """環境変数の値で設定を上書きする（空文字は無視）"""
    overrides: dict = {}
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name, "")
        if value:
            overrides.setdefault(section, {})[key] = value
    return _deep_merge(config, overrides)


def load_config(path: str = "config.yaml", environ=None) -> dict:
    """YAML設定ファイルをロードし、デフォルト設定・環境変数とマージして返す"""
    if environ is None:
        environ = os.environ

    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        config = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)
    return _apply_env(config, environ)
