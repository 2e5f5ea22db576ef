import json
import os
from typing import Any, Dict, Tuple
from .models import SettingsModel


DEFAULT_SETTINGS = {
    "plans": {
        "free": 10,
        "professional": 50,
        "business": 200,
    },
    "batch_size": 20,
}

REQUIRED_PLANS = ("free", "professional", "business")


_CACHE: Dict[str, Tuple[float, Dict[str, Any]]] = {}


def _settings_path() -> str:
    path = os.getenv("LEADCLOSER_SETTINGS")
    if path:
        return path
    base = os.path.dirname(__file__)
    return os.path.join(base, "settings.json")


def ensure_settings_file() -> None:
    path = _settings_path()
    if not os.path.exists(path):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(DEFAULT_SETTINGS, f, indent=2)


def validate_settings(data: Dict[str, Any]) -> SettingsModel:
    model = SettingsModel.model_validate(data)
    for plan in REQUIRED_PLANS:
        if plan not in model.plans:
            raise ValueError(f"plans must define a lead limit for '{plan}'")
    for plan, limit in model.plans.items():
        if limit <= 0:
            raise ValueError(f"lead limit for '{plan}' must be a positive integer")
    if model.batch_size <= 0:
        raise ValueError("batch_size must be a positive integer")
    return model


def load_settings() -> Dict[str, Any]:
    ensure_settings_file()
    path = _settings_path()
    mtime = os.path.getmtime(path)
    cached = _CACHE.get(path)
    if cached and cached[0] == mtime:
        return cached[1]
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    model = validate_settings(data)
    settings = model.model_dump()
    _CACHE[path] = (mtime, settings)
    return settings


def save_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    model = validate_settings(data)
    path = _settings_path()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(model.model_dump(), f, indent=2)
    mtime = os.path.getmtime(path)
    _CACHE[path] = (mtime, model.model_dump())
    return model.model_dump()


def lead_limit(plan: str) -> int:
    return int(load_settings()["plans"].get(plan, DEFAULT_SETTINGS["plans"]["free"]))
