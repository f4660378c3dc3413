"""Central configuration loader for RiskProfiler."""

import copy
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the riskprofiler/ package
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_SETTINGS: dict = {
    "app": {
        "log_level": "INFO",
    },
    "analytics": {
        "risk_free_rate": 0.06,      # Indian 10y G-sec proxy
        "market_return": 0.12,
        "covariance": "lookup",      # "lookup" | "sample"
        "placeholder_covariance": 0.01,
        "monte_carlo": {
            "horizon_days": 252,
            "num_scenarios": 5000,
            "chunk_size": 500,
            "max_workers": 4,
            "variate": "irwin_hall",  # "irwin_hall" | "gaussian"
        },
        "frontier": {
            "num_points": 20,
            "min_return": 0.05,
            "max_return": 0.25,
        },
        "clustering": {
            "strategy": "single_pass",  # "single_pass" | "iterative"
            "k": 3,
            "max_iter": 100,
        },
    },
    "market": {},
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def settings_path() -> Path:
    """Resolve the settings file: $RISKPROFILER_SETTINGS or configs/settings.yaml."""
    env_path = os.getenv("RISKPROFILER_SETTINGS")
    if env_path:
        return Path(env_path)
    return PROJECT_ROOT / "configs" / "settings.yaml"


def load_settings(path: str | Path | None = None) -> dict:
    """Load settings from YAML, layered over DEFAULT_SETTINGS.

    A missing file is not an error: the built-in defaults are returned.
    """
    path = Path(path) if path is not None else settings_path()
    loaded: dict = {}
    if path.exists():
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
    settings = _deep_merge(DEFAULT_SETTINGS, loaded)

    level = os.getenv("RISKPROFILER_LOG_LEVEL")
    if level:
        settings["app"]["log_level"] = level
    return settings


SETTINGS = load_settings()


def analytics_setting(*keys: str, default=None, settings: dict | None = None):
    """Walk ``settings["analytics"]`` by *keys*, returning *default* when absent."""
    node = (settings if settings is not None else SETTINGS).get("analytics", {})
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    CONFIGS = PROJECT_ROOT / "configs"
