# utils/io_utils.py
import os
import yaml

from utils.constants import DEFAULT_CONFIG


def load_config(path: str = None) -> dict:
    """
    Load the forecast.yaml run configuration.
    If no path provided, defaults to config/forecast.yaml next to the source modules.
    """
    if path is None:
        # project root = parent of utils/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        path = os.path.join(project_root, "config", DEFAULT_CONFIG)

    if not os.path.exists(path):
        raise FileNotFoundError(f"{DEFAULT_CONFIG} not found at: {path}")
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    for section in ("data", "output", "calendar", "validation", "models", "adjustment"):
        cfg.setdefault(section, {})
    return cfg


def resolve_data_path(filename: str | None, data_dir: str | None = None) -> str | None:
    if filename is None:
        return None
    if os.path.isabs(filename):
        return filename
    return os.path.join(data_dir or ".", filename)
