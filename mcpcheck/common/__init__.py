"""Shared config loading."""

from .config import PROJECT_ROOT, load_app_config, project_path

__all__ = [
    "PROJECT_ROOT",
    "load_app_config",
    "project_path",
]
