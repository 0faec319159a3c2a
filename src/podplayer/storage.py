"""
Pure storage layer for file operations.

This module provides low-level file operations without any business logic.
"""

import json
import logging
import os
from typing import Any, Dict, Optional


class Storage:
    """Pure file operations without business logic."""

    def __init__(self, base_dir: str = "./data"):
        """Initialize with base directory."""
        self.base_dir = base_dir
        self.logger = logging.getLogger(__name__)

    def ensure_directory(self, path: str) -> bool:
        """Create directory if it doesn't exist, return success status."""
        try:
            os.makedirs(path, exist_ok=True)
            return True
        except OSError as e:
            self.logger.warning("Could not create directory %s: %s", path, e)
            return False

    def file_exists(self, path: str) -> bool:
        """Check if file exists."""
        return os.path.exists(path)

    def read_json(self, path: str) -> Optional[Dict[str, Any]]:
        """Read JSON file, return None if file doesn't exist or invalid JSON."""
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                return data if isinstance(data, dict) else None
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            self.logger.warning("Could not read %s: %s", path, e)
            return None

    def write_json(self, path: str, data: Dict[str, Any]) -> bool:
        """Write data to JSON file atomically, return success status."""
        directory = os.path.dirname(path)
        if directory and not self.ensure_directory(directory):
            return False

        temp_path = f"{path}.tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            self.logger.warning("Could not write %s: %s", path, e)
            self.remove(temp_path)
            return False

    def remove(self, path: str) -> bool:
        """Delete a file if present, return success status."""
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            self.logger.warning("Could not remove %s: %s", path, e)
            return False

    def join_path(self, *parts: str) -> str:
        """Join path parts."""
        return os.path.join(*parts)
