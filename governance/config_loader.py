"""
Configuration Loader for Governance Engine

This module loads configuration from JSON file and provides fallback defaults.
"""

import json
import os
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)

# Default configuration (used as fallback)
DEFAULT_CONFIG = {
    "time_window": {
        # Product-local day used when the caller does not supply its own local time
        "timezone": "Asia/Kuala_Lumpur"
    },
    "context_labels": {
        "project_opened": "Project opened",
        "focus_mode_started": "Focus Mode started",
        "task_created": "Task created",
        "task_completed": "Task completed"
    }
}

# Cache for loaded config
_config_cache: Dict[str, Any] = None


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file.
    
    Args:
        config_path: Path to config file. If None, uses default path relative to this module.
    
    Returns:
        Configuration dictionary. Returns default config if file not found or invalid.
    """
    global _config_cache
    
    # Return cached config if available
    if _config_cache is not None:
        return _config_cache
    
    if config_path is None:
        module_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(module_dir, "config.json")
    
    try:
        if os.path.exists(config_path):
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            _config_cache = config
            return config
        else:
            logger.warning(f"Config file not found at {config_path}, using default configuration")
            _config_cache = DEFAULT_CONFIG
            return DEFAULT_CONFIG
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {config_path}: {e}. Using default configuration.")
        _config_cache = DEFAULT_CONFIG
        return DEFAULT_CONFIG
    except OSError as e:
        logger.error(f"Error reading config file {config_path}: {e}. Using default configuration.")
        _config_cache = DEFAULT_CONFIG
        return DEFAULT_CONFIG


def get_timezone_name() -> str:
    """
    Name of the product timezone used for TimeWindow day boundaries.
    
    GOVERNANCE_TIMEZONE in the environment overrides the config file.
    """
    env_timezone = os.getenv("GOVERNANCE_TIMEZONE")
    if env_timezone:
        return env_timezone
    config = load_config()
    return config.get("time_window", {}).get("timezone", DEFAULT_CONFIG["time_window"]["timezone"])
