"""
Configuration management for the FrameCraft frame asset service
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from loguru import logger


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True
    TESTING: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Frame assets
    FRAME_ASSET_DIR: str = "assets/frames"
    FALLBACK_FRAME_ASSET: str = "black_wood_thin_4x3.png"
    ASSET_LOADER_WORKERS: int = 4

    # Uploads
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp"]

    # Preview canvas
    PREVIEW_WIDTH: int = 400
    PREVIEW_HEIGHT: int = 300
    PREVIEW_BORDER_PX: int = 20
    PREVIEW_BACKGROUND: str = "#f5f5f5"


class FrameOption(BaseModel):
    """A colour, material or thickness offered to customers"""
    name: str
    display_name: Optional[str] = None
    hex_code: Optional[str] = None
    thickness_mm: Optional[float] = None
    is_active: bool = True


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development", config_dir: str = "config") -> AppConfig:
    """Load configuration with environment-specific overrides"""

    base_config = load_yaml_config(f"{config_dir}/settings.yaml")
    env_config = load_yaml_config(f"{config_dir}/settings_{environment}.yaml")

    # env overrides base
    config_dict = {**base_config, **env_config}

    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'FRAME_ASSET_DIR': os.getenv('FRAME_ASSET_DIR'),
        'FALLBACK_FRAME_ASSET': os.getenv('FALLBACK_FRAME_ASSET'),
    }

    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    try:
        return AppConfig(**config_dict)
    except Exception as e:
        logger.error(f"Configuration validation error: {e}")
        return AppConfig()


def load_frame_options(config_dir: str = "config") -> Dict[str, List[FrameOption]]:
    """Load the colours, materials and thicknesses offered to customers"""
    config_data = load_yaml_config(f"{config_dir}/frame_options.yaml")
    options = {}

    for group in ("colors", "materials", "thicknesses"):
        entries = []
        for item in config_data.get(group, []):
            try:
                option = FrameOption(**item)
            except Exception as e:
                logger.error(f"Error loading {group} option {item.get('name', 'unknown')}: {e}")
                continue
            if option.is_active:
                entries.append(option)
        options[group] = entries

    summary = ", ".join(f"{len(v)} {k}" for k, v in options.items())
    logger.info(f"Loaded frame options: {summary}")
    return options
