"""
FrameCraft Frame Asset Service - Flask Application Factory
Matches customer photos to frame templates and renders frame previews
"""

import atexit
import os
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import AppConfig, load_config
from .frame_assets import create_frame_asset_manager


def create_app(overrides=None, config_name=None):
    """Flask application factory"""

    load_dotenv()

    app = Flask(__name__)

    environment = config_name or os.getenv('FLASK_ENV', 'development')
    config = load_config(environment)
    if overrides:
        config = AppConfig(**{**config.model_dump(), **overrides})
    app.config.update(config.model_dump())

    setup_logging(app)
    setup_directories(app)

    # One asset manager (and cache) per application
    manager = create_frame_asset_manager(config)
    app.extensions['frame_assets'] = manager
    atexit.register(manager.shutdown, wait=False)

    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"FrameCraft frame asset service initialized in {environment} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )


def setup_directories(app):
    """Ensure required directories exist"""
    dirs = [
        app.config.get('FRAME_ASSET_DIR', 'assets/frames'),
        Path(app.config.get('LOG_FILE', 'logs/app.log')).parent,
    ]

    for dir_path in dirs:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
