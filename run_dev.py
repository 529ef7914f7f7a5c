#!/usr/bin/env python3
"""
FrameCraft Frame Asset Service - Development Runner
Run this script to start the development server
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

os.environ.setdefault('FLASK_APP', 'framecraft')
os.environ.setdefault('FLASK_ENV', 'development')

from framecraft import create_app


def main():
    """Main entry point"""
    print("=" * 60)
    print("FrameCraft Frame Asset Service - Development Server")
    print("=" * 60)

    app = create_app()

    print(f"Environment: {app.config.get('FLASK_ENV', 'unknown')}")
    print(f"Debug mode: {app.config.get('DEBUG', False)}")
    print(f"Log level: {app.config.get('LOG_LEVEL', 'INFO')}")

    frames_dir = Path(app.config['FRAME_ASSET_DIR'])
    fallback = frames_dir / app.config['FALLBACK_FRAME_ASSET']
    if not fallback.exists():
        print(f"Warning: fallback frame asset missing: {fallback}")
        print("   Previews will use plain frames until the asset bundle is installed.")

    if not Path('config/settings.yaml').exists():
        print("Warning: config/settings.yaml not found, using defaults")

    print("-" * 60)
    print("Open your browser to: http://localhost:5000/health")
    print("Press Ctrl+C to stop")
    print("-" * 60)

    app.run(
        host='0.0.0.0',
        port=5000,
        debug=app.config.get('DEBUG', True),
        use_reloader=True,
        threaded=True
    )


if __name__ == '__main__':
    main()
