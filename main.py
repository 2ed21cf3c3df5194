"""
Main entry point for the G-code toolpath simulator.
Sets up logging, initializes the Qt application and main window, and starts the event loop.
"""

import argparse
import sys

from PySide6.QtWidgets import QApplication

from config.simulator_config import ConfigManager
from gui.main_window import MainWindow
from utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="G-code toolpath simulator")
    parser.add_argument("file", nargs="?", help="G-code or DXF file to open")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--preset", default="default", help="Configuration preset (default, preview)")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser.parse_args(argv)


def main():
    """Initializes and runs the PySide6 application."""
    args = parse_args()
    setup_logging(args.log_level, args.log_file)

    if args.config:
        config = ConfigManager.load_config(args.config)
    else:
        config = ConfigManager.get_config(args.preset)
    logger.info(f"Starting simulator with configuration '{config.name}'")

    app = QApplication(sys.argv[:1])
    window = MainWindow(config)
    if args.file:
        window.open_path(args.file)
    window.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
