#signalwatch/__main__.py
"""
Command-line entry point: ``python -m signalwatch --region X,Y,W,H``.

Runs the monitoring session inside a Qt event loop until interrupted.
"""
import argparse
import logging
import signal
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from signalwatch.application.app import initialize_app
from signalwatch.domain.common.errors import EngineInitializationError
from signalwatch.domain.models.monitor_settings import MonitorSettings
from signalwatch.domain.models.preprocess_config import PRESETS
from signalwatch.domain.models.region_model import Region
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_monitoring_service import IMonitoringService
from signalwatch.utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="signalwatch",
                                 description="Watch a screen region for BUY/SELL labels and notify on rule matches.")
    ap.add_argument("--region", help="Region to watch as X,Y,W,H (defaults to the configured region)")
    ap.add_argument("--preset", choices=sorted(PRESETS), help="Preprocessing preset")
    ap.add_argument("--config", default=None, help="Path of config.json")
    ap.add_argument("--rules", default=None, help="Path of rules.json")
    ap.add_argument("--templates", default=None, help="Template library directory")
    ap.add_argument("--debug", action="store_true", help="Verbose console logging")
    return ap


def apply_overrides(settings: MonitorSettings, args: argparse.Namespace) -> MonitorSettings:
    """
    Apply command-line overrides in place.

    Raises:
        ValueError: If --region is malformed
    """
    if args.region:
        settings.region = Region.parse(args.region)
    if args.preset:
        settings.preset = args.preset
    if args.templates:
        settings.template_dir = args.templates
    return settings


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log_level = logging.DEBUG if args.debug else logging.INFO
    setup_logging(log_level)

    app = QApplication(sys.argv[:1])
    app.setApplicationName("signalwatch")

    container = initialize_app(config_file=args.config, rules_file=args.rules, log_level=log_level)
    logger = container.resolve(ILoggerService)

    # Services are built lazily, so overrides reach them through the shared settings
    settings = container.resolve(MonitorSettings)
    try:
        apply_overrides(settings, args)
    except ValueError as e:
        logger.error(f"Invalid --region: {e}")
        return 2

    if settings.region is None:
        logger.error("No region configured; pass --region X,Y,W,H")
        return 2

    try:
        monitoring = container.resolve(IMonitoringService)
    except EngineInitializationError as e:
        logger.critical(f"Cannot start: {e}")
        return 1

    start_result = monitoring.start_monitoring(settings.region)
    if start_result.is_failure:
        logger.error(f"Failed to start monitoring: {start_result.error}")
        return 1

    app.aboutToQuit.connect(monitoring.shutdown)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    # Give the interpreter a chance to run signal handlers
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(250)

    logger.info("Watching region, press Ctrl+C to stop", region=str(settings.region.as_tuple()))
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
