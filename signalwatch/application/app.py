#signalwatch/application/app.py

import logging
import os
from typing import Optional

from signalwatch.domain.common.di_container import DIContainer
from signalwatch.domain.models.monitor_settings import MonitorSettings
from signalwatch.domain.models.preprocess_config import get_preset, READABLE
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_background_task_service import IBackgroundTaskService
from signalwatch.domain.services.i_config_repository_service import IConfigRepository
from signalwatch.domain.services.i_rule_repository_service import IRuleRepository
from signalwatch.domain.services.i_screenshot_service import IScreenshotService
from signalwatch.domain.services.i_image_hash_service import IImageHashService
from signalwatch.domain.services.i_preview_service import IPreviewService
from signalwatch.domain.services.i_recognition_engine import IRecognitionEngine
from signalwatch.domain.services.i_match_handler import IMatchHandler
from signalwatch.domain.services.i_monitoring_service import IMonitoringService

from signalwatch.infrastructure.logging.logger_service import ConsoleLoggerService
from signalwatch.infrastructure.threading.qt_background_task_service import QtBackgroundTaskService
from signalwatch.infrastructure.config.json_config_repository import JsonConfigRepository
from signalwatch.infrastructure.config.json_rule_repository import JsonRuleRepository
from signalwatch.infrastructure.platform.screenshot_service import QtScreenshotService
from signalwatch.infrastructure.platform.image_hash_service import AverageHashService
from signalwatch.infrastructure.platform.preview_service import QtPreviewService
from signalwatch.infrastructure.platform.monitoring_service import MonitoringService
from signalwatch.infrastructure.ocr.tesseract_engine import TesseractEngine
from signalwatch.infrastructure.ocr.preprocessor import ImagePreprocessor
from signalwatch.infrastructure.ocr.recognition_orchestrator import RecognitionOrchestrator
from signalwatch.infrastructure.ocr.label_scorer import LabelScorer
from signalwatch.infrastructure.ocr.template_matcher import TemplateLibrary, TemplateMatcher
from signalwatch.infrastructure.ocr.signal_pipeline import SignalPipeline
from signalwatch.infrastructure.rules.rule_engine import RuleEngine
from signalwatch.infrastructure.notifications.cooldown import NotifyCooldown
from signalwatch.infrastructure.notifications.notification_queue import NotificationQueue
from signalwatch.infrastructure.notifications.webhook_notifier import WebhookNotifier, resolve_webhook_url
from signalwatch.infrastructure.notifications.match_handler import QueueMatchHandler


def _build_template_matcher(settings: MonitorSettings, logger: ILoggerService) -> Optional[TemplateMatcher]:
    library = TemplateLibrary.from_directory(settings.template_dir, logger)
    if library.is_empty:
        logger.info("No templates loaded, recognition only", template_dir=settings.template_dir)
        return None
    return TemplateMatcher(library, logger,
                           accept_threshold=settings.template_accept_threshold,
                           scales=settings.template_scales)


def _resolve_preset(settings: MonitorSettings, logger: ILoggerService):
    try:
        return get_preset(settings.preset)
    except KeyError:
        logger.warning(f"Unknown preprocessing preset '{settings.preset}', using readable")
        return READABLE


def initialize_app(config_file: Optional[str] = None,
                   rules_file: Optional[str] = None,
                   settings: Optional[MonitorSettings] = None,
                   log_level: int = logging.INFO) -> DIContainer:
    """
    Wire the monitoring session.

    Args:
        config_file: Path of config.json, defaults to the working directory
        rules_file: Path of rules.json, defaults to the working directory
        settings: Settings overriding the ones loaded from config_file
        log_level: Level of the application logger

    Returns:
        Container with every service registered. Resolving IRecognitionEngine
        (directly or through IMonitoringService) raises
        EngineInitializationError when Tesseract is unavailable.
    """
    container = DIContainer()

    # Core services
    logger = ConsoleLoggerService(level=log_level)
    container.register_instance(ILoggerService, logger)

    config_file = config_file or os.path.join(os.getcwd(), "config.json")
    config_repo = JsonConfigRepository(config_file, logger)
    container.register_instance(IConfigRepository, config_repo)

    if settings is None:
        settings = config_repo.get_monitor_settings()
    container.register_instance(MonitorSettings, settings)

    rules_file = rules_file or os.path.join(os.getcwd(), "rules.json")
    container.register_instance(IRuleRepository, JsonRuleRepository(rules_file, logger))

    thread_service = QtBackgroundTaskService(logger, cancel_timeout=settings.shutdown_timeout_seconds)
    container.register_instance(IBackgroundTaskService, thread_service)

    # Capture and preview
    container.register_factory(
        IScreenshotService,
        lambda: QtScreenshotService(container.resolve(ILoggerService)),
        singleton=True
    )
    container.register_instance(IImageHashService, AverageHashService())
    container.register_factory(IPreviewService, QtPreviewService, singleton=True)

    # Recognition
    container.register_factory(
        IRecognitionEngine,
        lambda: TesseractEngine(container.resolve(ILoggerService), lang=settings.tesseract_lang),
        singleton=True
    )

    container.register_factory(
        SignalPipeline,
        lambda: SignalPipeline(
            preprocessor=ImagePreprocessor(logger),
            orchestrator=RecognitionOrchestrator(container.resolve(IRecognitionEngine), logger),
            scorer=LabelScorer(logger, settings.target_labels),
            rule_engine=RuleEngine(logger, fuzzy_threshold=settings.fuzzy_threshold),
            logger=logger,
            preprocess_config=_resolve_preset(settings, logger),
            settings=settings,
            template_matcher=_build_template_matcher(settings, logger)
        ),
        singleton=True
    )

    # Notifications
    container.register_factory(
        NotificationQueue,
        lambda: NotificationQueue(
            WebhookNotifier(resolve_webhook_url(settings.webhook_key, logger), logger),
            logger,
            duplicate_window=settings.duplicate_window_seconds,
            retry_delay=settings.retry_delay_seconds,
            min_interval=settings.min_delivery_interval_seconds
        ),
        singleton=True
    )

    container.register_factory(
        IMatchHandler,
        lambda: QueueMatchHandler(container.resolve(NotificationQueue), logger),
        singleton=True
    )

    container.register_factory(
        IMonitoringService,
        lambda: MonitoringService(
            screenshot_service=container.resolve(IScreenshotService),
            hash_service=container.resolve(IImageHashService),
            preview_service=container.resolve(IPreviewService),
            pipeline=container.resolve(SignalPipeline),
            match_handler=container.resolve(IMatchHandler),
            rule_repository=container.resolve(IRuleRepository),
            thread_service=container.resolve(IBackgroundTaskService),
            logger=logger,
            settings=settings,
            cooldown=NotifyCooldown(settings.cooldown_seconds),
            notification_queue=container.resolve(NotificationQueue)
        ),
        singleton=True
    )

    logger.info("Application dependencies initialized")

    return container
