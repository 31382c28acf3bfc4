#signalwatch/infrastructure/ocr/signal_pipeline.py
"""
Recognition and extraction pipeline for one cropped region image.

preprocess -> template fast path -> (fallback) recognition on binary and
gray variants -> label scoring -> rule extraction. The outcome is a
TickResult whose status tells the monitoring loop what happened; nothing in
here raises for an expected "no signal" outcome.
"""
from typing import List, Optional, Sequence, Tuple

import numpy as np

from signalwatch.domain.models.extract_rule import ExtractRule
from signalwatch.domain.models.label_candidate import LabelCandidate
from signalwatch.domain.models.monitor_settings import MonitorSettings
from signalwatch.domain.models.monitoring_result import TickResult, TickStatus
from signalwatch.domain.models.preprocess_config import PreprocessConfig
from signalwatch.domain.services.i_background_task_service import CancellationToken
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.infrastructure.ocr.label_scorer import LabelScorer
from signalwatch.infrastructure.ocr.preprocessor import ImagePreprocessor, right_edge_crop
from signalwatch.infrastructure.ocr.recognition_orchestrator import RecognitionOrchestrator
from signalwatch.infrastructure.ocr.template_matcher import TemplateMatcher
from signalwatch.infrastructure.rules.rule_engine import RuleEngine

RIGHT_CROP_FRACTION = 0.32


class SignalPipeline:
    """
    Turns a cropped region image into label candidates and rule matches.

    The template matcher is optional; without one every tick goes through
    text recognition.
    """

    def __init__(self,
                 preprocessor: ImagePreprocessor,
                 orchestrator: RecognitionOrchestrator,
                 scorer: LabelScorer,
                 rule_engine: RuleEngine,
                 logger: ILoggerService,
                 preprocess_config: PreprocessConfig,
                 settings: Optional[MonitorSettings] = None,
                 template_matcher: Optional[TemplateMatcher] = None):
        self.preprocessor = preprocessor
        self.orchestrator = orchestrator
        self.scorer = scorer
        self.rule_engine = rule_engine
        self.logger = logger
        self.preprocess_config = preprocess_config
        self.settings = settings or MonitorSettings()
        self.template_matcher = template_matcher

    def process(self, image: np.ndarray, rules: Sequence[ExtractRule],
                cancellation_token: Optional[CancellationToken] = None) -> TickResult:
        """
        Run the pipeline on one cropped region image.

        Args:
            image: Raw BGR/gray crop of the watched region
            rules: Extraction rules (any order)
            cancellation_token: Cancellation of the calling task

        Returns:
            TickResult with status MATCHED, NOT_FOUND, LOW_CONFIDENCE or ERROR
        """
        preprocessed = self.preprocessor.preprocess(image, self.preprocess_config)
        if preprocessed.is_failure:
            return TickResult(status=TickStatus.ERROR, error=preprocessed.error)
        prepared = preprocessed.value

        if self.template_matcher is not None:
            template_result = self._check_templates(prepared.binary, rules, cancellation_token)
            if template_result is not None:
                return template_result

        candidates, raw_texts = self._recognize_and_score(prepared)
        chosen = self.scorer.choose(candidates)

        if self.settings.right_crop_fallback and (chosen is None or chosen.confidence < self.settings.notify_threshold):
            retry = self._retry_right_edge(image)
            if retry is not None:
                retry_candidates, retry_texts = retry
                raw_texts.extend(retry_texts)
                retry_chosen = self.scorer.choose(retry_candidates)
                if retry_chosen is not None and (chosen is None or retry_chosen.confidence > chosen.confidence):
                    chosen = retry_chosen

        return self._decide(chosen, rules, raw_texts)

    def _check_templates(self, binary: np.ndarray, rules: Sequence[ExtractRule],
                         cancellation_token: Optional[CancellationToken]) -> Optional[TickResult]:
        result = self.template_matcher.check(binary, cancellation_token, self.settings.template_timeout_seconds)
        if result.timed_out:
            self.logger.debug("Template check timed out, falling back to recognition",
                              tried=result.tried_count, elapsed=f"{result.elapsed_seconds:.3f}s")
            return None
        if not result.found or result.best_score < self.settings.template_accept_threshold:
            return None

        candidate = LabelCandidate(text=result.label, label=result.label,
                                   confidence=result.best_score, source="template")
        matches = self.rule_engine.extract(result.label, rules)
        self.logger.info("Template hit", label=result.label, score=f"{result.best_score:.3f}",
                         template=result.template_name, matches=len(matches))
        status = TickStatus.MATCHED if matches else TickStatus.NOT_FOUND
        return TickResult(status=status, source="template", candidate=candidate,
                          matches=matches, raw_texts=[result.label])

    def _recognize_and_score(self, prepared) -> Tuple[List[LabelCandidate], List[str]]:
        recognized = self.orchestrator.recognize_preprocessed(prepared)
        texts = [r.text for r in recognized if r.text]
        sources = [r.source for r in recognized if r.text]
        return self.scorer.score(texts, sources), texts

    def _retry_right_edge(self, image: np.ndarray) -> Optional[Tuple[List[LabelCandidate], List[str]]]:
        if image.shape[1] < 4:
            return None
        cropped = right_edge_crop(image, RIGHT_CROP_FRACTION)
        preprocessed = self.preprocessor.preprocess(cropped, self.preprocess_config)
        if preprocessed.is_failure:
            return None
        recognized = self.orchestrator.recognize_preprocessed(preprocessed.value)
        texts = [r.text for r in recognized if r.text]
        sources = [f"right-{r.source}" for r in recognized if r.text]
        if not texts:
            return None
        self.logger.debug("Right-edge retry recognized text", texts=texts)
        return self.scorer.score(texts, sources), texts

    def _decide(self, chosen: Optional[LabelCandidate], rules: Sequence[ExtractRule],
                raw_texts: List[str]) -> TickResult:
        if chosen is None:
            return TickResult(status=TickStatus.NOT_FOUND, source="ocr", raw_texts=raw_texts)

        if chosen.confidence >= self.settings.notify_threshold:
            matches = self.rule_engine.extract(chosen.text, rules)
            self.logger.info("Label recognized", candidate=str(chosen), matches=len(matches))
            status = TickStatus.MATCHED if matches else TickStatus.NOT_FOUND
            return TickResult(status=status, source="ocr", candidate=chosen, matches=matches, raw_texts=raw_texts)

        if chosen.confidence >= self.settings.log_only_threshold:
            self.logger.info("Low-confidence label suppressed", candidate=str(chosen), raw=raw_texts)
            return TickResult(status=TickStatus.LOW_CONFIDENCE, source="ocr", candidate=chosen, raw_texts=raw_texts)

        return TickResult(status=TickStatus.NOT_FOUND, source="ocr", candidate=chosen, raw_texts=raw_texts)
