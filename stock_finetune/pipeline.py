# pipeline.py
# Ordered stages for preparing data and launching a fine-tuning job.
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import Settings
from .dataset import generate_prompt_completion_pairs
from .errors import PipelineError
from .openai_service import OpenAIService
from .splitter import split_dataset

logger = logging.getLogger(__name__)

StageFn = Callable[[Dict[str, Any]], Any]


@dataclass
class PipelineReport:
    results: Dict[str, Any] = field(default_factory=dict)
    completed: List[str] = field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_failure(self):
        if self.error is not None:
            raise PipelineError(self.failed_stage, self.error) from self.error


class Pipeline:
    """
    Runs named stages in order. Each stage gets the results of the stages
    before it (keyed by stage name) and its return value is stored under its
    own name. The first stage that raises stops the run.
    """

    def __init__(self, stages: List[Tuple[str, StageFn]]):
        names = [name for name, _ in stages]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate stage names: {names}")
        self.stages = stages

    @property
    def stage_names(self) -> List[str]:
        return [name for name, _ in self.stages]

    def run(self) -> PipelineReport:
        report = PipelineReport()
        for name, fn in self.stages:
            logger.info(f"[{name}] starting")
            try:
                report.results[name] = fn(report.results)
            except Exception as e:
                logger.error(f"[{name}] failed: {e}")
                report.failed_stage = name
                report.error = e
                return report
            report.completed.append(name)
            logger.info(f"[{name}] done")
        return report


def _prepare_stages(settings: Settings) -> List[Tuple[str, StageFn]]:
    return [
        ("generate", lambda ctx: generate_prompt_completion_pairs(settings.csv_path, settings.pairs_path)),
        ("split", lambda ctx: split_dataset(settings.pairs_path, settings.train_path, settings.valid_path,
                                            settings.split_ratio, seed=settings.split_seed)),
    ]


def build_prepare_pipeline(settings: Settings) -> Pipeline:
    return Pipeline(_prepare_stages(settings))


def build_finetune_pipeline(settings: Settings, service: OpenAIService) -> Pipeline:
    stages = _prepare_stages(settings) + [
        ("upload_train", lambda ctx: service.upload_training_file(ctx["split"].train_path)),
        ("upload_valid", lambda ctx: service.upload_training_file(ctx["split"].valid_path)),
        ("create_job", lambda ctx: service.create_fine_tune_job(ctx["upload_train"], ctx["upload_valid"])),
    ]
    return Pipeline(stages)
