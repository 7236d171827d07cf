# openai_service.py
import io
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd
from openai import OpenAI, OpenAIError

from .config import Settings
from .errors import ConfigError, FineTuneNotReadyError, ServiceError

logger = logging.getLogger(__name__)


class OpenAIService:
    """Thin wrapper over the OpenAI chat, files and fine-tuning endpoints."""

    def __init__(self, settings: Settings, client: OpenAI = None):
        self.settings = settings
        if client is None:
            if not settings.openai_api_key:
                raise ConfigError("OPENAI_API_KEY is not set")
            client = OpenAI(api_key=settings.openai_api_key)
        self.client = client

    def _complete(self, model: str, messages: List[Dict[str, str]]) -> str:
        try:
            resp = self.client.chat.completions.create(model=model, messages=messages)
        except OpenAIError as e:
            logger.error(f"Error with open ai: {e}")
            raise ServiceError(f"chat completion failed: {e}") from e
        return resp.choices[0].message.content

    def chat(self, user_request: str, system_content: str = "You are a helpful assistant") -> str:
        return self._complete(self.settings.chat_model, [
            {"role": "system", "content": system_content},
            {"role": "user", "content": user_request},
        ])

    def upload_training_file(self, path) -> str:
        try:
            with open(path, "rb") as f:
                resp = self.client.files.create(file=f, purpose="fine-tune")
        except OpenAIError as e:
            logger.error(f"Upload of {path} failed: {e}")
            raise ServiceError(f"upload of {Path(path).name} failed: {e}") from e
        logger.info(f"Uploaded {path} as file {resp.id}")
        return resp.id

    def create_fine_tune_job(self, training_file_id: str, validation_file_id: str = None) -> str:
        logger.info("beginning fine tuning.....")
        params = {
            "model": self.settings.base_model,
            "training_file": training_file_id,
            "suffix": self.settings.suffix,
        }
        if validation_file_id:
            params["validation_file"] = validation_file_id
        try:
            job = self.client.fine_tuning.jobs.create(**params)
        except OpenAIError as e:
            logger.error(f"Error during fine tuning: {e}")
            raise ServiceError(f"fine-tuning job creation failed: {e}") from e
        logger.info(f"Created fine-tuning job {job.id} ({job.status})")
        return job.id

    def retrieve_job(self, job_id: str):
        try:
            return self.client.fine_tuning.jobs.retrieve(job_id)
        except OpenAIError as e:
            raise ServiceError(f"could not retrieve fine-tuning job {job_id}: {e}") from e

    def fine_tuned_model(self, job_id: str) -> str:
        job = self.retrieve_job(job_id)
        if not job.fine_tuned_model:
            raise FineTuneNotReadyError(job_id, getattr(job, "status", None))
        return job.fine_tuned_model

    def chat_with_fine_tuned_model(self, job_id: str, user_request: str) -> str:
        model = self.fine_tuned_model(job_id)
        return self._complete(model, [{"role": "user", "content": user_request}])

    def retrieve_metrics(self, file_id: str) -> List[Dict[str, str]]:
        """Download a fine-tuning result file (step/loss CSV) and return its rows."""
        try:
            content = self.client.files.content(file_id)
        except OpenAIError as e:
            raise ServiceError(f"could not download file {file_id}: {e}") from e
        frame = pd.read_csv(io.StringIO(content.text), dtype=str, keep_default_na=False)
        return frame.to_dict(orient="records")
