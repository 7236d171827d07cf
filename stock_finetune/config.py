# config.py
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .errors import ConfigError

# env var -> Settings field
ENV_VARS = {
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "chat_model",
    "FINE_TUNE_BASE_MODEL": "base_model",
    "FINE_TUNE_SUFFIX": "suffix",
    "TRAIN_FILE_ID": "train_file_id",
    "TEST_FILE_ID": "valid_file_id",
    "FINE_TUNE_JOB_ID": "fine_tune_job_id",
    "DATASET_DIR": "dataset_dir",
    "CSV_FILE": "csv_file",
    "SPLIT_RATIO": "split_ratio",
    "SPLIT_SEED": "split_seed",
    "DATABASE_URL": "database_url",
    "JWT_SECRET_KEY": "jwt_secret_key",
    "FLASK_HOST": "host",
    "FLASK_PORT": "port",
}


class Settings(BaseModel):
    openai_api_key: str = ""
    chat_model: str = "gpt-4o-mini"
    base_model: str = "gpt-3.5-turbo"
    suffix: str = "bank_stocks"

    train_file_id: Optional[str] = None
    valid_file_id: Optional[str] = None
    fine_tune_job_id: Optional[str] = None

    dataset_dir: Path = Path("./dataset")
    csv_file: str = "NSE_BANKING_SECTOR.csv"
    pairs_file: str = "prompt_completion_pairs.jsonl"
    train_file: str = "train_prompt_completion_pairs.jsonl"
    valid_file: str = "val_prompt_completion_pairs.jsonl"
    split_ratio: float = 0.8
    split_seed: Optional[int] = None

    database_url: str = "sqlite:///./users.db"
    jwt_secret_key: str = "jwt-secret"
    host: str = "0.0.0.0"
    port: int = 5000

    @field_validator("split_ratio")
    @classmethod
    def _ratio_in_range(cls, v):
        if not 0 < v < 1:
            raise ValueError("split_ratio must be between 0 and 1 (exclusive)")
        return v

    @property
    def csv_path(self) -> Path:
        return self.dataset_dir / self.csv_file

    @property
    def pairs_path(self) -> Path:
        return self.dataset_dir / self.pairs_file

    @property
    def train_path(self) -> Path:
        return self.dataset_dir / self.train_file

    @property
    def valid_path(self) -> Path:
        return self.dataset_dir / self.valid_file

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment (after loading a .env file).

        This is the only place environment variables are read; the returned
        instance is handed to every component that needs configuration.
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ
        values = {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e
