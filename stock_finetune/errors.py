# errors.py


class StockFinetuneError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(StockFinetuneError):
    pass


class SchemaError(StockFinetuneError):
    """The input CSV does not carry the columns the pair templates need."""


class ServiceError(StockFinetuneError):
    """A call to the OpenAI API failed."""


class FineTuneNotReadyError(ServiceError):
    def __init__(self, job_id, status=None):
        self.job_id = job_id
        self.status = status
        msg = f"Fine-tuned model not found for job {job_id}. Ensure the fine-tuning job is complete."
        if status:
            msg += f" (status: {status})"
        super().__init__(msg)


class PipelineError(StockFinetuneError):
    def __init__(self, stage, cause):
        self.stage = stage
        self.cause = cause
        super().__init__(f"stage '{stage}' failed: {cause}")
