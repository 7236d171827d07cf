# fine_tune.py
# Command line entrypoint for preparing the dataset and driving OpenAI fine-tuning.
import argparse
import json
import logging
import sys

from .config import Settings
from .errors import ConfigError, StockFinetuneError
from .openai_service import OpenAIService
from .pipeline import build_finetune_pipeline, build_prepare_pipeline

logger = logging.getLogger(__name__)

DEFAULT_QUESTION = "please provide a summary of the stock data for the HDFC Bank on January 1, 2016"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="stock-finetune", description="Stock price fine-tuning toolkit")
    parser.add_argument("--env-file", default=None, help="Path to a .env file with configuration")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("prepare", help="Generate prompt/completion pairs and split them")
    sub.add_parser("run", help="Prepare, upload, and start a fine-tuning job")

    p = sub.add_parser("upload", help="Upload a JSONL file for fine-tuning")
    p.add_argument("path")

    p = sub.add_parser("train", help="Start a fine-tuning job from uploaded files")
    p.add_argument("--train-file-id", default=None)
    p.add_argument("--valid-file-id", default=None)

    p = sub.add_parser("status", help="Show a fine-tuning job")
    p.add_argument("--job-id", default=None)

    p = sub.add_parser("chat", help="Ask the base chat model")
    p.add_argument("text", nargs="?", default=DEFAULT_QUESTION)

    p = sub.add_parser("ask", help="Ask the fine-tuned model")
    p.add_argument("text", nargs="?", default=DEFAULT_QUESTION)
    p.add_argument("--job-id", default=None)

    p = sub.add_parser("metrics", help="Print the training metrics of a result file")
    p.add_argument("file_id")

    sub.add_parser("serve", help="Run the registration/login API")
    return parser.parse_args(argv)


def _require(value, what):
    if not value:
        raise ConfigError(f"{what} is not set")
    return value


def run_command(args, settings: Settings, service_factory=OpenAIService):
    if args.command == "prepare":
        report = build_prepare_pipeline(settings).run()
        report.raise_for_failure()
        split = report.results["split"]
        print(f"train: {split.train_count} -> {split.train_path}")
        print(f"valid: {split.valid_count} -> {split.valid_path}")
        return

    if args.command == "serve":
        from .app import create_app
        create_app(settings).run(host=settings.host, port=settings.port)
        return

    service = service_factory(settings)

    if args.command == "run":
        report = build_finetune_pipeline(settings, service).run()
        report.raise_for_failure()
        print(report.results["create_job"])
    elif args.command == "upload":
        print(service.upload_training_file(args.path))
    elif args.command == "train":
        train_id = _require(args.train_file_id or settings.train_file_id, "TRAIN_FILE_ID")
        valid_id = args.valid_file_id or settings.valid_file_id
        print(service.create_fine_tune_job(train_id, valid_id))
    elif args.command == "status":
        job_id = _require(args.job_id or settings.fine_tune_job_id, "FINE_TUNE_JOB_ID")
        job = service.retrieve_job(job_id)
        print(f"{job.id}: {job.status} model={job.fine_tuned_model or '-'}")
    elif args.command == "chat":
        print(service.chat(args.text))
    elif args.command == "ask":
        job_id = _require(args.job_id or settings.fine_tune_job_id, "FINE_TUNE_JOB_ID")
        print(service.chat_with_fine_tuned_model(job_id, args.text))
    elif args.command == "metrics":
        for row in service.retrieve_metrics(args.file_id):
            print(json.dumps(row))


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s: %(message)s')
    try:
        settings = Settings.from_env(args.env_file)
        run_command(args, settings)
    except StockFinetuneError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
