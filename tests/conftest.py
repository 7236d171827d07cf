"""
Shared pytest fixtures.
Nothing here talks to the network: the OpenAI client is a MagicMock and the
user store is a throwaway SQLite file.
"""
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from stock_finetune.app import create_app
from stock_finetune.config import Settings
from stock_finetune.db import UserStore
from stock_finetune.openai_service import OpenAIService

HEADER = ("SYMBOL,DATE,PREV CLOSE,OPEN,HIGH,LOW,LAST,CLOSE,VWAP,VOLUME,"
          "TURNOVER,TRADES,DELIVERABLE VOLUME,%DELIVERBLE")

ROWS = [
    "HDFCBANK,2016-01-01,1078.1,1079.9,1083.0,1072.55,1075.0,1076.25,1078.03,1064478,114752548585000,38237,654316,0.6147",
    "ICICIBANK,2016-01-01,262.1,263.0,265.45,261.8,263.6,263.75,263.95,5232541,138113866235000,65432,2341567,0.4475",
    "AXISBANK,2016-01-04,449.5,450.0,451.0,437.1,438.0,438.55,443.21,3424251,151767553895000,51203,1765432,0.5156",
]


def write_csv(path, rows, header=HEADER):
    path.write_text("\n".join([header] + rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def stock_row_record():
    return dict(zip(HEADER.split(","), ROWS[0].split(",")))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key="sk-test",
        dataset_dir=tmp_path,
        database_url=f"sqlite:///{tmp_path / 'users.db'}",
        jwt_secret_key="test-secret-key-with-at-least-32-bytes!!",
        split_seed=7,
    )


@pytest.fixture
def stock_csv(settings):
    return write_csv(settings.csv_path, ROWS)


@pytest.fixture
def jsonl_lines(tmp_path):
    """A 10-line JSONL file with a blank line in the middle."""
    path = tmp_path / "pairs.jsonl"
    lines = [json.dumps({"id": i}) for i in range(10)]
    path.write_text("\n".join(lines[:5] + [""] + lines[5:]) + "\n", encoding="utf-8")
    return path, lines


@pytest.fixture
def user_store(settings):
    store = UserStore.from_url(settings.database_url)
    store.init_db()
    return store


@pytest.fixture
def client(settings, user_store):
    app = create_app(settings, store=user_store)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def mock_openai():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="HDFC Bank closed at 1076.25"))]
    )
    client.files.create.side_effect = [SimpleNamespace(id="file-train"), SimpleNamespace(id="file-valid")]
    client.fine_tuning.jobs.create.return_value = SimpleNamespace(id="ftjob-123", status="validating_files")
    client.fine_tuning.jobs.retrieve.return_value = SimpleNamespace(
        id="ftjob-123", status="succeeded", fine_tuned_model="ft:gpt-3.5-turbo:org:bank_stocks:abc"
    )
    return client


@pytest.fixture
def service(settings, mock_openai):
    return OpenAIService(settings, client=mock_openai)
