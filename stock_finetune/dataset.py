# dataset.py
# Build chat-format fine-tuning pairs from a CSV of daily stock prices.
import csv
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import SchemaError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "SYMBOL", "DATE", "PREV CLOSE", "OPEN", "HIGH", "LOW", "LAST", "CLOSE",
    "VWAP", "VOLUME", "TURNOVER", "TRADES", "DELIVERABLE VOLUME", "%DELIVERBLE",
]

Pair = Dict[str, List[Dict[str, str]]]


class StockRow(BaseModel):
    """One validated CSV line. Values stay text, exactly as they appear in the file."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str = Field(alias="SYMBOL")
    date: str = Field(alias="DATE")
    prev_close: str = Field(alias="PREV CLOSE")
    open: str = Field(alias="OPEN")
    high: str = Field(alias="HIGH")
    low: str = Field(alias="LOW")
    last: str = Field(alias="LAST")
    close: str = Field(alias="CLOSE")
    vwap: str = Field(alias="VWAP")
    volume: str = Field(alias="VOLUME")
    turnover: str = Field(alias="TURNOVER")
    trades: str = Field(alias="TRADES")
    deliverable_volume: str = Field(alias="DELIVERABLE VOLUME")
    pct_deliverable: str = Field(alias="%DELIVERBLE")


def check_columns(columns: Iterable[str]):
    missing = [c for c in REQUIRED_COLUMNS if c not in set(columns)]
    if missing:
        raise SchemaError(f"CSV is missing required columns: {', '.join(missing)}")


def validate_row(record: Dict) -> StockRow:
    # NaN cells and fields missing from short lines both become None, which validation rejects
    cleaned = {k: (None if pd.isna(v) else v) for k, v in record.items()}
    return StockRow.model_validate(cleaned)


def _field_counts(csv_path) -> Iterator[int]:
    # pandas pads short lines with "" when NA conversion is off, so widths come from the raw records
    with open(csv_path, "r", encoding="utf-8", newline="") as f:
        for fields in csv.reader(f):
            if fields:
                yield len(fields)


def read_rows(csv_path, quarantine: Optional[List[Tuple[int, Dict, str]]] = None,
              chunksize: int = 1000) -> Iterator[StockRow]:
    """
    Lazily yield validated rows from ``csv_path`` in file order.

    The header is checked up front and a ``SchemaError`` is raised when a
    required column is absent. A line with fewer fields than the header has
    its missing fields set to ``None``, so it fails validation like any
    other bad row. Rows that fail validation are skipped; when a
    ``quarantine`` list is given, ``(row_number, record, error)`` is appended
    to it for each of them. Read and parse errors propagate.
    """
    header = pd.read_csv(csv_path, nrows=0, dtype=str)
    check_columns(header.columns)
    columns = list(header.columns)

    widths = _field_counts(csv_path)
    next(widths, None)

    row_number = 0
    with pd.read_csv(csv_path, dtype=str, keep_default_na=False, chunksize=chunksize) as reader:
        for chunk in reader:
            for record in chunk.to_dict(orient="records"):
                row_number += 1
                width = next(widths, len(columns))
                for column in columns[width:]:
                    record[column] = None
                try:
                    yield validate_row(record)
                except ValidationError as e:
                    logger.warning(f"Quarantined row {row_number} of {csv_path}: {e.error_count()} invalid field(s)")
                    if quarantine is not None:
                        quarantine.append((row_number, record, str(e)))


def normalize_text(text: str) -> str:
    """Drop newline characters (no space is put in their place) and trim the ends."""
    return text.replace("\n", "").strip()


def make_pair(prompt: str, completion: str) -> Pair:
    return {
        "messages": [
            {"role": "user", "content": normalize_text(prompt)},
            {"role": "assistant", "content": normalize_text(completion)},
        ]
    }


def _template(*lines: str) -> str:
    # laid out like an indented multi-line literal: leading newline, 12-space lines, 8-space tail
    return "\n" + "".join(" " * 12 + line + "\n" for line in lines) + " " * 8


def generate_pairs(row: StockRow) -> List[Pair]:
    """Two training pairs per row: a full price summary and a high/low question."""
    prompt = _template(
        "Please provide a summary of the stock price for",
        f"{row.symbol} on {row.date}.",
    )

    completion = _template(
        f"On {row.date}, the stock price variations ({row.symbol}) was as follows: ",
        f"Previous Close: {row.prev_close} ",
        f"Open: {row.open} ",
        f"High: {row.high} ",
        f"Low: {row.low} ",
        f"Last: {row.last} ",
        f"Close: {row.close} ",
        f"VWAP: {row.vwap} ",
        f"Volume: {row.volume} ",
        f"Turnover: {row.turnover} ",
        f"Trades: {row.trades} ",
        f"Deliverable Volume: {row.deliverable_volume} ",
        f"Percentage Deliverable: {row.pct_deliverable}",
    )
    summary = make_pair(prompt, completion)

    prompt = f"What was the high and low price for {row.symbol} on {row.date}."

    completion = _template(
        f"On {row.date}, the high and low price for ({row.symbol}) was as follows: ",
        f"High: {row.high} ",
        f"Low: {row.low} ",
    )
    high_low = make_pair(prompt, completion)

    return [summary, high_low]


def write_jsonl(pairs: Iterable[Pair], output_path) -> int:
    """Write one JSON document per line, truncating ``output_path``. Returns the line count."""
    count = 0
    with open(output_path, "w", encoding="utf-8") as f:
        for pair in pairs:
            f.write(json.dumps(pair, ensure_ascii=False) + "\n")
            count += 1
    return count


def read_jsonl(path) -> List[Pair]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def generate_prompt_completion_pairs(csv_path, output_path) -> Dict[str, int]:
    quarantine = []

    def _pairs():
        for row in read_rows(csv_path, quarantine=quarantine):
            yield from generate_pairs(row)

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    written = write_jsonl(_pairs(), output_path)
    logger.info(f"Generated {written} prompt-completion pairs and exported to {output_path}")
    if quarantine:
        logger.warning(f"{len(quarantine)} row(s) skipped during validation")
    return {"pairs": written, "quarantined": len(quarantine)}
