# splitter.py
import logging
import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class SplitResult:
    train_path: Path
    valid_path: Path
    train_count: int
    valid_count: int

    @property
    def total(self):
        return self.train_count + self.valid_count


def split_dataset(input_path, train_path, valid_path, split_ratio: float = 0.8,
                  seed: Optional[int] = None) -> SplitResult:
    """
    Shuffle the non-blank lines of a JSONL file and split them into training
    and validation files at ``floor(N * split_ratio)``.

    The shuffle is ``random.Random(seed).shuffle`` so every ordering is
    equally likely; pass ``seed`` for a reproducible split.
    """
    if not 0 < split_ratio < 1:
        raise ValueError(f"split_ratio must be between 0 and 1 (exclusive), got {split_ratio}")

    text = Path(input_path).read_text(encoding="utf-8")
    # only "\n" ends a record; JSON strings may carry U+2028 and friends raw
    lines = [line for line in text.split("\n") if line.strip()]

    random.Random(seed).shuffle(lines)

    split_index = math.floor(len(lines) * split_ratio)
    train_lines = lines[:split_index]
    valid_lines = lines[split_index:]

    # read fully before writing: the training path may be the input path
    Path(train_path).write_text("\n".join(train_lines), encoding="utf-8")
    Path(valid_path).write_text("\n".join(valid_lines), encoding="utf-8")

    logger.info(f"Split data into training ({len(train_lines)} samples) and validation ({len(valid_lines)} samples).")
    logger.info(f"Training data exported to {train_path}")
    logger.info(f"Validation data exported to {valid_path}")
    return SplitResult(Path(train_path), Path(valid_path), len(train_lines), len(valid_lines))
