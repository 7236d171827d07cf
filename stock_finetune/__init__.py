"""Stock data fine-tuning toolkit: dataset preparation, OpenAI fine-tuning, and a small auth API."""

__version__ = "0.1.0"
