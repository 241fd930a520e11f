"""YAML config loader."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from .errors import ConfigError

FORMATS = ("trectext", "trecweb", "clueweb09", "clueweb12")
STEMMERS = ("porter", "none")


@dataclass
class PipelineConfig:
    num_threads: int = field(default_factory=lambda: os.cpu_count() or 1)
    queue_capacity: Optional[int] = None  # defaults to 4 * num_threads

    @property
    def capacity(self) -> int:
        return self.queue_capacity or 4 * self.num_threads


@dataclass
class AnalyzerConfig:
    remove_stopwords: bool = True
    stemmer: str = "porter"
    store_term_vectors: bool = False
    positional: bool = True


@dataclass
class IndexConfig:
    input_path: str = ""
    output_path: str = ""
    format: str = ""
    log_dir: str = "logs"
    excluded_dirs: List[str] = field(default_factory=lambda: ["OtherData"])
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)

    def validate(self):
        if not self.input_path:
            raise ConfigError("input_path is required")
        if not self.output_path:
            raise ConfigError("output_path is required")
        if self.format not in FORMATS:
            raise ConfigError(f"Unknown format {self.format!r}, expected one of {', '.join(FORMATS)}")
        if self.analyzer.stemmer not in STEMMERS:
            raise ConfigError(f"Unknown stemmer {self.analyzer.stemmer!r}, expected one of {', '.join(STEMMERS)}")
        if self.pipeline.num_threads < 1:
            raise ConfigError("num_threads must be >= 1")
        if self.pipeline.capacity < self.pipeline.num_threads:
            raise ConfigError(
                f"queue_capacity ({self.pipeline.capacity}) must be >= num_threads "
                f"({self.pipeline.num_threads})"
            )


def _section(cls, raw, name: str):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"{name}: expected a mapping, got {type(raw).__name__}")
    return cls(**{k: v for k, v in raw.items() if k in cls.__dataclass_fields__})


def _excluded_dirs(raw) -> List[str]:
    if not isinstance(raw, list) or not all(isinstance(d, str) for d in raw):
        raise ConfigError(f"excluded_dirs: expected a list of directory names, got {raw!r}")
    return list(raw)


def load_config(config_path: str = "config.yaml") -> IndexConfig:
    """Load config from YAML, falling back to defaults when the file is absent.

    Environment overrides (TREC_INGEST_LOG_DIR, TREC_INGEST_THREADS) are
    applied on top of the file.
    """
    raw = {}
    if config_path and os.path.exists(config_path):
        with open(config_path) as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"{config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path}: expected a mapping at top level")

    pipeline = _section(PipelineConfig, raw.get("pipeline"), "pipeline")
    analyzer = _section(AnalyzerConfig, raw.get("analyzer"), "analyzer")

    config = IndexConfig(
        input_path=raw.get("input_path", ""),
        output_path=raw.get("output_path", ""),
        format=raw.get("format", ""),
        log_dir=raw.get("log_dir", "logs"),
        excluded_dirs=_excluded_dirs(raw.get("excluded_dirs", ["OtherData"])),
        pipeline=pipeline,
        analyzer=analyzer,
    )

    if os.getenv("TREC_INGEST_LOG_DIR"):
        config.log_dir = os.environ["TREC_INGEST_LOG_DIR"]
    if os.getenv("TREC_INGEST_THREADS"):
        try:
            config.pipeline.num_threads = max(1, int(os.environ["TREC_INGEST_THREADS"]))
        except ValueError as e:
            raise ConfigError(f"TREC_INGEST_THREADS must be an integer: {e}") from e

    return config
