"""Structured logging for variant analyses.

Console lines for humans, plus an optional dated JSONL file with one event
per analysis request, result or error.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any


class AnalysisLogger:
    """Logger for explainer analyses with structured output."""

    def __init__(self, log_dir: Path | None = None, enable_file_logging: bool = True):
        """Initialize the analysis logger.

        Args:
            log_dir: Directory for log files. Defaults to ./logs
            enable_file_logging: Whether to write JSONL event files
        """
        self.logger = logging.getLogger("mutationmechanic.analysis")
        self.logger.setLevel(logging.INFO)
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

        self.file_handler = None
        self.log_file = None
        if enable_file_logging:
            log_dir = Path(log_dir) if log_dir is not None else Path("./logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            self.log_file = log_dir / f"analyses_{datetime.now().strftime('%Y%m%d')}.jsonl"
            self.file_handler = logging.FileHandler(self.log_file)
            self.file_handler.setLevel(logging.DEBUG)
            self.file_handler.setFormatter(logging.Formatter('%(message)s'))
            # Only the JSON events go to the file
            self.file_handler.addFilter(lambda record: record.levelno == logging.DEBUG)
            self.logger.addHandler(self.file_handler)
            self.logger.info(f"Analysis logging enabled: {self.log_file}")

    def _write_event(self, event: dict[str, Any]) -> None:
        if self.file_handler:
            self.file_handler.stream.write(json.dumps(event) + '\n')
            self.file_handler.flush()

    def log_analysis_request(self, gene: str, variant: str, variant_type: str) -> str:
        """Log the start of an analysis.

        Returns:
            Request ID for correlating the result or error
        """
        request_id = f"{gene}_{variant}_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"
        self.logger.info(f"Analysis request: {gene} {variant} ({variant_type})")
        self._write_event({
            "timestamp": datetime.now().isoformat(),
            "event_type": "analysis_request",
            "request_id": request_id,
            "input": {"gene": gene, "variant": variant, "variant_type": variant_type},
        })
        return request_id

    def log_analysis_result(
        self,
        request_id: str,
        gene: str,
        variant: str,
        source: str,
        risk_level: str | None,
        pathogenicity_score: float | None,
        confidence: float | None,
        unavailable_sources: list[str],
        record_id: str | None,
    ) -> None:
        self.logger.info(
            f"Analysis result: {gene} {variant} → {risk_level or 'NO DATA'} "
            f"(source: {source}, record: {record_id or 'not recorded'})"
        )
        self._write_event({
            "timestamp": datetime.now().isoformat(),
            "event_type": "analysis_result",
            "request_id": request_id,
            "output": {
                "gene": gene,
                "variant": variant,
                "source": source,
                "risk_level": risk_level,
                "pathogenicity_score": pathogenicity_score,
                "confidence": confidence,
                "unavailable_sources": unavailable_sources,
                "record_id": record_id,
            },
        })

    def log_analysis_error(self, request_id: str, gene: str, variant: str, error: Exception) -> None:
        self.logger.error(f"Analysis error: {gene} {variant} - {error}")
        self._write_event({
            "timestamp": datetime.now().isoformat(),
            "event_type": "analysis_error",
            "request_id": request_id,
            "input": {"gene": gene, "variant": variant},
            "error": {"type": type(error).__name__, "message": str(error)},
        })


# Global logger instance
_global_logger: AnalysisLogger | None = None


def get_logger(log_dir: Path | None = None, enable_file_logging: bool = True) -> AnalysisLogger:
    """Get or create the global analysis logger."""
    global _global_logger

    if _global_logger is None:
        _global_logger = AnalysisLogger(log_dir=log_dir, enable_file_logging=enable_file_logging)

    return _global_logger


def reset_logger() -> None:
    """Reset the global logger (mainly for testing)."""
    global _global_logger
    _global_logger = None
