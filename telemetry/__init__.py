"""JSONL telemetry sink for simulation ticks."""

from .logger import TelemetryLogger

__all__ = ["TelemetryLogger"]
