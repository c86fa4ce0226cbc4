import logging
import time
from typing import Optional

import psutil
from prometheus_client import Histogram

logger = logging.getLogger(__name__)

REPORT_DURATION_SECONDS = Histogram(
    "report_task_duration_seconds",
    "Time spent performing a report task",
    ["task_name"],
)

REPORT_MEMORY_USAGE_BYTES = Histogram(
    "report_task_memory_usage_bytes",
    "Resident memory in bytes at the end of a report task",
    ["task_name"],
)


class PerformanceMonitor:
    """Measures wall time and memory of a task and records them as Prometheus histograms."""

    def __init__(self):
        self.start_time = 0.0
        self.end_time = 0.0
        self.start_mem = 0
        self.end_mem = 0
        self.process = psutil.Process()

    def start(self):
        self.start_time = time.perf_counter()
        self.start_mem = self.process.memory_info().rss

    def stop(self):
        self.end_time = time.perf_counter()
        self.end_mem = self.process.memory_info().rss

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def report(self, label: str, count: Optional[int] = None) -> str:
        count_str = f" (N={count})" if count is not None else ""
        mem_diff_mb = (self.end_mem - self.start_mem) / (1024 * 1024)
        end_mem_mb = self.end_mem / (1024 * 1024)
        msg = (
            f"[{label}]{count_str} Time: {self.duration:.4f}s"
            f" | Mem: {end_mem_mb:.1f}MB (Delta: {mem_diff_mb:+.2f}MB)"
        )

        REPORT_DURATION_SECONDS.labels(task_name=label).observe(self.duration)
        REPORT_MEMORY_USAGE_BYTES.labels(task_name=label).observe(self.end_mem)

        logger.info(msg)
        return msg
