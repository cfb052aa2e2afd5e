"""
Logging and performance monitoring for the certificate tracking application.

Log records may carry a ``certificate`` mapping through ``extra`` (see
``certificate_context``); the JSON formatter writes it next to the message so
rejected uploads can be searched by container kind and error kind.
"""
import json
import logging
import logging.handlers
import sys
import threading
import time
import traceback
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, asdict, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Any, Optional, List


CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CERTIFICATE_FIELDS = ('certificate_id', 'filename', 'container_kind', 'error_kind', 'status')


def certificate_context(**fields) -> Dict[str, Any]:
    """
    Build the ``extra`` argument for a certificate-related log call.

    Enum values are flattened to their ``value``; unknown keys are rejected so
    log entries keep a stable shape.
    """
    unknown = set(fields) - set(CERTIFICATE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown certificate log fields: {', '.join(sorted(unknown))}")

    return {'certificate': {
        name: getattr(value, 'value', value)
        for name, value in fields.items()
        if value is not None
    }}


@dataclass
class LogEntry:
    """Structured log entry for JSON logging."""
    timestamp: str
    level: str
    logger_name: str
    message: str
    module: str
    function: str
    line_number: int
    thread_id: int
    certificate: Optional[Dict[str, Any]] = None
    extra_data: Optional[Dict[str, Any]] = None
    exception_info: Optional[Dict[str, Any]] = None


@dataclass
class PerformanceMetric:
    """Duration and outcome of one measured operation."""
    operation: str
    duration_ms: float
    recorded_at: datetime
    success: bool
    error_message: Optional[str] = None
    extra_data: Dict[str, Any] = field(default_factory=dict)


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created).isoformat(),
            level=record.levelname,
            logger_name=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line_number=record.lineno,
            thread_id=record.thread,
            certificate=getattr(record, 'certificate', None),
            extra_data=getattr(record, 'extra_data', None)
        )

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry.exception_info = {
                'type': exc_type.__name__ if exc_type else None,
                'message': str(exc_value) if exc_value else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }

        return json.dumps(asdict(entry), default=str)


class PerformanceMonitor:
    """
    Keeps timings for decode and upload operations in a bounded window.

    At most ``max_metrics`` entries are held, and entries older than
    ``max_age_hours`` are dropped whenever a new one is recorded.
    """

    def __init__(self, max_metrics: int = 1000, max_age_hours: int = 24):
        self.max_age = timedelta(hours=max_age_hours)
        self.metrics = deque(maxlen=max_metrics)
        self.lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def measure_operation(self, operation: str, extra_data: Optional[Dict[str, Any]] = None):
        """Context manager recording how long the wrapped block takes."""
        started = time.perf_counter()
        error_message = None

        try:
            yield
        except Exception as e:
            error_message = str(e)
            raise
        finally:
            self.record(PerformanceMetric(
                operation=operation,
                duration_ms=(time.perf_counter() - started) * 1000,
                recorded_at=datetime.now(),
                success=error_message is None,
                error_message=error_message,
                extra_data=dict(extra_data or {})
            ))

    def record(self, metric: PerformanceMetric):
        with self.lock:
            self.metrics.append(metric)
            self._prune(metric.recorded_at - self.max_age)

        self.logger.debug(
            f"{metric.operation} took {metric.duration_ms:.1f}ms",
            extra={'extra_data': {
                'operation': metric.operation,
                'duration_ms': metric.duration_ms,
                'success': metric.success,
                'error_message': metric.error_message,
                **metric.extra_data
            }}
        )

    def _prune(self, cutoff: datetime):
        # Entries arrive in time order, so stale ones sit at the left.
        while self.metrics and self.metrics[0].recorded_at < cutoff:
            self.metrics.popleft()

    def get_metrics(self, operation: Optional[str] = None,
                    since: Optional[datetime] = None) -> List[PerformanceMetric]:
        with self.lock:
            metrics = list(self.metrics)

        return [
            m for m in metrics
            if (operation is None or m.operation == operation)
            and (since is None or m.recorded_at >= since)
        ]

    def get_operation_stats(self, operation: str) -> Dict[str, Any]:
        """Call counts, success rate and duration range for one operation."""
        metrics = self.get_metrics(operation=operation)
        if not metrics:
            return {}

        durations = [m.duration_ms for m in metrics]
        successes = sum(1 for m in metrics if m.success)

        return {
            'operation': operation,
            'total_calls': len(metrics),
            'success_count': successes,
            'failure_count': len(metrics) - successes,
            'success_rate': successes / len(metrics),
            'avg_duration_ms': sum(durations) / len(durations),
            'min_duration_ms': min(durations),
            'max_duration_ms': max(durations)
        }

    def cleanup_old_metrics(self, max_age_hours: Optional[int] = None):
        """Drop metrics older than ``max_age_hours`` (default: the monitor's window)."""
        max_age = timedelta(hours=max_age_hours) if max_age_hours is not None else self.max_age
        cutoff = datetime.now() - max_age

        with self.lock:
            kept = [m for m in self.metrics if m.recorded_at >= cutoff]
            self.metrics = deque(kept, maxlen=self.metrics.maxlen)


def _rotating_handler(path: str, max_bytes: int, backup_count: int,
                      level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


class LoggingService:
    """Configures application logging and exposes performance metrics."""

    def __init__(self, config):
        self.config = config
        self.performance_monitor = PerformanceMonitor()
        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Logging to {self.config.log_file_path} at {self.config.log_level}")

    def _setup_logging(self):
        """Replace the root logger's handlers with the application's."""
        log_path = Path(self.config.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.setLevel(level)

        for handler in self._build_handlers(log_path, level):
            root_logger.addHandler(handler)

    def _build_handlers(self, log_path: Path, level: int) -> List[logging.Handler]:
        """JSON application log, console output and a JSON errors-only log."""
        json_formatter = JSONFormatter()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler.setLevel(level)

        return [
            _rotating_handler(str(log_path), 10 * 1024 * 1024, 5, level, json_formatter),
            console_handler,
            _rotating_handler(str(log_path.with_suffix('.errors.log')), 5 * 1024 * 1024, 3,
                              logging.ERROR, json_formatter),
        ]

    def measure_performance(self, operation: str, extra_data: Optional[Dict[str, Any]] = None):
        return self.performance_monitor.measure_operation(operation, extra_data)

    def get_performance_stats(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Stats for one operation, or for every operation currently held."""
        if operation:
            return self.performance_monitor.get_operation_stats(operation)

        operations = {m.operation for m in self.performance_monitor.get_metrics()}
        return {op: self.performance_monitor.get_operation_stats(op) for op in operations}

    def get_health_status(self) -> Dict[str, Any]:
        """Recent operation counts; 'unhealthy' if the metrics cannot be read."""
        now = datetime.now()
        try:
            self.performance_monitor.cleanup_old_metrics()
            recent = self.performance_monitor.get_metrics(since=now - timedelta(hours=1))
        except Exception as e:
            self.logger.error(f"Health check failed: {e}")
            return {'status': 'unhealthy', 'error': str(e), 'timestamp': now.isoformat()}

        return {
            'status': 'healthy',
            'recent_operations': len(recent),
            'recent_failures': sum(1 for m in recent if not m.success),
            'metrics_held': len(self.performance_monitor.metrics),
            'timestamp': now.isoformat()
        }
