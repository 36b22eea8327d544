import logging
import logging.handlers
import os
import sys
import json
import threading
from typing import Optional, Dict, Any, Callable, List
from enum import Enum
from datetime import datetime, timezone

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class LogFormat(Enum):
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"

class AuditEventType(Enum):
    """Wallet events worth an audit trail"""
    SESSION_LOGIN = "session_login"
    SESSION_LOGOUT = "session_logout"
    SHIELDED_ADDRESS_CREATED = "shielded_address_created"
    SHIELDED_TRANSFER_SENT = "shielded_transfer_sent"
    SHIELDED_NOTES_RESET = "shielded_notes_reset"

class StructuredFormatter(logging.Formatter):
    """Renders a record plus its keyword data as one line of text or JSON"""

    def __init__(self, fmt_type: LogFormat = LogFormat.DETAILED, include_context: bool = True):
        super().__init__()
        self.fmt_type = fmt_type
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        data = getattr(record, 'structured_data', None) or {}
        message = record.getMessage()

        if self.fmt_type == LogFormat.SIMPLE:
            return f"{record.levelname}: {message}"

        if self.fmt_type == LogFormat.JSON:
            entry = {
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": message,
                "location": f"{record.module}.{record.funcName}:{record.lineno}",
                "thread": record.threadName,
            }
            if data:
                entry["data"] = data
            if record.exc_info:
                entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(entry, default=str)

        stamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        parts = [f"{stamp}.{int(record.msecs):03d}", f"{record.levelname:8}", record.name, message]
        if data and self.include_context:
            parts.append(json.dumps(data, default=str))
        line = " | ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

class SensitiveDataFilter(logging.Filter):
    """Replaces registered secrets (spending keys mostly) with a masked prefix"""

    MIN_PATTERN_LENGTH = 5

    def __init__(self):
        super().__init__()
        self.sensitive_patterns = set()
        self.masking_enabled = True

    def add_sensitive_pattern(self, pattern: str) -> None:
        # Short fragments would mask unrelated text
        if pattern and len(pattern) >= self.MIN_PATTERN_LENGTH:
            self.sensitive_patterns.add(pattern)

    def remove_sensitive_pattern(self, pattern: str) -> None:
        self.sensitive_patterns.discard(pattern)

    def filter(self, record: logging.LogRecord) -> bool:
        if self.masking_enabled and self.sensitive_patterns:
            if isinstance(record.msg, str):
                record.msg = self._mask(record.msg)
            if record.args:
                record.args = tuple(self._mask(arg) for arg in record.args)
            if hasattr(record, 'structured_data'):
                record.structured_data = self._mask(record.structured_data)
        return True

    def _mask(self, value: Any) -> Any:
        if isinstance(value, str):
            for pattern in self.sensitive_patterns:
                if pattern in value:
                    value = value.replace(pattern, pattern[:4] + '*' * (len(pattern) - 4))
            return value
        if isinstance(value, dict):
            return {key: self._mask(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._mask(item) for item in value]
        return value

class LogManager:
    """Process-wide handler setup, secret masking and audit fan-out"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance.loggers = {}
                instance.sensitive_filter = SensitiveDataFilter()
                instance.audit_handlers: List[Callable[[Dict], None]] = []
                instance.config = {
                    'log_level': LogLevel.INFO,
                    'log_format': LogFormat.DETAILED,
                    'log_file': None,
                    'max_file_size': 10 * 1024 * 1024,
                    'backup_count': 5,
                    'enable_console': True,
                }
                instance.initialized = False
                cls._instance = instance
            return cls._instance

    def configure(self, config: Dict[str, Any]) -> None:
        self.config.update(config)

        package_logger = logging.getLogger("zen_wallet")
        package_logger.setLevel(getattr(logging, self.config['log_level'].value))
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()

        handlers: List[logging.Handler] = []
        if self.config['enable_console']:
            handlers.append(logging.StreamHandler(sys.stdout))
        if self.config['log_file']:
            handlers.append(self._file_handler(self.config['log_file']))

        formatter = StructuredFormatter(self.config['log_format'])
        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(self.sensitive_filter)
            package_logger.addHandler(handler)

        # HTTP client chatter drowns out node call logs
        for noisy in ("urllib3", "requests"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        self.initialized = True

    def _file_handler(self, log_file: str) -> logging.Handler:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=self.config['max_file_size'],
            backupCount=self.config['backup_count'],
            encoding='utf-8'
        )

    def get_logger(self, name: str) -> 'AdvancedLogger':
        with self._lock:
            if name not in self.loggers:
                self.loggers[name] = AdvancedLogger(name, self)
            return self.loggers[name]

    def add_audit_handler(self, handler: Callable[[Dict], None]) -> None:
        self.audit_handlers.append(handler)

class AdvancedLogger:
    """Wraps a stdlib logger so keyword arguments travel as structured data"""

    def __init__(self, name: str, manager: Optional[LogManager] = None):
        self.name = name
        self.manager = manager or LogManager()
        self.logger = logging.getLogger(name)
        self.sensitive_filter = self.manager.sensitive_filter
        # Mask even when no handlers were configured through the manager
        if self.sensitive_filter not in self.logger.filters:
            self.logger.addFilter(self.sensitive_filter)

    def add_sensitive_data(self, data: str) -> None:
        self.sensitive_filter.add_sensitive_pattern(data)

    def remove_sensitive_data(self, data: str) -> None:
        self.sensitive_filter.remove_sensitive_pattern(data)

    def _emit(self, level: int, msg: str, exc_info: bool = False, **data) -> None:
        self.logger.log(level, msg, exc_info=exc_info, extra={'structured_data': data})

    def debug(self, msg: str, **data) -> None:
        self._emit(logging.DEBUG, msg, **data)

    def info(self, msg: str, **data) -> None:
        self._emit(logging.INFO, msg, **data)

    def warning(self, msg: str, **data) -> None:
        self._emit(logging.WARNING, msg, **data)

    def error(self, msg: str, **data) -> None:
        self._emit(logging.ERROR, msg, **data)

    def critical(self, msg: str, **data) -> None:
        self._emit(logging.CRITICAL, msg, **data)

    def exception(self, msg: str, **data) -> None:
        """Error with the active traceback attached"""
        self._emit(logging.ERROR, msg, exc_info=True, **data)

    def audit(self, event_type: AuditEventType, **details) -> None:
        """Record a wallet event and hand it to every audit handler.

        session_id and outcome are lifted out of the keyword arguments;
        everything else lands under 'details'.
        """
        event = {
            'event_type': event_type.value,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'session_id': details.pop('session_id', None) or 'unknown',
            'outcome': details.pop('outcome', 'success'),
            'details': details,
        }

        for handler in list(self.manager.audit_handlers):
            try:
                handler(event)
            except Exception as e:
                self.error(f"Audit handler failed for {event_type.value}: {e}")

        self.info(f"AUDIT: {event_type.value}", **event)

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None,
                  log_format: str = "detailed", max_bytes: int = 10 * 1024 * 1024,
                  backup_count: int = 5) -> None:
    LogManager().configure({
        'log_level': LogLevel(log_level.upper()),
        'log_format': LogFormat(log_format.lower()),
        'log_file': log_file,
        'max_file_size': max_bytes,
        'backup_count': backup_count,
    })

def get_logger(name: str) -> AdvancedLogger:
    return LogManager().get_logger(name)

logger = get_logger("zen_wallet")
