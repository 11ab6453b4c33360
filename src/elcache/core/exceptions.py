"""
Core Exception Hierarchy for elcache

Provides error classification with error codes, recovery suggestions and
context information for the persistence engine, the facade and the CLI.
"""

import sys
import time
import traceback
import uuid
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


class ErrorCode(Enum):
    """Standard error codes for different error categories."""

    # Configuration errors (3000-3999)
    CONFIG_INVALID_FORMAT = 3001
    CONFIG_INVALID_VALUE = 3003
    CONFIG_FILE_NOT_FOUND = 3004

    # Cache errors (4000-4999)
    CACHE_TOO_LARGE = 4001
    CACHE_DECODE_FAILED = 4002
    CACHE_CLOSED = 4003
    CACHE_NOT_INITIALIZED = 4004

    # File system errors (6000-6999)
    FS_FILE_NOT_FOUND = 6001
    FS_PERMISSION_DENIED = 6002
    FS_WRITE_FAILED = 6007

    # Generic/unknown errors (9000-9999)
    UNKNOWN_ERROR = 9000
    INTERNAL_ERROR = 9001


@dataclass
class ErrorContext:
    """Contextual information about an error occurrence."""

    operation: str = ""
    cache_context: Optional[str] = None
    key: Optional[str] = None
    file_path: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    system_info: Dict[str, Any] = field(default_factory=dict)
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            'operation': self.operation,
            'cache_context': self.cache_context,
            'key': self.key,
            'file_path': self.file_path,
            'correlation_id': self.correlation_id,
            'timestamp': self.timestamp,
            'system_info': self.system_info,
            'user_context': self.user_context
        }


@dataclass
class RecoverySuggestion:
    """Structured recovery suggestion for error resolution."""

    action: str  # Brief action description
    description: str  # Detailed explanation
    command: Optional[str] = None  # CLI command to resolve
    priority: int = 1  # Priority order (1=highest)

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary."""
        return {
            'action': self.action,
            'description': self.description,
            'command': self.command,
            'priority': self.priority
        }


class ElcacheError(Exception):
    """
    Base exception for all elcache errors.

    Carries an error code, recovery suggestions and context so callers
    (and the CLI) can render a useful message.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
        suggestions: Optional[List[RecoverySuggestion]] = None
    ):
        """
        Initialize elcache error.

        Args:
            message: Human-readable error description
            error_code: Standardized error code
            context: Contextual information about the error
            cause: Original exception that caused this error
            recoverable: Whether the caller can retry after fixing the cause
            suggestions: List of recovery suggestions
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.stack_trace = traceback.format_exc()

        if not self.context.correlation_id:
            self.context.correlation_id = str(uuid.uuid4())[:8]

        if not self.context.system_info:
            self.context.system_info = {
                'platform': sys.platform,
                'python_version': sys.version,
            }

    def add_suggestion(self, suggestion: RecoverySuggestion) -> None:
        """Add a recovery suggestion to the error."""
        self.suggestions.append(suggestion)
        self.suggestions.sort(key=lambda s: s.priority)

    def get_user_message(self) -> str:
        """Get user-friendly error message with suggestions."""
        lines = [f"Error: {self.message}"]

        if self.error_code != ErrorCode.UNKNOWN_ERROR:
            lines.append(f"Error Code: {self.error_code.value}")

        if self.suggestions:
            lines.append("\nSuggested solutions:")
            for i, suggestion in enumerate(self.suggestions[:3], 1):
                lines.append(f"  {i}. {suggestion.action}")
                lines.append(f"     {suggestion.description}")
                if suggestion.command:
                    lines.append(f"     Command: {suggestion.command}")

        return "\n".join(lines)

    def get_debug_info(self) -> Dict[str, Any]:
        """Get comprehensive debug information."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(self.cause).__name__ if self.cause else None,
                'message': str(self.cause) if self.cause else None
            },
            'suggestions': [s.to_dict() for s in self.suggestions],
            'stack_trace': self.stack_trace
        }


class PathNotWritableError(ElcacheError):
    """Raised at open time when the cache directory cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or ErrorContext(operation="open")
        if path:
            context.file_path = path

        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.FS_PERMISSION_DENIED)
        kwargs.setdefault('recoverable', False)

        super().__init__(message, **kwargs)

        self.add_suggestion(RecoverySuggestion(
            action="Choose a writable directory",
            description="Point the cache at an existing directory the current user can write to.",
            command="elcache --path /tmp store info",
            priority=1
        ))


class CacheTooLargeError(ElcacheError):
    """Raised by write() when the encoded store exceeds max_buffer."""

    def __init__(self, message: str, size: int = 0, limit: int = 0, **kwargs):
        context = kwargs.get('context') or ErrorContext(operation="write")
        context.user_context['size'] = size
        context.user_context['limit'] = limit

        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.CACHE_TOO_LARGE)

        super().__init__(message, **kwargs)

        self.size = size
        self.limit = limit

        self.add_suggestion(RecoverySuggestion(
            action="Revoke keys more often",
            description="Remove entries you no longer need, then write again.",
            command="elcache store purge",
            priority=1
        ))
        self.add_suggestion(RecoverySuggestion(
            action="Raise the size limit",
            description="Increase max_buffer (in KiB) in the cache configuration.",
            priority=2
        ))


class CacheDecodeError(ElcacheError):
    """Raised by the codec when a payload cannot be decoded into a store."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', ErrorCode.CACHE_DECODE_FAILED)
        super().__init__(message, **kwargs)


class CacheWriteError(ElcacheError):
    """Raised when the cache file cannot be written or removed."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or ErrorContext(operation="write")
        if path:
            context.file_path = path

        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.FS_WRITE_FAILED)

        super().__init__(message, **kwargs)


class CacheClosedError(ElcacheError):
    """Raised when a closed cache is mutated."""

    def __init__(self, message: str = "Cache has already been closed", **kwargs):
        kwargs.setdefault('error_code', ErrorCode.CACHE_CLOSED)
        kwargs.setdefault('recoverable', False)
        super().__init__(message, **kwargs)


class CacheNotInitializedError(ElcacheError):
    """Raised when a context is looked up before init()."""

    def __init__(self, message: str, cache_context: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or ErrorContext(operation="lookup")
        context.cache_context = cache_context

        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.CACHE_NOT_INITIALIZED)

        super().__init__(message, **kwargs)


class ConfigurationError(ElcacheError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext(operation="configure")
        if config_key:
            context.user_context['config_key'] = config_key
            context.user_context['config_value'] = config_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.CONFIG_FILE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="Check the configuration path",
                description="Pass an existing YAML or JSON file, or omit --config to use defaults.",
                priority=1
            ))
        elif error_code == ErrorCode.CONFIG_INVALID_VALUE:
            self.add_suggestion(RecoverySuggestion(
                action="Check configuration values",
                description="Review the configuration file and ELCACHE_* environment variables.",
                priority=1
            ))


def config_error(message: str, key: Optional[str] = None, **kwargs) -> ConfigurationError:
    """Create a configuration error with standard suggestions."""
    return ConfigurationError(message, config_key=key, **kwargs)
