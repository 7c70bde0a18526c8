#!/usr/bin/env python3
"""
Standardized exception hierarchy for the insight engine.

Provides specific exception types for collection, analysis and configuration
failures, each carrying a machine-readable code and error context.
"""

from typing import Optional, Dict, Any


class InsightEngineError(Exception):
    """Base exception for all insight engine errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Source-related exceptions
class SourceError(InsightEngineError):
    """Base exception for record source errors."""
    pass


class SourceConnectionError(SourceError):
    """Failed to connect to a record source."""

    def __init__(self, source_name: str, url: str, original_error: Exception):
        message = f"Failed to connect to {source_name} at {url}"
        context = {
            'source_name': source_name,
            'url': url,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class SourceParseError(SourceError):
    """Failed to parse content returned by a record source."""

    def __init__(self, source_name: str, parse_stage: str, original_error: Exception):
        message = f"Failed to parse {parse_stage} from {source_name}"
        context = {
            'source_name': source_name,
            'parse_stage': parse_stage,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class SourceTimeoutError(SourceError):
    """Source request timed out."""

    def __init__(self, source_name: str, timeout_seconds: float):
        message = f"Timeout connecting to {source_name} after {timeout_seconds}s"
        context = {
            'source_name': source_name,
            'timeout_seconds': timeout_seconds
        }
        super().__init__(message, context=context)


# Analysis-related exceptions
class AnalysisError(InsightEngineError):
    """Base exception for analysis errors."""
    pass


class EmptyInputError(AnalysisError):
    """Grouping or statistics invoked on zero records."""

    def __init__(self, stage: str, key: Optional[str] = None):
        message = f"{stage} received no input"
        if key is not None:
            message += f" for group '{key}'"
        context = {'stage': stage, 'key': key}
        super().__init__(message, context=context)


class MalformedRecordError(AnalysisError):
    """A record is missing required fields or carries unparseable values."""

    def __init__(self, field: str, issue: str, record_id: Optional[str] = None):
        message = f"Malformed record{f' {record_id}' if record_id else ''}: {field} {issue}"
        context = {
            'field': field,
            'issue': issue,
            'record_id': record_id
        }
        super().__init__(message, context=context)


class ScoringOverflowError(AnalysisError):
    """A score component fell outside [0, 1] or was not finite."""

    def __init__(self, component: str, value: float):
        message = f"Score component {component} out of bounds: {value}"
        context = {'component': component, 'value': value}
        super().__init__(message, context=context)


class AnalysisTimeoutError(AnalysisError):
    """Analysis operation timed out."""

    def __init__(self, analysis_type: str, timeout_seconds: float):
        message = f"{analysis_type} analysis timed out after {timeout_seconds}s"
        context = {
            'analysis_type': analysis_type,
            'timeout_seconds': timeout_seconds
        }
        super().__init__(message, context=context)


# Configuration-related exceptions
class ConfigurationError(InsightEngineError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str):
        message = f"Configuration error for {config_key}: {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)


# Recovery utilities
class ErrorRecovery:
    """Utilities for error recovery and retry logic."""

    @staticmethod
    def get_retry_delay(error: Exception, attempt: int, base_delay: float = 1.0) -> float:
        """Get recommended retry delay in seconds (exponential, max 300s)."""
        return min(base_delay * (2 ** attempt), 300)
