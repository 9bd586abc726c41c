"""Shared utilities for configuration, logging, and error handling"""

from windowsync.utils.retry import exponential_backoff_retry

__all__ = ["exponential_backoff_retry"]
