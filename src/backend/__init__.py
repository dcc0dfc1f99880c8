"""Sentiment backend access.

Components:
- HTTPClient / RetryConfig: httpx client with backoff and bearer auth
- SentimentBackendClient: Alert, driver-stats, and admin-config endpoints
"""

from src.backend.client import SentimentBackendClient
from src.backend.http_client import HTTPClient, HTTPClientError, RateLimitError, RetryConfig

__all__ = [
    "HTTPClient",
    "HTTPClientError",
    "RateLimitError",
    "RetryConfig",
    "SentimentBackendClient",
]
