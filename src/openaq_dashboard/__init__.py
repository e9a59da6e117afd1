"""OpenAQ dashboard backend: cached OpenAQ v3 client plus a small JSON API."""

from openaq_dashboard.core.client import OpenAQClient, fetch_concurrently
from openaq_dashboard.core.schemas import ResponseEnvelope

__version__ = "1.0.0"

__all__ = ["OpenAQClient", "ResponseEnvelope", "fetch_concurrently"]
