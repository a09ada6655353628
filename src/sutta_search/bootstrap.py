"""Process-level setup for applications that embed sutta-search."""

from __future__ import annotations

import logging
from typing import Any

from sutta_search.config import Settings
from sutta_search.observability.logging import configure_logging
from sutta_search.observability.tracing import init_tracing


logger = logging.getLogger(__name__)


def init_observability(
    settings: Settings | None = None,
    *,
    service_name: str = "sutta-search",
    stream: Any = None,
) -> Settings:
    """Configure logging and tracing from ``settings`` and return the settings used.

    Call once at startup, before the first :class:`~sutta_search.CorpusIndex` is built.
    """
    settings = settings or Settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json, stream=stream)
    init_tracing(service_name=service_name)
    logger.debug("Observability initialized (level=%s, json=%s)", settings.log_level, settings.log_json)
    return settings
