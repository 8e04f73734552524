from __future__ import annotations

import logging
from typing import Iterable

from taskportal.domain.events import Event, Hook

logger = logging.getLogger(__name__)


def run_hooks(hooks: Iterable[Hook], event: Event) -> None:
    """Run post-commit side effects. A failing hook never fails the operation."""
    for hook in hooks:
        try:
            hook(event)
        except Exception:  # noqa: BLE001
            logger.exception("Post-commit hook %r failed for %s", hook, type(event).__name__)
