"""Audit trail for record mutations."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_action(
    *,
    action: str,
    resource_type: str,
    resource_id: Any,
    actor: str = "hospital_records",
    detail: dict[str, Any] | None = None,
) -> None:
    """Write one audit line for a mutation that reached the database."""
    if detail:
        logger.info("AUDIT: %s %s %s/%s %s", actor, action, resource_type, resource_id, detail)
    else:
        logger.info("AUDIT: %s %s %s/%s", actor, action, resource_type, resource_id)
