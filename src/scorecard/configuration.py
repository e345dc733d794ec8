"""Configuration resolver — one active scoring configuration per category.

Configurations only govern the parametric policy.  The fixed table never
needs one, so it stays available when a category has nothing active.
Configuration changes do not touch stored evaluations or KPI snapshots.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from src.scorecard.config import ScoringPolicy, settings
from src.scorecard.errors import ConfigurationNotFoundError
from src.scorecard.models import CONFIGURATION_MODELS, Category, ScoringConfiguration
from src.scorecard.repository import EvaluationRepository

logger = logging.getLogger(__name__)


def default_configuration(category: Category, **overrides: Any) -> ScoringConfiguration:
    return CONFIGURATION_MODELS[category](**overrides)


def list_configurations(
    repo: EvaluationRepository, category: Category,
) -> list[ScoringConfiguration]:
    return repo.list_configurations(category)


def active_configuration(
    repo: EvaluationRepository, category: Category,
) -> ScoringConfiguration:
    config = repo.get_active_configuration(category)
    if config is None:
        raise ConfigurationNotFoundError(category)
    return config


def resolve_for_scoring(
    repo: EvaluationRepository,
    category: Category,
    policy: ScoringPolicy,
) -> ScoringConfiguration | None:
    """Configuration to score with, or ``None`` for the fixed table."""
    if policy == "fixed_table":
        return None
    try:
        return active_configuration(repo, category)
    except ConfigurationNotFoundError:
        if not settings.fallback_to_fixed_table:
            raise
        logger.warning(
            "No active %s configuration; scoring with the fixed table", category,
        )
        return None


def _deactivate_others(
    repo: EvaluationRepository, configuration: ScoringConfiguration,
) -> None:
    for other in repo.list_configurations(configuration.category):
        if other.id != configuration.id and other.is_active:
            repo.put_configuration(other.model_copy(update={"is_active": False}))
            logger.info(
                "Deactivated %s configuration %r", other.category, other.name,
            )


def save_configuration(
    repo: EvaluationRepository, configuration: ScoringConfiguration,
) -> ScoringConfiguration:
    with repo.lock:
        if configuration.is_active:
            _deactivate_others(repo, configuration)
        repo.put_configuration(configuration)
    logger.info(
        "Saved %s configuration %r (active=%s)",
        configuration.category, configuration.name, configuration.is_active,
    )
    return configuration


def get_configuration(
    repo: EvaluationRepository, category: Category, config_id: str,
) -> ScoringConfiguration:
    config = repo.get_configuration(category, config_id)
    if config is None:
        raise ConfigurationNotFoundError(category, config_id)
    return config


def update_configuration(
    repo: EvaluationRepository,
    category: Category,
    config_id: str,
    **changes: Any,
) -> ScoringConfiguration:
    """Replace thresholds on an existing configuration and re-validate it."""
    existing = get_configuration(repo, category, config_id)
    for frozen in ("id", "created_at", "updated_at"):
        changes.pop(frozen, None)
    data = {
        **existing.model_dump(),
        **changes,
        "updated_at": datetime.now(timezone.utc),
    }
    updated = type(existing).model_validate(data)
    return save_configuration(repo, updated)


def activate_configuration(
    repo: EvaluationRepository, category: Category, config_id: str,
) -> ScoringConfiguration:
    return update_configuration(repo, category, config_id, is_active=True)
