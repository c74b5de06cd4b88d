"""Versioned persistence of a lottery's prize configuration."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..access import normalize_account, require_principal
from ..models import Lottery, PrizeConfigVersion
from .config import PrizeConfig

logger = logging.getLogger(__name__)


class PrizeConfigStore:
    """Copy-on-write store for :class:`PrizeConfig` values.

    Each update validates a new configuration derived from the current one and
    appends it as a :class:`PrizeConfigVersion` row; stored versions are never
    modified. All updates are restricted to the lottery owner.
    """

    def __init__(self, session: Session, lottery: Lottery) -> None:
        if lottery.id is None:
            raise ValueError("Lottery must be persisted before configuring prizes")
        self._session = session
        self._lottery = lottery

    def current_version(self) -> Optional[PrizeConfigVersion]:
        return self._lottery.latest_config_version(self._session)

    def current(self) -> PrizeConfig:
        """Return the configuration in force (the default one if never updated)."""
        version = self.current_version()
        if version is None:
            return PrizeConfig()
        return version.to_config()

    def update_weights(self, caller: str, weights: Iterable[int]) -> PrizeConfig:
        """Replace the per-tier weight table (nine non-decreasing weights)."""
        require_principal(caller, self._lottery.owner, "update weights")
        return self._append(caller, self.current().with_weights(weights))

    def update_prize_tiers(
        self,
        caller: str,
        winner_counts: Iterable[int],
        prize_amounts: Iterable[int],
    ) -> PrizeConfig:
        """Replace the prize tier table.

        The tiers must distribute exactly the current total prize threshold.
        """
        require_principal(caller, self._lottery.owner, "update prize tiers")
        config = self.current().with_prize_tiers(winner_counts, prize_amounts)
        return self._append(caller, config)

    def update_participation_threshold(self, caller: str, value: int) -> PrizeConfig:
        require_principal(caller, self._lottery.owner, "update the participation threshold")
        return self._append(caller, self.current().with_participation_threshold(value))

    def update_total_prize_threshold(self, caller: str, value: int) -> PrizeConfig:
        """Change the pool size required to draw.

        Stored prize tiers are kept as they are even if they no longer add up
        to ``value``; re-submit them with :meth:`update_prize_tiers`.
        """
        require_principal(caller, self._lottery.owner, "update the total prize threshold")
        config = self.current().with_total_prize_threshold(value)
        if config.prize_tiers and config.tier_total != value:
            logger.warning(
                "Prize tiers of lottery %s distribute %s but the total prize "
                "threshold is now %s",
                self._lottery.internal_name,
                config.tier_total,
                value,
            )
        return self._append(caller, config)

    def _append(self, caller: str, config: PrizeConfig) -> PrizeConfig:
        current = self.current_version()
        version = PrizeConfigVersion(
            lottery_id=self._lottery.id,
            version=(current.version + 1) if current is not None else 1,
            weights=list(config.weights),
            winner_counts=[tier.winner_count for tier in config.prize_tiers],
            prize_amounts=[tier.prize_amount for tier in config.prize_tiers],
            participation_threshold=config.participation_threshold,
            total_prize_threshold=config.total_prize_threshold,
            created_by=normalize_account(caller),
        )
        self._session.add(version)
        self._session.flush()
        logger.info(
            "Lottery %s prize configuration is now version %d",
            self._lottery.internal_name,
            version.version,
        )
        return config


__all__ = ["PrizeConfigStore"]
