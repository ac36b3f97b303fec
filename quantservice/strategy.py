"""Strategies: named symbol pools with the features and agents that drive them."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from quantservice.features import FeaturePipeline

logger = logging.getLogger(__name__)


@dataclass
class FeatureInfo:
    """A feature of a strategy: its type name and construction parameters."""

    type: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentStrategyInfo:
    """Definition of a strategy.

    ``level`` is the day ahead the strategy predicts (0 means real time).
    ``agents`` holds the raw agent settings of the strategy.
    """

    name: str
    level: int = 0
    pool: list[str] = field(default_factory=list)
    features: list[FeatureInfo] = field(default_factory=list)
    agents: list[dict[str, Any]] = field(default_factory=list)


class StrategySubSystem:
    """Keeps the known strategy names and registers their features."""

    def __init__(self, pipeline: FeaturePipeline | None = None) -> None:
        self.pipeline = pipeline if pipeline is not None else FeaturePipeline()
        self._strategies: set[str] = set()
        self._lock = threading.Lock()

    def strategy_names(self) -> list[str]:
        """All strategy names, sorted."""
        with self._lock:
            return sorted(self._strategies)

    def has_strategy(self, name: str) -> bool:
        with self._lock:
            return name in self._strategies

    def create_strategy(self, name: str, params: Mapping[str, Any]) -> bool:
        """Record a strategy from request parameters holding ``feature`` and ``agent``."""
        for key in ("feature", "agent"):
            if key not in params:
                raise KeyError(f"strategy parameters need {key!r}")
        with self._lock:
            self._strategies.add(name)
        return True

    def add_strategy(self, info: AgentStrategyInfo) -> bool:
        """Register a strategy and its features; False if the name is taken."""
        with self._lock:
            if info.name in self._strategies:
                logger.info("Strategy %s exist. Please check.", info.name)
                return False
            self._strategies.add(info.name)
        self.pipeline.load_config(info.name, info.pool, info.features)
        return True

    def release(self) -> None:
        """Forget every strategy."""
        with self._lock:
            self._strategies.clear()