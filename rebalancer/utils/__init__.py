"""Utility modules for the rebalancer."""

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    get_logger,
    LogContext,
    RebalancerLogger,
    JSONFormatter,
    log_portfolio_change,
    log_rebalance_plan,
)

__all__ = [
    "setup_logging",
    "setup_logging_from_settings",
    "get_logger",
    "LogContext",
    "RebalancerLogger",
    "JSONFormatter",
    "log_portfolio_change",
    "log_rebalance_plan",
]
