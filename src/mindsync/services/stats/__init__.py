"""Usage statistics services."""

from mindsync.services.stats.usage_stats import UsageStatsUpdater

__all__ = ["UsageStatsUpdater"]
