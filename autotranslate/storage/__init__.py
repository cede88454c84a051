# storage/__init__.py
from autotranslate.storage.repository import Repository, current_month
from autotranslate.storage.models import (
    HistoryPage, HistoryRecord, LanguageStats, MonthlyUsage, StatsReport, UsageCounter,
)

__all__ = [
    "Repository", "current_month",
    "HistoryPage", "HistoryRecord", "LanguageStats",
    "MonthlyUsage", "StatsReport", "UsageCounter",
]
