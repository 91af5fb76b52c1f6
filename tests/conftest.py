"""Shared fixtures.

Every test runs with the pacing delays forced to zero so that pagination,
retries and per-job cooldowns never actually sleep.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def no_delays(monkeypatch):
    monkeypatch.setattr("harvester.config.settings.page_delay_min", 0.0)
    monkeypatch.setattr("harvester.config.settings.page_delay_max", 0.0)
    monkeypatch.setattr("harvester.config.settings.job_cooldown_min", 0.0)
    monkeypatch.setattr("harvester.config.settings.job_cooldown_max", 0.0)
    monkeypatch.setattr("harvester.config.settings.retry_delay", 0.0)
    monkeypatch.setattr("harvester.config.settings.max_consecutive_errors", 3)
