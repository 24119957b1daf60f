"""
Pytest configuration and fixtures for geofix tests

This module provides shared fixtures for unit and integration tests.
"""
import os
from datetime import datetime, timedelta
from typing import Callable

import pytest

from geofix.core.models import CorrectionOptions, MonitoringPoint, PeriodData


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for a single component"
    )
    config.addinivalue_line(
        "markers", "integration: Tests running validation, correction and batching together"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session", autouse=True)
def test_env_vars():
    """
    Set test environment variables

    This fixture loads config/test.env and sets environment variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)


@pytest.fixture(scope="session")
def config_dir() -> str:
    """Path to the repository's config directory"""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "config")


# =======================
# DATA FIXTURES
# =======================

BASE_TIME = datetime(2025, 3, 1, 8, 0)


def build_period(
    index: int,
    current_x: float = 0.0,
    cumulative_x: float = 0.0,
    point_name: str = "P1",
    can_adjust: bool = True,
    **values,
) -> PeriodData:
    """Period on day `index` after BASE_TIME with X values and optional Y/Z overrides."""
    return PeriodData(
        point_name=point_name,
        timestamp=BASE_TIME + timedelta(days=index),
        row_number=index + 1,
        sequence_number=index,
        source_file=f"2025-3-{index + 1}-08.xls",
        current_period_x=current_x,
        cumulative_x=cumulative_x,
        can_adjust=can_adjust,
        **values,
    )


def build_point(
    pairs: list[tuple[float, float]],
    point_name: str = "P1",
    anchors: set[int] | None = None,
) -> MonitoringPoint:
    """Point whose X axis follows the given (current, cumulative) pairs; indices in anchors are fixed."""
    anchors = anchors or set()
    periods = [
        build_period(i, cur, cum, point_name=point_name, can_adjust=i not in anchors)
        for i, (cur, cum) in enumerate(pairs)
    ]
    return MonitoringPoint(point_name=point_name, periods=periods)


@pytest.fixture
def make_period() -> Callable[..., PeriodData]:
    return build_period


@pytest.fixture
def make_point() -> Callable[..., MonitoringPoint]:
    return build_point


@pytest.fixture
def p1_point() -> MonitoringPoint:
    """
    Point P1: an anchor at 0.5/0.5 followed by an adjustable period whose
    cumulative (1.0) disagrees with 0.5 + 0.3.
    """
    return build_point([(0.5, 0.5), (0.3, 1.0)], anchors={0})


@pytest.fixture
def tight_options() -> CorrectionOptions:
    """Options with a 0.1 tolerance, as used for small synthetic series"""
    return CorrectionOptions(cumulative_tolerance=0.1, error_threshold=0.3, critical_threshold=0.5)
