import logging

import pytest


@pytest.fixture(autouse=True)
def _capture_market_mood_debug_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="market_mood")
    yield
