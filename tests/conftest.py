from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from sqlconnector.models import AccessToken

from .fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_source(clock: FakeClock) -> MagicMock:
    """Identity-provider stub issuing one-hour tokens numbered tok-1, tok-2, ..."""
    counter = {"n": 0}

    def _issue() -> AccessToken:
        counter["n"] += 1
        return AccessToken(value=f"tok-{counter['n']}", expires_at=clock() + timedelta(hours=1))

    return MagicMock(side_effect=_issue)
