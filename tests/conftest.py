from __future__ import annotations

from typing import Any

import pytest

from tests.fakes import sample_rows


@pytest.fixture()
def sheet_rows() -> list[dict[str, Any]]:
    """One active Riyadh site at 8% fuel and one off-air Jeddah site."""
    return sample_rows()
