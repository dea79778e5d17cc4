from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.mark.integration
def test_integration_sentinel_file_written() -> None:
    target = os.environ.get("AICF_RPC_SENTINEL_DIR")
    if target:
        (Path(target) / "_integration_ran").write_text("1", encoding="utf-8")
