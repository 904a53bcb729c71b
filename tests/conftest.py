from __future__ import annotations

import stat
from pathlib import Path
from typing import Callable

import pytest

HandlerFactory = Callable[..., Path]


@pytest.fixture
def write_handler(tmp_path: Path) -> HandlerFactory:
    def _write(body: str, name: str = "handler.sh") -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
