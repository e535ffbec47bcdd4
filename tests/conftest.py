import textwrap
import uuid

import pytest


@pytest.fixture
def glue_module(tmp_path, monkeypatch):
    """Write a glue module under tmp_path and return its importable name"""
    monkeypatch.syspath_prepend(str(tmp_path))

    def write(source: str) -> str:
        name = f"glue_{uuid.uuid4().hex}"
        (tmp_path / f"{name}.py").write_text(textwrap.dedent(source))
        return name

    return write
