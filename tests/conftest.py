import pytest

from sextant_mandel.config import Config


@pytest.fixture
def cfg(tmp_path, monkeypatch):
    path = tmp_path / "sextant_mandel.json"
    monkeypatch.setenv("SEXTANT_MANDEL_CONFIG", str(path))
    return Config.load(str(path))
