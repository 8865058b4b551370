from pathlib import Path

import pytest

from fstabgen.context import GeneratorContext

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    """Keep the environment of the test runner out of detection and logging."""
    for var in ("SYSTEMD_IN_INITRD", "SYSTEMD_PROC_CMDLINE", "SYSTEMD_LOG_LEVEL", "FSTABGEN_DEBUG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fixtures() -> Path:
    return FIXTURES


@pytest.fixture
def host_root(tmp_path) -> Path:
    root = tmp_path / "root"
    (root / "etc").mkdir(parents=True)
    return root


@pytest.fixture
def dest(tmp_path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def make_ctx(dest, host_root):
    """Factory for contexts with fake collaborators: every fsck helper exists."""
    def make(**kw) -> GeneratorContext:
        kw.setdefault("dest", dest)
        kw.setdefault("root", host_root)
        kw.setdefault("fsck_exists", lambda fstype: True)
        return GeneratorContext(**kw)
    return make


@pytest.fixture
def write_fstab(host_root):
    def write(text: str, path: str = "etc/fstab") -> Path:
        p = host_root / path
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text)
        return p
    return write
