"""
Pytest configuration for unit tests.

Shared fixtures for the bootstrap: a populated data directory, a fake
service account, and a fake ownership table standing in for chown/lstat.
"""
import logging
import os
from pathlib import Path
from types import SimpleNamespace

import pytest

from esboot.config import ENV_OVERRIDES
from esboot.identity import TargetAccount


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep ESBOOT_* settings from the developer's shell out of tests."""
    monkeypatch.delenv("ESBOOT_CONFIG", raising=False)
    for env_name in ENV_OVERRIDES.values():
        monkeypatch.delenv(env_name, raising=False)


@pytest.fixture
def fake_account():
    """Service account that does not need to exist on the test host."""
    return TargetAccount(user="elasticsearch", group="elasticsearch", uid=1000, gid=1000,
                         home="/usr/share/elasticsearch", shell="/bin/bash")


@pytest.fixture
def data_tree(tmp_path):
    """Data directory shaped like an Elasticsearch node volume."""
    data_dir = tmp_path / "data"
    indices = data_dir / "indices" / "abc123" / "0"
    indices.mkdir(parents=True)
    (indices / "segments_1").write_bytes(b"\x00" * 16)
    (data_dir / "indices" / "abc123" / "_state").mkdir()
    (data_dir / "node.lock").write_text("")
    (data_dir / "_state").mkdir()
    (data_dir / "_state" / "manifest-1.st").write_text("state")
    os.symlink("/etc/passwd", data_dir / "outside-link")
    return data_dir


class FakeOwnership:
    """In-memory uid/gid table with chown/lstat-compatible callables."""

    def __init__(self, default=(4242, 4242)):
        self.default = default
        self.owners = {}
        self.chown_calls = []

    def stat(self, path):
        if not os.path.lexists(path):
            raise FileNotFoundError(2, "No such file or directory", path)
        uid, gid = self.owners.get(str(path), self.default)
        return SimpleNamespace(st_uid=uid, st_gid=gid)

    def chown(self, path, uid, gid):
        if not os.path.lexists(path):
            raise FileNotFoundError(2, "No such file or directory", path)
        self.chown_calls.append(Path(path))
        self.owners[str(path)] = (uid, gid)


@pytest.fixture
def fake_ownership():
    return FakeOwnership()


@pytest.fixture(autouse=True)
def restore_esboot_logger():
    """Undo configure_logging() so caplog keeps seeing esboot records."""
    logger = logging.getLogger("esboot")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers, logger.level, logger.propagate = saved
