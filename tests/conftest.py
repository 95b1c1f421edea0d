"""
Pytest configuration and fixtures for boltguard tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import io
import json
import tarfile
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from boltguard.facts import Facts, LayerFact
from boltguard.policy import load_policy_from_string
from boltguard.schema import Policy, Rule

MB = 1024 * 1024


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_facts() -> Callable[..., Facts]:
    """Factory for Facts with sensible non-root defaults."""

    def _make(**overrides: Any) -> Facts:
        values: dict[str, Any] = {
            "user": "app",
            "size": 100 * MB,
            "labels": {"maintainer": "team@example.com"},
            "env": ["PATH=/usr/local/bin:/usr/bin"],
            "base_image": "alpine:3.19",
            "layers": [LayerFact(digest=f"sha256:{i:064x}", size=MB) for i in range(3)],
            "architecture": "amd64",
            "os": "linux",
        }
        values.update(overrides)
        return Facts(**values)

    return _make


@pytest.fixture
def make_rule() -> Callable[..., Rule]:
    """Factory for rules; kind and config are the interesting parts."""

    def _make(kind: str = "user", config: dict[str, Any] | None = None, **overrides: Any) -> Rule:
        values: dict[str, Any] = {
            "id": f"R-{kind}",
            "name": f"{kind} check",
            "severity": "high",
            "kind": kind,
            "config": config or {},
        }
        values.update(overrides)
        return Rule(**values)

    return _make


@pytest.fixture
def sample_policy_yaml() -> str:
    """Return a policy YAML covering every built-in kind."""
    return """
name: sample
description: Sample policy for tests
version: "1.2.0"
settings:
  fail_on_error: false
  min_severity: low
rules:
  - id: R1
    name: Non-root user
    description: Do not run as root
    severity: high
    kind: user
    config:
      allow_root: false
  - id: R2
    name: Image size
    severity: medium
    kind: size
    config:
      max_mb: 2048
      warn_mb: 1024
  - id: R3
    name: Required labels
    severity: low
    kind: label
    config:
      required: [maintainer, version]
  - id: R4
    name: No secrets
    severity: critical
    kind: env
    fail_fast: true
    config:
      deny_patterns: ["(?i)password"]
  - id: R5
    name: Trusted base
    severity: medium
    kind: base
    config:
      allowed_prefixes: [alpine, debian]
  - id: R6
    name: Layer count
    severity: info
    kind: layers
    config:
      max_layers: 20
      warn_layers: 10
"""


@pytest.fixture
def sample_policy(sample_policy_yaml: str) -> Policy:
    """The sample policy, parsed and validated."""
    return load_policy_from_string(sample_policy_yaml)


def _add_bytes(archive: tarfile.TarFile, name: str, data: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    archive.addfile(info, io.BytesIO(data))


@pytest.fixture
def image_config() -> dict[str, Any]:
    """An image config blob as written by `docker save`."""
    return {
        "architecture": "amd64",
        "os": "linux",
        "created": "2024-05-01T12:30:45.123456789Z",
        "config": {
            "User": "",
            "Env": ["PATH=/usr/bin", "DB_PASSWORD=hunter2"],
            "Labels": {"maintainer": "ops@example.com"},
            "ExposedPorts": {"80/tcp": {}},
            "Cmd": ["nginx", "-g", "daemon off;"],
            "WorkingDir": "/srv",
        },
        "history": [
            {"created_by": "/bin/sh -c #(nop) ADD file:abc in / "},
            {"created_by": "/bin/sh -c #(nop)  CMD [\"sh\"]", "empty_layer": True},
            {"created_by": "RUN /bin/sh -c apk add nginx # buildkit"},
        ],
        "rootfs": {
            "type": "layers",
            "diff_ids": [
                "sha256:" + "a" * 64,
                "sha256:" + "b" * 64,
            ],
        },
    }


@pytest.fixture
def make_archive(temp_dir: Path, image_config: dict[str, Any]) -> Callable[..., Path]:
    """Factory writing a minimal `docker save` archive to disk."""

    def _make(
        config: dict[str, Any] | None = None,
        layer_sizes: tuple[int, ...] = (3 * MB, 2 * MB),
        name: str = "image.tar",
    ) -> Path:
        config = config if config is not None else image_config
        config_name = "c" * 64 + ".json"
        layer_names = [f"{i:064x}/layer.tar" for i in range(len(layer_sizes))]
        manifest = [{
            "Config": config_name,
            "RepoTags": ["example/app:1.0"],
            "Layers": layer_names,
        }]

        path = temp_dir / name
        with tarfile.open(path, "w") as archive:
            _add_bytes(archive, "manifest.json", json.dumps(manifest).encode())
            _add_bytes(archive, config_name, json.dumps(config).encode())
            for layer_name, size in zip(layer_names, layer_sizes):
                _add_bytes(archive, layer_name, b"\0" * size)
        return path

    return _make
