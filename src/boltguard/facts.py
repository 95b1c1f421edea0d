"""
Image facts for boltguard.

Facts are the read-only snapshot of image metadata that rules are evaluated
against. They are built once per scan by the image loader and never
modified afterwards.

This module also holds the extraction step that turns an image config
document (as found in `docker save` archives and `docker image inspect`
output) into Facts.
"""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_BASE_IMAGE = "unknown"

# Users that mean the container process runs with uid 0
_ROOT_USERS = frozenset({"", "root", "0"})

_FROM_PATTERN = re.compile(r"FROM\s+(\S+)", re.IGNORECASE)

_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024


class LayerFact(BaseModel):
    """A single filesystem layer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    digest: str = Field(default="", description="Layer digest (sha256:...)")
    size: int = Field(default=0, description="Layer size in bytes", ge=0)
    created_by: str = Field(default="", description="Build step that produced it")


class HistoryEntry(BaseModel):
    """One entry from the image build history."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    created_by: str = ""
    empty_layer: bool = False


class Facts(BaseModel):
    """
    Everything boltguard knows about an image.

    Attributes:
        user: Declared run-as user ("" when unset)
        size: Total size in bytes
        labels: Image labels, in declaration order
        env: Raw KEY=VALUE environment entries, in order
        base_image: Inferred base image, "unknown" when undeterminable
        layers: Layer descriptors, bottom layer first
        created: Creation timestamp
        architecture: CPU architecture (e.g. "amd64")
        os: Operating system (e.g. "linux")
        exposed_ports: Exposed ports (e.g. "80/tcp")
        entrypoint: Entrypoint argv
        cmd: Default command argv
        working_dir: Working directory
        history: Build history entries
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user: str = ""
    size: int = Field(default=0, ge=0)
    labels: dict[str, str] = Field(default_factory=dict)
    env: list[str] = Field(default_factory=list)
    base_image: str = UNKNOWN_BASE_IMAGE
    layers: list[LayerFact] = Field(default_factory=list)
    created: datetime | None = None
    architecture: str = ""
    os: str = ""
    exposed_ports: list[str] = Field(default_factory=list)
    entrypoint: list[str] = Field(default_factory=list)
    cmd: list[str] = Field(default_factory=list)
    working_dir: str = ""
    history: list[HistoryEntry] = Field(default_factory=list)

    @property
    def runs_as_root(self) -> bool:
        """True when the declared user is empty, "root" or uid 0."""
        return self.user in _ROOT_USERS

    @property
    def size_mb(self) -> float:
        return self.size / _MB

    @property
    def size_gb(self) -> float:
        return self.size / _GB

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def has_label(self, key: str) -> bool:
        return key in self.labels

    def get_label(self, key: str) -> str | None:
        return self.labels.get(key)

    def has_env(self, key: str) -> bool:
        return self.get_env(key) is not None

    def get_env(self, key: str) -> str | None:
        """
        Return the value of an environment variable, or None.

        The first entry starting with KEY= wins; later duplicates are
        never reached.
        """
        prefix = f"{key}="
        for entry in self.env:
            if entry.startswith(prefix):
                return entry[len(prefix):]
        return None


# =============================================================================
# Extraction
# =============================================================================


def infer_base_image(history: list[HistoryEntry]) -> str:
    """
    Best-effort guess of the base image from build history.

    Looks for a "FROM <image>" instruction first, then for a standalone
    "from" token followed by a word. Returns "unknown" when neither is found.
    """
    for entry in history:
        created_by = entry.created_by
        if not created_by:
            continue

        match = _FROM_PATTERN.search(created_by)
        if match:
            return match.group(1)

        if "from" in created_by.lower():
            parts = created_by.split()
            for i, part in enumerate(parts[:-1]):
                if part.lower() == "from":
                    return parts[i + 1]

    return UNKNOWN_BASE_IMAGE


def extract_facts(config: dict[str, Any], layers: list[LayerFact]) -> Facts:
    """
    Build Facts from an image config document.

    Args:
        config: Parsed image config JSON (the OCI/Docker config blob, or the
            equivalent subset of `docker image inspect` output)
        layers: Layer descriptors in order, bottom layer first

    Returns:
        Fully populated Facts
    """
    container_config = _mapping(config.get("config") or config.get("Config"))

    history = [
        HistoryEntry(
            created_by=_text(item.get("created_by")),
            empty_layer=bool(item.get("empty_layer", False)),
        )
        for item in _items(config.get("history"))
        if isinstance(item, dict)
    ]

    # Attach build steps to the layers that produced them
    non_empty = [h for h in history if not h.empty_layer]
    if len(non_empty) == len(layers):
        layers = [
            layer.model_copy(update={"created_by": step.created_by})
            if not layer.created_by
            else layer
            for layer, step in zip(layers, non_empty)
        ]

    return Facts(
        user=_text(container_config.get("User")),
        size=sum(layer.size for layer in layers),
        labels={
            str(key): _text(value)
            for key, value in _mapping(container_config.get("Labels")).items()
        },
        env=_strings(container_config.get("Env")),
        base_image=infer_base_image(history),
        layers=layers,
        created=_parse_created(config.get("created") or config.get("Created")),
        architecture=_text(config.get("architecture") or config.get("Architecture")),
        os=_text(config.get("os") or config.get("Os")),
        exposed_ports=sorted(str(port) for port in _mapping(container_config.get("ExposedPorts"))),
        entrypoint=_strings(container_config.get("Entrypoint")),
        cmd=_strings(container_config.get("Cmd")),
        working_dir=_text(container_config.get("WorkingDir")),
        history=history,
    )


# Image configs come from untrusted archives; anything of the wrong shape
# reads as absent.


def _mapping(value: Any) -> dict[Any, Any]:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    """Return a string value; null becomes "" and other scalars are stringified."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return value if isinstance(value, str) else str(value)


def _strings(value: Any) -> list[str]:
    return [item for item in _items(value) if isinstance(item, str)]


def _parse_created(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp, tolerating nanosecond precision."""
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    # Python only accepts up to microseconds
    match = re.match(r"^(.*\.\d{6})\d+(.*)$", text)
    if match:
        text = match.group(1) + match.group(2)

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
