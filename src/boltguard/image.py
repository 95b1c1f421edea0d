"""
Image loading for boltguard.

Reads image metadata from one of two local sources and turns it into Facts:
    - An image archive produced by `docker save` (manifest.json + config blob)
    - The local Docker daemon, through `docker image inspect` and
      `docker history`

Nothing is ever pulled from a registry. Only metadata is read; layer
contents are not unpacked.
"""

import hashlib
import json
import logging
import subprocess
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from boltguard.errors import ImageLoadError, ImageNotFoundError
from boltguard.facts import Facts, LayerFact, extract_facts

logger = logging.getLogger(__name__)

DOCKER_TIMEOUT_SECONDS = 60


@dataclass
class LoadedImage:
    """
    Raw image metadata, before fact extraction.

    Attributes:
        reference: What the caller asked for (tag or archive path)
        config: Parsed image config document
        layers: Layer descriptors, bottom layer first
        digest: Config digest when known (sha256:...)
        repo_tags: Tags recorded for the image
        size: Total size in bytes, when the source reports one directly
    """

    reference: str
    config: dict[str, Any]
    layers: list[LayerFact] = field(default_factory=list)
    digest: str = ""
    repo_tags: list[str] = field(default_factory=list)
    size: int | None = None

    def facts(self) -> Facts:
        """
        Extract Facts from this image.

        Raises:
            ImageLoadError: If the config holds values Facts can't represent
        """
        try:
            facts = extract_facts(self.config, self.layers)
        except ValidationError as e:
            raise ImageLoadError(
                reference=self.reference,
                reason=f"unusable image config: {e.error_count()} invalid field(s)",
            ) from e
        if self.size is not None and facts.size != self.size:
            facts = facts.model_copy(update={"size": self.size})
        return facts


def load_image(reference: str) -> LoadedImage:
    """
    Load an image from an archive path or the local daemon.

    An existing file is treated as an archive; anything else is looked up
    in the Docker daemon.

    Raises:
        ImageLoadError: If the image metadata can't be read
    """
    if Path(reference).is_file():
        return load_archive(reference)
    return load_from_daemon(reference)


# =============================================================================
# Archive
# =============================================================================


def load_archive(path: Path | str, reference: str | None = None) -> LoadedImage:
    """
    Load an image from a `docker save` archive.

    Args:
        path: Path to the .tar archive
        reference: Name to report the image under (defaults to the path)

    Raises:
        ImageLoadError: If the archive is unreadable or malformed
    """
    path = Path(path)
    ref = reference or str(path)

    try:
        with tarfile.open(path) as archive:
            members = {m.name.removeprefix("./"): m for m in archive.getmembers()}

            manifest = _read_json_member(archive, members, "manifest.json", ref)
            if not isinstance(manifest, list) or not manifest:
                raise ImageLoadError(reference=ref, reason="manifest.json lists no images")
            entry = manifest[0]
            if not isinstance(entry, dict):
                raise ImageLoadError(reference=ref, reason="manifest.json entry is not an object")

            config_name = entry.get("Config", "")
            if not isinstance(config_name, str):
                raise ImageLoadError(reference=ref, reason="manifest.json Config is not a path")
            config = _read_json_member(archive, members, config_name, ref)
            if not isinstance(config, dict):
                raise ImageLoadError(reference=ref, reason=f"config {config_name} is not an object")

            rootfs = config.get("rootfs")
            diff_ids = rootfs.get("diff_ids") if isinstance(rootfs, dict) else None
            if not isinstance(diff_ids, list):
                diff_ids = []
            layer_names = entry.get("Layers") or []
            if not isinstance(layer_names, list):
                raise ImageLoadError(reference=ref, reason="manifest.json Layers is not a list")
            layers = []
            for i, name in enumerate(layer_names):
                member = members.get(name) if isinstance(name, str) else None
                if member is None:
                    raise ImageLoadError(reference=ref, reason=f"layer {name} missing from archive")
                if len(diff_ids) == len(layer_names) and isinstance(diff_ids[i], str):
                    digest = diff_ids[i]
                else:
                    digest = _digest_from_name(name)
                layers.append(LayerFact(digest=digest, size=member.size))
    except tarfile.TarError as e:
        raise ImageLoadError(reference=ref, reason=f"not a readable image archive: {e}") from e
    except OSError as e:
        raise ImageLoadError(reference=ref, reason=str(e)) from e

    logger.debug("Loaded archive %s: %d layers", path, len(layers))
    return LoadedImage(
        reference=ref,
        config=config,
        layers=layers,
        digest=_digest_from_name(config_name),
        repo_tags=_str_list(entry.get("RepoTags")),
    )


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _read_json_member(
    archive: tarfile.TarFile,
    members: dict[str, tarfile.TarInfo],
    name: str,
    reference: str,
) -> Any:
    """Read and parse a JSON file from the archive."""
    member = members.get(name)
    if member is None:
        raise ImageLoadError(reference=reference, reason=f"{name or 'config'} not found in archive")

    handle = archive.extractfile(member)
    if handle is None:
        raise ImageLoadError(reference=reference, reason=f"{name} is not a regular file")

    with handle:
        try:
            return json.load(handle)
        except ValueError as e:
            raise ImageLoadError(reference=reference, reason=f"{name} is not valid JSON: {e}") from e


def _digest_from_name(name: str) -> str:
    """
    Derive a digest from an archive member name.

    Handles both OCI blob paths (blobs/sha256/<hex>) and legacy names
    (<hex>.json, <hex>/layer.tar). Falls back to hashing the name.
    """
    parts = [p for p in name.split("/") if p]
    if len(parts) >= 3 and parts[-3] == "blobs":
        return f"{parts[-2]}:{parts[-1]}"

    stem = parts[0] if parts else ""
    stem = stem.removesuffix(".json")
    if len(stem) == 64 and all(c in "0123456789abcdef" for c in stem):
        return f"sha256:{stem}"

    return "sha256:" + hashlib.sha256(name.encode()).hexdigest()


# =============================================================================
# Daemon
# =============================================================================


def load_from_daemon(reference: str) -> LoadedImage:
    """
    Load an image from the local Docker daemon.

    Raises:
        ImageNotFoundError: If the daemon doesn't know the image
        ImageLoadError: If docker isn't available or returns garbage
    """
    inspected = _run_docker(["docker", "image", "inspect", reference], reference)
    try:
        data = json.loads(inspected)
    except json.JSONDecodeError as e:
        raise ImageLoadError(reference=reference, reason=f"unexpected docker inspect output: {e}") from e

    if not isinstance(data, list) or not data:
        raise ImageNotFoundError(reference=reference)
    info = data[0]
    if not isinstance(info, dict):
        raise ImageLoadError(reference=reference, reason="unexpected docker inspect output: not an object")

    history = _load_daemon_history(reference)

    config: dict[str, Any] = {
        "architecture": info.get("Architecture", ""),
        "os": info.get("Os", ""),
        "created": info.get("Created", ""),
        "config": info.get("Config") or {},
        "history": history,
    }
    rootfs = info.get("RootFS")
    layers = [
        LayerFact(digest=digest)
        for digest in _str_list(rootfs.get("Layers") if isinstance(rootfs, dict) else None)
    ]

    logger.debug("Loaded %s from daemon: %d layers", reference, len(layers))
    return LoadedImage(
        reference=reference,
        config=config,
        layers=layers,
        digest=info.get("Id") if isinstance(info.get("Id"), str) else "",
        repo_tags=_str_list(info.get("RepoTags")),
        size=_daemon_size(info.get("Size")),
    )


def _daemon_size(value: Any) -> int | None:
    """Return the size docker reports, or None when it isn't a byte count."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def _load_daemon_history(reference: str) -> list[dict[str, Any]]:
    """
    Build history entries, oldest first, from `docker history`.

    History is only used to guess the base image, so failures here are
    logged and yield an empty history rather than aborting the load.
    """
    try:
        output = _run_docker(
            ["docker", "history", "--no-trunc", "--human=false", "--format", "{{json .}}", reference],
            reference,
        )
    except ImageLoadError as e:
        logger.warning("Could not read history for %s: %s", reference, e.message)
        return []

    entries = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            row = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping unparseable history row: %s", line)
            continue
        if not isinstance(row, dict):
            logger.debug("Skipping history row that is not an object: %s", line)
            continue
        size = str(row.get("Size", "0")).strip()
        entries.append({
            "created_by": row.get("CreatedBy", ""),
            "empty_layer": size in ("0", "0B"),
        })

    # docker history lists the newest step first
    entries.reverse()
    return entries


def _run_docker(cmd: list[str], reference: str) -> str:
    """Run a docker CLI command and return its stdout."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=DOCKER_TIMEOUT_SECONDS,
            shell=False,
        )
    except FileNotFoundError as e:
        raise ImageLoadError(
            reference=reference,
            reason="docker binary not found",
            suggestion=f"Run 'docker save {reference} -o image.tar' elsewhere and scan the archive",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ImageLoadError(
            reference=reference,
            reason=f"docker timed out after {DOCKER_TIMEOUT_SECONDS}s",
        ) from e

    if result.returncode != 0:
        stderr = result.stderr.strip()
        if "No such image" in stderr or "No such object" in stderr:
            raise ImageNotFoundError(reference=reference, reason=stderr)
        raise ImageLoadError(
            reference=reference,
            reason=stderr or f"docker exited with status {result.returncode}",
            suggestion=f"Run 'docker save {reference} -o image.tar' and scan the archive",
        )

    return result.stdout
