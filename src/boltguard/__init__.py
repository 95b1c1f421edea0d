"""
boltguard - Offline policy checks for container images.

boltguard reads an image's static metadata (user, size, labels, environment,
base image, layers) and evaluates it against a declarative YAML policy. Each
rule yields a pass/fail result; results are reported as text, JSON or SARIF.

Example usage:
    $ boltguard scan nginx:latest
    $ boltguard scan image.tar --policy strict.yaml --format sarif
    $ boltguard validate strict.yaml
"""

__version__ = "0.1.0"
__author__ = "boltguard Contributors"

__all__ = [
    "__version__",
    "__author__",
]
