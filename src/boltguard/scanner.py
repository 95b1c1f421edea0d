"""
Scan pipeline for boltguard.

The Scanner ties the pieces together for one image:
    1. Load image metadata (archive or local daemon)
    2. Extract facts
    3. Evaluate the policy with the rule engine
    4. Build the report

Policy loading happens before a Scanner is used; it receives an already
validated Policy.
"""

import logging
from datetime import datetime

from boltguard.facts import Facts
from boltguard.image import LoadedImage, load_image
from boltguard.report.builder import Report, build_report
from boltguard.rules.engine import RuleEngine
from boltguard.schema import Policy

logger = logging.getLogger(__name__)


class Scanner:
    """
    Scans images against policies.

    Usage:
        scanner = Scanner()
        report = scanner.scan("nginx:latest", policy)
        print(report.failed)

    Attributes:
        engine: Rule engine used for evaluation
    """

    def __init__(self, engine: RuleEngine | None = None) -> None:
        self.engine = engine if engine is not None else RuleEngine()

    def scan(
        self,
        reference: str,
        policy: Policy,
        timestamp: datetime | None = None,
    ) -> Report:
        """
        Load an image and evaluate it.

        Raises:
            ImageLoadError: If the image metadata can't be read
        """
        logger.info("Inspecting image %s", reference)
        image = load_image(reference)
        return self.scan_image(image, policy, timestamp=timestamp)

    def scan_image(
        self,
        image: LoadedImage,
        policy: Policy,
        timestamp: datetime | None = None,
    ) -> Report:
        """Evaluate an image whose metadata is already loaded."""
        if image.digest:
            logger.debug("Image %s has config digest %s", image.reference, image.digest)
        facts = image.facts()
        return self.scan_facts(image.reference, facts, policy, timestamp=timestamp)

    def scan_facts(
        self,
        image_name: str,
        facts: Facts,
        policy: Policy,
        timestamp: datetime | None = None,
    ) -> Report:
        """Evaluate facts that were obtained elsewhere."""
        logger.info("Evaluating %d rules of policy %r", len(policy.rules), policy.name)
        results = self.engine.evaluate(facts, policy)
        return build_report(image_name, policy, results, facts=facts, timestamp=timestamp)
