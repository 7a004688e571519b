"""
Directory scan: count test files per pyramid layer.

A file counts as a test when its name matches one of:
  - ``*.test.<ext>`` / ``*.spec.<ext>`` for ts, js, tsx, jsx, py, java, go
  - ``test_*.py`` / ``*_test.py``
  - ``*_test.go``

Directories are walked recursively; a missing directory counts as zero
(a repo without e2e tests is a valid state, not an error).

``scan_module_test_counts()`` attributes test files to modules by file stem:
``billing.test.ts`` and ``test_billing.py`` both belong to ``src/billing.ts``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import Optional

from risk_planner.models.portfolio import TestCounts, TestDistribution

logger = logging.getLogger(__name__)

_TEST_FILE_RE = re.compile(
    r"(\.(test|spec)\.(ts|js|tsx|jsx|py|java|go)$)"
    r"|(^test_.+\.py$)"
    r"|(_test\.(py|go)$)"
)

_LAYERS = ("unit", "integration", "e2e")


def is_test_file(filename: str) -> bool:
    return bool(_TEST_FILE_RE.search(filename))


def iter_test_files(directory: Optional[Path]) -> list[Path]:
    """All test files under ``directory`` (sorted); empty if it does not exist."""
    if directory is None or not Path(directory).is_dir():
        return []
    return sorted(p for p in Path(directory).rglob("*") if p.is_file() and is_test_file(p.name))


def count_test_files(directory: Optional[Path]) -> int:
    return len(iter_test_files(directory))


def scan_test_distribution(
    unit_dir: Optional[Path],
    integration_dir: Optional[Path],
    e2e_dir: Optional[Path],
) -> TestDistribution:
    """Count test files in each layer directory."""
    dist = TestDistribution(
        unit=count_test_files(unit_dir),
        integration=count_test_files(integration_dir),
        e2e=count_test_files(e2e_dir),
    )
    logger.info(
        "Test scan: unit=%d integration=%d e2e=%d (total %d)",
        dist.unit, dist.integration, dist.e2e, dist.total,
    )
    return dist


def _test_subject(filename: str) -> str:
    """Strip test markers: ``billing.test.ts`` / ``test_billing.py`` → ``billing``."""
    name = filename.split(".", 1)[0]
    if name.startswith("test_"):
        name = name[len("test_"):]
    if name.endswith("_test"):
        name = name[: -len("_test")]
    return name


_SUBJECT_SEPARATORS = frozenset("_-.")


def module_stem(module: str) -> str:
    return PurePosixPath(module.replace("\\", "/")).name.split(".", 1)[0]


def _subject_matches(subject: str, stem: str) -> bool:
    if not subject.startswith(stem):
        return False
    return len(subject) == len(stem) or subject[len(stem)] in _SUBJECT_SEPARATORS


def scan_module_test_counts(
    modules: Iterable[str],
    unit_dir: Optional[Path],
    integration_dir: Optional[Path],
    e2e_dir: Optional[Path],
) -> dict[str, TestCounts]:
    """Count existing tests per module and layer, matched by file stem.

    A test file belongs to a module when the test's subject name is the
    module's stem, or starts with it followed by ``_``, ``-`` or ``.``
    (``checkout`` matches ``checkout.test.ts`` and ``checkout_flow.spec.ts``,
    ``a`` does not match ``auth.test.ts``).
    """
    subjects: dict[str, list[str]] = {
        layer: [_test_subject(p.name) for p in iter_test_files(directory)]
        for layer, directory in zip(_LAYERS, (unit_dir, integration_dir, e2e_dir))
    }

    counts: dict[str, TestCounts] = {}
    for module in modules:
        stem = module_stem(module)
        if not stem:
            continue
        per_layer = {
            layer: sum(1 for s in names if _subject_matches(s, stem))
            for layer, names in subjects.items()
        }
        counts[module] = TestCounts(**per_layer)
    return counts
