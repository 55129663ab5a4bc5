"""Rule source loading.

Rules live in ``.tenets.yml`` files committed next to the code they govern.
The engine does not interpret them; it only checks that each file is a YAML
mapping and forwards the text to the analysis service.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from reviewflow_core.errors import RulesError

logger = logging.getLogger(__name__)

RULES_FILENAME = ".tenets.yml"
_SKIP_DIRS = {".git", ".hg", ".svn", "node_modules"}


def _validate(text: str, source: Path) -> None:
    try:
        docs = [d for d in yaml.safe_load_all(text) if d is not None]
    except yaml.YAMLError as e:
        raise RulesError(f"{source} is not valid YAML: {e}") from e
    for doc in docs:
        if not isinstance(doc, dict):
            raise RulesError(f"{source} must contain YAML mappings, got {type(doc).__name__}.")


def find_rule_files(root: str | Path = ".") -> list[Path]:
    """Return every rules file under ``root``, in a stable order."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        if RULES_FILENAME in filenames:
            found.append(Path(dirpath) / RULES_FILENAME)
    return sorted(found)


def load_rules(path: str | None = None, root: str | Path = ".") -> str:
    """
    Load the rule source for a review.

    If ``path`` is given, that file is the whole rule source. Otherwise every
    ``.tenets.yml`` under ``root`` is joined into one multi-document YAML
    stream. An empty result means "let the service read rules from the
    reviewed revision".
    """
    if path:
        p = Path(path)
        if not p.is_file():
            raise RulesError(f"Rules file not found: {path}")
        text = p.read_text()
        _validate(text, p)
        return text

    documents = []
    for rules_file in find_rule_files(root):
        text = rules_file.read_text()
        _validate(text, rules_file)
        logger.debug("Loaded rules from %s", rules_file)
        documents.append(text.strip())
    return "\n---\n".join(documents)
