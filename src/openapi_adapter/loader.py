"""Locate and load the OpenAPI document from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import DEFAULT_SPEC_FILENAME
from .document import get_mapping, get_str, parse_document
from .errors import ConfigError, SpecNotFoundError, SpecParseError
from .repair import SpecRepairer


logger = logging.getLogger(__name__)


def resolve_spec_path(
    configured: Optional[str],
    program_dir: Path,
    cwd: Path,
) -> Path:
    """Find the spec file.

    Tries, in order: ``configured`` as an absolute path, relative to the
    program directory, relative to the working directory, then
    ``openapi.yaml`` in either directory.
    """
    raw = Path(configured or DEFAULT_SPEC_FILENAME).expanduser()

    candidates: List[Path] = []
    if raw.is_absolute():
        candidates.append(raw)
    else:
        candidates.append(program_dir / raw)
        candidates.append(cwd / raw)
    candidates.extend([program_dir / DEFAULT_SPEC_FILENAME, cwd / DEFAULT_SPEC_FILENAME])

    for candidate in _unique(candidates):
        logger.debug("Checking for OpenAPI file at %s", candidate)
        if candidate.is_file():
            return candidate.resolve()

    raise SpecNotFoundError(
        f"OpenAPI file not found at any of the searched locations for: {raw}"
    )


def _unique(paths: Iterable[Path]) -> List[Path]:
    seen = set()
    ordered: List[Path] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            ordered.append(path)
    return ordered


def load_document(path: Path, repairer: Optional[SpecRepairer] = None) -> Dict[Any, Any]:
    """Read and parse ``path``, repairing duplicated keys in place if needed.

    Parse errors other than duplicated mapping keys propagate unchanged.
    """
    if not path.exists():
        raise SpecNotFoundError(f"OpenAPI file does not exist at path: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read OpenAPI file {path}: {exc}") from exc
    logger.debug("Read %s bytes from %s", len(text), path)

    try:
        document = parse_document(text)
    except SpecParseError as exc:
        if not exc.duplicate_key:
            raise
        logger.warning("Duplicate key in %s, attempting repair: %s", path, exc)
        result = (repairer or SpecRepairer()).repair(path)
        logger.info("Repaired with %s strategy, parsing again", result.strategy)
        document = parse_document(path.read_text(encoding="utf-8"))

    logger.debug("Parsed OpenAPI document: %s", get_str(get_mapping(document, "info"), "title"))
    return document
