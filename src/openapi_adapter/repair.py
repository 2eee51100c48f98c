"""Recovery of OpenAPI documents corrupted by duplicated top-level keys.

Hand-edited or concatenated specs often end up with two ``info:`` or
``servers:`` blocks. Each strategy below turns the raw text into a candidate
document; the first candidate that parses replaces the file. The original
bytes are kept next to the file as ``<name>.original``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import yaml

from .document import parse_document
from .errors import SpecParseError, SpecRepairError


logger = logging.getLogger(__name__)


ROOT_SECTIONS = ("info", "servers", "paths", "components")
FALLBACK_SERVER_URL = "http://localhost:8080"

_KEY_LINE = re.compile(r"^(\s*)([^#\s][^:]*):(.*)$")
_SERVER_URL = re.compile(r"^\s*-\s*url:\s*['\"]?([^'\"\s#]+)", re.MULTILINE)
_NEXT_ROOT_KEY = r"(?=^[A-Za-z_][\w-]*:|\Z)"


@dataclass(frozen=True)
class RepairResult:
    strategy: str
    path: Path
    backup_path: Path


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _continues_block(line: str) -> bool:
    if not line.strip():
        return True
    if _indent(line) > 0:
        return True
    # Zero-indent sequence entries ("servers:\n- url: ...") and comments.
    return line.startswith("-") or line.startswith("#")


def remove_duplicate_sections(text: str) -> Optional[str]:
    """Drop every repeated ``info``/``servers``/``paths``/``components`` block.

    Returns ``None`` when no repeated root section is found.
    """
    lines = text.split("\n")
    first_seen: Dict[str, int] = {}
    duplicates: List[int] = []

    for index, line in enumerate(lines):
        match = _KEY_LINE.match(line)
        if not match or match.group(1):
            continue
        key = match.group(2)
        if key not in ROOT_SECTIONS:
            continue
        if key in first_seen:
            logger.debug(
                "Duplicate top-level key %r at line %s (first at line %s)",
                key,
                index + 1,
                first_seen[key] + 1,
            )
            duplicates.append(index)
        else:
            first_seen[key] = index

    if not duplicates:
        return None

    skipped = set()
    for start in duplicates:
        end = start + 1
        while end < len(lines) and _continues_block(lines[end]):
            end += 1
        logger.debug("Removing duplicate section at lines %s-%s", start + 1, end)
        skipped.update(range(start, end))

    return "\n".join(line for index, line in enumerate(lines) if index not in skipped)


def drop_repeated_top_level_keys(text: str) -> Optional[str]:
    """Line-scan dedupe: drop any top-level key line whose key was already seen.

    Only the key line is dropped. Lines inside a list are never treated as
    top-level keys. Returns ``None`` when nothing was dropped.
    """
    fixed: List[str] = []
    seen = set()
    in_list = False
    list_indent = 0
    dropped = False

    for line in text.split("\n"):
        match = _KEY_LINE.match(line)
        if match:
            spaces, key = match.group(1), match.group(2)
            if not spaces and not in_list:
                if key in seen:
                    logger.debug("Skipping duplicate top-level key: %s", key)
                    dropped = True
                    continue
                seen.add(key)
            if line.strip().startswith("- "):
                in_list = True
                list_indent = len(spaces)
            elif len(spaces) <= list_indent:
                in_list = False
        fixed.append(line)

    if not dropped:
        return None
    return "\n".join(fixed)


def salvage_server_url(text: str) -> str:
    match = _SERVER_URL.search(text)
    return match.group(1) if match else FALLBACK_SERVER_URL


def _extract_section(text: str, name: str) -> Optional[str]:
    pattern = re.compile(
        rf"^{name}:[ \t]*\n(.*?){_NEXT_ROOT_KEY}", re.MULTILINE | re.DOTALL
    )
    match = pattern.search(text)
    if not match or not match.group(1).strip():
        return None
    body = match.group(1)
    if not body.endswith("\n"):
        body += "\n"
    return f"{name}:\n" + body


def reconstruct_sections(text: str) -> str:
    """Rebuild a document from a fresh header plus the first paths/components blocks."""
    header = yaml.safe_dump(
        {
            "openapi": "3.1.0",
            "info": {
                "title": "Recovered API",
                "version": "1.0.0",
                "description": "Reconstructed from a document with duplicated keys.",
            },
            "servers": [{"url": salvage_server_url(text)}],
        },
        sort_keys=False,
    )

    paths = _extract_section(text, "paths")
    if paths is None:
        logger.debug("Could not extract paths section, using empty paths")
        paths = "paths: {}\n"
    components = _extract_section(text, "components")
    if components is None:
        logger.debug("Could not extract components section, using empty components")
        components = "components: {}\n"

    return header + paths + components


def minimal_spec(text: str) -> str:
    """Return a minimal valid one-operation document on the salvaged server URL."""
    return yaml.safe_dump(
        {
            "openapi": "3.1.0",
            "info": {
                "title": "Fallback API",
                "version": "1.0.0",
                "description": (
                    "Minimal OpenAPI document generated because the original "
                    "could not be parsed."
                ),
            },
            "servers": [{"url": salvage_server_url(text)}],
            "paths": {
                "/": {
                    "get": {
                        "operationId": "getRoot",
                        "summary": "Fetch the API root",
                        "responses": {"200": {"description": "Successful response"}},
                    }
                }
            },
        },
        sort_keys=False,
    )


class SpecRepairer:
    def __init__(self, write_candidates: bool = True) -> None:
        self.write_candidates = write_candidates

    def repair(self, path: Path) -> RepairResult:
        """Repair ``path`` in place, keeping the original as ``<name>.original``.

        Raises :class:`SpecRepairError` if no candidate parses, which can only
        happen if the minimal fallback document itself is broken.
        """
        original = path.read_bytes()
        backup_path = path.with_name(f"{path.name}.original")
        backup_path.write_bytes(original)
        logger.info("Created backup of original file at: %s", backup_path)

        text = original.decode("utf-8")
        for strategy, suffix, candidate in self._candidates(text):
            if candidate is None:
                logger.debug("Strategy %s produced no candidate", strategy)
                continue
            if suffix and self.write_candidates:
                candidate_path = path.with_name(f"{path.name}.{suffix}")
                candidate_path.write_text(candidate, encoding="utf-8")
                logger.debug("Wrote %s candidate to %s", strategy, candidate_path)
            try:
                parse_document(candidate)
            except SpecParseError as exc:
                logger.info("Strategy %s candidate still fails to parse: %s", strategy, exc)
                continue
            path.write_text(candidate, encoding="utf-8")
            logger.warning("Repaired %s using the %s strategy", path, strategy)
            return RepairResult(strategy=strategy, path=path, backup_path=backup_path)

        raise SpecRepairError(f"Unable to repair OpenAPI document: {path}")

    def _candidates(self, text: str) -> Iterator[Tuple[str, Optional[str], Optional[str]]]:
        structured = remove_duplicate_sections(text)
        if structured is not None:
            yield "structure", "structfixed", structured
        else:
            yield "dedupe", "fixed", drop_repeated_top_level_keys(text)
        yield "surgical", "surgicalfixed", reconstruct_sections(text)
        yield "minimal", None, minimal_spec(text)
