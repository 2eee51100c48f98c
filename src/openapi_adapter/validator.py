"""Structural sanity checks for a parsed OpenAPI document."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List


logger = logging.getLogger(__name__)


_VERSION_PATTERN = re.compile(r"^3\.\d+\.\d+$")


@dataclass
class ValidationReport:
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.warnings


def validate_document(document: Any) -> ValidationReport:
    """Check the minimal structure of ``document``. Never raises.

    A failing check is reported as a warning only: extraction still runs on
    whatever the document provides.
    """
    report = ValidationReport()
    if not isinstance(document, dict):
        report.warnings.append("OpenAPI document is not a mapping")
        _log(report)
        return report

    missing = [key for key in ("openapi", "info", "paths") if not document.get(key)]
    if missing:
        report.warnings.append(f"OpenAPI spec is missing required fields: {', '.join(missing)}")

    info = document.get("info")
    if info:
        if isinstance(info, dict):
            missing_info = [key for key in ("title", "version") if not info.get(key)]
        else:
            missing_info = ["title", "version"]
        if missing_info:
            report.warnings.append(
                f"OpenAPI info is missing required fields: {', '.join(missing_info)}"
            )

    paths = document.get("paths")
    if paths is not None and not isinstance(paths, dict):
        report.warnings.append("OpenAPI paths is not an object")
    elif isinstance(paths, dict) and not paths:
        report.warnings.append("OpenAPI spec does not define any paths")

    version = document.get("openapi")
    if version and not (isinstance(version, str) and _VERSION_PATTERN.match(version)):
        report.warnings.append(f"OpenAPI version format is incorrect: {version!r}")

    _log(report)
    return report


def _log(report: ValidationReport) -> None:
    for warning in report.warnings:
        logger.warning("%s", warning)
    if report.valid:
        logger.debug("OpenAPI specification structure is valid")
