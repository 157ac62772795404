"""Heuristic Swift API Design Guidelines checks (single-pass regex scans)."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

_TYPE_DECL_RE = re.compile(r"\b(?:struct|class|enum)\s+([A-Za-z_][A-Za-z0-9_]*)")
_FUNC_DECL_RE = re.compile(r"\bfunc\s+([A-Za-z_][A-Za-z0-9_]*)")
_CASE_DECL_RE = re.compile(r"\bcase\s+([A-Za-z_][A-Za-z0-9_]*)\b")
_UNDERSCORE_IDENT_RE = re.compile(r"\b([A-Za-z][A-Za-z0-9_]*_[A-Za-z0-9_]+)\b")
_BAD_ACRONYM_RE = re.compile(r"\b([A-Za-z]+)(URL|HTTP|JSON|XML)([a-z])")

_UPPER_CAMEL_RE = re.compile(r"^([A-Z][a-z0-9]+)+$")
_LOWER_CAMEL_RE = re.compile(r"^[a-z][A-Za-z0-9]*$")


@dataclass(slots=True)
class Issue:
    rule: str
    message: str
    line: int | None = None


def _line_of(code: str, index: int) -> int:
    return code.count("\n", 0, index) + 1


def _naming_issues(code: str) -> List[Issue]:
    issues: List[Issue] = []
    for match in _TYPE_DECL_RE.finditer(code):
        name = match.group(1)
        if not _UPPER_CAMEL_RE.match(name):
            issues.append(Issue("TypeNaming", f"Type '{name}' should use UpperCamelCase", _line_of(code, match.start())))

    for match in _FUNC_DECL_RE.finditer(code):
        name = match.group(1)
        if not _LOWER_CAMEL_RE.match(name):
            issues.append(
                Issue("FunctionNaming", f"Function '{name}' should use lowerCamelCase", _line_of(code, match.start()))
            )

    for match in _CASE_DECL_RE.finditer(code):
        name = match.group(1)
        if not _LOWER_CAMEL_RE.match(name):
            issues.append(
                Issue("EnumCaseNaming", f"Enum case '{name}' should use lowerCamelCase", _line_of(code, match.start()))
            )

    for match in _UNDERSCORE_IDENT_RE.finditer(code):
        issues.append(
            Issue(
                "NoUnderscoreInNames",
                f"Consider avoiding underscores in identifier '{match.group(1)}' per Swift API Design Guidelines",
                _line_of(code, match.start()),
            )
        )

    for match in _BAD_ACRONYM_RE.finditer(code):
        issues.append(
            Issue(
                "AcronymCasing",
                "Use consistent acronym casing (e.g., 'requestURL' not 'requestUrl')",
                _line_of(code, match.start()),
            )
        )
    return issues


def _appkit_issues(code: str) -> List[Issue]:
    issues: List[Issue] = []
    if re.search(r"NSEvent\s*\.\s*addLocalMonitorForEvents", code, re.IGNORECASE):
        issues.append(
            Issue(
                "NSEventMonitorUsage",
                "Local event monitor present; ensure you bail when keyWindow != mainWindow and avoid leaking events.",
            )
        )
    if re.search(r"NSEvent\s*\.\s*addGlobalMonitorForEvents", code, re.IGNORECASE):
        issues.append(
            Issue(
                "NSEventGlobalMonitor",
                "Global event monitor detected; prefer first-responder handling or local monitors with strict guards.",
            )
        )
    if "NSViewRepresentable" in code and "acceptsFirstResponder" not in code:
        issues.append(
            Issue(
                "FirstResponderMissing",
                "NSViewRepresentable shim lacks acceptsFirstResponder override; key events may not be routed correctly.",
            )
        )
    if re.search(r"performKeyEquivalent:?\s*\(", code) and not re.search(r"keyDown\s*\(", code):
        issues.append(
            Issue(
                "PerformKeyEquivalentOnly",
                "Override keyDown alongside performKeyEquivalent to participate in the responder chain.",
            )
        )

    creates_window = re.search(r"\b(?:NSWindow|NSPanel)\s*\(", code) is not None
    if creates_window and not re.search(r"\.identifier\s*=", code):
        issues.append(
            Issue("WindowIdentifierMissing", "Consider assigning a window identifier for diagnostics and focus management.")
        )
    if creates_window and not re.search(r"addChildWindow\s*\(", code):
        issues.append(
            Issue(
                "ChildWindowRelationship",
                "Attach transient windows as children of their owners to constrain focus and ordering.",
            )
        )
    return issues


def check_guidelines(code: str) -> List[Issue]:
    return _naming_issues(code) + _appkit_issues(code)


def guidelines_report(code: str) -> Dict[str, Any]:
    return {"issues": [asdict(issue) for issue in check_guidelines(code)]}
