"""Swift Evolution proposal parsing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from swiftdocs.models import Proposal
from swiftdocs.utils.files import read_text
from swiftdocs.utils.text import collapse_whitespace

LOGGER = logging.getLogger(__name__)

BODY_LIMIT = 2000

_FILENAME_ID_RE = re.compile(r"^(\d{4})-")
_TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_STATUS_RE = re.compile(r"^\*\s*Status:\s*\*\*(.+?)\*\*", re.MULTILINE)
_STATUS_FALLBACK_RE = re.compile(r"^\s*Status:\s*(.+)$", re.MULTILINE | re.IGNORECASE)


@dataclass(slots=True)
class ProposalDocument:
    """A parsed proposal plus the body text used for keyword matching."""

    proposal: Proposal
    body: str


def proposal_id_from_filename(filename: str) -> str:
    """``0001-keywords-as-argument-labels.md`` -> ``SE-0001``."""
    match = _FILENAME_ID_RE.match(filename)
    if match:
        return f"SE-{match.group(1)}"
    return filename[:7]


def extract_status(text: str) -> str:
    match = _STATUS_RE.search(text)
    if match:
        return match.group(1).strip()
    fallback = _STATUS_FALLBACK_RE.search(text)
    if fallback:
        return fallback.group(1).replace("*", "").strip()
    return "Unknown"


def parse_proposal(text: str, path: Path) -> ProposalDocument:
    title_match = _TITLE_RE.search(text)
    title = title_match.group(1).strip() if title_match else path.name
    proposal = Proposal(
        id=proposal_id_from_filename(path.name),
        title=title,
        status=extract_status(text),
        path=str(path),
    )
    return ProposalDocument(proposal=proposal, body=collapse_whitespace(text)[:BODY_LIMIT])


def parse_proposal_file(path: Path) -> ProposalDocument | None:
    try:
        return parse_proposal(read_text(path), path)
    except (OSError, UnicodeDecodeError, RecursionError) as exc:
        LOGGER.debug("Skipping proposal %s: %s", path, exc)
        return None
