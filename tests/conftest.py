"""Shared fixtures: a small on-disk corpus covering every content source."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from swiftdocs.config import AppConfig

VIEW_DOC = {
    "identifier": {"url": "doc://com.apple.SwiftUI/documentation/SwiftUI/View", "interfaceLanguage": "swift"},
    "metadata": {"title": "View", "module": {"name": "SwiftUI"}, "role": "symbol"},
    "symbolKind": "protocol",
    "abstract": [{"type": "text", "text": "A type that represents part of your app's user interface."}],
    "declarationFragments": [
        {"kind": "keyword", "text": "protocol"},
        {"kind": "text", "text": " "},
        {"kind": "identifier", "text": "View"},
    ],
    "topicSections": [{"title": "Creating a view"}, {"title": "Layout"}],
}

WINDOW_DOC = {
    "identifier": {"url": "doc://com.apple.AppKit/documentation/AppKit/NSWindow"},
    "title": "NSWindow",
    "metadata": {"module": {"name": "AppKit"}},
    "kind": "class",
    "abstract": [{"type": "text", "text": "A window that an app displays on the screen."}],
    "topicSections": [{"title": "Layout"}],
}

HIG_PAGE = """<html>
<head>
  <title>Windows</title>
  <link rel="canonical" href="https://developer.apple.com/design/human-interface-guidelines/windows">
  <style>body { color: red; }</style>
</head>
<body><h1>Windows</h1><p>A window presents UI views and components in your app.</p></body>
</html>
"""

PATTERNS_YAML = """- id: key-handling
  title: Key Event Handling
  tags: [keyboard, appkit]
  summary: Route key events through the responder chain.
  snippet: "override func keyDown(with event: NSEvent) {}"
- id: async-loading
  title: Async Image Loading
  tags: [concurrency, swiftui]
  summary: Load images with async let.
"""

RECIPES_YAML = """id: floating-panel
title: Floating Panel
tags: [appkit]
summary: Show a floating utility panel above the main window.
steps:
  - Create an NSPanel
  - Set the level
  - Create an NSPanel
prerequisites: [macOS 13]
"""

PROTOCOLS_MD = """# Protocols

Define requirements that conforming types must implement.

## Protocol Syntax

You define protocols in a very similar way to classes.

```swift
protocol SomeProtocol {
}
```
"""

API_GUIDELINES_HTML = """<html><head><title>API Design Guidelines</title></head>
<body><p>Clarity at the point of use is your most important goal.</p></body></html>
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_proposals(root: Path, count: int = 10) -> None:
    for number in range(1, count + 1):
        write(
            root / f"{number:04d}-proposal-{number}.md",
            f"# Proposal number {number}\n\n* Status: **Implemented (Swift 3)**\n\nBody text {number}.\n",
        )


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    """Configuration rooted in an empty temporary directory."""
    return AppConfig(cache_dir=tmp_path / "cache", content_dir=tmp_path / "content")


@pytest.fixture
def corpus(config: AppConfig) -> AppConfig:
    """Configuration whose cache and content roots hold one file per source."""
    write(config.symbol_docs_dir / "SwiftUI" / "view.json", json.dumps(VIEW_DOC))
    write(config.symbol_docs_dir / "AppKit" / "nswindow.json", json.dumps(WINDOW_DOC))
    write(config.guidelines_dir / "windows.html", HIG_PAGE)
    write(config.content_dir / "patterns" / "patterns.yaml", PATTERNS_YAML)
    write(config.content_dir / "recipes" / "floating-panel.yaml", RECIPES_YAML)
    write(config.book_dir / "LanguageGuide" / "Protocols.md", PROTOCOLS_MD)
    write(config.api_guidelines_page, API_GUIDELINES_HTML)
    write_proposals(config.proposals_dir)
    return config
