#!/usr/bin/env python3
"""
Page snapshots.
A point-in-time copy of a loaded portal page: the main document, every embedded
frame we could read, and the tab's sessionStorage contents.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup


@dataclass
class FrameSnapshot:
    name: str
    url: str = ""
    # None when the frame could not be read (cross-origin, detached)
    html: Optional[str] = None
    _document: Optional[BeautifulSoup] = field(default=None, repr=False, compare=False)

    @property
    def reachable(self) -> bool:
        return self.html is not None

    @property
    def document(self) -> Optional[BeautifulSoup]:
        if self.html is None:
            return None
        if self._document is None:
            self._document = BeautifulSoup(self.html, "html.parser")
        return self._document


@dataclass
class PageSnapshot:
    url: str
    html: str
    frames: List[FrameSnapshot] = field(default_factory=list)
    session_storage: Dict[str, str] = field(default_factory=dict)
    _document: Optional[BeautifulSoup] = field(default=None, repr=False, compare=False)

    @property
    def document(self) -> BeautifulSoup:
        """Parsed main document (parsed once, on first access)."""
        if self._document is None:
            self._document = BeautifulSoup(self.html or "", "html.parser")
        return self._document

    @classmethod
    def from_html(cls, html, url="", frames=None, session_storage=None):
        """
        Build a snapshot from markup without a browser.

        Args:
            html: Main document HTML
            url: Page URL (optional)
            frames: List of FrameSnapshot objects (optional)
            session_storage: sessionStorage contents (optional)

        Returns:
            PageSnapshot
        """
        return cls(
            url=url,
            html=html,
            frames=list(frames or []),
            session_storage=dict(session_storage or {}),
        )
