from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Comment
from bs4.builder import ParserRejectedMarkup

"""Free-text cleanup for the HTML-ish narrative fields.

Abstracts and the exemplary narrative are typed into a rich text editor (and
frequently pasted from Word), so they arrive as HTML fragments with comments,
Office markup and typographic characters. The options mirror the tidy flags
the export has always been cleaned with.
"""

__all__ = [
    "SanitizeOptions",
    "Sanitizer",
    "DEFAULT_OPTIONS",
    "sanitize",
]

logger = logging.getLogger(__name__)

# bare: typographic characters -> ASCII
_BARE_REPLACEMENTS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u00a0": " ",
}

_PRESENTATIONAL_TAGS = ("font", "center")


@dataclass(frozen=True)
class SanitizeOptions:
    bare: bool = True
    clean: bool = True
    drop_proprietary_attributes: bool = True
    hide_comments: bool = True
    show_body_only: bool = True
    word_2000: bool = True


DEFAULT_OPTIONS = SanitizeOptions()


class Sanitizer:
    """Callable cleaner bound to one immutable SanitizeOptions value."""

    def __init__(self, options: SanitizeOptions = DEFAULT_OPTIONS) -> None:
        self.options = options

    def __call__(self, value: Any) -> str | None:
        return self.sanitize(value)

    def sanitize(self, value: Any) -> str | None:
        """Return the cleaned fragment terminated by a newline.

        None stays None, a fragment that cleans down to nothing becomes "",
        and markup the parser rejects yields None.
        """
        if value is None:
            return None
        try:
            soup = BeautifulSoup(str(value), "html.parser")
        except ParserRejectedMarkup as e:
            logger.warning(f"sanitize: markup rejected: {e}")
            return None

        root = soup
        if self.options.show_body_only and soup.body is not None:
            root = soup.body

        opts = self.options
        if opts.hide_comments:
            for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
                comment.extract()
        if opts.word_2000:
            _strip_word_markup(root)
        if opts.drop_proprietary_attributes:
            for tag in root.find_all(True):
                for attr in [a for a in tag.attrs if ":" in a]:
                    del tag[attr]
        if opts.clean:
            for tag in root.find_all(_PRESENTATIONAL_TAGS):
                tag.unwrap()
        if opts.bare:
            for string in root.find_all(string=True):
                replaced = _bare(str(string))
                if replaced != string:
                    string.replace_with(replaced)

        cleaned = root.decode_contents().strip()
        if not cleaned:
            return ""
        return cleaned + "\n"


def _bare(value: str) -> str:
    for src, dst in _BARE_REPLACEMENTS.items():
        value = value.replace(src, dst)
    return value


def _strip_word_markup(root: Any) -> None:
    # <o:p>, <w:sdt> 等の名前空間付きタグは中身だけ残す
    for tag in root.find_all(lambda t: ":" in t.name):
        tag.unwrap()
    for tag in root.find_all(True):
        classes = tag.get("class")
        if classes:
            kept = [c for c in classes if not c.lower().startswith("mso")]
            if kept:
                tag["class"] = kept
            else:
                del tag["class"]
        style = tag.get("style")
        if style:
            declarations = [d.strip() for d in style.split(";") if d.strip()]
            kept_styles = [d for d in declarations if not d.lower().startswith("mso-")]
            if kept_styles:
                tag["style"] = "; ".join(kept_styles)
            else:
                del tag["style"]


def sanitize(value: Any) -> str | None:
    """Clean `value` with the default options."""
    return Sanitizer(DEFAULT_OPTIONS).sanitize(value)
