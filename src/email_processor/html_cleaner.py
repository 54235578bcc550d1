"""HTML to plain text reduction for email bodies"""

import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

# Elements followed by a blank line to keep paragraph structure
BLOCK_ELEMENTS = frozenset(
    {"p", "div", "br", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr"}
)

# Elements whose content is never visible text
SKIPPED_ELEMENTS = frozenset({"script", "style", "head", "template", "noscript"})


def html_to_text(html: str) -> str:
    """
    Reduce an HTML document to plain text.

    Text nodes are emitted in document order, trimmed, and joined by a single
    space unless the output already ends in whitespace. A blank line follows
    every block-level element so paragraphs stay apart. This is a heuristic
    normalization, not a layout renderer.

    Args:
        html: HTML string

    Returns:
        Plain text content
    """
    if not html:
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception:
        # Fallback to regex if BeautifulSoup fails
        text = re.sub(r"<[^>]+>", " ", html)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    out: list[str] = []

    def ends_with_whitespace() -> bool:
        return bool(out) and out[-1][-1] in (" ", "\n")

    # Iterative walk; the marker tuple closes a block element after its children
    stack: list = [soup]
    while stack:
        node = stack.pop()

        if isinstance(node, tuple):
            if out:
                out.append("\n\n")
            continue

        if isinstance(node, NavigableString):
            # Comments, doctypes, CDATA and processing instructions are not text
            if isinstance(node, PreformattedString):
                continue
            trimmed = str(node).strip()
            if trimmed:
                if out and not ends_with_whitespace():
                    out.append(" ")
                out.append(trimmed)
            continue

        if isinstance(node, Tag) and node.name in SKIPPED_ELEMENTS:
            continue

        if isinstance(node, Tag) and node.name in BLOCK_ELEMENTS:
            stack.append(("end", node.name))

        stack.extend(reversed(list(node.children)))

    return "".join(out)
