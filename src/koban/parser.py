"""Parse and serialize markdown records with YAML front-matter."""

import re

import yaml

_FRONT_MATTER = re.compile(r"^---\n(.*?)\n---\n?", re.DOTALL)


def parse_document(text: str) -> tuple[str, str, dict]:
    """Parse a record into (title, body, meta).

    The title is the first line if it is an h1 ("# Title"), otherwise "".
    Everything after the title is the body, verbatim apart from surrounding
    blank lines. meta is the front-matter dict (or {}).
    """
    text, meta = _extract_front_matter(text)
    stripped = text.lstrip("\n")
    first, _, rest = stripped.partition("\n")
    if first.startswith("# "):
        return first[2:].strip(), rest.strip("\n").rstrip(), meta
    return "", stripped.strip("\n").rstrip(), meta


def serialize_document(title: str = "", body: str = "", meta: dict | None = None) -> str:
    """Serialize a record back to markdown text.

    Meta becomes YAML front-matter if non-empty; the title becomes an h1.
    """
    parts: list[str] = []

    if meta:
        parts.append("---")
        parts.append(yaml.safe_dump(meta, default_flow_style=False, sort_keys=False).rstrip())
        parts.append("---")

    if title:
        parts.append(f"# {title}")
        parts.append("")
    if body:
        parts.append(body.rstrip())
        parts.append("")

    return "\n".join(parts).rstrip() + "\n"


def _extract_front_matter(text: str) -> tuple[str, dict]:
    """Extract YAML front-matter from text. Returns (remaining_text, meta)."""
    if not text.startswith("---"):
        return text, {}

    match = _FRONT_MATTER.match(text)
    if not match:
        return text, {}

    remaining = text[match.end() :]

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}

    return remaining, meta
