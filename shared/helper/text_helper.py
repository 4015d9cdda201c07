"""Text utilities shared by ingestion, embedding and response parsing."""

import json
import re

_INLINE_WS = re.compile(r"[ \t\f\v]+")
_MANY_NEWLINES = re.compile(r"\n{3,}")
_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def normalize_content(text: str | None) -> str:
    """Strip null bytes and normalise whitespace of a document body.

    Line endings become "\\n", runs of spaces and tabs collapse to one space,
    trailing spaces are removed per line and more than one blank line in a
    row is reduced to a single blank line.

    Args:
        text (str | None): Raw text.

    Returns:
        str: The normalised text; "" if nothing but whitespace remains.
    """
    if not text:
        return ""
    text = text.replace("\0", "").replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_WS.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    return _MANY_NEWLINES.sub("\n\n", text).strip()


def truncate_text(text: str, max_chars: int | None) -> str:
    """Cut text to at most max_chars characters. None or 0 disables the limit."""
    if not max_chars or len(text) <= max_chars:
        return text
    return text[:int(max_chars)]


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Trim tags and drop blanks and duplicates, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def extract_json_object(text: str) -> dict:
    """Parse a JSON object out of a model reply.

    Accepts a bare object, an object wrapped in a markdown code block or an
    object surrounded by prose.

    Args:
        text (str): The raw reply.

    Returns:
        dict: The parsed object.

    Raises:
        ValueError: If no JSON object can be parsed.
    """
    if text is None:
        raise ValueError("Reply is empty.")
    candidates = [text.strip()]
    code_block_match = _CODE_BLOCK.search(text)
    if code_block_match:
        candidates.append(code_block_match.group(1).strip())
    json_match = _JSON_OBJECT.search(text)
    if json_match:
        candidates.append(json_match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError("Reply does not contain a JSON object.")
