"""Tag list codec.

Tags are persisted as JSON text and exposed as ``list[str]``. Decoding is
lenient: text that is not a JSON list of strings decodes to ``[]`` and the
problem is logged, so partially written or legacy rows stay readable.
"""

import json
import logging

logger = logging.getLogger(__name__)

EMPTY_TAGS = "[]"


def serialize_tags(tags: list[str] | None) -> str:
    if not tags:
        return EMPTY_TAGS
    return json.dumps(list(tags), ensure_ascii=False)


def deserialize_tags(raw: str | None) -> list[str]:
    if raw is None or raw == "":
        logger.warning("Missing tags value; treating as empty list")
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed tags value %r; treating as empty list", raw[:100])
        return []
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        logger.warning("Tags value is not a list of strings: %r", raw[:100])
        return []
    return value


def parse_tag_string(value: str | None) -> list[str]:
    """Split a comma-separated form value into tags, dropping blanks."""
    if not value:
        return []
    return [tag.strip() for tag in value.split(",") if tag.strip()]
