"""
Response Parser - Extract the concept list from a free-form model reply

Part of the Concept Mapper implementation.
Query: Response parsing

License: MIT
"""

from typing import List, Dict, Any, Iterable
import json
import logging
import re

from .models import ConceptResult
from ..exceptions import ResponseFormatError

logger = logging.getLogger(__name__)

NO_CONCEPTS_PHRASE = "No direct concepts found based on the provided context."

_JSON_FENCE = re.compile(r"```[ \t]*json[ \t]*\r?\n?([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[\w+-]*[ \t]*\r?\n?([\s\S]*?)```")


def extract_json_text(text: str) -> str:
    """
    Pick the part of a reply that should hold the JSON payload.

    A fence tagged ``json`` wins over an untagged fence; without any fence
    the text is used verbatim.
    """
    match = _JSON_FENCE.search(text)
    if match:
        return match.group(1)

    match = _ANY_FENCE.search(text)
    if match:
        return match.group(1)

    return text


def parse_concepts_response(text: str) -> List[Dict[str, Any]]:
    """
    Parse a model reply into a list of JSON objects.

    Args:
        text: Raw model reply

    Returns:
        The parsed array, unchanged

    Raises:
        ResponseFormatError: If the reply is not a JSON array of objects; the
            raw reply is attached
    """
    if not isinstance(text, str):
        raise ResponseFormatError(
            "Model reply is not text", raw_response=repr(text), details=type(text).__name__
        )

    json_text = extract_json_text(text).strip()

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.warning(f"Model reply is not valid JSON: {str(e)}")
        raise ResponseFormatError(
            "AI response could not be parsed as JSON", raw_response=text, details=str(e)
        ) from e

    if not isinstance(parsed, list):
        raise ResponseFormatError(
            "AI response is not a JSON array",
            raw_response=text,
            details=f"got {type(parsed).__name__}",
        )

    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ResponseFormatError(
                "AI response array must contain only objects",
                raw_response=text,
                details=f"element {index} is {type(item).__name__}",
            )

    return parsed


def is_no_concepts_reply(text: str) -> bool:
    """Check whether a reply is the prompt's literal "nothing found" phrase."""
    if not isinstance(text, str):
        return False

    def normalize(value: str) -> str:
        return " ".join(value.strip().strip('"').split()).rstrip(".").lower()

    return normalize(text) == normalize(NO_CONCEPTS_PHRASE)


def to_concept_results(items: Iterable[Dict[str, Any]]) -> List[ConceptResult]:
    """
    Normalize parsed objects into ConceptResult values.

    Objects without a concept name are dropped; missing explanation or
    reference become empty strings.
    """
    results = []
    for index, item in enumerate(items):
        concept = item.get("concept")
        if concept is None or not str(concept).strip():
            logger.warning(f"Dropping concept entry {index} without a concept name")
            continue

        results.append(
            ConceptResult(
                concept=str(concept).strip(),
                explanation=_as_text(item.get("explanation")),
                reference=_as_text(item.get("reference")),
            )
        )
    return results


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)
