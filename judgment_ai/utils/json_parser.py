import json
import re
from typing import Any, Dict, List, Union

from judgment_ai.core.exceptions import MalformedResponseError
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

_FENCED_BLOCK = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_OPEN_FENCE = re.compile(r"^```[ \t]*(?:json|JSON)?[ \t]*\r?\n?")


def strip_code_fence(text: str) -> str:
    """Return the JSON candidate held by a model response.

    The first fenced block (```json or bare ```) wins. Without a fence the
    whole text is the candidate. An opening fence that was never closed
    (truncated output) is dropped.

    Args:
        text: Raw model output

    Returns:
        Candidate JSON text, stripped
    """
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()

    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPEN_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json_payload(text: str) -> JsonValue:
    """Parse the JSON payload from model output, repairing common damage.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Leading/trailing whitespace and commentary
    - Concatenated JSON objects (e.g., {...}\n{...})
    - Trailing garbage after a complete document

    A bare scalar is returned only when the whole candidate is valid JSON;
    every repair path yields an object or array, so prose that merely starts
    with a number ("2023年…", "1. …") is not mistaken for a payload.

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON value

    Raises:
        MalformedResponseError: If no JSON payload can be recovered
    """
    if not text or not text.strip():
        raise MalformedResponseError("Model response is empty")

    cleaned_text = strip_code_fence(text)
    if not cleaned_text:
        raise MalformedResponseError("Fenced block in model response is empty")

    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, attempting repairs...")
        error = e

    # Check for "Extra data" error - indicates concatenated JSON
    if "Extra data" in str(error):
        merged = _parse_concatenated_json(cleaned_text)
        if merged is not None:
            LOGGER.info("Successfully parsed concatenated JSON, merged into single result")
            return merged

    # Try to parse just until the error position
    if error.pos > 0:
        first_part = cleaned_text[:error.pos].strip()
        if first_part:
            try:
                result = json.loads(first_part)
                if isinstance(result, (dict, list)):
                    LOGGER.info(f"Parsed first JSON object (truncated at position {error.pos})")
                    return result
            except json.JSONDecodeError:
                pass

    # Fallback: first balanced { ... } or [ ... ] anywhere in the text
    decoder = json.JSONDecoder()
    for opener in ("{", "["):
        start = cleaned_text.find(opener)
        while start != -1:
            try:
                result, _ = decoder.raw_decode(cleaned_text, start)
                LOGGER.info(f"Recovered embedded JSON starting at position {start}")
                return result
            except json.JSONDecodeError:
                start = cleaned_text.find(opener, start + 1)

    LOGGER.error(f"Failed to parse JSON: {error}")
    raise MalformedResponseError(f"Failed to parse JSON: {error}", original_error=error)


def _parse_concatenated_json(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Parse concatenated JSON documents and merge them.

    Args:
        text: Text containing potentially concatenated JSON

    Returns:
        Merged result or None if parsing fails
    """
    decoder = json.JSONDecoder()
    results = []
    idx = 0
    text = text.strip()

    while idx < len(text):
        while idx < len(text) and text[idx] in " \t\n\r,":
            idx += 1
        if idx >= len(text):
            break

        try:
            obj, end_idx = decoder.raw_decode(text, idx)
            # Scalars are prose fragments such as the year in "2023年"
            if isinstance(obj, (dict, list)):
                results.append(obj)
            idx = end_idx
        except json.JSONDecodeError:
            # Try to find next { or [
            next_brace = text.find("{", idx + 1)
            next_bracket = text.find("[", idx + 1)

            if next_brace == -1 and next_bracket == -1:
                break
            elif next_brace == -1:
                idx = next_bracket
            elif next_bracket == -1:
                idx = next_brace
            else:
                idx = min(next_brace, next_bracket)

    if results:
        return _merge_json_objects(results)

    return None


def _merge_json_objects(objects: List[Any]) -> Union[Dict[str, Any], List[Any], None]:
    """Merge a list of parsed JSON documents into a single result.

    Args:
        objects: List of parsed JSON objects/arrays

    Returns:
        Merged result
    """
    if not objects:
        return None

    if len(objects) == 1:
        return objects[0]

    # If all objects are dicts, merge them
    if all(isinstance(obj, dict) for obj in objects):
        merged: Dict[str, Any] = {}
        for obj in objects:
            for key, value in obj.items():
                if key in merged:
                    existing = merged[key]
                    if isinstance(existing, list) and isinstance(value, list):
                        merged[key] = existing + value
                    elif isinstance(existing, dict) and isinstance(value, dict):
                        merged[key] = {**existing, **value}
                    else:
                        LOGGER.debug(f"Key conflict during merge: {key}, using later value")
                        merged[key] = value
                else:
                    merged[key] = value
        return merged

    # If all objects are lists, flatten them
    if all(isinstance(obj, list) for obj in objects):
        flattened: List[Any] = []
        for obj in objects:
            flattened.extend(obj)
        return flattened

    # Mixed types - return as list
    return objects
