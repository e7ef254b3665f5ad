"""JSON repair utilities for handling malformed judgment outputs.

Judgment collaborators backed by an LLM routinely wrap their JSON in
markdown fences, add prose around it, or leave trailing commas. The
helpers here recover the object when that is unambiguous and return
None otherwise; callers decide whether None is fatal.
"""

import json
import re
from typing import Any, Dict, Optional

_FENCE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_UNQUOTED_KEY = re.compile(r"(\{|,)\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:")
_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}


class JSONRepairKit:
    """Utilities for repairing malformed JSON from LLM outputs."""

    @staticmethod
    def extract_json(text: str) -> Optional[str]:
        """Extract the first balanced JSON object or array from text."""
        text = text.strip().lstrip("﻿")

        fenced = _FENCE.search(text)
        if fenced:
            return fenced.group(1).strip()

        obj_start = text.find("{")
        arr_start = text.find("[")
        if obj_start == -1 and arr_start == -1:
            return None
        if obj_start == -1 or (arr_start != -1 and arr_start < obj_start):
            start, open_char, close_char = arr_start, "[", "]"
        else:
            start, open_char, close_char = obj_start, "{", "}"

        # Track depth outside string literals to find the matching close
        depth = 0
        in_string = False
        escape_next = False
        for i, c in enumerate(text[start:], start):
            if escape_next:
                escape_next = False
                continue
            if c == "\\":
                escape_next = True
                continue
            if c == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if c == open_char:
                depth += 1
            elif c == close_char:
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]

        # Unbalanced: hand back the tail and let repair/parse decide
        return text[start:]

    @staticmethod
    def repair_json(text: str) -> str:
        """Attempt to repair common JSON issues."""
        text = _TRAILING_COMMA.sub(r"\1", text)

        # Single-quoted payloads with no double quotes at all
        if "'" in text and '"' not in text:
            text = text.replace("'", '"')

        text = _UNQUOTED_KEY.sub(r'\1"\2":', text)

        for literal, replacement in _PY_LITERALS.items():
            text = re.sub(rf"(?<=[:\[,\s]){literal}(?=[\s,\]}}])", replacement, text)

        return text

    @staticmethod
    def parse_lenient(text: str) -> Any:
        """Parse JSON leniently, attempting repairs if needed."""
        if not text:
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        extracted = JSONRepairKit.extract_json(text)
        if extracted:
            try:
                return json.loads(extracted)
            except json.JSONDecodeError:
                try:
                    return json.loads(JSONRepairKit.repair_json(extracted))
                except json.JSONDecodeError:
                    pass

        try:
            return json.loads(JSONRepairKit.repair_json(text))
        except json.JSONDecodeError:
            return None

    @staticmethod
    def parse_object(text: str) -> Optional[Dict[str, Any]]:
        """Like parse_lenient but only accepts a top-level JSON object."""
        parsed = JSONRepairKit.parse_lenient(text)
        if isinstance(parsed, dict):
            return parsed
        return None
