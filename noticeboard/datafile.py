"""
Encoding and decoding of generated JavaScript data files.

The website imports its content from modules whose whole body is a single
declaration:

    export const notifications = [ ... ];

Readers pull the JSON out by taking the span from the first opening bracket
to the last closing bracket of the same kind; writers regenerate the exact
wrapper.
"""

import json
import re
from typing import Any

from noticeboard.errors import CorruptRemoteState

EXPORT_NAME_RE = re.compile(r"export\s+const\s+([A-Za-z_$][\w$]*)\s*=")

SPAN_PATTERNS = {
    "[": re.compile(r"\[[\s\S]*\]"),
    "{": re.compile(r"\{[\s\S]*\}"),
}


def encode(name: str, value: Any) -> str:
    """
    Serializes value into an ES module exporting it as a constant called name.
    """
    if not re.fullmatch(r"[A-Za-z_$][\w$]*", name):
        raise ValueError(f"Invalid export name {name!r}")
    return f"export const {name} = {json.dumps(value, indent=2, ensure_ascii=False)};"


def decode(text: str) -> list | dict:
    """
    Extracts the embedded collection from a data file's text.

    Raises CorruptRemoteState if there is no bracketed span or it isn't JSON.
    """
    # Whichever kind of bracket opens first decides the span we look for
    openers = [(text.find(opener), opener) for opener in SPAN_PATTERNS]
    openers = [(index, opener) for index, opener in openers if index != -1]
    if not openers:
        raise CorruptRemoteState("No bracketed collection found in data file")
    _, opener = min(openers)
    match = SPAN_PATTERNS[opener].search(text)
    if match is None:
        raise CorruptRemoteState(f"Unterminated {opener!r} in data file")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise CorruptRemoteState(f"Data file collection is not valid JSON: {e}") from e


def decode_list(text: str) -> list:
    value = decode(text)
    if not isinstance(value, list):
        raise CorruptRemoteState("Data file holds an object, expected a list")
    return value


def decode_object(text: str) -> dict:
    value = decode(text)
    if not isinstance(value, dict):
        raise CorruptRemoteState("Data file holds a list, expected an object")
    return value


def export_name(text: str) -> str | None:
    """
    Returns the identifier the data file exports, if it has the usual header.
    """
    match = EXPORT_NAME_RE.search(text)
    return match.group(1) if match else None
