"""
Best-effort extraction of function tags from generated text.

Tag shape: ``[FUNCTION:name:arg1:key=value...]``. This is not a strict
grammar. Heuristics, each pinned by tests:

* A tag ends at the first ``]``; it may not contain ``[``, ``]`` or a
  newline. Unterminated or nested-looking spans simply don't match.
* Arguments are ``:``-separated. A token holding ``=`` becomes a key/value
  pair (key lowercased, value trimmed, later ``=`` kept in the value);
  anything else is stored positionally as ``arg<index>``.
* ``http:`` / ``https:`` followed by ``//...`` is glued back together so
  URL values survive the ``:`` split.
* Function names are lowercased; an empty name drops the tag.
"""
import re
from dataclasses import dataclass, field

FUNCTION_TAG = re.compile(r"\[FUNCTION:([^\[\]\n]*)\]", re.IGNORECASE)
_URL_SCHEME = re.compile(r"(?:^|=)\s*https?$", re.IGNORECASE)


@dataclass
class FunctionCall:
    name: str
    args: list[str] = field(default_factory=list)
    raw: str = ""

    @property
    def kwargs(self) -> dict[str, str]:
        return parse_function_args(self.args)


def _split_args(body: str) -> list[str]:
    tokens = body.split(":")
    merged: list[str] = []
    for token in tokens:
        if merged and token.startswith("//") and _URL_SCHEME.search(merged[-1]):
            merged[-1] = f"{merged[-1]}:{token}"
        else:
            merged.append(token)
    return merged


def parse_function_calls(text: str) -> list[FunctionCall]:
    """Every well-formed tag in `text`, in textual order."""
    calls = []
    for match in FUNCTION_TAG.finditer(text or ""):
        name, *args = _split_args(match.group(1))
        name = name.strip().lower()
        if not name:
            continue
        calls.append(FunctionCall(name=name, args=args, raw=match.group(0)))
    return calls


def parse_function_args(args: list[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for index, arg in enumerate(args):
        token = (arg or "").strip()
        if not token:
            continue
        if "=" in token:
            key, value = token.split("=", 1)
            key = key.strip().lower()
            if key:
                parsed[key] = value.strip()
        else:
            parsed[f"arg{index}"] = token
    return parsed
