"""
Input sanitizers applied by the pipeline to request bodies and query strings.

A sanitizer cleans two shapes of input: decoded JSON values (``clean``) and
ordered key/value pairs from query strings and URL-encoded forms
(``clean_pairs``). Any object with both methods can be plugged into the
pipeline.
"""

import re
from typing import Any, Protocol

Pairs = list[tuple[str, str]]

_BRACKETS = re.compile(r"[\[\]]+")


class InputSanitizer(Protocol):
    def clean(self, value: Any) -> Any: ...

    def clean_pairs(self, pairs: Pairs) -> Pairs: ...


class OperatorSanitizer:
    """Drops keys a document database would read as query operators"""

    def is_operator_key(self, key: str) -> bool:
        return key.startswith("$") or "." in key

    def clean(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: self.clean(item)
                for key, item in value.items()
                if not self.is_operator_key(key)
            }
        if isinstance(value, list):
            return [self.clean(item) for item in value]
        return value

    def clean_pairs(self, pairs: Pairs) -> Pairs:
        # filter[$gt]=1 nests an operator under "filter"
        return [
            (key, value)
            for key, value in pairs
            if not any(self.is_operator_key(part) for part in _BRACKETS.split(key) if part)
        ]


class XssSanitizer:
    """Escapes markup openers in every string value"""

    def escape(self, text: str) -> str:
        return text.replace("<", "&lt;")

    def clean(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.escape(value)
        if isinstance(value, dict):
            return {key: self.clean(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.clean(item) for item in value]
        return value

    def clean_pairs(self, pairs: Pairs) -> Pairs:
        return [(key, self.escape(value)) for key, value in pairs]
