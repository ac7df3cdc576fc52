"""Literal placeholder substitution for branding style sheets."""

from __future__ import annotations

import re
from typing import Dict, Tuple

from .config import BrandingValues

__all__ = ["PLACEHOLDER_TOKENS", "PlaceholderSubstitutor"]

PLACEHOLDER_TOKENS: Tuple[str, str, str] = (
    "{applicationName}",
    "{applicationVersion}",
    "{toolVersion}",
)

_TOKEN_PATTERN = re.compile("|".join(re.escape(token) for token in PLACEHOLDER_TOKENS))


class PlaceholderSubstitutor:
    """Replace the fixed branding tokens with configured values.

    Replacement is a single literal pass over the input: no escaping, and a
    value that itself contains a token is emitted as written.
    """

    def __init__(self, values: BrandingValues) -> None:
        self.values = values

    def replacements(self) -> Dict[str, str]:
        name_token, version_token, tool_token = PLACEHOLDER_TOKENS
        return {
            name_token: self.values.application_name or "",
            version_token: self.values.application_version or "",
            tool_token: self.values.tool_version or "",
        }

    def substitute(self, text: str) -> str:
        mapping = self.replacements()
        return _TOKEN_PATTERN.sub(lambda match: mapping[match.group(0)], text)
