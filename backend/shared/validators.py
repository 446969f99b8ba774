"""Validation helpers for environment-driven settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_string_list(value: str | list[str] | tuple[str, ...], *, allow_empty: bool = False) -> list[str]:
    """Parse a string list from an environment variable or config value.

    Accepts a list (or tuple) of strings, a JSON array string such as
    '["a","b"]', or a comma-separated string such as 'a,b'. Items are
    stripped and blank items dropped. Raises ValueError for malformed JSON
    and, unless allow_empty is set, for an empty result.
    """
    if isinstance(value, (list, tuple)):
        items = list(value)
    else:
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                items = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
        else:
            items = stripped.split(",")

    if not all(isinstance(item, str) for item in items):
        raise ValueError("String list items must be strings")
    result = [item.strip() for item in items if item.strip()]
    if not allow_empty and not result:
        raise ValueError("String list value must not be empty")
    return result


_STRING_LIST_FIELDS = {"cors_origins", "categories"}


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that passes string-list fields through as raw strings.

    pydantic-settings JSON-decodes list-typed fields from env vars before
    validators run, which rejects the comma-separated form. Raw strings are
    left for parse_string_list, which accepts both.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
