"""Shared validation helpers for engine settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_int_list(value: str | list[int] | tuple[int, ...]) -> tuple[int, ...]:
    """Parse an integer list from an environment variable or config value.

    Accepts:
    - A list or tuple of integers (returned as a tuple)
    - A JSON array string: '[100, 50, 25]'
    - A comma-separated string: '100,50,25'

    Raises ValueError for empty values, malformed JSON, or non-integer items
    (booleans and floats included).
    """
    if isinstance(value, list | tuple):
        items: list[Any] = list(value)
    else:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Integer list value must not be empty")
        if stripped.startswith("["):
            try:
                items = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
        else:
            items = [part.strip() for part in stripped.split(",") if part.strip()]

    if not items:
        raise ValueError("Integer list value must not be empty")

    result: list[int] = []
    for item in items:
        if isinstance(item, bool | float):
            raise ValueError(f"Not an integer: {item!r}")
        try:
            result.append(int(item))
        except (TypeError, ValueError):
            raise ValueError(f"Not an integer: {item!r}") from None
    return tuple(result)


_INT_LIST_FIELDS = {"weekly_reward_table"}


class IntListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that passes integer-list fields as raw strings to validators.

    pydantic-settings tries to JSON-decode sequence-typed fields from env vars
    before validators run, which rejects the CSV form. This subclass hands
    those fields over untouched so parse_int_list handles both formats.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _INT_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
