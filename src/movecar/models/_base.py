"""Base model shared by movecar wire and storage models.

Every model inherits from :class:`MoveCarBaseModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialise to the
  camelCase keys the browser client and stored records use.
* ``populate_by_name=True`` so code can construct models with the
  Python field names.
* ``to_wire()``/``to_json()`` helpers that always dump by alias.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Values browsers send for "no value".
_SENTINELS = frozenset({"", "null", "undefined", "NaN", "nan"})


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, returning ``None`` for blanks/garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() in _SENTINELS:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


class MoveCarBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
