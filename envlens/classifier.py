"""Value classification against the type registry."""

import logging
from typing import Optional

from ._types import Detection
from .registry import TypeRegistry
from . import validators

logger = logging.getLogger(__name__)

STRING_TYPE = "string"
NUMBER_TYPE = "number"
BOOLEAN_TYPE = "boolean"

class Classifier:
    """
    Maps raw strings to ``(type_tag, normalized_value)``.

    The classifier holds no state of its own; it reads the registry on
    every call, so reconfiguring the registry takes effect immediately.
    """

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry if registry is not None else TypeRegistry()

    def detect_type(self, value: str) -> Detection:
        """
        Classify a raw value.

        Args:
            value: Raw value, possibly an inline ``KEY=value`` fragment

        Returns:
            Tuple of (type tag, normalized value); never fails, the last
            resort is ``("string", value.strip())``
        """
        # Inline fragments like "DEBUG=yes" resolve booleans directly
        boolean = self.registry.get(BOOLEAN_TYPE)
        if boolean is not None:
            fragment = validators.KEY_VALUE_PATTERN.match(value)
            if fragment:
                normalized = boolean.match(fragment.group(2).strip())
                if normalized is not None:
                    return BOOLEAN_TYPE, normalized

        value = value.strip()

        if self.registry.basic_types_only:
            if validators.is_number(value):
                return NUMBER_TYPE, value
            return STRING_TYPE, value

        for name, definition in self.registry.definitions():
            normalized = definition.match(value)
            if normalized is not None:
                logger.debug(f"Classified {value!r} as {name}")
                return name, normalized

        return STRING_TYPE, value
