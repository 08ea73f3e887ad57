"""Type registry: built-in and custom type definitions."""

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

from ._types import (
    CallableTransformer, CallableValidator, InvalidTypeDefinition, NoopTransformer,
    NoopValidator, PatternTransformer, PatternValidator, Transformer, TypesOption,
    Validator,
)
from . import validators

logger = logging.getLogger(__name__)

class TypeDefinition:
    """
    A named value type: a structural pattern plus optional validation and
    normalization.

    The pattern is searched in the (already trimmed) value; built-in
    patterns are anchored. A value belongs to the type only when the
    pattern matches and the validator accepts it.
    """

    def __init__(
        self,
        pattern: Union[str, Pattern],
        validator: Optional[Validator] = None,
        transformer: Optional[Transformer] = None,
    ):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.validator = validator or NoopValidator()
        self.transformer = transformer or NoopTransformer()

    def match(self, value: str) -> Optional[str]:
        """
        Return the normalized value if it belongs to this type, else None.

        An exception raised by the validator or transformer counts as a
        non-match and is logged.
        """
        if self.pattern.search(value) is None:
            return None
        try:
            if not self.validator.validate(value):
                return None
            return self.transformer.transform(value)
        except Exception as e:
            logger.warning(f"Type check for pattern {self.pattern.pattern!r} failed on {value!r}: {e}")
            return None

    def __repr__(self) -> str:
        return (
            f"TypeDefinition(pattern={self.pattern.pattern!r}, "
            f"validator={self.validator!r}, transformer={self.transformer!r})"
        )

def _builtin_types() -> Dict[str, TypeDefinition]:
    """Built-in definitions in canonical evaluation order."""
    return {
        "boolean": TypeDefinition(
            validators.BOOLEAN_PATTERN,
            transformer=CallableTransformer(validators.normalize_boolean),
        ),
        "database_url": TypeDefinition(
            validators.DATABASE_URL_PATTERN,
            validator=CallableValidator(validators.is_valid_database_url),
        ),
        "localhost": TypeDefinition(
            validators.LOCALHOST_PATTERN,
            validator=CallableValidator(validators.is_valid_localhost),
        ),
        "url": TypeDefinition(
            validators.URL_PATTERN,
            validator=CallableValidator(validators.is_valid_url),
        ),
        "number": TypeDefinition(validators.NUMBER_PATTERN),
        "json": TypeDefinition(
            validators.JSON_PATTERN,
            validator=CallableValidator(validators.is_valid_json),
        ),
        "ipv4": TypeDefinition(
            validators.IPV4_PATTERN,
            validator=CallableValidator(validators.is_valid_ipv4),
        ),
        "iso_date": TypeDefinition(
            validators.ISO_DATE_PATTERN,
            validator=CallableValidator(validators.is_valid_date),
        ),
        "iso_time": TypeDefinition(
            validators.ISO_TIME_PATTERN,
            validator=CallableValidator(validators.is_valid_time),
        ),
        "hex_color": TypeDefinition(
            validators.HEX_COLOR_PATTERN,
            validator=CallableValidator(validators.is_valid_hex_color),
        ),
    }

BUILTIN_TYPES: Dict[str, TypeDefinition] = _builtin_types()
BUILTIN_ORDER: Tuple[str, ...] = tuple(BUILTIN_TYPES)

def _build_validator(name: str, validate: Any) -> Optional[Validator]:
    if validate is None:
        return None
    if isinstance(validate, str):
        try:
            return PatternValidator(validate)
        except re.error as e:
            raise InvalidTypeDefinition(name, f"invalid 'validate' pattern: {e}")
    if isinstance(validate, Validator):
        return validate
    if callable(validate):
        return CallableValidator(validate)
    raise InvalidTypeDefinition(name, "'validate' must be callable, a regex string or a Validator")

def _build_transformer(name: str, transform: Any) -> Optional[Transformer]:
    if transform is None:
        return None
    if isinstance(transform, Mapping):
        if 'pattern' not in transform or 'replace' not in transform:
            raise InvalidTypeDefinition(name, "'transform' mapping needs 'pattern' and 'replace'")
        try:
            return PatternTransformer(transform['pattern'], str(transform['replace']))
        except re.error as e:
            raise InvalidTypeDefinition(name, f"invalid 'transform' pattern: {e}")
    if isinstance(transform, Transformer):
        return transform
    if callable(transform):
        return CallableTransformer(transform)
    raise InvalidTypeDefinition(name, "'transform' must be callable, a mapping or a Transformer")

def build_type_definition(name: str, definition: Any) -> TypeDefinition:
    """
    Build a TypeDefinition from a user-supplied custom type entry.

    Args:
        name: Name of the custom type
        definition: A TypeDefinition, or a mapping with 'pattern' and
            optional 'validate' and 'transform'

    Returns:
        The compiled TypeDefinition

    Raises:
        InvalidTypeDefinition: If the entry has no usable pattern or its
            callbacks are of an unsupported kind
    """
    if isinstance(definition, TypeDefinition):
        return definition

    if not isinstance(definition, Mapping) or not definition.get('pattern'):
        raise InvalidTypeDefinition(name, "must be a table with at least a 'pattern' field")

    pattern = definition['pattern']
    if isinstance(pattern, str):
        try:
            pattern = re.compile(pattern)
        except re.error as e:
            raise InvalidTypeDefinition(name, f"invalid pattern: {e}")
    elif not isinstance(pattern, re.Pattern):
        raise InvalidTypeDefinition(name, "'pattern' must be a string or compiled regex")

    return TypeDefinition(
        pattern,
        validator=_build_validator(name, definition.get('validate')),
        transformer=_build_transformer(name, definition.get('transform')),
    )

class TypeRegistry:
    """
    Enable flags for built-in types and the set of custom types.

    Every call to :meth:`configure` starts from scratch: all built-ins are
    re-enabled and custom types are cleared before the new configuration
    is applied.
    """

    def __init__(self, types: TypesOption = True, custom_types: Optional[Mapping[str, Any]] = None):
        self.enabled: Dict[str, bool] = {}
        self.custom_types: Dict[str, TypeDefinition] = {}
        self.basic_types_only = False
        self.configure(types, custom_types)

    def configure(self, types: TypesOption = True, custom_types: Optional[Mapping[str, Any]] = None) -> List[str]:
        """
        Reset and apply a type configuration.

        Args:
            types: False for number/string detection only, True or None for
                every built-in, or a mapping of built-in names to booleans
            custom_types: Mapping of type names to custom definitions

        Returns:
            Warning messages for custom type entries that were skipped
        """
        self.enabled = {name: True for name in BUILTIN_ORDER}
        self.custom_types = {}
        self.basic_types_only = False

        if types is False:
            self.basic_types_only = True
            for name in self.enabled:
                self.enabled[name] = False
            if custom_types:
                logger.debug("Custom types ignored because type detection is disabled")
            return []

        if isinstance(types, Mapping):
            for name, flag in types.items():
                if name in self.enabled:
                    self.enabled[name] = bool(flag)
                else:
                    logger.debug(f"Ignoring unknown type name in configuration: {name}")

        return self._register_custom_types(custom_types or {})

    def _register_custom_types(self, custom_types: Mapping[str, Any]) -> List[str]:
        warnings: List[str] = []
        for name, definition in custom_types.items():
            try:
                self.custom_types[name] = build_type_definition(name, definition)
            except InvalidTypeDefinition as e:
                logger.warning(str(e))
                warnings.append(str(e))
                continue
            logger.debug(f"Registered custom type: {name}")
        return warnings

    def is_enabled(self, name: str) -> bool:
        if name in self.enabled:
            return self.enabled[name]
        return not self.basic_types_only and name in self.custom_types

    def get(self, name: str) -> Optional[TypeDefinition]:
        """Return the active definition for a type name, or None if disabled."""
        if not self.is_enabled(name):
            return None
        if name in self.custom_types:
            return self.custom_types[name]
        return BUILTIN_TYPES[name]

    def definitions(self) -> Iterator[Tuple[str, TypeDefinition]]:
        """
        Yield enabled (name, definition) pairs in evaluation order.

        Built-ins come first in canonical order; a custom type sharing a
        built-in's name takes that slot. Remaining custom types follow in
        registration order.
        """
        if self.basic_types_only:
            return
        for name in BUILTIN_ORDER:
            if not self.enabled[name]:
                continue
            yield name, self.custom_types.get(name, BUILTIN_TYPES[name])
        for name, definition in self.custom_types.items():
            if name not in BUILTIN_TYPES:
                yield name, definition
