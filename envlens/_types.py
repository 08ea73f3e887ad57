"""Type definitions and custom exceptions for envlens."""

import re
from typing import Any, Callable, Dict, Optional, Pattern, Tuple, Union
from typing_extensions import Protocol, runtime_checkable

# Type aliases
ValidatorFunc = Callable[[str], bool]
TransformFunc = Callable[[str], str]
Detection = Tuple[str, str]
TypesOption = Union[bool, Dict[str, bool], None]

# Custom exceptions
class EnvLensError(Exception):
    """Base exception for all envlens errors."""
    pass

class ConfigError(EnvLensError):
    """Raised when a configuration file cannot be loaded or is malformed."""
    pass

class InvalidTypeDefinition(EnvLensError):
    """Raised when a custom type definition cannot be built."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid custom type definition for '{name}': {reason}")

# Capability protocols
@runtime_checkable
class Validator(Protocol):
    """Secondary check run after a structural pattern match."""

    def validate(self, value: str) -> bool:
        ...

@runtime_checkable
class Transformer(Protocol):
    """Normalization applied to a value once it is confirmed to match."""

    def transform(self, value: str) -> str:
        ...

class NoopValidator:
    """Accepts every value."""

    def validate(self, value: str) -> bool:
        return True

    def __repr__(self) -> str:
        return "NoopValidator()"

class PatternValidator:
    """Accepts values matched by a regular expression."""

    def __init__(self, pattern: Union[str, Pattern]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def validate(self, value: str) -> bool:
        return self.pattern.search(value) is not None

    def __repr__(self) -> str:
        return f"PatternValidator({self.pattern.pattern!r})"

class CallableValidator:
    """Wraps a user-supplied predicate."""

    def __init__(self, func: ValidatorFunc):
        self.func = func

    def validate(self, value: str) -> bool:
        return bool(self.func(value))

    def __repr__(self) -> str:
        return f"CallableValidator({self.func!r})"

class NoopTransformer:
    """Returns the value unchanged."""

    def transform(self, value: str) -> str:
        return value

    def __repr__(self) -> str:
        return "NoopTransformer()"

class PatternTransformer:
    """Rewrites a value with a regular expression substitution."""

    def __init__(self, pattern: Union[str, Pattern], replace: str):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.replace = replace

    def transform(self, value: str) -> str:
        return self.pattern.sub(self.replace, value)

    def __repr__(self) -> str:
        return f"PatternTransformer({self.pattern.pattern!r}, {self.replace!r})"

class CallableTransformer:
    """Wraps a user-supplied normalization function."""

    def __init__(self, func: TransformFunc):
        self.func = func

    def transform(self, value: str) -> str:
        return str(self.func(value))

    def __repr__(self) -> str:
        return f"CallableTransformer({self.func!r})"

class EnvVarEntry:
    """A variable resolved from an environment file."""

    __slots__ = ("value", "type", "source")

    def __init__(self, value: str, type: str, source: str):
        self.value = value
        self.type = type
        self.source = source

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "type": self.type, "source": self.source}

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, EnvVarEntry):
            return NotImplemented
        return (self.value, self.type, self.source) == (other.value, other.type, other.source)

    def __repr__(self) -> str:
        return f"EnvVarEntry(value={self.value!r}, type={self.type!r}, source={self.source!r})"

class EnvOptions:
    """Options shared by the resolver, the store and the type registry."""

    def __init__(
        self,
        *,
        path: Optional[str] = None,
        preferred_environment: Optional[str] = None,
        types: TypesOption = True,
        custom_types: Optional[Dict[str, Any]] = None,
        hide_values: bool = True,
    ):
        self.path = path
        self.preferred_environment = preferred_environment or ""
        self.types = types
        self.custom_types = custom_types
        self.hide_values = hide_values

    def __repr__(self) -> str:
        return (
            f"EnvOptions(path={self.path!r}, preferred_environment={self.preferred_environment!r}, "
            f"types={self.types!r}, custom_types={list((self.custom_types or {}).keys())!r}, "
            f"hide_values={self.hide_values!r})"
        )
