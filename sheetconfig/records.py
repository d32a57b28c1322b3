"""Record base type, type-token coercion and the record-type registry.

Generated config modules declare one dataclass per workbook:

    @dataclass
    class ItemsConfig(BaseConfig):
        #: Display name
        name: str = config_field("string")
        tags: List[str] = config_field("string[]")

The declared spreadsheet token ("string[]") is kept in the field metadata and
drives coercion when a JSON object is decoded back into the dataclass.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import asdict, dataclass, field, fields
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from .errors import RecordDecodeError


logger = logging.getLogger(__name__)

TYPE_KEY = "$type"
TOKEN_METADATA_KEY = "token"
ARRAY_SUFFIX = "[]"

STRING_TOKENS = ("string", "string[]")
INT_TOKENS = ("int", "long", "short", "byte", "uint", "ulong", "ushort", "sbyte")
FLOAT_TOKENS = ("float", "double", "decimal")
BOOL_TOKENS = ("bool",)

GENERATED_MODULE_PREFIX = "sheetconfig_generated"


@dataclass
class BaseConfig:
    """Common base of every generated record type."""

    id: str = field(default="", metadata={TOKEN_METADATA_KEY: "string"})


Decoder = Callable[[Dict[str, Any]], BaseConfig]


def is_array_token(token: Optional[str]) -> bool:
    return bool(token) and token.endswith(ARRAY_SUFFIX)


def element_token(token: str) -> str:
    return token[: -len(ARRAY_SUFFIX)]


def python_annotation(token: str) -> str:
    """Annotation text used in generated modules for a declared token."""
    if is_array_token(token):
        return f"List[{python_annotation(element_token(token))}]"
    if token == "string":
        return "str"
    if token in INT_TOKENS:
        return "int"
    if token in FLOAT_TOKENS:
        return "float"
    if token in BOOL_TOKENS:
        return "bool"
    return "Any"


def _default_for(token: str) -> Any:
    if token == "string":
        return ""
    if token in INT_TOKENS:
        return 0
    if token in FLOAT_TOKENS:
        return 0.0
    if token in BOOL_TOKENS:
        return False
    return None


def config_field(token: str) -> Any:
    """Dataclass field carrying the spreadsheet type token."""
    metadata = {TOKEN_METADATA_KEY: token}
    if is_array_token(token):
        return field(default_factory=list, metadata=metadata)
    return field(default=_default_for(token), metadata=metadata)


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ValueError(f"expected a string, got {type(value).__name__}")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{value!r} is not an integer")
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            f = float(s)
            if f.is_integer():
                return int(f)
            raise ValueError(f"{value!r} is not an integer")
    raise ValueError(f"expected an integer, got {type(value).__name__}")


def _to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"expected a number, got {type(value).__name__}")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s == "true":
            return True
        if s == "false":
            return False
    raise ValueError(f"{value!r} is not a boolean")


def coerce_value(token: Optional[str], value: Any) -> Any:
    """Convert a decoded JSON value to the Python type of a declared token.

    Unknown tokens (custom types authored in the sheet) pass through as-is.
    """
    if not token:
        return value
    if is_array_token(token):
        if not isinstance(value, list):
            raise ValueError(f"expected a list for {token}, got {type(value).__name__}")
        inner = element_token(token)
        return [coerce_value(inner, v) for v in value]
    if token == "string":
        return _to_str(value)
    if token in INT_TOKENS:
        return _to_int(value)
    if token in FLOAT_TOKENS:
        return _to_float(value)
    if token in BOOL_TOKENS:
        return _to_bool(value)
    return value


def decode_record(record_type: Type[BaseConfig], data: Any) -> BaseConfig:
    if not isinstance(data, dict):
        raise RecordDecodeError(f"{record_type.__name__}: expected a JSON object, got {type(data).__name__}")

    values: Dict[str, Any] = {}
    for f in fields(record_type):
        if not f.init or f.name not in data:
            continue
        raw = data[f.name]
        if raw is None:
            continue
        try:
            values[f.name] = coerce_value(f.metadata.get(TOKEN_METADATA_KEY), raw)
        except (TypeError, ValueError) as exc:
            raise RecordDecodeError(f"{record_type.__name__}.{f.name}: {exc}") from exc
    return record_type(**values)


def encode_record(record: BaseConfig) -> Dict[str, Any]:
    return {TYPE_KEY: type(record).__name__, **asdict(record)}


def is_config_type(obj: Any) -> bool:
    return isinstance(obj, type) and issubclass(obj, BaseConfig)


class RecordTypes:
    """Name -> decoder mapping for record types known to this process."""

    def __init__(self, record_types: Iterable[Type[BaseConfig]] = ()) -> None:
        self._types: Dict[str, Type[BaseConfig]] = {}
        self._decoders: Dict[str, Decoder] = {}
        for record_type in record_types:
            self.register(record_type)

    def register(self, record_type: Type[BaseConfig], decoder: Optional[Decoder] = None) -> Type[BaseConfig]:
        if not is_config_type(record_type):
            raise TypeError(f"{record_type!r} does not inherit from BaseConfig")
        name = record_type.__name__
        self._types[name] = record_type
        self._decoders[name] = decoder or partial(decode_record, record_type)
        return record_type

    def update(self, other: "RecordTypes") -> None:
        self._types.update(other._types)
        self._decoders.update(other._decoders)

    def get(self, name: str) -> Optional[Type[BaseConfig]]:
        return self._types.get(name)

    def decoder(self, name: str) -> Optional[Decoder]:
        return self._decoders.get(name)

    def names(self) -> List[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)


def load_config_modules(directory: Path, record_types: Optional[RecordTypes] = None) -> RecordTypes:
    """Import every generated module in `directory` and register its record types.

    This is the default continuation between type generation and row
    compilation. A module that fails to import is logged and skipped.
    """
    record_types = record_types if record_types is not None else RecordTypes()
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Config module directory %s does not exist", directory)
        return record_types

    for path in sorted(directory.glob("*.py")):
        if path.name.startswith("_"):
            continue
        module_name = f"{GENERATED_MODULE_PREFIX}.{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            logger.error("Cannot import config module %s", path)
            continue
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            logger.exception("Failed to import config module %s", path)
            continue

        for obj in vars(module).values():
            if is_config_type(obj) and obj is not BaseConfig and obj.__module__ == module_name:
                record_types.register(obj)
                logger.debug("Registered record type %s from %s", obj.__name__, path.name)

    return record_types
