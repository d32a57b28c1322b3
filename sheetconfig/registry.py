"""Runtime config registry.

Loads compiled payloads into a type-keyed, id-keyed store:

    registry = ConfigRegistry(DirectoryResources("Resources"), record_types)
    registry.ensure_loaded("JsonConfigs")
    sword = registry.get(ItemsConfig, "r1")

A resource group is a named bucket of payload files; `DirectoryResources`
maps group "JsonConfigs" to every *.json file in <root>/JsonConfigs.
Queries never raise on a missing type or id; they log and return None/[].
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Type, Union

from .errors import SheetConfigError
from .records import TYPE_KEY, BaseConfig, Decoder, RecordTypes, is_config_type


logger = logging.getLogger(__name__)

TypeRef = Union[Type[BaseConfig], str]


@dataclass
class TextAsset:
    name: str
    text: str


class DirectoryResources:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def load_all(self, group: str) -> List[TextAsset]:
        directory = self.root / group
        if not directory.is_dir():
            logger.warning("Resource group %s not found under %s", group, self.root)
            return []
        return [
            TextAsset(name=p.stem, text=p.read_text(encoding="utf-8-sig"))
            for p in sorted(directory.glob("*.json"))
        ]


def type_key_for(asset_name: str) -> str:
    """ItemsConfig_Weapons -> ItemsConfig"""
    return asset_name.split("_", 1)[0]


class ConfigRegistry:
    def __init__(self, resources: DirectoryResources, record_types: Optional[RecordTypes] = None) -> None:
        self.resources = resources
        self.record_types = record_types if record_types is not None else RecordTypes()
        self._data: Dict[str, Dict[str, BaseConfig]] = {}
        self._loaded_groups: Set[str] = set()
        self._normalized_id_log_cache: Set[str] = set()

    # -- loading ---------------------------------------------------------

    @property
    def loaded_groups(self) -> Set[str]:
        return set(self._loaded_groups)

    def type_names(self) -> List[str]:
        return sorted(self._data)

    def read_payload(self, asset: TextAsset, decoder: Optional[Decoder] = None) -> Dict[str, BaseConfig]:
        """Decode one payload without storing it.

        `decoder` overrides the one registered for the asset's type name.
        Raises SheetConfigError when the file cannot be used at all; a single
        bad record is logged and skipped.
        """
        type_name = type_key_for(asset.name)
        if decoder is None:
            decoder = self.record_types.decoder(type_name)
        if decoder is None:
            raise SheetConfigError(f"no record type registered for '{type_name}' ({asset.name})")

        try:
            raw = json.loads(asset.text)
        except ValueError as exc:
            raise SheetConfigError(f"{asset.name} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise SheetConfigError(f"{asset.name} must hold a JSON object keyed by id")

        out: Dict[str, BaseConfig] = {}
        for key, data in raw.items():
            if isinstance(data, dict):
                data = {k: v for k, v in data.items() if k != TYPE_KEY}
            try:
                record = decoder(data)
            except (ValueError, TypeError, SheetConfigError) as exc:
                logger.warning("Skipping record %s in %s: %s", key, asset.name, exc)
                continue
            out[key] = record
        return out

    def load_all(self, group: str) -> None:
        if not group:
            logger.warning("ConfigRegistry.load_all got an empty group name, ignored")
            return

        for asset in self.resources.load_all(group):
            try:
                records = self.read_payload(asset)
            except SheetConfigError as exc:
                logger.error("Failed to load %s: %s", asset.name, exc)
                continue

            bucket = self._data.setdefault(type_key_for(asset.name), {})
            for key, record in records.items():
                record_id = key.strip()
                if record_id in bucket:
                    logger.info("Duplicate id %s in %s overwrites an earlier record", record_id, asset.name)
                bucket[record_id] = record

        self._loaded_groups.add(group)
        logger.debug("Loaded resource group %s", group)

    load_group = load_all

    def ensure_loaded(self, group: str) -> None:
        if group not in self._loaded_groups:
            self.load_all(group)

    def clear(self) -> None:
        self._data.clear()
        self._loaded_groups.clear()
        self._normalized_id_log_cache.clear()

    # -- queries ---------------------------------------------------------

    def _type_name(self, record_type: Optional[TypeRef]) -> str:
        if record_type is None:
            raise TypeError("record type must not be None")
        if isinstance(record_type, str):
            return record_type
        if not is_config_type(record_type):
            raise TypeError(f"{getattr(record_type, '__name__', record_type)!r} does not inherit from BaseConfig")
        return record_type.__name__

    def _normalize_id(self, record_id: Optional[str], type_name: str) -> Optional[str]:
        if not record_id:
            return record_id
        trimmed = record_id.strip()
        if trimmed != record_id:
            cache_key = f"{type_name}:{trimmed}"
            if cache_key not in self._normalized_id_log_cache:
                self._normalized_id_log_cache.add(cache_key)
                logger.warning(
                    "Trimmed %s id %r to %r; check the data source for stray whitespace",
                    type_name, record_id, trimmed,
                )
        return trimmed

    @staticmethod
    def _matches(record: BaseConfig, record_type: TypeRef) -> bool:
        return isinstance(record_type, str) or isinstance(record, record_type)

    def get(self, record_type: TypeRef, record_id: Optional[str]) -> Optional[BaseConfig]:
        type_name = self._type_name(record_type)
        normalized = self._normalize_id(record_id, type_name)
        if not normalized:
            logger.warning("ConfigRegistry.get(%s) got an empty id", type_name)
            return None

        record = self._data.get(type_name, {}).get(normalized)
        if record is not None and self._matches(record, record_type):
            return record

        logger.warning("No %s config with id %s", type_name, normalized)
        return None

    def get_all(self, record_type: TypeRef) -> List[BaseConfig]:
        type_name = self._type_name(record_type)
        bucket = self._data.get(type_name)
        if bucket is None:
            logger.warning("No %s configs loaded", type_name)
            return []
        return [r for r in bucket.values() if self._matches(r, record_type)]

    def has(self, record_type: TypeRef, record_id: Optional[str]) -> bool:
        type_name = self._type_name(record_type)
        normalized = self._normalize_id(record_id, type_name)
        if not normalized:
            return False
        record = self._data.get(type_name, {}).get(normalized)
        return record is not None and self._matches(record, record_type)

    def remove(self, record_type: TypeRef, record_id: Optional[str] = None) -> None:
        type_name = self._type_name(record_type)
        bucket = self._data.get(type_name)
        if bucket is None:
            return
        if not record_id:
            del self._data[type_name]
            return
        normalized = self._normalize_id(record_id, type_name)
        if normalized:
            bucket.pop(normalized, None)
