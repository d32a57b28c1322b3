"""Localized text lookup on top of the config registry.

Localization rows are authored in a Languages workbook (one sheet per
language or mixed) and compiled like any other table:

    id      | langKey | text
    string  | string  | string
    start   | en      | Start

On first use the LanguagesConfig payloads are folded into a
language -> key -> text map and the LanguagesConfig bucket is dropped from
the registry.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from .errors import SheetConfigError
from .prefs import RuntimePrefs
from .records import BaseConfig, config_field, decode_record
from .registry import ConfigRegistry, type_key_for


logger = logging.getLogger(__name__)

CURRENT_LANGUAGE_KEY = "CURRENT_LANGUAGE_INDEX"
DEFAULT_GROUP = "JsonConfigs"


@dataclass
class LanguagesConfig(BaseConfig):
    #: Language key, e.g. "en"
    langKey: str = config_field("string")
    #: Localized text
    text: str = config_field("string")


class SystemLanguage(enum.Enum):
    CHINESE_SIMPLIFIED = "ChineseSimplified"
    ENGLISH = "English"


@dataclass(frozen=True)
class Language:
    lang_key: str
    language: SystemLanguage


DEFAULT_LANGUAGES = (
    Language("cn", SystemLanguage.CHINESE_SIMPLIFIED),
    Language("en", SystemLanguage.ENGLISH),
)

LanguageListener = Callable[[SystemLanguage], None]


class LocaleManager:
    def __init__(
        self,
        registry: ConfigRegistry,
        prefs: RuntimePrefs,
        group: str = DEFAULT_GROUP,
        languages: Sequence[Language] = DEFAULT_LANGUAGES,
    ) -> None:
        if not languages:
            raise ValueError("at least one supported language is required")
        self.registry = registry
        self.prefs = prefs
        self.group = group
        self.languages: List[Language] = list(languages)
        self._texts: Dict[SystemLanguage, Dict[str, str]] = {}
        self._listeners: List[LanguageListener] = []
        self._current = self.languages[0].language
        self._initialized = False

        if LanguagesConfig.__name__ not in self.registry.record_types:
            self.registry.record_types.register(LanguagesConfig)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _find_language(self, lang_key: str) -> Optional[Language]:
        for lang in self.languages:
            if lang.lang_key.lower() == lang_key.lower():
                return lang
        return None

    def init_language(self) -> None:
        if self._initialized:
            return

        self.registry.ensure_loaded(self.group)
        self._texts.clear()

        prefix = f"{LanguagesConfig.__name__}_".lower()
        for asset in self.registry.resources.load_all(self.group):
            if not asset.name.lower().startswith(prefix) or type_key_for(asset.name) != LanguagesConfig.__name__:
                continue
            try:
                records = self.registry.read_payload(asset, partial(decode_record, LanguagesConfig))
            except SheetConfigError as exc:
                logger.error("Failed to parse %s: %s", asset.name, exc)
                continue

            for record in records.values():
                if not record.langKey or not record.text:
                    logger.warning("%s has an entry with empty langKey/text, skipped", asset.name)
                    continue
                if not record.id:
                    logger.warning("%s has an entry with empty id for langKey '%s', skipped", asset.name, record.langKey)
                    continue
                lang = self._find_language(record.langKey)
                if lang is None:
                    logger.warning("Unsupported langKey '%s' in %s, skipped", record.langKey, asset.name)
                    continue
                self._texts.setdefault(lang.language, {})[record.id] = record.text

        if not self._texts:
            logger.error("LanguagesConfig is empty")
            return

        saved = self.prefs.get_int(CURRENT_LANGUAGE_KEY, 0)
        if not 0 <= saved < len(self.languages):
            saved = 0
        self._current = self.languages[saved].language

        self.registry.remove(LanguagesConfig)
        self._initialized = True

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.init_language()

    @property
    def current_language(self) -> SystemLanguage:
        self._ensure_initialized()
        return self._current

    @current_language.setter
    def current_language(self, language: SystemLanguage) -> None:
        self._ensure_initialized()
        index = next((i for i, lang in enumerate(self.languages) if lang.language == language), None)
        if index is None:
            raise ValueError(f"{language} is not a supported language")
        self._current = language
        self.prefs.set_int(CURRENT_LANGUAGE_KEY, index)
        self.prefs.save()
        for listener in list(self._listeners):
            listener(language)

    def change_language(self, language: SystemLanguage) -> None:
        self.current_language = language

    def add_listener(self, listener: LanguageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: LanguageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_text(self, key: str, language: Optional[SystemLanguage] = None) -> str:
        self._ensure_initialized()
        lang = language if language is not None else self._current
        return self._texts.get(lang, {}).get(key, key)

    def save(self) -> None:
        self.prefs.save()
