"""Spreadsheet-authored game configs: record-type generation, payload export, runtime registry."""

from .compiler import ExportReport
from .csv_array import parse_csv_style_array
from .errors import HeaderFormatError, RecordDecodeError, SheetConfigError
from .localization import Language, LanguagesConfig, LocaleManager, SystemLanguage
from .pipeline import generate_configs
from .prefs import RuntimePrefs, StorageMode
from .records import BaseConfig, RecordTypes, config_field, load_config_modules
from .registry import ConfigRegistry, DirectoryResources, TextAsset
from .settings import ExportSettings

__version__ = "0.1.0"
