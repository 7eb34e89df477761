"""Message catalogs for user-facing API text (Turkish by default, English)."""
import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from therapy_site.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"


def _lookup(catalog: Dict[str, Any], key: str) -> Optional[str]:
    value: Any = catalog
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, str) else None


class I18n:
    """Dotted-key lookup ("error.invalid_login") with fallback to the default locale"""

    def __init__(self, default_locale: str, supported: Iterable[str], locales_dir: Path = LOCALES_DIR):
        self.default_locale = default_locale
        self.catalogs: Dict[str, Dict[str, Any]] = {}
        for code in supported:
            path = locales_dir / f"{code}.json"
            try:
                with path.open("r", encoding="utf-8") as f:
                    self.catalogs[code] = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading locale {code} from {path}: {e}")

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Translated message; unknown keys come back unchanged"""
        for code in (locale, self.default_locale):
            if not code:
                continue
            message = _lookup(self.catalogs.get(code, {}), key)
            if message is None:
                continue
            try:
                return message.format(**kwargs)
            except (KeyError, IndexError):
                return message
        return key

    def translator(self, locale: Optional[str]) -> Callable[..., str]:
        return functools.partial(self.get, locale=locale)


i18n = I18n(config.i18n.default_locale, config.i18n.supported_locales)
