from typing import Any
import json
import os
from pydantic import BaseModel, Field, PositiveInt, ValidationError
from loguru import logger
from .events import Signal

# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = True
    application_name: str = "App Host"
    log_dir: str = "logs"

class WindowSettings(BaseModel):
    min_width: PositiveInt = 200
    min_height: PositiveInt = 120
    save_debounce_ms: int = Field(default=1000, ge=0)
    state_file: str = "window_state.json"
    slot_key: str = "windowstate"

class LifecycleSettings(BaseModel):
    # When False, a failed start phase suppresses the on_ready fan-out.
    notify_ready_after_start_failure: bool = False

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    window: WindowSettings = Field(default_factory=WindowSettings)
    lifecycle: LifecycleSettings = Field(default_factory=LifecycleSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.
    """
    def __init__(self, filepath: str = "config.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if not hasattr(section_obj, key):
             raise ValueError(f"Invalid key: {key} in section {section}")

        # Re-validate the whole section so constraints (PositiveInt etc.) apply
        candidate = section_obj.model_dump()
        candidate[key] = value
        validated = type(section_obj).model_validate(candidate)
        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if self.filepath.endswith('.toml'):
            # TOML configs are read-only; tomllib has no writer
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
