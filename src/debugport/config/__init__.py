"""Configuration management for debugport.

Static settings come from YAML plus environment overrides; the live
listen port comes from the preference store and is observed through
``ConfigWatcher``.
"""

from debugport.config.settings import Settings, load_settings
from debugport.config.store import PreferenceStore, Preferences
from debugport.config.watcher import ConfigWatcher

__all__ = ["ConfigWatcher", "PreferenceStore", "Preferences", "Settings", "load_settings"]
