import copy
import json
from cactus.common.logger import log
from cactus.common.setup import PATHS
from cactus.core.backup import maybe_backup_daily

#region === Helpers and Paths ===

DATA_PATH = PATHS.data / "balance.json"
BACKUP_DIR = PATHS.backups

THEME_NAMES = ("pink", "green", "neutral", "blue", "purple", "orange")

# Default values for the settings section of the document. Loading merges these in key by key (durations too), so
# settings added in later versions just show up with their default.
_SETTINGS_DEFAULTS = {
    "theme": "neutral",
    "durations": {
        "work_minutes": 30,
        "break_minutes": 3,
    },
    "sound_volume": 100,
}
_TIMER_DEFAULTS = {
    "running": False,
    "is_break": False,
    "remaining_seconds": 0,
    "end_ts": 0,
    "initial_seconds": 0,
}

def default_settings():
    return copy.deepcopy(_SETTINGS_DEFAULTS)

# Helper to return a truly fresh, default document.
def build_default_data():
    return {
        "settings": default_settings(),
        "state": {
            "timer": dict(_TIMER_DEFAULTS),
            "last_ended": None,
        },
    }

def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)

# Returns a new settings dict with `partial` laid over `current`. Nested durations merge key by key, so a partial
# {"durations": {"break_minutes": 5}} keeps the work duration.
def merge_settings(current, partial):
    merged = copy.deepcopy(current)
    for key, value in (partial or {}).items():
        if key == "durations" and isinstance(value, dict):
            merged.setdefault("durations", {}).update(value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged

# Fills in and sanity checks settings in place, returning the dotted names of everything that had to be defaulted.
def normalize_settings(settings):
    defaulted = set()
    for key, default in _SETTINGS_DEFAULTS.items():
        if key not in settings:
            defaulted.add(f"settings.{key}")
            settings[key] = copy.deepcopy(default)

    if not isinstance(settings["durations"], dict):
        defaulted.add("settings.durations")
        settings["durations"] = dict(_SETTINGS_DEFAULTS["durations"])
    durations = settings["durations"]
    for key, default in _SETTINGS_DEFAULTS["durations"].items():
        if key not in durations or not _is_number(durations[key]) or durations[key] <= 0:
            defaulted.add(f"settings.durations.{key}")
            durations[key] = default

    volume = settings["sound_volume"]
    if not _is_number(volume) or not 0 <= volume <= 100:
        defaulted.add("settings.sound_volume")
        settings["sound_volume"] = _SETTINGS_DEFAULTS["sound_volume"]
    if settings["theme"] not in THEME_NAMES:
        defaulted.add("settings.theme")
        settings["theme"] = _SETTINGS_DEFAULTS["theme"]
    return defaulted

#endregion === Helpers and Paths ===

#region === Saving and Loading ===

# Loads {settings, state} from DATA_PATH. A missing file gets the defaults written out right away. A broken file
# falls back to defaults (left on disk untouched until the next save), partial files get their gaps defaulted.
def load_data():
    if not DATA_PATH.exists():
        data = build_default_data()
        log.info(f"No existing data file at '{DATA_PATH}', writing fresh defaults.")
        save_data(data)
        return data

    try:
        with open(DATA_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
    except (FileNotFoundError, json.JSONDecodeError, OSError, TypeError, UnicodeDecodeError):
        log.warning(f"Ran into an error while trying to load '{DATA_PATH}', falling back to defaults.", exc_info=True)
        return build_default_data()

    defaulted_values = set()

    # Validate the settings dict, fill in any necessary defaults
    if "settings" not in data or not isinstance(data["settings"], dict):
        defaulted_values.add("settings")
        data["settings"] = default_settings()
    defaulted_values |= normalize_settings(data["settings"])

    # Validate the state dict and its timer
    if "state" not in data or not isinstance(data["state"], dict):
        defaulted_values.add("state")
        data["state"] = build_default_data()["state"]
    state = data["state"]
    if "timer" not in state or not isinstance(state["timer"], dict):
        defaulted_values.add("state.timer")
        state["timer"] = dict(_TIMER_DEFAULTS)
    for key, default in _TIMER_DEFAULTS.items():
        if key not in state["timer"]:
            defaulted_values.add(f"state.timer.{key}")
            state["timer"][key] = default
    if "last_ended" not in state:
        state["last_ended"] = None

    if defaulted_values:
        log.warning(f"Loaded '{DATA_PATH}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
    else:
        log.info(f"Successfully loaded '{DATA_PATH}'.")
    return data

# Writes the document to DATA_PATH, then takes the daily backup. Returns whether the write worked. Failures are
# logged and swallowed, the in-memory state stays authoritative until a later save goes through.
def save_data(data) -> bool:
    try:
        DATA_PATH.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data, indent=2)
        with open(DATA_PATH, "w", encoding="utf-8") as f:
            f.write(payload)
    except (OSError, TypeError, ValueError):
        log.exception(f"Failed to save data to '{DATA_PATH}'")
        return False
    log.debug(f"Saved data to '{DATA_PATH}'")
    maybe_backup_daily(DATA_PATH, BACKUP_DIR)
    return True

#endregion === Saving and Loading ===
