import os
import sys
from pathlib import Path
from dataclasses import dataclass

APP_NAME = "Cactus"

# Lil helper function to create missing directories if missing, and optionally error out when a path
# doesn't exist.
def ensure_directory(path: Path,must_exist=False):
    if must_exist:
        if not path.exists():
            raise FileNotFoundError(f"Required directory is missing: {path}")
        if not path.is_dir():
            raise NotADirectoryError(f"Expected a directory, got a file: {path}")
    else:
        path.mkdir(parents=True,exist_ok=True)
    return path

# Picks the per-user data folder for the current platform. CACTUS_HOME always wins, which is also how a portable
# install or a test run points the app somewhere else.
def _user_data_dir() -> Path:
    override = os.getenv("CACTUS_HOME")
    if override:
        return Path(override)
    if sys.platform.startswith("win"):
        appdata = os.getenv("APPDATA")
        if not appdata:
            raise RuntimeError("Missing APPDATA environment variable, cannot determine data directories.")
        return Path(appdata) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg = os.getenv("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_NAME.lower()

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    root: Path
    data: Path
    assets: Path

    logs: Path
    backups: Path

    @staticmethod
    def build():
        # Folder of the installed package itself, runtime assets only
        root = Path(__file__).resolve().parents[1]

        # Bundled assets are optional, everything in there has a generated fallback
        assets = root / "assets"

        # Folder for all user-specific state
        data = ensure_directory(_user_data_dir())

        # Folders within the data folder
        logs = ensure_directory(data / "logs")
        backups = ensure_directory(data / "config_backups")

        return ProjectPaths(
            root = root,
            data = data,
            assets = assets,
            logs = logs,
            backups = backups,
        )
PATHS = ProjectPaths.build()
