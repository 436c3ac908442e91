"""Locate a Kingdom Come: Deliverance II installation (Steam first, then GOG)."""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Iterator, List, Optional

from .config import LOCALIZATION_DIR_NAME
from .errors import GamePathNotFoundError

if sys.platform == "win32":
    import winreg
else:
    winreg = None

GAME_DIR_NAME = "KingdomComeDeliverance2"

STEAM_REGISTRY_KEYS = (r"SOFTWARE\Valve\Steam", r"SOFTWARE\WOW6432Node\Valve\Steam")
GOG_REGISTRY_KEYS = (r"SOFTWARE\GOG Galaxy", r"SOFTWARE\WOW6432Node\GOG Galaxy")

VDF_PATH_RE = re.compile(r'^\s*"path"\s+"(?P<path>[^"]+)"', re.IGNORECASE)


def read_registry_value(key_path: str, value_name: str) -> Optional[str]:
    if winreg is None:
        return None
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
            value, _ = winreg.QueryValueEx(key, value_name)
    except OSError:
        return None
    return str(value) if value else None


def steam_game_dir(library: Path) -> Path:
    return library / "steamapps" / "common" / GAME_DIR_NAME


def iter_steam_libraries(steam_root: Path) -> Iterator[Path]:
    """The Steam install itself, then every library listed in libraryfolders.vdf."""
    yield steam_root
    vdf_path = steam_root / "steamapps" / "libraryfolders.vdf"
    try:
        content = vdf_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return
    for line in content.splitlines():
        match = VDF_PATH_RE.match(line)
        if match:
            yield Path(match.group("path").replace("\\\\", "\\"))


def find_steam_installation() -> Optional[Path]:
    for key_path in STEAM_REGISTRY_KEYS:
        install_path = read_registry_value(key_path, "InstallPath")
        if not install_path:
            continue
        for library in iter_steam_libraries(Path(install_path)):
            candidate = steam_game_dir(library)
            if candidate.exists():
                return candidate
    return None


def gog_candidates() -> List[Path]:
    candidates: List[Path] = []
    for key_path in GOG_REGISTRY_KEYS:
        galaxy_path = read_registry_value(key_path, "path")
        if galaxy_path:
            candidates.append(Path(galaxy_path).parent / "Games" / GAME_DIR_NAME)
    candidates.extend(
        [
            Path(r"C:\GOG Games") / GAME_DIR_NAME,
            Path(r"D:\GOG Games") / GAME_DIR_NAME,
            Path.home() / "GOG Games" / GAME_DIR_NAME,
        ]
    )
    return candidates


def find_gog_installation() -> Optional[Path]:
    for candidate in gog_candidates():
        if (candidate / "Data").is_dir():
            return candidate
    return None


def find_game_path() -> Path:
    for label, finder in (("Steam", find_steam_installation), ("GOG", find_gog_installation)):
        path = finder()
        if path is not None:
            logging.info("Found %s installation at %s", label, path)
            return path
    raise GamePathNotFoundError(f"{GAME_DIR_NAME} installation not found in Steam or GOG")


def validate_game_path(path: Path) -> Path:
    if not (path / LOCALIZATION_DIR_NAME).is_dir():
        raise GamePathNotFoundError(f"No {LOCALIZATION_DIR_NAME} directory under {path}")
    return path
