"""Profile storage and resolution.

A profile names one API target: its base URL, default headers and the
request settings (timeout, retry policy, cache TTL) every call made with it
starts from. Profiles live as one JSON file each under
``<config dir>/profiles/``, managed by :class:`ProfileStore`.

:func:`resolve_profile` turns the ``--profile`` / ``--base-url`` flags and
their ``APIENGINE_*`` environment counterparts into the profile an engine
is built from.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from apiengine.exceptions import ConfigError
from apiengine.models import Profile

ENV_PROFILE = "APIENGINE_PROFILE"
ENV_BASE_URL = "APIENGINE_BASE_URL"


def _uses_xdg() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def get_config_dir() -> Path:
    """Return (and create) the apiengine configuration directory.

    ``$XDG_CONFIG_HOME/apiengine`` (default ``~/.config/apiengine``) on
    Linux/BSD, ``~/.apiengine`` elsewhere.
    """
    if _uses_xdg():
        xdg_home = os.environ.get("XDG_CONFIG_HOME")
        path = (Path(xdg_home) if xdg_home else Path.home() / ".config") / "apiengine"
    else:
        path = Path.home() / ".apiengine"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, text: str) -> None:
    """Replace *path* with *text* via a sibling temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ProfileStore:
    """JSON-file-per-profile store.

    Args:
        root: Directory holding the profile files. Defaults to
            ``<config dir>/profiles``, resolved on first use so the
            environment in effect at call time decides the location.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        root = self._root if self._root is not None else get_config_dir() / "profiles"
        root.mkdir(parents=True, exist_ok=True)
        return root

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def __contains__(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def names(self) -> list[str]:
        """Stored profile names, sorted."""
        return sorted(p.stem for p in self.root.glob("*.json") if p.is_file())

    def load(self, name: str) -> Profile:
        """Read and validate a stored profile.

        Raises:
            ConfigError: If the profile is missing, is not JSON, or does
                not validate as a :class:`~apiengine.models.Profile`.
        """
        path = self.path_for(name)
        if not path.is_file():
            raise ConfigError(f"Profile '{name}' not found at {path}")
        try:
            return Profile.model_validate_json(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc

    def save(self, profile: Profile) -> Path:
        """Write *profile*, overwriting any profile of the same name."""
        path = self.path_for(profile.name)
        _atomic_write(path, json.dumps(profile.model_dump(mode="json"), indent=2) + "\n")
        return path

    def delete(self, name: str) -> None:
        """Remove a stored profile.

        Raises:
            ConfigError: If no such profile exists.
        """
        path = self.path_for(name)
        if not path.is_file():
            raise ConfigError(f"Profile '{name}' not found at {path}")
        path.unlink()


def resolve_profile(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    store: Optional[ProfileStore] = None,
) -> Optional[Profile]:
    """Pick the profile a command runs against.

    A flag beats its environment variable. A named profile is loaded from
    *store* and its base URL replaced when one was also given; a base URL
    alone yields an unsaved ``default`` profile with default request
    settings. Returns ``None`` when neither is available.

    Raises:
        ConfigError: If the named profile cannot be loaded.
    """
    name = cli_profile or os.environ.get(ENV_PROFILE) or None
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL) or None

    if name is None:
        return Profile(name="default", base_url=base_url) if base_url else None

    profile = (store or ProfileStore()).load(name)
    if base_url:
        profile = profile.model_copy(update={"base_url": base_url})
    return profile
