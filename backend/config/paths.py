"""
Centralized path configuration for backend resources and runtime data.

Responsibilities:
- Decide dev vs frozen (PyInstaller) mode.
- Locate the bundled DLS marker dataset.
- Provide a stable, writable root for logs.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

DLS_DATASET_FILENAME = "coordinates.gz"


def is_frozen() -> bool:
    """Detect if we are running inside a PyInstaller bundle."""
    return getattr(sys, "frozen", False) is True


def backend_root() -> Path:
    """
    Backend source root (the 'backend' directory in the repo).
    In frozen mode this resolves under the PyInstaller extraction dir, so it should
    only be used for read-only bundled resources.
    """
    if is_frozen():
        # One-file builds unpack modules and data under sys._MEIPASS/backend
        base = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parents[1]))
        return base / "backend"

    # Dev / non-frozen: backend/config/paths.py -> backend/config -> backend
    return Path(__file__).resolve().parents[1]


def app_data_root() -> Path:
    """
    Writable per-user root used in frozen mode.
    Windows: LOCALAPPDATA\\DlsGrid\\Data, elsewhere ~/.local/share/DlsGrid/Data.
    """
    local_appdata = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~/.local/share")
    root = Path(local_appdata) / "DlsGrid" / "Data"
    root.mkdir(parents=True, exist_ok=True)
    return root


# ----- DLS resources -----

def dls_data_root() -> Path:
    """Directory holding the bundled DLS resources (read-only)."""
    return backend_root() / "data" / "dls"


def dls_dataset_path() -> Path:
    """
    Marker dataset location.
    DLS_DATASET_PATH overrides the bundled resource, e.g. for a newer survey extract.
    """
    override = os.getenv("DLS_DATASET_PATH")
    if override:
        return Path(override).expanduser()
    return dls_data_root() / DLS_DATASET_FILENAME


# ----- Logs -----

def logs_root() -> Path:
    """
    Root for log files.
    - Dev: backend/logs.
    - Frozen: <app data>/logs.
    """
    if is_frozen():
        return app_data_root() / "logs"
    return backend_root() / "logs"
