# Path module: locations of bundled resources
#
# Main constants:
#   - PACKAGE_DIR: the installed plugin_compat package
#   - DATA_DIR: bundled data files
#   - DEFAULT_CATALOG_FILE: the plugin catalog used when no override is given

import sys
from pathlib import Path


def get_package_dir() -> Path:
    """Return the plugin_compat package directory"""
    # PyInstaller onefile: data is unpacked under _MEIPASS
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS) / "plugin_compat"

    return Path(__file__).resolve().parents[1]


PACKAGE_DIR = get_package_dir()
DATA_DIR = PACKAGE_DIR / "data"
DEFAULT_CATALOG_FILE = DATA_DIR / "catalog.json"
