"""
Default configuration values for todo-tree.

Centralized defaults that can be overridden by environment variables or the
project config file.
"""

from typing import Any, Dict

DEFAULT_SETTINGS = {
    # Matching
    "scan": {
        "regex": "($TAGS)",
        "tags": ["TODO", "FIXME"],
        "globs": [],
        "timeout_seconds": 120.0
    },

    # Scanner executable; None means search bundled locations and PATH
    "ripgrep": None,

    # Scope; None means the active workspace
    "root_folder": None,

    # Presentation
    "view": {
        "flat": False
    }
}

# Project configuration file, relative to the project root
CONFIG_DIR_NAME = ".todo-tree"
CONFIG_FILE_NAME = "config.json"

# Environment variable mappings (flat ScanConfig field names)
ENV_VAR_MAPPING = {
    'TODO_TREE_REGEX': 'regex',
    'TODO_TREE_TAGS': 'tags',
    'TODO_TREE_GLOBS': 'globs',
    'TODO_TREE_RIPGREP': 'ripgrep',
    'TODO_TREE_ROOT_FOLDER': 'root_folder',
    'TODO_TREE_FLAT': 'flat',
    'TODO_TREE_TIMEOUT': 'timeout_seconds'
}

# Fields whose environment values are comma-separated lists
LIST_FIELDS = {'tags', 'globs'}

# Fields whose environment values are taken verbatim
STRING_FIELDS = {'regex', 'ripgrep', 'root_folder'}


def get_default_scan_config() -> Dict[str, Any]:
    """Get default scan configuration as ScanConfig keyword arguments"""
    return {
        'regex': DEFAULT_SETTINGS['scan']['regex'],
        'tags': list(DEFAULT_SETTINGS['scan']['tags']),
        'globs': list(DEFAULT_SETTINGS['scan']['globs']),
        'timeout_seconds': DEFAULT_SETTINGS['scan']['timeout_seconds'],
        'ripgrep': DEFAULT_SETTINGS['ripgrep'],
        'root_folder': DEFAULT_SETTINGS['root_folder'],
        'flat': DEFAULT_SETTINGS['view']['flat']
    }
