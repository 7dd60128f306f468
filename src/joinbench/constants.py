"""Constants for the joinbench harness."""

from __future__ import annotations

import re

from joinbench.models import DatasetSize, Priority, Status


def parse_size_labels(raw: str) -> list[str]:
    """Parse a comma-separated list of size labels.

    Examples:
        "small,large"        -> ["small", "large"]
        "Small, Very Large"  -> ["Small", "Very Large"]
        ""                   -> []
    """
    return [lbl.strip() for lbl in re.split(r",", raw) if lbl.strip()]


# Config filename, looked up in the working directory
CONFIG_FILENAME = ".joinbench.toml"

# Default number of measured iterations per dataset size
DEFAULT_ITERATIONS = 5

# Fixed pool that owner/assignee/author references cycle through
USERS = ["user1", "user2", "user3", "user4", "user5"]

# Issue attributes cycle through these in declaration order
STATUSES = list(Status)
PRIORITIES = list(Priority)

# Collection auto-index modes
AUTO_INDEX_OFF = "off"
AUTO_INDEX_EAGER = "eager"
AUTO_INDEX_MODES = (AUTO_INDEX_OFF, AUTO_INDEX_EAGER)

SIZE_PRESETS = [
    DatasetSize("Small", 10, 50, 200),
    DatasetSize("Medium", 50, 250, 1000),
    DatasetSize("Large", 100, 500, 2000),
    DatasetSize("Very Large", 200, 1000, 5000),
]


def find_size_preset(label: str) -> DatasetSize:
    """Look up a size preset by label (case-insensitive, '-'/'_' match spaces)."""
    wanted = label.strip().lower().replace("-", " ").replace("_", " ")
    for size in SIZE_PRESETS:
        if size.label.lower() == wanted:
            return size
    names = ", ".join(s.label for s in SIZE_PRESETS)
    msg = f"Unknown dataset size '{label}'. Choose from: {names}"
    raise ValueError(msg)
