"""
File functions.
"""

import os
import pathlib


def create_directories(filename: str) -> None:
    """Creates the directories for a given filename."""
    directory = os.path.dirname(filename)
    if directory and not os.path.exists(directory):
        pathlib.Path(directory).mkdir(parents=True, exist_ok=True)
