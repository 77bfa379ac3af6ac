"""
ui/types.py
===========
Lightweight type aliases used across every UI module.
"""

from __future__ import annotations

from typing import Tuple

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]
