"""
Utility functions for color parsing and small math helpers
"""

import math
from typing import Tuple, Union

from ..errors import InvalidConfiguration

ColorLike = Union[str, Tuple[int, int, int]]


class ColorUtils:
    """Color parsing and conversion utilities"""

    NAMED_COLORS = {
        'black': (0, 0, 0),
        'white': (255, 255, 255),
        'red': (255, 0, 0),
        'green': (0, 255, 0),
        'blue': (0, 0, 255),
        'indigo': (99, 102, 241),
    }

    @staticmethod
    def hex_to_rgb(value: str) -> Tuple[int, int, int]:
        """Convert '#rrggbb' or '#rgb' to an RGB tuple (0-255)"""
        digits = value.strip().lstrip('#')
        if len(digits) == 3:
            digits = ''.join(c * 2 for c in digits)
        if len(digits) != 6:
            raise InvalidConfiguration(f"Invalid hex color: {value!r}")
        try:
            return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        except ValueError:
            raise InvalidConfiguration(f"Invalid hex color: {value!r}") from None

    @staticmethod
    def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
        """Convert an RGB tuple to '#rrggbb'"""
        return '#{:02x}{:02x}{:02x}'.format(*(int(c) for c in rgb[:3]))

    @classmethod
    def parse(cls, color: ColorLike) -> Tuple[int, int, int]:
        """
        Parse a color given as hex string, named color, 'R,G,B' string
        or an RGB(A) tuple. Alpha is dropped.
        """
        if isinstance(color, str):
            text = color.strip().lower()
            if text in cls.NAMED_COLORS:
                return cls.NAMED_COLORS[text]
            if ',' in text:
                try:
                    parts = tuple(int(c) for c in text.split(','))
                except ValueError:
                    raise InvalidConfiguration(f"Invalid color: {color!r}") from None
                return cls.parse(parts)
            return cls.hex_to_rgb(text)

        if len(color) < 3:
            raise InvalidConfiguration(f"Invalid color: {color!r}")
        rgb = tuple(int(c) for c in color[:3])
        if any(c < 0 or c > 255 for c in rgb):
            raise InvalidConfiguration(f"Color channels must be 0-255: {color!r}")
        return rgb


class MathUtils:
    """Math utilities for 2D geometry"""

    @staticmethod
    def clamp(value: float, min_val: float, max_val: float) -> float:
        """Clamp value between min and max"""
        return max(min_val, min(max_val, value))

    @staticmethod
    def angle_to_vector(degrees: float) -> Tuple[float, float]:
        """Unit vector for an angle in degrees (0 = right, 90 = down in image space)"""
        rad = math.radians(degrees)
        return (math.cos(rad), math.sin(rad))

    @staticmethod
    def distance_sq(a: Tuple[float, float], b: Tuple[float, float]) -> float:
        """Squared Euclidean distance"""
        dx = a[0] - b[0]
        dy = a[1] - b[1]
        return dx * dx + dy * dy
