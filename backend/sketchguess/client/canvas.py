"""Raster canvas rebuilt by replaying a round's stroke log.

Pixels start fully transparent. A normal stroke paints opaque color
(source-over with an opaque source); an eraser stroke removes pixels back
to transparent (destination-out), so erasing never paints the background.
The result depends only on the ordered stroke list.
"""

import hashlib
from typing import Iterable, Tuple

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
TRANSPARENT = (0, 0, 0, 0)


def parse_color(value: str) -> Tuple[int, int, int]:
    value = (value or '#000000').lstrip('#')
    if len(value) != 6:
        raise ValueError(f'expected #RRGGBB, got {value!r}')
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def _brush(width: int):
    radius = max(0.5, width / 2.0)
    reach = int(radius)
    return [
        (dx, dy)
        for dy in range(-reach, reach + 1)
        for dx in range(-reach, reach + 1)
        if dx * dx + dy * dy <= radius * radius
    ]


def _path_centers(points):
    """Integer pixel centers along the polyline, one per pixel step."""
    centers = []
    seen = set()
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        steps = max(1, int(max(abs(x1 - x0), abs(y1 - y0)) + 0.5))
        for i in range(steps + 1):
            t = i / steps
            c = (int(round(x0 + (x1 - x0) * t)), int(round(y0 + (y1 - y0) * t)))
            if c not in seen:
                seen.add(c)
                centers.append(c)
    return centers


def _stroke_fields(stroke):
    if isinstance(stroke, dict):
        return stroke.get('points') or [], stroke.get('color'), stroke.get('width', 5), stroke.get('is_eraser', False)
    return stroke.point_list, stroke.color, stroke.width, stroke.is_eraser


class Canvas:
    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT):
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height * 4)

    def clear(self) -> None:
        self._pixels = bytearray(self.width * self.height * 4)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        i = (y * self.width + x) * 4
        return tuple(self._pixels[i:i + 4])

    def draw_stroke(self, points, color='#000000', width=5, is_eraser=False) -> None:
        points = [(float(p[0]), float(p[1])) for p in points]
        if len(points) < 2:
            return
        rgba = TRANSPARENT if is_eraser else parse_color(color) + (255,)
        value = bytes(rgba)
        brush = _brush(int(width))
        w, h, px = self.width, self.height, self._pixels
        for cx, cy in _path_centers(points):
            for dx, dy in brush:
                x, y = cx + dx, cy + dy
                if 0 <= x < w and 0 <= y < h:
                    i = (y * w + x) * 4
                    px[i:i + 4] = value

    def replay(self, strokes: Iterable) -> 'Canvas':
        """Clear, then apply every stroke in the given (creation) order."""
        self.clear()
        for stroke in strokes:
            points, color, width, is_eraser = _stroke_fields(stroke)
            self.draw_stroke(points, color=color, width=width, is_eraser=is_eraser)
        return self

    def fingerprint(self) -> str:
        return hashlib.sha256(bytes(self._pixels)).hexdigest()

    def flatten(self, background=(255, 255, 255)) -> bytes:
        """RGB bytes with transparent pixels showing ``background``."""
        out = bytearray(self.width * self.height * 3)
        px = self._pixels
        for n in range(self.width * self.height):
            i = n * 4
            o = n * 3
            if px[i + 3]:
                out[o:o + 3] = px[i:i + 3]
            else:
                out[o:o + 3] = bytes(background)
        return bytes(out)
