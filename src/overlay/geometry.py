"""
Preview geometry: fitting capture frames into the view.

The preview keeps the frame's aspect ratio and centers it inside the view,
padding the remaining bars (aspect-fit). Normalized observation boxes are
converted to view coordinates through the same fit so overlays line up
with the picture.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from models.geometry import NormalizedRect, Rect


@dataclass(frozen=True)
class PreviewGeometry:
    frame_size: Tuple[int, int]
    view_size: Tuple[int, int]

    @property
    def scale(self) -> float:
        fw, fh = self.frame_size
        vw, vh = self.view_size
        return min(vw / fw, vh / fh)

    @property
    def content_rect(self) -> Rect:
        """Where the frame lands inside the view."""
        fw, fh = self.frame_size
        vw, vh = self.view_size
        cw = fw * self.scale
        ch = fh * self.scale
        return Rect(x=(vw - cw) / 2.0, y=(vh - ch) / 2.0, width=cw, height=ch)

    def layer_rect(self, box: NormalizedRect) -> Rect:
        """Convert a normalized capture box to view coordinates."""
        content = self.content_rect
        return Rect(
            x=content.x + box.x * content.width,
            y=content.y + box.y * content.height,
            width=box.width * content.width,
            height=box.height * content.height,
        )

    def fit_frame(self, image: np.ndarray) -> np.ndarray:
        """Resize a frame into a view-sized canvas with black bars."""
        vw, vh = self.view_size
        content = self.content_rect
        cw = max(1, int(round(content.width)))
        ch = max(1, int(round(content.height)))
        if (cw, ch) == (vw, vh) and image.shape[1] == vw and image.shape[0] == vh:
            return image.copy()

        canvas = np.zeros((vh, vw) + image.shape[2:], dtype=image.dtype)
        resized = cv2.resize(image, (cw, ch), interpolation=cv2.INTER_AREA)
        x = int(round(content.x))
        y = int(round(content.y))
        canvas[y:y + ch, x:x + cw] = resized[: vh - y, : vw - x]
        return canvas
