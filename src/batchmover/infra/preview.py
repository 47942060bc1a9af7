from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import numpy as np
import trimesh
from PIL import Image, ImageDraw, ImageOps


KIND_IMAGE = "image"
KIND_MESH = "mesh"

# Powder blue background and mesh colour of the original 3D viewer
MESH_BACKGROUND = (176, 224, 230)
MESH_COLOR = np.array([0, 170, 255], dtype=float)

_LIGHT_DIR = np.array([0.4, 0.6, 0.7])
_LIGHT_DIR = _LIGHT_DIR / np.linalg.norm(_LIGHT_DIR)


@dataclass
class PreviewResult:
    kind: Optional[str]
    image: Optional[Image.Image] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.image is not None


def _isometric_rotation() -> np.ndarray:
    a = np.radians(45.0)
    b = np.arctan(1.0 / np.sqrt(2.0))  # ~35.26 deg
    ry = np.array([[np.cos(a), 0.0, np.sin(a)], [0.0, 1.0, 0.0], [-np.sin(a), 0.0, np.cos(a)]])
    rx = np.array([[1.0, 0.0, 0.0], [0.0, np.cos(b), -np.sin(b)], [0.0, np.sin(b), np.cos(b)]])
    return rx @ ry


class PreviewRenderer:
    """Turns image and mesh files into PIL images for display.

    Never raises for a bad file: failures are logged and returned as a result
    without image, so a broken preview cannot take the window down.
    """

    def __init__(
        self,
        *,
        image_exts: Iterable[str],
        mesh_exts: Iterable[str],
        size: int = 400,
        log: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.image_exts = {e.lower().lstrip(".") for e in image_exts}
        self.mesh_exts = {e.lower().lstrip(".") for e in mesh_exts}
        self.size = max(16, int(size))
        self._log = log

    def kind_for(self, extension: str) -> Optional[str]:
        ext = (extension or "").lower().lstrip(".")
        if ext in self.image_exts:
            return KIND_IMAGE
        if ext in self.mesh_exts:
            return KIND_MESH
        return None

    def render(self, path: str, extension: str) -> PreviewResult:
        kind = self.kind_for(extension)
        if kind is None:
            return PreviewResult(kind=None, message="unsupported")

        try:
            if kind == KIND_IMAGE:
                img = self._render_image(path)
            else:
                img = self._render_mesh(path)
        except Exception as exc:  # noqa: BLE001
            msg = f"{type(exc).__name__}: {exc}"
            if self._log is not None:
                self._log(f"[local] preview failed for {path}: {msg}")
            return PreviewResult(kind=kind, message=msg)
        return PreviewResult(kind=kind, image=img)

    def _render_image(self, path: str) -> Image.Image:
        with Image.open(path) as im:
            im = ImageOps.exif_transpose(im)
            if im.mode not in ("RGB", "RGBA"):
                im = im.convert("RGBA")
            return ImageOps.contain(im, (self.size, self.size))

    def _render_mesh(self, path: str) -> Image.Image:
        # force="mesh" concatenates scenes into one Trimesh
        mesh = trimesh.load(path, force="mesh")
        if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
            raise ValueError("file contains no triangle mesh")
        return render_mesh_image(np.asarray(mesh.vertices), np.asarray(mesh.faces), self.size)


def render_mesh_image(vertices: np.ndarray, faces: np.ndarray, size: int) -> Image.Image:
    """Isometric, Lambert-shaded rendering of a triangle mesh, centred on its bounding box."""

    img = Image.new("RGB", (size, size), color=MESH_BACKGROUND)
    if len(vertices) == 0 or len(faces) == 0:
        return img

    faces = faces[:, :3]
    lo = vertices.min(axis=0)
    hi = vertices.max(axis=0)
    center = (lo + hi) / 2.0
    extent = float(np.max(hi - lo))
    if extent <= 0:
        return img

    rot = _isometric_rotation()
    view = (vertices - center) @ rot.T
    scale = size * 0.6 / extent
    xs = view[:, 0] * scale + size / 2.0
    ys = size / 2.0 - view[:, 1] * scale

    tris = view[faces]
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    lengths = np.linalg.norm(normals, axis=1)
    lengths[lengths == 0] = 1.0
    normals = normals / lengths[:, None]
    # Two-sided lighting: STL winding is not reliable
    intensity = np.clip(np.abs(normals @ _LIGHT_DIR), 0.2, 1.0)
    colors = (intensity[:, None] * MESH_COLOR).astype(np.uint8)

    # Painter's algorithm: far faces (small z) first
    order = np.argsort(tris[:, :, 2].mean(axis=1))

    draw = ImageDraw.Draw(img)
    for i in order:
        a, b, c = faces[i]
        draw.polygon(
            [(float(xs[v]), float(ys[v])) for v in (a, b, c)],
            fill=tuple(int(v) for v in colors[i]),
        )
    return img
