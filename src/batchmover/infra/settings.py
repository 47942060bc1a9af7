from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
from pathlib import Path
from typing import Any, Dict, List

from platformdirs import user_config_dir


APP_NAME = "BatchFileMover"

DEFAULT_IMAGE_EXTS = ["jpg", "jpeg", "png", "gif", "bmp", "webp"]
DEFAULT_MESH_EXTS = ["stl", "obj", "ply", "off", "glb"]


def _config_path() -> Path:
    base = Path(user_config_dir(APP_NAME))
    base.mkdir(parents=True, exist_ok=True)
    return base / "settings.json"


@dataclass
class AppSettings:
    # clear_on_full_success | clear_completed | keep | prune_succeeded
    after_apply: str = "clear_on_full_success"
    no_overwrite: bool = True

    image_exts: List[str] = field(default_factory=lambda: list(DEFAULT_IMAGE_EXTS))
    mesh_exts: List[str] = field(default_factory=lambda: list(DEFAULT_MESH_EXTS))
    preview_size: int = 400

    last_destination: str = ""
    window_geometry: str = "900x700"


def _norm_exts(values: Any, default: List[str]) -> List[str]:
    if not isinstance(values, list):
        return list(default)
    return [str(v).lower().lstrip(".") for v in values if str(v).strip()]


def load_settings() -> AppSettings:
    path = _config_path()
    if not path.exists():
        s = AppSettings()
        save_settings(s)
        return s

    data = json.loads(path.read_text(encoding="utf-8"))
    defaults = AppSettings()

    return AppSettings(
        after_apply=str(data.get("after_apply", defaults.after_apply)),
        no_overwrite=bool(data.get("no_overwrite", defaults.no_overwrite)),
        image_exts=_norm_exts(data.get("image_exts"), DEFAULT_IMAGE_EXTS),
        mesh_exts=_norm_exts(data.get("mesh_exts"), DEFAULT_MESH_EXTS),
        preview_size=int(data.get("preview_size", defaults.preview_size)),
        last_destination=str(data.get("last_destination", "")),
        window_geometry=str(data.get("window_geometry", defaults.window_geometry)),
    )


def save_settings(settings: AppSettings) -> None:
    path = _config_path()
    payload: Dict[str, Any] = asdict(settings)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
