"""JSON export and import of console entities."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from mediation import config

logger = logging.getLogger(__name__)


def _safe_filename(name: str) -> str:
    cleaned = "".join("_" if c in '/\\:*?"<>|' else c for c in name).strip()
    return cleaned or "export"


def export_entity(entity: BaseModel | dict[str, Any], directory: str | Path | None = None) -> Path:
    """Write ``entity`` to ``<name>.json`` (indented by 2) and return the path."""
    data = entity.model_dump(mode="json") if isinstance(entity, BaseModel) else entity
    target_dir = Path(directory or config.EXPORT_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)

    path = target_dir / f"{_safe_filename(str(data.get('name', 'export')))}.json"
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Exported '{data.get('name')}' to {path}")
    return path


def load_export(path: str | Path) -> dict[str, Any]:
    """Read an exported document.

    Raises:
        ValueError: The file is not a JSON object
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data
