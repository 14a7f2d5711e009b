"""Loading of template assets from the bundled package data or a directory."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from svcforge.models import TemplateAsset

logger = logging.getLogger(__name__)

BUNDLED_PACKAGE = "svcforge"
BUNDLED_DIR = "templates"


def _walk(node: Traversable, prefix: str) -> Iterator[tuple[str, Traversable]]:
    for child in node.iterdir():
        stored_path = f"{prefix}{child.name}"
        if child.is_dir():
            if child.name == "__pycache__":
                continue
            yield from _walk(child, stored_path + "/")
        elif child.is_file():
            yield stored_path, child


def load_assets(template_dir: str | Path | None = None) -> list[TemplateAsset]:
    """Return every template asset, sorted by stored path.

    Stored paths are ``/``-separated and relative to the template root, e.g.
    ``v1/NAME/handlers.pytemplate``. Without ``template_dir`` the templates
    bundled with svcforge are used.
    """
    if template_dir is None:
        root: Traversable = resources.files(BUNDLED_PACKAGE).joinpath(BUNDLED_DIR)
    else:
        root = Path(template_dir)
        if not root.is_dir():
            raise FileNotFoundError(f"template directory not found: {template_dir}")

    assets = [
        TemplateAsset(stored_path=stored_path, raw_bytes=node.read_bytes())
        for stored_path, node in _walk(root, "")
    ]
    assets.sort(key=lambda a: a.stored_path)
    logger.info("Loaded %d template asset(s) from %s", len(assets), template_dir or "bundled templates")
    return assets
