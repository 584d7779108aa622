"""Small filesystem helpers shared by the loader and bootstrap actions."""

from __future__ import annotations

import os
import pathlib
import tempfile


def write_text_atomic(path: pathlib.Path, text: str) -> None:
    """Write *text* to *path* so readers never observe a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    tmp = pathlib.Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
