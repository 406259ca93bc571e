import logging
import os
import random
import shutil
from typing import Optional

from fastapi import UploadFile

from .helpers import Clock, unique_filename

log = logging.getLogger(__name__)


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        os.makedirs(d, exist_ok=True)


def has_file(upload: Optional[UploadFile]) -> bool:
    # browsers send an empty part when no file was picked
    return upload is not None and bool(upload.filename)


def store_upload(upload: Optional[UploadFile], uploads_dir: str,
                 clock: Clock, rng: random.Random) -> Optional[str]:
    """Copy the uploaded file into `uploads_dir`.

    Returns the stored filename (relative to `uploads_dir`), or None if no
    file was submitted. Content is not inspected.
    """
    if not has_file(upload):
        return None
    filename = unique_filename(upload.filename, clock, rng)
    dest = os.path.join(uploads_dir, filename)
    upload.file.seek(0)
    with open(dest, "wb") as f:
        shutil.copyfileobj(upload.file, f)
    log.info("stored upload %r as %s", upload.filename, filename)
    return filename


def discard_uploads(uploads_dir: str, *filenames: Optional[str]) -> None:
    for name in filenames:
        if not name:
            continue
        try:
            os.remove(os.path.join(uploads_dir, name))
        except FileNotFoundError:
            pass
        else:
            log.info("removed unreferenced upload %s", name)
