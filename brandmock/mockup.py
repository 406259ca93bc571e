"""Logo-on-template mockup generation.

A mockup is the customer's logo pasted, centered, onto a background template
picked at random from the templates directory. Generation is best-effort:
`generate_mockup` never raises, it returns a `MockupResult` and the caller
decides whether to go on without a mockup.
"""
from __future__ import annotations

import asyncio
import logging
import os
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from PIL import Image

from .helpers import Clock, unique_filename

log = logging.getLogger(__name__)

OK = "ok"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class MockupResult:
    status: str  # ok | skipped | failed
    filename: Optional[str] = None
    template: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def list_templates(templates_dir: str) -> List[str]:
    if not os.path.isdir(templates_dir):
        return []
    return sorted(
        name for name in os.listdir(templates_dir)
        if not name.startswith(".")
        and os.path.isfile(os.path.join(templates_dir, name))
    )


def choose_template(templates: Sequence[str],
                    rng: random.Random) -> Optional[str]:
    if not templates:
        return None
    return rng.choice(templates)


def composite_centered(template_path: str, logo_path: str,
                       out_path: str) -> None:
    """Paste the logo onto the center of the template and save as PNG."""
    with Image.open(template_path) as base, Image.open(logo_path) as logo:
        if logo.width > base.width or logo.height > base.height:
            raise ValueError(
                f"logo {logo.width}x{logo.height} does not fit template "
                f"{base.width}x{base.height}"
            )
        canvas = base.convert("RGBA")
        overlay = logo.convert("RGBA")
        x = (canvas.width - overlay.width) // 2
        y = (canvas.height - overlay.height) // 2
        canvas.alpha_composite(overlay, dest=(x, y))
        canvas.save(out_path, format="PNG")


async def generate_mockup(logo_filename: str, uploads_dir: str,
                          templates_dir: str, clock: Clock,
                          rng: random.Random) -> MockupResult:
    try:
        templates = list_templates(templates_dir)
    except OSError as e:
        return MockupResult(FAILED, reason=f"cannot list templates: {e}")

    template = choose_template(templates, rng)
    if template is None:
        return MockupResult(SKIPPED, reason="no templates")

    filename = unique_filename("mockup.png", clock, rng, prefix="mockup-")
    out_path = os.path.join(uploads_dir, filename)
    try:
        await asyncio.to_thread(
            composite_centered,
            os.path.join(templates_dir, template),
            os.path.join(uploads_dir, logo_filename),
            out_path,
        )
    except Exception as e:
        # PIL raises a wide range of errors for bad input
        if os.path.exists(out_path):
            os.remove(out_path)
        return MockupResult(FAILED, template=template,
                            reason=f"{type(e).__name__}: {e}")
    return MockupResult(OK, filename=filename, template=template)
