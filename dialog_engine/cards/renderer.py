"""
Card Rendering

render_attachment() turns a card kind plus plain data into an Attachment a
step can send. The engine never calls this; steps do.

Each kind is a Jinja2 template producing the card's JSON, in
templates/<kind>.json.jinja2. Values are inserted with the 'tojson' filter,
so any text is safe to pass in.

Card data keys (all optional):
    title, subtitle, text: strings
    images: [{"url": ..., "alt": ...}]
    buttons: [{"title": ..., "value": ...}]  (postback buttons / submit actions)
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..domain.models import Attachment
from .templates import Template

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

CONTENT_TYPES = {
    Template.HERO: "application/vnd.microsoft.card.hero",
    Template.THUMBNAIL: "application/vnd.microsoft.card.thumbnail",
    Template.ADAPTIVE: "application/vnd.microsoft.card.adaptive",
}

_DEFAULTS: Dict[str, Any] = {
    "title": None,
    "subtitle": None,
    "text": None,
    "images": [],
    "buttons": [],
}


def _template_file(kind: str) -> str:
    return f"{kind}.json.jinja2"


def _check_templates():
    """Every card kind needs a template file. Fails fast at import."""
    missing = [kind for kind in CONTENT_TYPES if not (TEMPLATES_DIR / _template_file(kind)).exists()]
    if missing:
        raise FileNotFoundError(f"Card templates missing in {TEMPLATES_DIR}: {missing}")


_check_templates()


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # Templates emit JSON, not HTML
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_attachment(kind: str, data: Dict[str, Any]) -> Attachment:
    if kind not in CONTENT_TYPES:
        raise ValueError(f"Unknown card kind '{kind}'. Expected one of {sorted(CONTENT_TYPES)}.")

    context = {**_DEFAULTS, **data}
    rendered = _environment().get_template(_template_file(kind)).render(**context)
    logger.debug(f"Rendered {kind} card with {len(context['buttons'])} button(s)")
    return Attachment(content_type=CONTENT_TYPES[kind], content=json.loads(rendered))
