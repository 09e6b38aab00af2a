"""HTML rendering of the template model (Jinja2)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from newsletter_app.core.config import CHART_CENTER, CHART_RADIUS, QUICK_WINS_ANCHOR, QUICK_WINS_ICON
from newsletter_app.core.models import TemplateModel

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "newsletter.html.j2"


@lru_cache(maxsize=1)
def template_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_newsletter(model: TemplateModel) -> str:
    """Render the newsletter HTML; the template only sees ``model.to_dict()``."""
    template = template_environment().get_template(TEMPLATE_NAME)
    return template.render(
        **model.to_dict(),
        chart={"center": CHART_CENTER, "radius": CHART_RADIUS, "size": CHART_CENTER * 2},
        quick_wins_anchor=QUICK_WINS_ANCHOR,
        quick_wins_icon=QUICK_WINS_ICON,
    )
