"""Command-line entrypoint: render a newsletter from a stored preview or a live Jira fetch."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from newsletter_app.core.cache import FileCache
from newsletter_app.core.config import NewsletterSettings
from newsletter_app.core.errors import JiraRequestError, NewsletterDateError
from newsletter_app.core.jira_client import JiraAPI
from newsletter_app.core.service import NewsletterService, setup_instructions_payload
from newsletter_app.editorial.generator import OfflineTextGenerator, build_text_generator
from newsletter_app.features.newsletter import build_template_context
from newsletter_app.visual.render import render_newsletter

logger = logging.getLogger(__name__)


def _load_preview(path: Path) -> dict:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise click.BadParameter(f"Cannot read preview payload {path}: {exc}", param_hint="--input") from exc
    if not isinstance(payload, dict):
        raise click.BadParameter(f"{path} must hold a JSON object", param_hint="--input")
    return payload


def _fetch_preview(settings: NewsletterSettings, generator, date_from, date_to, title, author) -> dict:
    if settings.missing_jira_credentials:
        logger.warning("Jira credentials missing; rendering setup instructions")
        return setup_instructions_payload(title, author)
    api = JiraAPI(settings.jira_server, settings.jira_email, settings.jira_api_token)
    service = NewsletterService(api, generator=generator, settings=settings)
    preview = service.build_preview(date_from, date_to, title=title, author=author)
    return preview.to_payload()


@click.command(name="generate-newsletter")
@click.option(
    "--input",
    "input_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Stored preview payload (JSON) to render instead of fetching from Jira.",
)
@click.option("--from", "date_from", help="Start date (YYYY-MM-DD) for a live fetch.")
@click.option("--to", "date_to", help="End date (YYYY-MM-DD, inclusive) for a live fetch.")
@click.option(
    "--out",
    "out_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("newsletter.html"),
    show_default=True,
)
@click.option(
    "--save-preview",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the fetched preview payload to this JSON file.",
)
@click.option("--title", default=None, help="Title used when the preview has no date.")
@click.option("--author", default=None)
@click.option("--offline", is_flag=True, help="Skip text generation even if OPENAI_API_KEY is set.")
@click.option("-v", "--verbose", is_flag=True)
def main(input_path, date_from, date_to, out_path, save_preview, title, author, offline, verbose) -> None:
    """Generate the engineering newsletter HTML."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = NewsletterSettings.from_env()
    generator = OfflineTextGenerator() if offline else build_text_generator(settings)

    if input_path is not None:
        payload = _load_preview(input_path)
    else:
        if not (date_from and date_to):
            raise click.UsageError("Provide --input, or both --from and --to for a live fetch.")
        try:
            payload = _fetch_preview(settings, generator, date_from, date_to, title, author)
        except NewsletterDateError as exc:
            raise click.UsageError(str(exc)) from exc
        except JiraRequestError as exc:
            raise click.ClickException(f"Jira request failed: {exc}") from exc
        if save_preview is not None:
            save_preview.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            logger.info("Preview payload written to %s", save_preview)

    model = build_template_context(payload, generator, FileCache(settings.cache_dir), settings)
    out_path.write_text(render_newsletter(model), encoding="utf-8")
    click.echo(f"Wrote {out_path} ({len(model.items)} item(s), {len(model.quick_wins)} quick win(s))")


if __name__ == "__main__":
    main()
