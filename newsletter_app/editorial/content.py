"""Editorial copy for the newsletter: AI-written when possible, deterministic otherwise.

Every function here returns usable text whether the generator is absent,
fails, or returns nothing. Generation errors are logged and never raised.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from newsletter_app.analytics.sanitizer import (
    cap_words,
    clean_bullet_line,
    clean_markdown_and_placeholders,
    collapse_whitespace,
    strip_names,
)
from newsletter_app.core.config import DEFAULT_ICON, PRIORITIES_HEADING, PRIORITIES_MAX_CHARS
from newsletter_app.core.models import CategorySlice, CommentModel, IssueModel, PrioritiesSection
from newsletter_app.core.status import is_done_status, is_review_status

from .generator import TextGenerator

logger = logging.getLogger(__name__)

AUDIENCE = (
    "The newsletter is read company-wide by technical and non-technical staff. "
    "Keep the tone positive and specific, focus on business value, and never "
    "mention people's names, issue codes, or internal jargon."
)

FALLBACK_CARD_SUMMARY = "Delivering business value and engineering excellence."
FALLBACK_QUICK_WINS = "Small enhancements delivered to boost performance and usability."
FALLBACK_NARRATIVE = "Engineering efforts distributed across operational priorities."

_LEADING_MARKERS = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s*")


@dataclass(slots=True)
class ItemContext:
    """What the generator is told about one newsletter card."""

    summary: str
    status: str = ""
    description: str = ""
    labels: Sequence[str] = ()
    bullets: list[str] = field(default_factory=list)


def _complete(generator: TextGenerator | None, prompt: str, *, what: str, **kwargs) -> str | None:
    if generator is None or not generator.available:
        return None
    try:
        text = generator.complete(prompt, **kwargs)
    except Exception as exc:
        logger.warning("Text generation failed (%s): %s", what, exc)
        return None
    text = (text or "").strip()
    return text or None


def _status_kind(status: str) -> str:
    if is_done_status(status):
        return "done"
    if is_review_status(status):
        return "review"
    return "active"


def _lines(text: str) -> list[str]:
    return [ln for ln in (_LEADING_MARKERS.sub("", raw).strip() for raw in text.splitlines()) if ln]


# =============================================================================
# Per-issue summaries (aggregation stage)
# =============================================================================
def summarize_executive(
    generator: TextGenerator | None,
    issue: IssueModel,
    comments: Sequence[CommentModel],
    *,
    maximum: int = 5,
) -> list[str]:
    """3–5 newsletter bullets distilled from an issue's in-range comments."""
    if not comments:
        return []
    notes = "\n".join(f"- {c.text}" for c in comments if c.text)
    prompt = (
        "Summarize these notes into 3-5 concise bullets for an internal engineering newsletter.\n"
        "- Combine overlapping points\n- No leading '-' or '*'\n"
        "- Keep it positive, specific, and non-technical\n\n"
        f"Issue: {issue.key} - {issue.summary}\nNotes:\n{strip_names(notes)}"
    )
    text = _complete(
        generator,
        prompt,
        what="executive bullets",
        max_tokens=200,
        temperature=0.4,
        system="Return a short set of 3-5 crisp bullets.",
    )
    if text:
        bullets = [clean_bullet_line(b) for b in _lines(text)]
        return [b for b in bullets if b][:maximum]
    # Most recent comments first, one bullet per comment
    recent = [c for c in reversed(comments) if c.text]
    return [clean_bullet_line(c.text.splitlines()[0]) for c in recent[:maximum]]


def summarize_one_liner(
    generator: TextGenerator | None,
    issue: IssueModel,
    comments: Sequence[CommentModel],
    *,
    max_words: int = 15,
) -> str:
    """One upbeat headline (at most ``max_words`` words) for an issue."""
    notes = strip_names(" ".join(c.text for c in comments if c.text))
    if notes:
        prompt = (
            f"One short, positive headline (at most {max_words} words) for a newsletter. "
            "No names. Focus on progress or value delivered.\n"
            f"Issue: {issue.key} - {issue.summary}\nFrom notes: {notes}"
        )
        text = _complete(
            generator,
            prompt,
            what="one-liner",
            max_tokens=40,
            temperature=0.3,
            system=f"Return exactly one upbeat sentence, at most {max_words} words.",
        )
        if text:
            return cap_words(_LEADING_MARKERS.sub("", text).strip(), max_words)
        latest = next((c.text for c in reversed(comments) if c.text), "")
        headline = clean_markdown_and_placeholders(strip_names(clean_bullet_line(latest.splitlines()[0])))
        if headline:
            return cap_words(headline, max_words)
    return cap_words(issue.summary, max_words)


# =============================================================================
# Card enrichment (template stage)
# =============================================================================
def generate_bullets(generator: TextGenerator | None, context: ItemContext) -> list[str]:
    """2–3 business-focused bullets; falls back to the already-sanitized bullets."""
    raw = "; ".join(context.bullets[:5]) or "none"
    prompt = (
        f"{AUDIENCE}\n\n"
        "Write 2-3 concise bullet points (at most 12 words each) about the business impact of this project. "
        "No metadata labels, no numbering or dashes, one bullet per line, nothing else.\n\n"
        f"Project Title: {context.summary}\nStatus: {context.status}\nRaw Updates: {raw}"
    )
    text = _complete(generator, prompt, what="bullets", max_tokens=80)
    if text:
        bullets = _lines(text)[:3]
        if bullets:
            return bullets
    return list(context.bullets)


def fallback_icon(status: str) -> str:
    kind = _status_kind(status)
    if kind == "done":
        return "✅"
    if kind == "review":
        return "🧪"
    return DEFAULT_ICON


def is_valid_icon(candidate: str | None) -> bool:
    """A single emoji-like glyph: at most two code points, no letters or digits."""
    if not candidate or len(candidate) > 2:
        return False
    return not any(ch.isalnum() or ch.isspace() for ch in candidate)


def generate_icon(generator: TextGenerator | None, context: ItemContext) -> str:
    prompt = (
        "Choose a single emoji for this project. Return ONLY the emoji character.\n\n"
        f"Project Title: {context.summary}\nStatus: {context.status}\n"
        f"Labels: {', '.join(context.labels) or 'none'}\n"
        f"Bullets: {'; '.join(context.bullets[:2]) or 'none'}"
    )
    text = _complete(generator, prompt, what="icon", max_tokens=5)
    if text is None:
        return fallback_icon(context.status)
    return text if is_valid_icon(text) else DEFAULT_ICON


def claim_icon(icon: str, used_icons: set[str]) -> str:
    """Reserve ``icon`` for this render pass; a repeat falls back to the default glyph."""
    if not icon or icon in used_icons:
        icon = DEFAULT_ICON
    used_icons.add(icon)
    return icon


def generate_closing_statement(generator: TextGenerator | None, context: ItemContext) -> str:
    prompt = (
        "Write a short, positive, single-sentence closing statement (at most 12 words) for a project update. "
        "Start with an emoji matching the project's domain; avoid 🌟 and 🌈. Return only the statement.\n\n"
        f"Project Title: {context.summary}\nStatus: {context.status}\n"
        f"Bullets: {'; '.join(context.bullets[:2]) or 'none'}\nDescription: {context.description}"
    )
    text = _complete(generator, prompt, what="closing statement", max_tokens=30)
    if text:
        return text
    kind = _status_kind(context.status)
    if kind == "done":
        return "✅ Delivered and live!"
    if kind == "review":
        return "🧪 On track for completion."
    return "⚙️ Great progress ahead!"


def generate_card_summary(generator: TextGenerator | None, context: ItemContext) -> str:
    prompt = (
        f"{AUDIENCE}\n\n"
        "Write one professional sentence (at most 25 words) summarizing this project card as: "
        "[strong verb] [key change] [business benefit]. Avoid starting with generic verbs such as "
        "Enhanced, Improved, Delivered, Completed, Implemented, Updated, or Added. Return only the sentence.\n\n"
        f"Project Title: {context.summary}\nStatus: {context.status}\n"
        f"Bullets: {'; '.join(context.bullets[:3]) or 'none'}\nDescription: {context.description}"
    )
    return _complete(generator, prompt, what="card summary", max_tokens=40) or FALLBACK_CARD_SUMMARY


def generate_quick_wins_description(generator: TextGenerator | None, date: str | None) -> str:
    prompt = (
        "Write a short, inspiring single-sentence description (at most 15 words) for the "
        "'Quick Wins' section of an engineering newsletter. Start with a verb if possible. "
        f"Return only the description.\n\nDate context: {date or 'recent period'}"
    )
    return _complete(generator, prompt, what="quick wins description", max_tokens=40) or FALLBACK_QUICK_WINS


# =============================================================================
# Newsletter-level narratives
# =============================================================================
def parse_priorities(text: str) -> PrioritiesSection:
    """Split model output into a short heading and a paragraph."""
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    heading = PRIORITIES_HEADING
    content = text
    if len(lines) >= 2 and len(lines[0]) <= 40:
        heading = re.sub(r"^\W+", "", lines[0]).strip() or PRIORITIES_HEADING
        content = " ".join(lines[1:])
    elif len(lines) == 1:
        sentence_end = lines[0].find(". ")
        if sentence_end != -1 and sentence_end <= 40:
            heading = re.sub(r"[^\w\s]", "", lines[0][:sentence_end]).strip() or PRIORITIES_HEADING
            content = lines[0][sentence_end + 2 :]
        else:
            content = lines[0]
    content = collapse_whitespace(content)
    if len(content) > PRIORITIES_MAX_CHARS:
        content = content[:PRIORITIES_MAX_CHARS] + "..."
    return PrioritiesSection(heading=heading, content=content)


def generate_priorities(
    generator: TextGenerator | None,
    issue_lines: Sequence[str],
    quick_win_lines: Sequence[str],
) -> PrioritiesSection | None:
    """AI-written "Priorities & Strategic Direction" section, or None when unavailable."""
    projects = "\n".join(f"- {line}" for line in issue_lines[:8]) or "none"
    quick = "\n".join(f"- {line}" for line in quick_win_lines[:8]) or "none"
    prompt = (
        "You write the 'Priorities & Strategic Direction' paragraph of an engineering newsletter "
        "for company-wide staff. Produce 1) a heading of at most 6 words on its own line and "
        "2) one paragraph (2-3 sentences, at most 45 words) tying the engineering priorities to "
        "business outcomes. Avoid jargon, team names, and internal codes.\n\n"
        f"Projects:\n{projects}\n\nQuick wins:\n{quick}"
    )
    text = _complete(generator, prompt, what="priorities", max_tokens=120, temperature=0.3)
    if not text:
        return None
    return parse_priorities(text)


_FOCUS_KEYWORDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"customer|client|portal|\bapp\b|mobile"), "customer experience"),
    (re.compile(r"performance|speed|latency|optimi"), "performance"),
    (re.compile(r"database|migration|cloud|infrastructure|scalab"), "infrastructure"),
    (re.compile(r"security|\bauth|\bsso\b|encryption"), "security"),
    (re.compile(r"payment|billing|invoice|revenue"), "payments"),
    (re.compile(r"automatio|\bai\b|\bbot\b|workflow"), "automation"),
)


def fallback_priorities(titles: Sequence[str], issue_count: int, quick_win_count: int) -> PrioritiesSection:
    """Templated priorities sentence built from keywords found in the issue titles."""
    text = " ".join(titles).lower()
    focus_terms = [label for pattern, label in _FOCUS_KEYWORDS if pattern.search(text)]
    focus = " and ".join(focus_terms[:2]) if focus_terms else "customer impact and operational efficiency"
    return PrioritiesSection(
        heading=PRIORITIES_HEADING,
        content=(
            f"This period we focused on {focus}, across {issue_count} project(s) and "
            f"{quick_win_count} quick win(s), to deliver measurable business value and improve reliability."
        ),
    )


def fallback_investment_narrative(slices: Sequence[CategorySlice]) -> str:
    if not slices:
        return FALLBACK_NARRATIVE
    top = slices[0]
    if len(slices) == 1:
        return f"This period focused primarily on {top.label.lower()} ({top.percent:g}%)."
    second = slices[1]
    tail = ", ".join(s.label.split(" ")[0] for s in slices[2:])
    extra = f", with additional capacity on {tail}" if tail else ""
    return (
        f"Investment centered on {top.label.lower()} ({top.percent:g}%) and "
        f"{second.label.lower()} ({second.percent:g}%){extra}."
    )


def generate_investment_narrative(
    generator: TextGenerator | None,
    slices: Sequence[CategorySlice],
    total: int,
) -> str:
    """Where engineering effort went this period and why it matters."""
    if not slices:
        return FALLBACK_NARRATIVE
    categories = "\n".join(f"- {s.label}: {s.count} issues ({s.percent:g}%)" for s in slices)
    prompt = (
        "Write 2-3 concise sentences (at most 60 words) for the 'Impact & Investment Overview' of an "
        "engineering newsletter read by executives and all staff. Summarize where effort went, explain "
        "the business rationale, and use plain language. Return only the narrative.\n\n"
        f"Categories & Distribution:\n{categories}\n\nTotal issues: {total}"
    )
    text = _complete(generator, prompt, what="investment narrative", max_tokens=120, temperature=0.4)
    return text or fallback_investment_narrative(slices)
