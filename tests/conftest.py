"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import newsletter_app` works. Shared fakes live here too.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from newsletter_app.editorial.generator import TextGenerator  # noqa: E402

# The twelve issues of the offline categorization check, with their verified categories
FIXTURE_ISSUES = [
    ({"summary": "Bidding 2.3", "status": "In Progress"}, "product_features"),
    ({"summary": "DragonFly (Consent with recordings)", "status": "In Progress"}, "integration_apis"),
    ({"summary": "Expert Networks Phase 2", "status": "UAT"}, "integration_apis"),
    ({"summary": "Client Portal - Phase 1", "status": "In Progress"}, "client_experience"),
    ({"summary": "Centralised data tool management", "status": "In Progress"}, "data_analytics"),
    ({"summary": "Updated Client contacts table", "status": "In Progress"}, "internal_tools"),
    ({"summary": "Automatic discount calculation - Phase 2", "status": "In Progress"}, "product_features"),
    ({"summary": "Dynamic Audience Main/Sub Items", "status": "In Progress"}, "product_features"),
    ({"summary": "Wallet Member Notes", "status": "Done"}, "product_features"),
    ({"summary": "Bidding 2.2", "status": "Done"}, "product_features"),
    ({"summary": "Accrual Phase #3", "status": "Done"}, "financial_systems"),
    ({"summary": "Updates to the registration process", "status": "Done"}, "product_features"),
]


class FakeGenerator(TextGenerator):
    """Scripted generator: answers by prompt keyword, records every prompt."""

    def __init__(self, replies: dict[str, str] | None = None, fail: bool = False):
        self.replies = replies or {}
        self.fail = fail
        self.prompts: list[str] = []

    def complete(self, prompt, *, max_tokens, temperature=None, system=None) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise RuntimeError("model unavailable")
        for needle, reply in self.replies.items():
            if needle in prompt:
                return reply
        return ""


@pytest.fixture
def fixture_issues():
    return [dict(issue) for issue, _ in FIXTURE_ISSUES]
