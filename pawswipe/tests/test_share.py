"""
Tests for the report/share layer.
"""

import random

import pytest

from ..engine_core.state import SessionSummary
from ..errors import ShareUnavailable
from ..report import SHARE_TITLE, ShareService, ShareTarget, TargetKind, summary_text
from ..report.share import (
    FEEDBACK_COPIED,
    FEEDBACK_COPY_FAILED,
    FEEDBACK_SHARED,
    FEEDBACK_UNAVAILABLE,
    MESSAGE_TEMPLATES,
)


class NativeTarget(ShareTarget):
    kind = TargetKind.NATIVE

    def __init__(self, supported=True, fails=False):
        self.supported = supported
        self.fails = fails
        self.shared = []

    def can_share(self, data):
        return self.supported

    def share(self, data):
        if self.fails:
            raise ShareUnavailable("user dismissed")
        self.shared.append(data)


class ClipboardTarget(ShareTarget):
    kind = TargetKind.CLIPBOARD

    def __init__(self, fails=False):
        self.fails = fails
        self.copied = []

    def share(self, data):
        if self.fails:
            raise ShareUnavailable("clipboard denied")
        self.copied.append(data.as_clipboard_text())


@pytest.fixture
def summary():
    return SessionSummary(accepted_count=3, total_count=15)


class TestSummaryText:
    def test_percentage(self, summary):
        assert summary.percentage == 20

    def test_percentage_of_empty_batch(self):
        assert SessionSummary(0, 0).percentage == 0

    def test_every_template_mentions_counts(self, summary):
        for seed in range(30):
            text = summary_text(summary, random.Random(seed))
            assert "3" in text
            assert "15" in text

    def test_templates_are_all_reachable(self, summary):
        texts = {summary_text(summary, random.Random(seed)) for seed in range(60)}
        assert len(texts) == len(MESSAGE_TEMPLATES)


class TestShareService:
    def test_native_share(self, summary):
        native = NativeTarget()
        outcome = ShareService([native, ClipboardTarget()]).share(summary, url="https://x.test")

        assert outcome.shared
        assert outcome.feedback == FEEDBACK_SHARED
        assert native.shared[0].title == SHARE_TITLE
        assert native.shared[0].url == "https://x.test"

    def test_falls_back_to_clipboard_when_native_unsupported(self, summary):
        clipboard = ClipboardTarget()
        outcome = ShareService([NativeTarget(supported=False), clipboard]).share(
            summary, url="https://x.test"
        )

        assert outcome.shared
        assert outcome.feedback == FEEDBACK_COPIED
        assert clipboard.copied[0].endswith(" https://x.test")

    def test_clipboard_failure_is_feedback(self, summary):
        outcome = ShareService([ClipboardTarget(fails=True)]).share(summary)

        assert not outcome.shared
        assert outcome.feedback == FEEDBACK_COPY_FAILED

    def test_native_failure_does_not_raise(self, summary):
        outcome = ShareService([NativeTarget(fails=True)]).share(summary)

        assert not outcome.shared
        assert outcome.feedback is None

    def test_nothing_available(self, summary):
        outcome = ShareService().share(summary)

        assert not outcome.shared
        assert outcome.feedback == FEEDBACK_UNAVAILABLE
        assert outcome.text
