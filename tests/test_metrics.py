from __future__ import annotations

import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

import pytest

from roughsketch.generator import Generator
from roughsketch.metrics import MetricsTracker, Timer, count, get_tracker, use_tracker


def test_tracker_is_scoped_to_context():
    assert get_tracker() is None

    with use_tracker(MetricsTracker()) as tracker:
        assert get_tracker() is tracker

    assert get_tracker() is None


def test_generation_records_time_and_op_count():
    with use_tracker(MetricsTracker()) as tracker:
        drawable = Generator().rectangle(0, 0, 10, 10)

    assert "generate.rectangle" in tracker.timings
    assert tracker.get_time("generate.rectangle") >= 0.0
    assert tracker.get_count("ops.rectangle") == drawable.op_count()


def test_counts_accumulate_across_calls():
    with use_tracker(MetricsTracker()) as tracker:
        a = Generator().line(0, 0, 10, 0)
        b = Generator().line(0, 0, 20, 0)

    assert tracker.get_count("ops.line") == a.op_count() + b.op_count()


def test_count_without_tracker_is_a_no_op():
    count("ops.nothing", 3)

    assert get_tracker() is None


def test_timer_with_explicit_tracker():
    tracker = MetricsTracker()

    with Timer("work", tracker=tracker) as timer:
        pass

    assert tracker.get_time("work") == timer.duration
    assert timer.duration >= 0.0


def test_negative_durations_are_ignored():
    tracker = MetricsTracker()
    tracker.add_time("work", -1.0)

    assert tracker.timings == {}


def test_calls_and_mean_time():
    tracker = MetricsTracker()
    tracker.add_time("generate.line", 0.002)
    tracker.add_time("generate.line", 0.004)

    assert tracker.calls["generate.line"] == 2
    assert tracker.mean_time("generate.line") == pytest.approx(0.003)
    assert tracker.mean_time("generate.arc") == 0.0


def test_merge_folds_another_tracker():
    a = MetricsTracker()
    a.add_time("generate.line", 0.001)
    a.increment("ops.line", 4)
    b = MetricsTracker()
    b.add_time("generate.line", 0.002)
    b.add_time("generate.arc", 0.005)
    b.increment("ops.line", 6)

    a.merge(b)

    assert a.get_time("generate.line") == pytest.approx(0.003)
    assert a.calls == {"generate.line": 2, "generate.arc": 1}
    assert a.get_count("ops.line") == 10


def test_summary_lists_every_key():
    tracker = MetricsTracker()
    tracker.add_time("generate.line", 0.002)
    tracker.increment("ops.line", 4)

    summary = tracker.summary()

    assert "generate.line" in summary
    assert "ops.line" in summary


def test_generation_logs_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="roughsketch.generator")

    Generator().ellipse(0, 0, 20, 10)

    assert "generate.ellipse took" in caplog.text
    assert "Generated ellipse with" in caplog.text
