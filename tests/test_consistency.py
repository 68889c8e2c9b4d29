"""Tests for ConsistencyEngine.

Covers:
- untracked repositories, first baseline, consistent and inconsistent checks
- short-circuit on the first mismatch and the warning it logs
- start/stop lifecycle against a RevisionEventDispatcher
"""

import logging
import threading
from datetime import datetime, timedelta, timezone

import pytest

from hookwatch.consistency import (
    BranchMismatch,
    ConsistencyEngine,
    Verdict,
    find_mismatch,
)
from hookwatch.events import RevisionEventDispatcher, VcsRoot
from hookwatch.exceptions import HookwatchError
from hookwatch.models.hook import HookStatus
from hookwatch.usage import UsageTracker

from tests.conftest import InterleavedHookStore, make_hook


@pytest.fixture
def engine(store):
    e = ConsistencyEngine(store)
    yield e
    e.stop()


@pytest.fixture
def events():
    return RevisionEventDispatcher()


# ---------------------------------------------------------------------------
# find_mismatch
# ---------------------------------------------------------------------------


class TestFindMismatch:
    def test_equal_maps(self, repo):
        assert find_mismatch(repo, {"main": "a"}, {"main": "a"}) is None

    def test_extra_baseline_branches_are_fine(self, repo):
        assert find_mismatch(repo, {"main": "a", "old": "o"}, {"main": "a"}) is None

    def test_empty_observation(self, repo):
        assert find_mismatch(repo, {"main": "a"}, {}) is None

    def test_changed_revision(self, repo):
        assert find_mismatch(repo, {"main": "a"}, {"main": "b"}) == BranchMismatch(
            repo, "main", expected="b", found="a"
        )

    def test_missing_branch(self, repo):
        mismatch = find_mismatch(repo, {"main": "a"}, {"main": "a", "dev": "d"})
        assert mismatch.branch == "dev"
        assert mismatch.found is None

    def test_message_wording(self, repo):
        missing = BranchMismatch(repo, "dev", expected="d", found=None)
        changed = BranchMismatch(repo, "main", expected="b", found="a")
        assert "no revision saved for branch dev" in str(missing)
        assert "expected b but found a" in str(changed)


# ---------------------------------------------------------------------------
# check_consistency
# ---------------------------------------------------------------------------


class TestCheckConsistency:
    def test_untracked_repository(self, engine, store, repo):
        report = engine.check_consistency(repo, {"main": "a"})
        assert report.verdict is Verdict.UNTRACKED
        assert store.get(repo) is None

    def test_first_observation_becomes_baseline(self, engine, store, repo):
        make_hook(store, repo, hook_id=1)
        branches = {"main": "a", "dev": "d"}
        report = engine.check_consistency(repo, branches)

        assert report.verdict is Verdict.BASELINED
        assert report.is_consistent
        assert store.get(repo).last_branch_revisions == branches

    def test_baseline_is_a_copy(self, engine, store, repo):
        make_hook(store, repo)
        branches = {"main": "a"}
        engine.check_consistency(repo, branches)
        branches["main"] = "changed"
        assert store.get(repo).last_branch_revisions == {"main": "a"}

    def test_baselining_leaves_correct_flag_alone(self, engine, store, repo):
        make_hook(store, repo, correct=False, status=HookStatus.INCORRECT)
        engine.check_consistency(repo, {"main": "a"})
        hook = store.get(repo)
        assert hook.correct is False
        assert hook.last_branch_revisions == {"main": "a"}

    def test_consistent_observation_writes_nothing(self, engine, store, repo):
        baseline = {"main": "a", "dev": "d"}
        before = make_hook(store, repo, last_branch_revisions=baseline)
        report = engine.check_consistency(repo, {"main": "a"})
        assert report.verdict is Verdict.CONSISTENT
        assert report.mismatches == ()
        assert store.get(repo) == before

    def test_changed_revision_marks_incorrect(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        report = engine.check_consistency(repo, {"main": "b"})

        assert report.verdict is Verdict.INCONSISTENT
        assert not report.is_consistent
        assert report.mismatches == (BranchMismatch(repo, "main", expected="b", found="a"),)
        hook = store.get(repo)
        assert hook.correct is False
        assert hook.status is HookStatus.INCORRECT
        # baseline kept as evidence
        assert hook.last_branch_revisions == {"main": "a"}

    def test_new_branch_marks_incorrect(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        report = engine.check_consistency(repo, {"main": "a", "feature": "f"})
        assert report.verdict is Verdict.INCONSISTENT
        assert report.mismatches[0].found is None
        assert store.get(repo).correct is False

    def test_empty_baseline_is_not_missing_baseline(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={})
        report = engine.check_consistency(repo, {"main": "a"})
        assert report.verdict is Verdict.INCONSISTENT
        assert store.get(repo).last_branch_revisions == {}

    def test_stops_at_first_mismatch(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a", "dev": "d"})
        report = engine.check_consistency(repo, {"main": "x", "dev": "y"})
        assert len(report.mismatches) == 1
        assert report.mismatches[0].branch == "main"

    def test_flag_is_durable(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        engine.check_consistency(repo, {"main": "b"})
        report = engine.check_consistency(repo, {"main": "a"})
        assert report.verdict is Verdict.CONSISTENT
        assert store.get(repo).correct is False

    def test_mismatch_logged_with_fields(self, engine, store, repo, caplog):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        with caplog.at_level(logging.WARNING, logger="hookwatch.consistency"):
            engine.check_consistency(repo, {"main": "b"})

        records = [r for r in caplog.records if r.name == "hookwatch.consistency"]
        assert len(records) == 1
        record = records[0]
        assert record.levelno == logging.WARNING
        assert record.repository == repo.id
        assert record.branch == "main"
        assert record.expected == "b"
        assert record.found == "a"

    def test_state_change_ignores_old_mapping(self, engine, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        report = engine.on_repository_state_changed(repo, {"main": "zzz"}, {"main": "a"})
        assert report.verdict is Verdict.CONSISTENT


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


GIT_ROOT = VcsRoot("jetbrains.git", "https://github.com/acme/widgets.git", "widgets")


class TestEngineLifecycle:
    def test_not_running_by_default(self, engine):
        assert not engine.running

    def test_events_checked_after_start(self, engine, events, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        engine.start(events)
        assert engine.running
        events.publish(GIT_ROOT, {"main": "a"}, {"main": "b"})
        assert store.get(repo).correct is False

    def test_events_ignored_before_start(self, engine, events, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        events.publish(GIT_ROOT, {"main": "a"}, {"main": "b"})
        assert store.get(repo).correct is True

    def test_events_ignored_after_stop(self, engine, events, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        engine.start(events)
        engine.stop()
        assert not engine.running
        assert events.listener_count == 0
        events.publish(GIT_ROOT, {"main": "a"}, {"main": "b"})
        assert store.get(repo).correct is True

    def test_stop_is_idempotent(self, engine, events):
        engine.start(events)
        engine.stop()
        engine.stop()
        assert events.listener_count == 0

    def test_double_start_raises(self, engine, events):
        engine.start(events)
        with pytest.raises(HookwatchError, match="already started"):
            engine.start(events)
        assert events.listener_count == 1

    def test_restart_after_stop(self, engine, events):
        engine.start(events)
        engine.stop()
        engine.start(events)
        assert events.listener_count == 1

    def test_non_git_roots_are_ignored(self, engine, events, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "a"})
        engine.start(events)
        events.publish(
            VcsRoot("svn", "https://github.com/acme/widgets"), {}, {"main": "b"}
        )
        assert store.get(repo).correct is True

    def test_unparseable_url_is_ignored(self, engine, events, store):
        engine.start(events)
        events.publish(VcsRoot("git", "/local/path/repo"), {}, {"main": "b"})
        assert store.list_all() == []


# ---------------------------------------------------------------------------
# Concurrent writers
# ---------------------------------------------------------------------------


T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestCheckAgainstConcurrentWriters:
    """A write landing between the engine's read and its update."""

    def test_merge_repairs_before_flagging(self, shared_db, repo):
        first, second = shared_db
        make_hook(first.hooks, repo, last_branch_revisions={"main": "h1"})
        store = InterleavedHookStore(
            first.hooks,
            lambda: UsageTracker(second.hooks).merge_branch_revisions(repo, {"main": "h2"}),
        )

        report = ConsistencyEngine(store).check_consistency(repo, {"main": "h2"})

        assert store.mutator_calls == 2
        assert report.verdict is Verdict.CONSISTENT
        hook = first.hooks.get(repo)
        assert hook.correct is True
        assert hook.status is HookStatus.OK
        assert hook.last_branch_revisions == {"main": "h2"}

    def test_merge_that_does_not_cover_observation(self, shared_db, repo):
        first, second = shared_db
        make_hook(first.hooks, repo, last_branch_revisions={"main": "h1"})
        store = InterleavedHookStore(
            first.hooks,
            lambda: UsageTracker(second.hooks).merge_branch_revisions(repo, {"dev": "d1"}),
        )

        report = ConsistencyEngine(store).check_consistency(repo, {"main": "h2"})

        assert report.verdict is Verdict.INCONSISTENT
        hook = first.hooks.get(repo)
        assert hook.correct is False
        assert hook.last_branch_revisions == {"main": "h1", "dev": "d1"}

    def test_concurrent_baseline_is_checked_not_overwritten(self, shared_db, repo):
        first, second = shared_db
        make_hook(first.hooks, repo)
        store = InterleavedHookStore(
            first.hooks,
            lambda: ConsistencyEngine(second.hooks).check_consistency(repo, {"main": "h1"}),
        )

        report = ConsistencyEngine(store).check_consistency(repo, {"main": "h2"})

        assert report.verdict is Verdict.INCONSISTENT
        assert report.mismatches[0].found == "h1"
        hook = first.hooks.get(repo)
        assert hook.last_branch_revisions == {"main": "h1"}
        assert hook.correct is False

    def test_usage_timestamp_survives_flagging(self, shared_db, repo):
        first, second = shared_db
        make_hook(first.hooks, repo, last_branch_revisions={"main": "h1"})
        store = InterleavedHookStore(
            first.hooks,
            lambda: UsageTracker(second.hooks).record_usage(repo, T0),
        )

        report = ConsistencyEngine(store).check_consistency(repo, {"main": "h2"})

        assert store.mutator_calls == 2
        # the mismatch was observed after the delivery, so the flag wins
        assert report.verdict is Verdict.INCONSISTENT
        hook = first.hooks.get(repo)
        assert hook.last_used == T0
        assert hook.correct is False
        assert hook.status is HookStatus.INCORRECT

    def test_usage_after_flagging_clears_it(self, shared_db, repo):
        first, second = shared_db
        make_hook(first.hooks, repo, last_branch_revisions={"main": "h1"})
        ConsistencyEngine(first.hooks).check_consistency(repo, {"main": "h2"})
        UsageTracker(second.hooks).record_usage(repo, T0)

        hook = first.hooks.get(repo)
        assert hook.correct is True
        assert hook.last_used == T0


class TestThreadedCheckAndRepair:
    def test_checks_usage_and_merges_on_one_record(self, store, repo):
        make_hook(store, repo, last_branch_revisions={"main": "r0"})
        engine = ConsistencyEngine(store)
        usage = UsageTracker(store)
        stamps = [T0 + timedelta(seconds=i) for i in range(30)]

        def check():
            for i in range(30):
                engine.check_consistency(repo, {"main": f"r{i}"})

        def merge():
            for i in range(30):
                usage.merge_branch_revisions(repo, {"main": f"r{i}", f"b{i}": "x"})

        def record():
            for ts in stamps:
                usage.record_usage(repo, ts)

        threads = [threading.Thread(target=f) for f in (check, merge, record)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        hook = store.get(repo)
        assert hook.last_used == stamps[-1]
        assert hook.last_branch_revisions["main"] == "r29"
        assert len(hook.last_branch_revisions) == 31
        assert (hook.status is HookStatus.INCORRECT) == (not hook.correct)

        # once repaired, the latest observation is consistent and stays so
        usage.merge_branch_revisions(repo, {"main": "r29"})
        report = engine.check_consistency(repo, {"main": "r29"})
        assert report.verdict is Verdict.CONSISTENT
        assert store.get(repo).correct is True
