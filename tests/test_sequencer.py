"""Tests for the JobSequencer and RunState."""

import functools

import pytest

from clipqueue.errors import PresetNotFound
from clipqueue.transcode import (
    Cancelled,
    EngineFailed,
    Finished,
    JobSequencer,
    Progress,
    RunState,
    SequencerState,
    TranscodeSession,
    scan,
)
from clipqueue.utils import EXIT_CANCELLED, EXIT_ITEM_FAILED, EXIT_OK
from conftest import touch


class StubSession:
    """Replays a fixed list of events and records what the sequencer did."""

    def __init__(self, item, script, journal, run_state=None):
        self.item = item
        self.output_path = item.source_path.with_suffix(".out")
        self._script = script
        self._journal = journal
        self._run_state = run_state
        self.cancelled = False

    def start(self):
        self._journal.append(("start", self.item.identity))
        return self

    def cancel(self):
        self.cancelled = True

    def join(self, timeout=None):
        return True

    def events(self):
        for event in self._script:
            if self._run_state is not None:
                # the signal handler's view while the engine is running
                assert self._run_state.current_item is self.item
                assert self._run_state.active_session is self
            if isinstance(event, (Finished, EngineFailed, Cancelled)):
                self._journal.append(("end", self.item.identity))
            yield event


def _factory(scripts, journal, run_state=None):
    def make(item, settings):
        return StubSession(item, scripts[item.identity], journal, run_state)
    return make


@pytest.fixture
def pending(settings):
    touch(settings.input_path, "a.mp4", "b.mp4", "c.mkv")
    return scan(settings.input_path, settings.accepted_extensions)


def test_empty_queue_drains_immediately(settings):
    sequencer = JobSequencer([], settings, show_progress=False)
    summary = sequencer.run()
    assert summary.state == SequencerState.DRAINED
    assert summary.exit_code == EXIT_OK


def test_items_run_one_at_a_time_in_order(settings, pending):
    journal = []
    run_state = RunState()
    scripts = {i.identity: [Progress(10.0), Progress(100.0), Finished()] for i in pending}
    sequencer = JobSequencer(pending, settings, run_state,
                             session_factory=_factory(scripts, journal, run_state), show_progress=False)

    summary = sequencer.run()

    assert journal == [("start", "a"), ("end", "a"), ("start", "b"), ("end", "b"), ("start", "c"), ("end", "c")]
    assert [i.identity for i in summary.processed] == ["a", "b", "c"]
    assert summary.state == SequencerState.DRAINED
    assert run_state.current_item is None
    assert run_state.active_session is None


def test_engine_failure_is_recorded_and_queue_advances(settings, pending):
    journal = []
    scripts = {
        "a": [Finished()],
        "b": [Progress(40.0), EngineFailed("boom", exit_code=2)],
        "c": [Finished()],
    }
    sequencer = JobSequencer(pending, settings, session_factory=_factory(scripts, journal), show_progress=False)

    summary = sequencer.run()

    assert [i.identity for i in summary.failed] == ["b"]
    assert [i.identity for i in summary.processed] == ["a", "c"]
    assert summary.state == SequencerState.DRAINED
    assert summary.exit_code == EXIT_ITEM_FAILED


def test_cancelled_event_terminates_whole_run(settings, pending):
    journal = []
    scripts = {"a": [Finished()], "b": [Progress(50.0), Cancelled()], "c": [Finished()]}
    sequencer = JobSequencer(pending, settings, session_factory=_factory(scripts, journal), show_progress=False)

    summary = sequencer.run()

    assert ("start", "c") not in journal
    assert summary.cancelled.identity == "b"
    assert summary.remaining == 1
    assert summary.state == SequencerState.TERMINATED
    assert summary.exit_code == EXIT_CANCELLED


def test_cancel_requested_between_items_stops_dispatch(settings, pending):
    journal = []
    run_state = RunState()
    scripts = {i.identity: [Finished()] for i in pending}
    make = _factory(scripts, journal)

    def factory(item, settings_):
        if item.identity == "b":
            run_state.cancel_requested = True
        return make(item, settings_)

    summary = JobSequencer(pending, settings, run_state, session_factory=factory, show_progress=False).run()

    assert journal == [("start", "a"), ("end", "a"), ("start", "b"), ("end", "b")]
    assert summary.state == SequencerState.TERMINATED
    assert summary.remaining == 1


def test_preset_error_aborts_run(settings, pending):
    run_state = RunState()

    def factory(item, settings_):
        raise PresetNotFound("Preset not found, or invalid.")

    sequencer = JobSequencer(pending, settings, run_state, session_factory=factory, show_progress=False)
    with pytest.raises(PresetNotFound):
        sequencer.run()
    assert run_state.current_item is None
    assert sequencer.state == SequencerState.DISPATCHING


def test_unexpected_error_cancels_active_session(settings, pending):
    sessions = []

    class Exploding(StubSession):
        def events(self):
            yield Progress(5.0)
            raise RuntimeError("renderer crashed")

    def factory(item, settings_):
        session = Exploding(item, [], [])
        sessions.append(session)
        return session

    with pytest.raises(RuntimeError):
        JobSequencer(pending, settings, session_factory=factory, show_progress=False).run()
    assert sessions[0].cancelled


def test_run_state_cancel_current_without_session():
    run_state = RunState()
    assert run_state.cancel_current() is False
    assert run_state.cancel_requested


def test_real_engine_end_to_end(settings, engine_cmd, monkeypatch):
    monkeypatch.setenv("FAKE_ENGINE_MODE", "ok")
    touch(settings.input_path, "a.mp4", "b.mkv", "c.txt")
    touch(settings.output_path, "a.mp4")
    pending = [i for i in scan(settings.input_path, settings.accepted_extensions)
               if i.identity not in {o.identity for o in scan(settings.output_path, ["mp4"])}]
    factory = functools.partial(TranscodeSession, engine_cmd=engine_cmd)

    summary = JobSequencer(pending, settings, session_factory=factory, show_progress=False).run()

    assert [i.identity for i in summary.processed] == ["b"]
    assert (settings.output_path / "b.mp4").read_text(encoding="utf-8") == "complete"
