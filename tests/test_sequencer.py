import math
import pytest
from lms.digits import InvalidOperand
from lms.pacer import Pacer
from lms.sequencer import TRACE_LIMIT, SequencerState, StepSequencer
from lms.tracer import Tracer
from lms.view import StepPhase, view_at

def _states_by_advance(seq):
    states = [seq.state]
    while seq.advance() is not None:
        states.append(seq.state)
    return states

def test_initial_state():
    seq = StepSequencer(23, 45)
    assert seq.cursor == 0
    assert seq.state is SequencerState.NOT_STARTED
    assert seq.total_steps == 11
    assert seq.view.rows == {}

def test_state_machine_walks_forward_by_one():
    seq = StepSequencer(23, 45)
    states = _states_by_advance(seq)
    S = SequencerState
    assert states == ([S.NOT_STARTED] + [S.MULTIPLYING] * 5 + [S.MULTIPLICATION_DONE]
                      + [S.ADDING] * 4 + [S.FINISHED])
    assert seq.cursor == seq.total_steps
    assert seq.advance() is None
    assert seq.cursor == seq.total_steps

def test_advance_view_matches_pure_fold():
    seq = StepSequencer(987, 65)
    while seq.advance() is not None:
        assert seq.view == view_at(seq.timeline, seq.cursor)
    assert seq.view.finished
    assert seq.view.result_digits == tuple(int(c) for c in str(987 * 65))

def test_tick_stages_each_step():
    seq = StepSequencer(23, 45)
    d1 = seq.tick()
    assert (d1.cursor, d1.phase, d1.kind) == (1, StepPhase.HIGHLIGHTING, "multiplication")
    assert d1.highlight == (1, 1)
    d2 = seq.tick()
    assert d2.phase is StepPhase.REVEALING
    assert d2.revealed_digits == ((1, 5),)
    assert d2.carries_set == {1: 1}
    d3 = seq.tick()
    assert d3.phase is StepPhase.CLEARED
    assert d3.highlight is None
    assert seq.cursor == 1

def test_tick_count_and_final_view():
    seq = StepSequencer(23, 45)
    ticks = 0
    while seq.tick() is not None:
        ticks += 1
    # three sub-phases per arithmetic step, one per divider
    assert ticks == 3 * (5 + 4) + 2
    assert seq.state is SequencerState.FINISHED
    assert seq.view == view_at(seq.timeline, seq.total_steps)

def test_advance_completes_pending_phases():
    seq = StepSequencer(23, 45)
    seq.tick()
    delta = seq.advance()
    assert seq.cursor == 2
    assert seq.phase is StepPhase.CLEARED
    assert seq.view.rows == {1: (1, 5)}
    assert delta.carries_set == {2: 1}

def test_stale_tick_is_ignored():
    seq = StepSequencer(23, 45)
    old = seq.generation
    seq.tick(old)
    seq.reset()
    assert seq.generation == old + 1
    assert seq.tick(old) is None
    assert seq.cursor == 0
    assert "stale_tick" in seq.trace.kinds()
    assert seq.tick(seq.generation) is not None

def test_reset_is_idempotent():
    seq = StepSequencer(4321, 987)
    first = seq.timeline
    seq.advance(); seq.advance()
    for _ in range(3):
        seq.reset()
        assert seq.cursor == 0
        assert seq.timeline == first
        assert seq.view.rows == {}

def test_set_operands_regenerates_and_rewinds():
    seq = StepSequencer(23, 45)
    seq.advance()
    gen = seq.generation
    seq.set_operands("99", "99")
    assert seq.cursor == 0
    assert seq.generation == gen + 1
    assert seq.timeline.result == 9801
    assert "operands_set" in seq.trace.kinds()

def test_invalid_operands_keep_current_playback():
    seq = StepSequencer(23, 45)
    seq.advance(); seq.advance()
    gen = seq.generation
    with pytest.raises(InvalidOperand):
        seq.set_operands("12a", 3)
    assert seq.cursor == 2
    assert seq.generation == gen
    assert seq.timeline.a == 23

def test_invalid_operands_on_construction():
    with pytest.raises(InvalidOperand):
        StepSequencer("", 3)

@pytest.mark.parametrize("bad", [0, -1, math.nan, math.inf, "2", True])
def test_speed_factor_validation(bad):
    seq = StepSequencer(2, 3)
    with pytest.raises(ValueError):
        seq.set_speed_factor(bad)
    assert seq.speed_factor == 1.0

def test_speed_factor_scales_delays_only():
    slow = StepSequencer(23, 45)
    fast = StepSequencer(23, 45, speed_factor=2)
    assert fast.timeline == slow.timeline
    assert slow.next_delay() == pytest.approx(2.0)
    assert fast.next_delay() == pytest.approx(1.0)
    fast.set_speed_factor(0.5)
    assert fast.next_delay() == pytest.approx(4.0)

def test_delay_schedule_follows_phases():
    seq = StepSequencer(23, 45)
    seq.tick()
    assert seq.next_delay() == pytest.approx(0.8)
    seq.tick()
    assert seq.next_delay() == pytest.approx(0.5)
    seq.tick()
    assert seq.next_delay() == pytest.approx(0.7)

def test_pacer_plays_to_end():
    seq = StepSequencer(23, 45)
    slept = []
    deltas = Pacer(seq, sleep=slept.append).run()
    assert len(deltas) == 29
    assert seq.state is SequencerState.FINISHED
    assert sum(slept) == pytest.approx(22.0)
    assert seq.next_delay() is None

def test_pacer_stops_on_generation_change():
    seq = StepSequencer(23, 45)
    seen = []

    def on_delta(d):
        seen.append(d)
        seq.set_operands(12, 12)

    deltas = Pacer(seq, sleep=lambda s: None, on_delta=on_delta).run()
    assert len(deltas) == 1
    assert seq.cursor == 0
    assert seq.timeline.result == 144

def test_pacer_max_ticks():
    seq = StepSequencer(23, 45)
    assert len(Pacer(seq, sleep=lambda s: None).run(max_ticks=4)) == 4
    assert seq.cursor == 2

def test_snapshot_shape():
    seq = StepSequencer(23, 45)
    seq.tick()
    snap = seq.snapshot()
    assert snap["cursor"] == 1
    assert snap["phase"] == "highlighting"
    assert snap["state"] == "multiplying"
    assert snap["view"]["highlight"] == [1, 1]

def test_trace_restarts_on_reset():
    seq = StepSequencer(23, 45)
    for _ in range(50):
        seq.reset()
        while seq.tick(seq.generation) is not None:
            pass
    assert len(seq.trace) < 500
    assert seq.trace.kinds()[0] == "operands"
    assert seq.trace.kinds().count("reset") == 1

def test_trace_is_capped_between_resets():
    seq = StepSequencer(2, 3)
    for _ in range(TRACE_LIMIT + 50):
        seq.tick(seq.generation - 1)
    assert len(seq.trace) == TRACE_LIMIT
    assert seq.trace.kinds()[-1] == "stale_tick"

def test_tracer_limit_keeps_newest():
    trace = Tracer(limit=3)
    for i in range(5):
        trace.add("n", {"i": i})
    assert [s["detail"]["i"] for s in trace.steps()] == [2, 3, 4]
    assert len(trace) == 3
