import pytest

from trial_clock import Stopwatch, TrialClock


def test_isi_phase_counts_up_without_stopping(fake_time):
    clock = TrialClock(get_time=fake_time)
    clock.start_isi_phase()
    fake_time.advance(0.8)

    assert clock.in_isi_phase
    assert clock.isi_elapsed_seconds() == pytest.approx(0.8)
    assert clock.isi_elapsed_seconds() == pytest.approx(0.8)
    assert clock.response_elapsed_seconds() == 0.0


def test_switching_phase_freezes_isi_and_starts_response(fake_time):
    clock = TrialClock(get_time=fake_time)
    clock.start_isi_phase()
    fake_time.advance(1.2)
    clock.end_isi_phase_start_response()
    fake_time.advance(0.3)

    assert not clock.in_isi_phase
    assert clock.isi_elapsed_seconds() == pytest.approx(1.2)
    assert clock.response_elapsed_seconds() == pytest.approx(0.3)


def test_stop_response_returns_final_elapsed_and_halts(fake_time):
    clock = TrialClock(get_time=fake_time)
    clock.start_isi_phase()
    clock.end_isi_phase_start_response()
    fake_time.advance(0.25)

    assert clock.stop_response_phase() == pytest.approx(0.25)
    fake_time.advance(5.0)
    assert clock.response_elapsed_seconds() == pytest.approx(0.25)


def test_new_isi_phase_resets_both_timers(fake_time):
    clock = TrialClock(get_time=fake_time)
    clock.start_isi_phase()
    fake_time.advance(1.0)
    clock.end_isi_phase_start_response()
    fake_time.advance(0.4)
    clock.stop_response_phase()

    clock.start_isi_phase()
    assert clock.isi_elapsed_seconds() == 0.0
    assert clock.response_elapsed_seconds() == 0.0


def test_stopwatch_accumulates_across_restarts(fake_time):
    watch = Stopwatch(fake_time)
    watch.start()
    fake_time.advance(0.5)
    watch.stop()
    fake_time.advance(10.0)
    watch.start()
    fake_time.advance(0.25)

    assert watch.elapsed() == pytest.approx(0.75)


def test_default_clock_uses_psychopy_monotonic_time():
    clock = TrialClock()
    clock.start_isi_phase()
    assert clock.isi_elapsed_seconds() >= 0.0
