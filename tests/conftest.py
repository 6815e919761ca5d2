import os

import pytest

import gameplay_models
import judge
import presentation
import session
import timing_model


@pytest.fixture
def single_note_chart():
    """noteSpeed 2.0, one note at 1.0 in lane ll."""
    return gameplay_models.Chart(
        note_speed_seconds=2.0,
        notes=(gameplay_models.ChartNote(time_seconds=1.0, lane="ll"),),
        title="single",
    )


@pytest.fixture
def windows():
    return judge.JudgementWindows(perfect_seconds=0.15, ok_seconds=0.22)


@pytest.fixture
def recorder():
    return presentation.RecordingPresentation()


@pytest.fixture
def clock():
    return timing_model.TimingModel()


@pytest.fixture
def make_session(clock, recorder, windows):
    def build(**overrides):
        options = dict(
            clock=clock,
            presentation=recorder,
            judgement_windows=windows,
            lookahead_seconds=0.1,
            poll_interval_seconds=0.05,
            late_slack_seconds=0.05,
        )
        options.update(overrides)
        return session.SessionController(**options)

    return build


def advance_to(game_session, clock, target_seconds, step_seconds=0.01):
    """Move the clock forward in small steps, ticking the session after each one."""
    while clock.current_time_seconds() + 1e-9 < target_seconds:
        step = min(step_seconds, target_seconds - clock.current_time_seconds())
        clock.advance(step)
        game_session.tick()


@pytest.fixture(scope="session")
def qt_application():
    """One QApplication for every Qt test, on the offscreen platform so no display is needed."""
    QtWidgets = pytest.importorskip("PyQt6.QtWidgets")
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
