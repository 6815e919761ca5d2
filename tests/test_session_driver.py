import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")
QtGui = pytest.importorskip("PyQt6.QtGui")

import input_router  # noqa: E402
import session  # noqa: E402
import session_driver  # noqa: E402
import timing_model  # noqa: E402


@pytest.fixture
def driven(qt_application, single_note_chart, windows):
    clock = timing_model.TimingModel()
    signal_presentation = session_driver.SignalPresentation()
    game_session = session.SessionController(
        clock=clock,
        presentation=signal_presentation,
        judgement_windows=windows,
        lookahead_seconds=0.1,
        poll_interval_seconds=0.05,
        late_slack_seconds=0.05,
    )
    game_session.load(single_note_chart)
    driver = session_driver.SessionDriver(game_session, tick_interval_ms=16)
    return clock, signal_presentation, game_session, driver


def test_router_signals_drive_the_session(driven):
    clock, signal_presentation, game_session, driver = driven
    router = input_router.InputRouter()
    driver.attach_router(router)

    states, spawned, judgments = [], [], []
    driver.stateChanged.connect(states.append)
    signal_presentation.noteSpawned.connect(lambda handle, lane, duration: spawned.append((handle, lane, duration)))
    signal_presentation.judgmentShown.connect(lambda grade, handle: judgments.append((grade, handle)))

    router.playPauseToggled.emit()
    assert states == ["playing"]
    assert spawned == [(1, "ll", 1.0)]

    clock.advance(1.0)
    router.laneActivated.emit("ll")
    router.laneDeactivated.emit("ll")
    assert judgments == [("perfect", 1)]
    assert game_session.snapshot().held_lanes == ()

    router.playPauseToggled.emit()
    assert states == ["playing", "paused"]


def test_reset_returns_session_to_idle(driven):
    _clock, _signal_presentation, game_session, driver = driven
    snapshots = []
    driver.snapshotUpdated.connect(snapshots.append)

    assert driver.play()
    assert driver.reset()

    assert game_session.state is session.SessionState.IDLE
    assert snapshots[-1].state is session.SessionState.IDLE


def test_reset_zeroes_router_press_counters(driven):
    _clock, _signal_presentation, _game_session, driver = driven
    router = input_router.InputRouter()
    driver.attach_router(router)
    key_event = QtGui.QKeyEvent(
        QtCore.QEvent.Type.KeyPress, int(QtCore.Qt.Key.Key_Z.value), QtCore.Qt.KeyboardModifier.NoModifier
    )

    driver.play()
    router.handle_key_press(key_event)
    assert router.total_presses == 1

    driver.reset()
    assert router.total_presses == 0
    assert router.ignored_presses == 0
