from gameplay_models import Grade
from judge import JudgeEngine
from note_registry import NoteRegistry


def _engine(registry, windows, recorder, now):
    engine = JudgeEngine(registry, windows, recorder, lambda: now[0])
    registry.set_expiry_handler(engine.on_note_expired)
    return engine


def test_spawn_requests_presentation_handle(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.22)
    note = registry.spawn(lane="lm", travel_duration_seconds=2.0, target_time_seconds=2.0, now_seconds=0.0)

    assert recorder.spawned == [(note.handle, "lm", 2.0)]
    assert not note.judged
    assert abs(note.expiry.remaining_seconds() - 2.22) < 1e-9
    assert len(registry) == 1


def test_find_best_match_prefers_closest_then_earliest(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)
    early = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    late = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.2, now_seconds=0.2)
    registry.spawn(lane="rr", travel_duration_seconds=1.0, target_time_seconds=1.1, now_seconds=0.1)

    assert registry.find_best_match(lane="ll", observed_time_seconds=1.15, window_seconds=0.22) is late
    assert registry.find_best_match(lane="ll", observed_time_seconds=1.1, window_seconds=0.22) is early
    assert registry.find_best_match(lane="ll", observed_time_seconds=2.0, window_seconds=0.22) is None
    assert registry.find_best_match(lane="lm", observed_time_seconds=1.0, window_seconds=0.22) is None


def test_find_best_match_skips_judged_notes(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)
    note = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    assert registry.try_mark_judged(note)
    assert registry.find_best_match(lane="ll", observed_time_seconds=1.0, window_seconds=0.22) is None


def test_remove_is_idempotent(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)
    note = registry.spawn(lane="rm", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)

    registry.remove(note)
    released_once = list(recorder.released)
    registry.remove(note)

    assert recorder.released == released_once == [note.handle]
    assert len(registry) == 0
    assert not registry.contains(note)


def test_clear_releases_without_judging(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)
    notes = [
        registry.spawn(lane=lane, travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
        for lane in ("ll", "lm")
    ]
    registry.clear()

    assert len(registry) == 0
    assert recorder.live_handles() == set()
    assert recorder.judgments == []
    assert not any(note.judged for note in notes)


def test_expiry_forces_single_miss(recorder, windows):
    registry = NoteRegistry(recorder, expiry_grace_seconds=windows.ok_seconds)
    now = [0.0]
    engine = _engine(registry, windows, recorder, now)
    note = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)

    now[0] = 1.1
    assert registry.advance(1.1) == []
    now[0] = 1.3
    assert registry.advance(0.2) == [note]

    assert note.judged
    assert engine.score_state().miss_count == 1
    assert recorder.judgments == [(Grade.MISS, note.handle)]
    assert registry.advance(5.0) == []
    assert engine.score_state().miss_count == 1


def test_hit_then_expiry_judges_once(recorder, windows):
    registry = NoteRegistry(recorder, expiry_grace_seconds=windows.ok_seconds)
    now = [1.0]
    engine = _engine(registry, windows, recorder, now)
    note = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)

    hit = engine.on_lane_activate("ll", observed_time_seconds=1.0)
    assert hit is not None
    assert engine.on_note_expired(note) is None
    registry.advance(10.0)

    assert engine.score_state().as_dict() == {"perfect": 1, "ok": 0, "miss": 0}
    assert len(recorder.judgments) == 1


def test_pause_freezes_remaining_expiry_time(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.0)
    note = registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)

    registry.advance(0.4)
    registry.pause()
    assert registry.advance(100.0) == []
    assert abs(note.expiry.remaining_seconds() - 0.6) < 1e-9

    registry.resume()
    assert registry.advance(0.5) == []
    assert registry.advance(0.1) == [note]


def test_spawn_while_paused_starts_frozen(recorder):
    registry = NoteRegistry(recorder, expiry_grace_seconds=0.0)
    registry.pause()
    note = registry.spawn(lane="rr", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    assert note.expiry.is_paused()
    registry.resume()
    assert not note.expiry.is_paused()


def test_note_ids_are_per_registry(recorder):
    first_registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)
    second_registry = NoteRegistry(recorder, expiry_grace_seconds=0.2)

    first = first_registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    again = first_registry.spawn(lane="lm", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    other = second_registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)

    assert (first.note_id, again.note_id) == (1, 2)
    assert other.note_id == 1
