"""
Test Script for Module 3: Feedback
Tests the speaking-state coordinator, the speech sinks and the overlay renderer
"""

import sys
import threading
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from feedback import (
    FeedbackCoordinator,
    HeldSpeechSink,
    NullSpeechSink,
    OverlayRenderer,
    Pyttsx3SpeechSink,
    SpeechSink,
    create_speech_sink
)
from perception.keypoints import COCO17_NAMES, Keypoint
from posture import PoseInterpreter, ViewConfig
from posture.geometry import ScreenPoint
from posture.interpreter import AngleLabel, FrameResult

IDENTITY_VIEW = ViewConfig(flip_x=False, swap_dims=False, swap_output=False)
SIZE = (180, 240)


class RecordingSink(SpeechSink):
    """Keeps utterances pending until the test completes them."""

    def __init__(self):
        self.spoken = []
        self.pending = []
        self.stops = 0

    def speak(self, text, on_done=None):
        self.spoken.append(text)
        self.pending.append(on_done)

    def stop(self):
        self.stops += 1

    def finish(self, index=-1):
        self.pending.pop(index)()


class FakeEngine:
    """Minimal pyttsx3 engine."""

    def __init__(self, fail=False):
        self.fail = fail
        self.properties = {}
        self.said = []
        self.stops = 0

    def setProperty(self, name, value):
        self.properties[name] = value

    def getProperty(self, name):
        return self.properties.get(name, [])

    def say(self, text):
        self.said.append(text)

    def runAndWait(self):
        if self.fail:
            raise RuntimeError("audio device unavailable")

    def stop(self):
        self.stops += 1


def make_pose(knee_x):
    points = {
        'right_shoulder': (100.0, 50.0, 0.9),
        'right_hip': (100.0, 150.0, 0.9),
        'right_knee': (knee_x, 150.0 if knee_x != 100.0 else 220.0, 0.9),
    }
    return [Keypoint(name, *points[name]) if name in points else Keypoint(name, 0.0, 0.0, 0.0)
            for name in COCO17_NAMES]


def test_single_warning_in_flight():
    """Test 1: A second bad frame while speaking issues no new request"""
    print("\n" + "="*60)
    print("TEST 1: Single Warning In Flight")
    print("="*60)

    sink = RecordingSink()
    coordinator = FeedbackCoordinator(sink)

    assert coordinator.request_warn("Please do not bend your back") is True
    assert coordinator.speaking
    assert coordinator.request_warn("Please do not bend your back") is False
    assert sink.spoken == ["Please do not bend your back"]

    sink.finish()
    assert not coordinator.speaking
    assert coordinator.request_warn("again") is True
    assert len(sink.spoken) == 2
    print("✓ Exactly one speak request while speaking")


def test_clear_stops_once():
    """Test 2: Good posture while speaking stops exactly once"""
    print("\n" + "="*60)
    print("TEST 2: Clear Stops Once")
    print("="*60)

    sink = RecordingSink()
    coordinator = FeedbackCoordinator(sink)

    assert coordinator.clear() is False
    assert sink.stops == 0

    coordinator.request_warn("warn")
    assert coordinator.clear() is True
    assert not coordinator.speaking
    assert coordinator.clear() is False
    assert sink.stops == 1
    print("✓ One stop request, flag cleared")


def test_stale_completion():
    """Test 3: Completion of a stopped utterance does not clear a newer one"""
    print("\n" + "="*60)
    print("TEST 3: Stale Completion")
    print("="*60)

    sink = RecordingSink()
    coordinator = FeedbackCoordinator(sink)

    coordinator.request_warn("first")
    coordinator.clear()
    coordinator.request_warn("second")
    assert coordinator.speaking

    sink.finish(0)  # late completion of "first"
    assert coordinator.speaking

    sink.finish(0)  # completion of "second"
    assert not coordinator.speaking
    print("✓ Utterance tokens guard the flag")


def test_interpreter_drives_feedback():
    """Test 4: bad, bad, good frames -> one speak, one stop"""
    print("\n" + "="*60)
    print("TEST 4: Interpreter Drives Feedback")
    print("="*60)

    sink = RecordingSink()
    coordinator = FeedbackCoordinator(sink)
    interpreter = PoseInterpreter(coordinator=coordinator)

    interpreter.interpret(make_pose(170.0), IDENTITY_VIEW, SIZE, SIZE)
    interpreter.interpret(make_pose(170.0), IDENTITY_VIEW, SIZE, SIZE)
    assert sink.spoken == ["Please do not bend your back"]

    interpreter.interpret(make_pose(100.0), IDENTITY_VIEW, SIZE, SIZE)
    assert sink.stops == 1
    assert not coordinator.speaking

    interpreter.interpret(make_pose(100.0), IDENTITY_VIEW, SIZE, SIZE)
    assert sink.stops == 1
    print("✓ Speak once, stop once")


def test_null_sink():
    """Test 5: Null sink completes immediately, held sink on stop"""
    print("\n" + "="*60)
    print("TEST 5: Silent Speech Sinks")
    print("="*60)

    sink = create_speech_sink({'enabled': False})
    assert isinstance(sink, NullSpeechSink)

    coordinator = FeedbackCoordinator(sink)
    assert coordinator.request_warn("warn")
    assert not coordinator.speaking
    assert coordinator.request_warn("warn")
    assert sink.spoken == ["warn", "warn"]

    held = HeldSpeechSink()
    coordinator = FeedbackCoordinator(held)
    assert coordinator.request_warn("warn")
    assert coordinator.speaking
    assert not coordinator.request_warn("warn")
    assert coordinator.clear()
    assert not coordinator.speaking
    assert held.spoken == ["warn"]
    print("✓ Null sink completes at once, held sink waits for stop")


def test_pyttsx3_sink_completion():
    """Test 6: Worker thread reports completion, also on engine failure"""
    print("\n" + "="*60)
    print("TEST 6: pyttsx3 Sink Completion")
    print("="*60)

    for fail in (False, True):
        engine = FakeEngine(fail=fail)
        sink = Pyttsx3SpeechSink(rate=150, volume=0.5, engine=engine)
        done = threading.Event()

        sink.speak("Please do not bend your back", on_done=done.set)
        assert done.wait(timeout=5.0), f"on_done not called (fail={fail})"
        assert engine.said == ["Please do not bend your back"]
        assert engine.properties['rate'] == 150
        assert engine.properties['volume'] == 0.5

        sink.shutdown()
        assert engine.stops >= 1
    print("✓ Completion signalled after success and failure")


def test_pyttsx3_sink_flag_recovers():
    """Test 7: A failed utterance does not leave the coordinator stuck"""
    print("\n" + "="*60)
    print("TEST 7: Speaking Flag Recovers After Failure")
    print("="*60)

    sink = Pyttsx3SpeechSink(engine=FakeEngine(fail=True))
    coordinator = FeedbackCoordinator(sink)
    try:
        coordinator.request_warn("warn")
        for _ in range(500):
            if not coordinator.speaking:
                break
            threading.Event().wait(0.01)
        assert not coordinator.speaking
        assert coordinator.request_warn("warn")
    finally:
        sink.shutdown()
    print("✓ Flag cleared by completion callback")


def test_overlay_render():
    """Test 8: Overlay draws markers and keeps image shape"""
    print("\n" + "="*60)
    print("TEST 8: Overlay Renderer")
    print("="*60)

    image = np.zeros((240, 180, 3), dtype=np.uint8)
    result = FrameResult(
        markers=[ScreenPoint('right_hip', 50.0, 120.0), ScreenPoint('right_knee', 120.0, 200.0)],
        angle=90.0,
        label=AngleLabel(50.0, 80.0, "90.00°"),
    )

    renderer = OverlayRenderer(draw_skeleton=True)
    out = renderer.render(image, result, fps=30, facing='front')

    assert out.shape == (240, 180, 3)
    assert tuple(out[120, 50]) == (0, 170, 0)
    assert tuple(out[200, 120]) == (0, 170, 0)
    assert out[12:30, 10:40].any()  # FPS box

    blank = renderer.render(np.zeros((240, 180, 3), dtype=np.uint8), None)
    assert not blank.any()
    print("✓ Markers drawn at screen positions")


def run_all_tests():
    """Run all Module 3 tests"""
    print("\n" + "#"*60)
    print("#  MODULE 3 TEST SUITE - Feedback")
    print("#"*60)

    tests = [
        ("Single Warning In Flight", test_single_warning_in_flight),
        ("Clear Stops Once", test_clear_stops_once),
        ("Stale Completion", test_stale_completion),
        ("Interpreter Drives Feedback", test_interpreter_drives_feedback),
        ("Null Speech Sink", test_null_sink),
        ("pyttsx3 Sink Completion", test_pyttsx3_sink_completion),
        ("Speaking Flag Recovers", test_pyttsx3_sink_flag_recovers),
        ("Overlay Renderer", test_overlay_render),
    ]

    results = []
    for test_name, test_func in tests:
        try:
            test_func()
            results.append((test_name, True))
        except Exception as e:
            print(f"\n✗ Test '{test_name}' failed: {e!r}")
            results.append((test_name, False))

    print("\n" + "="*60)
    print("TEST SUMMARY")
    print("="*60)
    for test_name, result in results:
        status = "✓ PASS" if result else "✗ FAIL"
        print(f"{status:8s} | {test_name}")

    passed = sum(1 for _, r in results if r)
    print(f"\nTotal: {passed}/{len(results)} tests passed")
    return passed == len(results)


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
