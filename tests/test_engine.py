"""
Integration tests for the driver state engine.
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from driver_alertness.core.engine import DriverStateEngine
from driver_alertness.core.observation import (
    DriverState, DetectorOptions, FaceObservation, Point2D,
    UPPER_LIP_BOTTOM, LOWER_LIP_TOP, MONITORING_TEXT,
)
from driver_alertness.utils.config import Config, config


def make_contours(ratio, scale=1.0):
    """Lip contours whose lip_open_ratio equals ``ratio``."""
    gap = 2.0 * ratio
    upper = tuple(Point2D(x * scale, 0.0) for x in (-1.0, 0.0, 1.0))
    lower = tuple(Point2D(x * scale, gap * scale) for x in (-1.0, 0.0, 1.0))
    return {UPPER_LIP_BOTTOM: upper, LOWER_LIP_TOP: lower}


def make_observation(eye=1.0, yaw=0.0, pitch=0.0, ratio=0.0):
    return FaceObservation(
        left_eye_open=eye,
        right_eye_open=eye,
        yaw_angle=yaw,
        pitch_angle=pitch,
        contours=make_contours(ratio),
    )


class TestDriverStateEngine(unittest.TestCase):
    """Test cases for DriverStateEngine."""

    def setUp(self):
        self.engine = DriverStateEngine(Config())

    def run_frames(self, observations):
        return [self.engine.process(o) for o in observations]

    def test_initial_status(self):
        self.assertIsNone(self.engine.state)
        self.assertEqual(self.engine.status_text, MONITORING_TEXT)

    def test_attentive_by_default(self):
        results = self.run_frames([make_observation()] * 30)
        self.assertEqual(results, [DriverState.ATTENTIVE] * 30)
        self.assertEqual(self.engine.status_text, "✅ Driver Attentive")

    def test_missing_fields_are_attentive(self):
        results = self.run_frames([FaceObservation()] * 40)
        self.assertEqual(results, [DriverState.ATTENTIVE] * 40)

    def test_none_fields_are_attentive(self):
        observation = FaceObservation(left_eye_open=None, right_eye_open=None,
                                      yaw_angle=None, pitch_angle=None, contours=None)
        self.assertEqual(observation.left_eye_open, 1.0)
        self.assertEqual(observation.yaw_angle, 0.0)
        self.assertEqual(dict(observation.contours), {})

        results = self.run_frames([observation] * 40)
        self.assertEqual(results, [DriverState.ATTENTIVE] * 40)

        # a partial observation keeps the values it does carry
        results = self.run_frames([FaceObservation(left_eye_open=None, right_eye_open=0.0)] * 16)
        self.assertEqual(results, [DriverState.ATTENTIVE] * 16)
        results = self.run_frames([FaceObservation(yaw_angle=40.0, pitch_angle=None)] * 11)
        self.assertEqual(results[10], DriverState.DISTRACTED)

    def test_drowsy_scenario(self):
        """Closed eyes with a closed mouth: Attentive for 15 frames, then Drowsy."""
        results = self.run_frames([make_observation(eye=0.1)] * 20)
        self.assertEqual(results[:15], [DriverState.ATTENTIVE] * 15)
        self.assertEqual(results[15:], [DriverState.DROWSY] * 5)
        self.assertEqual(self.engine.status_text, "⚠️ Drowsy Driver Detected!")

    def test_mouth_skipped_while_drowsy(self):
        self.run_frames([make_observation(eye=0.1)] * 18)
        # frames 16-18 stop before the mouth analysis
        self.assertEqual(len(self.engine.mouth.history), 15)

    def test_distracted_scenario(self):
        results = self.run_frames([make_observation(yaw=35.0)] * 12)
        self.assertEqual(results[:10], [DriverState.ATTENTIVE] * 10)
        self.assertEqual(results[10:], [DriverState.DISTRACTED] * 2)

    def test_drowsy_over_distracted(self):
        results = self.run_frames([make_observation(eye=0.0, yaw=50.0, pitch=30.0)] * 20)
        self.assertEqual(results[15:], [DriverState.DROWSY] * 5)

    def test_talking_scenario(self):
        """Alternating 0.05 / 0.35 lip ratio: Talking on the 9th qualifying frame."""
        frames = [make_observation(ratio=r) for r in [0.05, 0.35] * 10]
        results = self.run_frames(frames)
        self.assertEqual(results[:13], [DriverState.ATTENTIVE] * 13)
        self.assertEqual(results[13:], [DriverState.TALKING] * 7)
        self.assertEqual(self.engine.status_text, "⚠️ Driver Talking!")

    def test_yawning_scenario(self):
        results = self.run_frames([make_observation(ratio=0.45)] * 12)
        self.assertEqual(results[:10], [DriverState.ATTENTIVE] * 10)
        self.assertEqual(results[10:], [DriverState.YAWNING] * 2)

    def test_no_face_resets_everything(self):
        self.run_frames([make_observation(eye=0.1, ratio=0.4)] * 15)
        self.assertEqual(self.engine.eye_head.closed_eye_frames, 15)

        self.assertEqual(self.engine.process(None), DriverState.NO_DRIVER)
        self.assertEqual(self.engine.status_text, "No driver detected")
        self.assertEqual(self.engine.eye_head.closed_eye_frames, 0)
        self.assertEqual(self.engine.eye_head.distracted_frames, 0)
        self.assertEqual(self.engine.mouth.talking_frames, 0)
        self.assertEqual(self.engine.mouth.yawning_frames, 0)
        self.assertEqual(len(self.engine.mouth.history.lip_ratio_window), 0)
        self.assertEqual(len(self.engine.mouth.history.open_flag_window), 0)

        # the full debounce count applies again
        results = self.run_frames([make_observation(eye=0.1)] * 16)
        self.assertEqual(results[:15], [DriverState.ATTENTIVE] * 15)
        self.assertEqual(results[15], DriverState.DROWSY)

    def test_window_capacity(self):
        self.run_frames([make_observation(ratio=r) for r in [0.05, 0.35] * 50])
        self.assertEqual(len(self.engine.mouth.history.lip_ratio_window), 20)
        self.assertEqual(len(self.engine.mouth.history.open_flag_window), 20)

    def test_scale_does_not_change_state(self):
        near = DriverStateEngine(Config())
        far = DriverStateEngine(Config())
        for r in [0.05, 0.35] * 10 + [0.45] * 15:
            a = near.process(FaceObservation(contours=make_contours(r, scale=120.0)))
            b = far.process(FaceObservation(contours=make_contours(r, scale=0.3)))
            self.assertEqual(a, b)

    def test_process_faces(self):
        self.assertEqual(self.engine.process_faces([]), DriverState.NO_DRIVER)
        self.assertEqual(self.engine.process_faces(None), DriverState.NO_DRIVER)

        record = {'leftEyeOpenProbability': 0.05, 'rightEyeOpenProbability': 0.05}
        results = [self.engine.process_faces([record, {}]) for _ in range(16)]
        self.assertEqual(results[15], DriverState.DROWSY)

        self.assertEqual(self.engine.process_faces([make_observation()]), DriverState.ATTENTIVE)

    def test_configure(self):
        options = self.engine.configure({'performanceMode': 'fast', 'contour_mode': 'none'})
        self.assertEqual(options, DetectorOptions(performance_mode='fast', contour_mode='none'))
        self.assertIs(self.engine.detector_options, options)
        self.assertEqual(options.to_detector_dict()['performanceMode'], 'fast')

        # classification is unaffected
        results = self.run_frames([make_observation(eye=0.1)] * 16)
        self.assertEqual(results[15], DriverState.DROWSY)

    def test_configure_ignores_unknown_keys(self):
        with self.assertLogs('driver_alertness', level='WARNING') as logs:
            options = self.engine.configure({'landmarkMode': 'none', 'minFaceSize': 0.2})
        self.assertEqual(options.landmark_mode, 'none')
        self.assertTrue(any('minFaceSize' in line for line in logs.output))

    def test_default_detector_options_from_config(self):
        cfg = Config()
        cfg.detector.performance_mode = 'fast'
        engine = DriverStateEngine(cfg)
        self.assertEqual(engine.detector_options.performance_mode, 'fast')
        self.assertEqual(engine.detector_options.classification_mode, 'all')

    def test_default_engines_own_their_config(self):
        first = DriverStateEngine()
        second = DriverStateEngine()
        self.assertIsNot(first.config, config)
        self.assertIsNot(first.config, second.config)

        first.config.eye_head.drowsy_confirm_frames = 1
        self.assertEqual(second.config.eye_head.drowsy_confirm_frames, config.eye_head.drowsy_confirm_frames)
        self.assertEqual(first.process(make_observation(eye=0.0)), DriverState.ATTENTIVE)
        self.assertEqual(first.process(make_observation(eye=0.0)), DriverState.DROWSY)
        self.assertEqual(second.process(make_observation(eye=0.0)), DriverState.ATTENTIVE)

    def test_session_summary(self):
        self.run_frames([make_observation()] * 3 + [None] * 2)
        summary = self.engine.get_session_summary()
        self.assertEqual(summary['frames_processed'], 5)
        self.assertEqual(summary['state_counts']['Attentive'], 3)
        self.assertEqual(summary['state_counts']['NoDriver'], 2)
        self.assertEqual(summary['state_counts']['Drowsy'], 0)
        self.assertEqual(summary['current_state'], 'NoDriver')
        self.assertGreaterEqual(summary['max_latency_ms'], summary['avg_latency_ms'])
        self.assertLess(summary['avg_latency_ms'], 33.0)

    def test_state_changes_logged(self):
        with self.assertLogs('driver_alertness', level='INFO') as logs:
            self.run_frames([make_observation(), make_observation(), None])
        changes = [line for line in logs.output if '->' in line]
        self.assertEqual(len(changes), 2)

    def test_reset(self):
        self.run_frames([make_observation(eye=0.1)] * 10 + [None])
        self.engine.reset()
        self.assertIsNone(self.engine.state)
        self.assertEqual(self.engine.frames_processed, 0)
        self.assertEqual(self.engine.eye_head.closed_eye_frames, 0)
        self.assertEqual(self.engine.get_session_summary()['avg_latency_ms'], 0.0)


if __name__ == '__main__':
    unittest.main()
