import unittest

from shotsense.config import BufferConfig, ConsensusConfig, DetectorConfig
from shotsense.detect.detector import ShotDetector
from shotsense.samples import SignalView
from shotsense.signals.buffer import SampleBuffer

from synthetic import INTERVAL_MS, add_shot, noisy_baseline, quiet_baseline, shot_signal, to_samples


class BatchDetectionTests(unittest.TestCase):
    def test_single_shot_is_detected_with_expected_range(self) -> None:
        shots = ShotDetector().detect_all(to_samples(shot_signal()))

        self.assertEqual(len(shots), 1)
        shot = shots[0]
        self.assertEqual(shot.index, 200)
        self.assertAlmostEqual(shot.range, 18.0)
        self.assertAlmostEqual(shot.dip_mag, 2.0)
        self.assertAlmostEqual(shot.recovery_mag, 15.0)
        self.assertEqual(shot.dip_offset, 12)
        self.assertEqual(shot.recovery_offset, 32)
        self.assertEqual(shot.timestamp, 200 * INTERVAL_MS)
        self.assertIsNone(shot.consensus)
        self.assertIsNone(shot.classification)

    def test_second_shot_within_separation_is_suppressed(self) -> None:
        shots = ShotDetector().detect_all(to_samples(shot_signal(peaks=(200, 230))))
        self.assertEqual([s.index for s in shots], [200])

    def test_well_separated_shots_are_both_detected(self) -> None:
        shots = ShotDetector().detect_all(to_samples(shot_signal(n=600, peaks=(200, 400))))
        self.assertEqual([s.index for s in shots], [200, 400])

    def test_noisy_baseline_rejects_low_sigma_peak(self) -> None:
        values = add_shot(noisy_baseline(400), 200, peak=16.0)
        self.assertEqual(ShotDetector().detect_all(to_samples(values)), [])

    def test_noisy_peak_passes_without_movement_aware_gate(self) -> None:
        values = add_shot(noisy_baseline(400), 200, peak=16.0)
        config = DetectorConfig(moving_peak_sigma=None)
        shots = ShotDetector(config).detect_all(to_samples(values))
        self.assertEqual([s.index for s in shots], [200])

    def test_shallow_dip_is_rejected(self) -> None:
        values = shot_signal(dip=7.0)
        self.assertEqual(ShotDetector().detect_all(to_samples(values)), [])

    def test_peak_below_absolute_floor_is_rejected(self) -> None:
        values = shot_signal(peak=13.5)
        self.assertEqual(ShotDetector().detect_all(to_samples(values)), [])

    def test_low_peak_rejection_is_logged_with_its_gate(self) -> None:
        with self.assertLogs("shotsense.detect.detector", level="DEBUG") as logs:
            ShotDetector().detect_all(to_samples(shot_signal(peak=13.5)))
        self.assertIn("Candidate 200 rejected at peak gate", "\n".join(logs.output))

    def test_weak_recovery_is_rejected(self) -> None:
        values = shot_signal(recovery=9.0)
        values[213:243] = [9.0] * 30
        self.assertEqual(ShotDetector().detect_all(to_samples(values)), [])

    def test_detection_is_deterministic(self) -> None:
        samples = to_samples(shot_signal(n=1200, peaks=(200, 400, 430, 700, 1000)))
        detector = ShotDetector()
        first = detector.detect_all(samples)
        second = detector.detect_all(samples)
        self.assertEqual(first, second)
        self.assertEqual(first, ShotDetector().detect_all(samples))

    def test_accepted_shots_respect_minimum_separation(self) -> None:
        peaks = range(150, 1900, 40)
        config = DetectorConfig(min_shot_interval_ms=0.0)
        shots = ShotDetector(config).detect_all(to_samples(shot_signal(n=2000, peaks=peaks)))
        self.assertGreater(len(shots), 1)
        for earlier, later in zip(shots, shots[1:]):
            self.assertGreaterEqual(later.index - earlier.index, config.min_shot_samples)

    def test_time_gate_applies_between_shots(self) -> None:
        # 70 samples apart clears the sample gate but not 1200 ms at 10 ms/sample.
        shots = ShotDetector().detect_all(to_samples(shot_signal(n=600, peaks=(200, 270))))
        self.assertEqual([s.index for s in shots], [200])

    def test_short_or_flat_input_yields_no_shots(self) -> None:
        detector = ShotDetector()
        self.assertEqual(detector.detect_all([]), [])
        self.assertEqual(detector.detect_all(to_samples(quiet_baseline(50))), [])
        self.assertEqual(detector.detect_all(SignalView.from_magnitudes([9.8] * 500)), [])

    def test_consensus_stage_attaches_result(self) -> None:
        detector = ShotDetector(DetectorConfig(use_consensus=True))
        shots = detector.detect_all(to_samples(shot_signal()))
        self.assertEqual(len(shots), 1)
        self.assertTrue(shots[0].consensus.is_shot)
        self.assertEqual(shots[0].consensus.votes, 4)

    def test_consensus_rejection_discards_candidate(self) -> None:
        detector = ShotDetector(
            DetectorConfig(use_consensus=True), consensus_config=ConsensusConfig(min_votes=4)
        )
        # Dip above the consensus ceiling (5.0) but inside the detector's 6.0 limit.
        shots = detector.detect_all(to_samples(shot_signal(dip=5.5)))
        self.assertEqual(shots, [])

    def test_burst_pruning_is_opt_in(self) -> None:
        peaks = (200, 400, 600, 800)
        samples = to_samples(shot_signal(n=1000, peaks=peaks))
        self.assertEqual(len(ShotDetector().detect_all(samples)), 4)
        pruned = ShotDetector(DetectorConfig(prune_bursts=True)).detect_all(samples)
        self.assertEqual([s.index for s in pruned], [200])


class StreamingDetectionTests(unittest.TestCase):
    def _stream(self, detector: ShotDetector, values, buffer: SampleBuffer):
        shots = []
        for sample in to_samples(values):
            buffer.push(sample)
            shot = detector.process_sample(buffer)
            if shot is not None:
                shots.append((len(buffer), shot))
        return shots

    def test_streaming_detects_shot_after_lookback_delay(self) -> None:
        detector = ShotDetector()
        shots = self._stream(detector, shot_signal(), SampleBuffer())
        self.assertEqual(len(shots), 1)
        length, shot = shots[0]
        self.assertEqual(shot.index, 200)
        self.assertEqual(length, 251)
        self.assertAlmostEqual(shot.range, 18.0)
        self.assertEqual(detector.last_shot_index, 200)
        self.assertEqual(detector.last_shot_time, 200 * INTERVAL_MS)

    def test_streaming_matches_batch_on_separated_shots(self) -> None:
        values = shot_signal(n=1200, peaks=(200, 230, 500, 900))
        streamed = [s.index for _, s in self._stream(ShotDetector(), values, SampleBuffer())]
        batch = [s.index for s in ShotDetector().detect_all(to_samples(values))]
        self.assertEqual(streamed, batch)
        self.assertEqual(streamed, [200, 500, 900])

    def test_streaming_reports_absolute_index_after_compaction(self) -> None:
        buffer = SampleBuffer(BufferConfig(capacity=300, shift=100))
        shots = self._stream(ShotDetector(), shot_signal(n=700, peaks=(450,)), buffer)
        self.assertEqual(len(shots), 1)
        _, shot = shots[0]
        self.assertEqual(shot.index, 450)
        self.assertEqual(shot.timestamp, 450 * INTERVAL_MS)

    def test_streaming_waits_for_enough_samples(self) -> None:
        buffer = SampleBuffer()
        detector = ShotDetector()
        for sample in to_samples(shot_signal(n=189, peaks=(120,))):
            buffer.push(sample)
            self.assertIsNone(detector.process_sample(buffer))

    def test_reset_clears_separation_state(self) -> None:
        detector = ShotDetector()
        self._stream(detector, shot_signal(), SampleBuffer())
        detector.reset()
        self.assertIsNone(detector.last_shot_index)
        self.assertIsNone(detector.last_shot_time)
        shots = self._stream(detector, shot_signal(), SampleBuffer())
        self.assertEqual(len(shots), 1)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
