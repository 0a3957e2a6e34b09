import unittest

import numpy as np

from shotsense.signals.stats import BaselineStats, argmax_in, argmin_in, trailing_baseline


class BaselineTests(unittest.TestCase):
    def test_effective_std_never_exceeds_true_std(self) -> None:
        rng = np.random.default_rng(7)
        cap = 1.5
        for scale in (0.1, 0.5, 1.0, 2.0, 5.0):
            window = rng.normal(9.8, scale, size=80)
            base = trailing_baseline(window, len(window), 80, 10)
            eff = base.effective_std(cap)
            self.assertLessEqual(eff, base.std)
            if base.std < cap:
                self.assertEqual(eff, base.std)
            else:
                self.assertEqual(eff, cap)

    def test_baseline_requires_minimum_samples(self) -> None:
        values = np.full(100, 10.0)
        self.assertIsNone(trailing_baseline(values, 9, 80, 10))
        self.assertIsNone(trailing_baseline(values, -5, 80, 10))
        base = trailing_baseline(values, 10, 80, 10)
        self.assertEqual(base, BaselineStats(mean=10.0, std=0.0))

    def test_baseline_window_ends_before_end_index(self) -> None:
        values = np.concatenate([np.full(80, 1.0), np.full(20, 50.0)])
        base = trailing_baseline(values, 80, 80, 10)
        self.assertEqual(base.mean, 1.0)

    def test_search_helpers_clip_to_signal(self) -> None:
        values = np.array([5.0, 3.0, 1.0, 4.0, 9.0])
        self.assertEqual(argmin_in(values, 1, 100), 2)
        self.assertEqual(argmax_in(values, 0, 4), 0)
        self.assertEqual(argmax_in(values, 1, 4), 3)
        self.assertEqual(argmax_in(values, 1, 100), 4)
        self.assertIsNone(argmin_in(values, 5, 10))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
