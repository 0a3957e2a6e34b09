import json
import math
import tempfile
import unittest
from pathlib import Path

from shotsense.io.session_file import (
    SessionFileError,
    load_session_samples,
    sample_from_record,
    sample_to_record,
)
from shotsense.samples import IMUSample


class SessionFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, payload, name: str = "session.json") -> Path:
        path = self.dir / name
        path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
        return path

    def test_loads_imu_array_from_session_export(self) -> None:
        path = self._write(
            {
                "id": "s1",
                "gps": [],
                "imu": [
                    {"t": 0, "ax": 3.0, "ay": 4.0, "az": 0.0},
                    {"t": 10, "ax": 0.0, "ay": 0.0, "az": 9.8, "aMag": 9.9, "gx": 0.5, "moving": True},
                ],
            }
        )
        samples = load_session_samples(path)
        self.assertEqual(len(samples), 2)
        self.assertAlmostEqual(samples[0].a_mag, 5.0)
        self.assertEqual(samples[1].a_mag, 9.9)
        self.assertEqual(samples[1].gx, 0.5)
        self.assertTrue(samples[1].moving)

    def test_accepts_bare_sample_list(self) -> None:
        path = self._write([{"t": 0, "ax": 0, "ay": 0, "az": 9.8}])
        self.assertEqual(len(load_session_samples(path)), 1)

    def test_relative_timestamp_fallback(self) -> None:
        sample = sample_from_record({"tRel": 250, "ax": 0, "ay": 0, "az": 9.8})
        self.assertEqual(sample.t, 250.0)

    def test_record_round_trip(self) -> None:
        sample = IMUSample.from_reading(5.0, 1.0, 2.0, 2.0, gz=0.1, moving=True)
        self.assertEqual(sample_from_record(sample_to_record(sample)), sample)

    def test_missing_file(self) -> None:
        with self.assertRaises(SessionFileError):
            load_session_samples(self.dir / "nope.json")

    def test_invalid_json(self) -> None:
        with self.assertRaises(SessionFileError):
            load_session_samples(self._write("{broken"))

    def test_missing_imu_array(self) -> None:
        with self.assertRaises(SessionFileError):
            load_session_samples(self._write({"gps": []}))

    def test_malformed_samples(self) -> None:
        for record in ({"t": 0, "ax": 0, "ay": 0}, {"t": 0, "ax": "x", "ay": 0, "az": 0}, [1, 2, 3]):
            with self.subTest(record=record):
                with self.assertRaises(SessionFileError):
                    sample_from_record(record)
        with self.assertRaises(SessionFileError):
            sample_from_record({"t": math.inf, "ax": 0, "ay": 0, "az": 0})

    def test_decreasing_timestamps_are_rejected(self) -> None:
        path = self._write(
            {"imu": [{"t": 20, "ax": 0, "ay": 0, "az": 9.8}, {"t": 10, "ax": 0, "ay": 0, "az": 9.8}]}
        )
        with self.assertRaises(SessionFileError):
            load_session_samples(path)

    def test_session_file_error_is_a_value_error(self) -> None:
        self.assertTrue(issubclass(SessionFileError, ValueError))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
