import json
import tempfile
import unittest
from pathlib import Path

from shotsense.calibration.calibrator import calibrate
from shotsense.calibration.store import (
    CALIBRATION_KEY,
    FileStore,
    dump_calibration,
    load_calibration,
    read_calibration,
    save_calibration,
)

from synthetic import shot_signal, to_samples


def _calibration():
    shooting = to_samples(shot_signal(n=800, peaks=(200, 400, 600)))
    return calibrate([], [], [], shooting, created_at=1.0)


class LoadCalibrationTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        cal = _calibration()
        self.assertEqual(load_calibration(dump_calibration(cal)), cal)

    def test_missing_blob_means_no_calibration(self) -> None:
        self.assertIsNone(load_calibration(None))
        self.assertIsNone(load_calibration(""))
        self.assertIsNone(read_calibration({}))

    def test_invalid_json_is_discarded(self) -> None:
        with self.assertLogs("shotsense.calibration.store", level="WARNING"):
            self.assertIsNone(load_calibration("{not json"))

    def test_schema_mismatch_is_discarded(self) -> None:
        blob = json.loads(dump_calibration(_calibration()))
        blob["schema_version"] = 2
        self.assertIsNone(load_calibration(json.dumps(blob)))

        blob = json.loads(dump_calibration(_calibration()))
        del blob["profiles"]["shooting"]["features"]["dip_mag"]
        self.assertIsNone(load_calibration(json.dumps(blob)))


class FileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name) / "store"
        self.store = FileStore(self.base)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_empty_store(self) -> None:
        self.assertEqual(list(self.store), [])
        self.assertEqual(len(self.store), 0)
        self.assertIsNone(self.store.get("missing"))

    def test_set_get_delete(self) -> None:
        self.store["alpha"] = "one"
        self.store["beta"] = "two"
        self.assertEqual(self.store["alpha"], "one")
        self.assertEqual(list(self.store), ["alpha", "beta"])
        self.assertTrue((self.base / "alpha.json").exists())

        del self.store["alpha"]
        self.assertNotIn("alpha", self.store)
        with self.assertRaises(KeyError):
            del self.store["alpha"]

    def test_rejects_path_like_keys(self) -> None:
        with self.assertRaises(KeyError):
            self.store["../escape"] = "x"

    def test_persists_calibration(self) -> None:
        cal = _calibration()
        save_calibration(self.store, cal)
        self.assertIn(CALIBRATION_KEY, self.store)
        self.assertEqual(read_calibration(FileStore(self.base)), cal)

    def test_corrupt_file_reads_as_no_calibration(self) -> None:
        self.store[CALIBRATION_KEY] = '{"schema_version": 1, "profiles": '
        self.assertIsNone(read_calibration(self.store))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
