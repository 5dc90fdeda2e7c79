import unittest
from measurement_error import MeasurementError


class TestMeasurementError(unittest.TestCase):
    """
    Dahlberg TEM and ISAK re-measurement rules.
    Run with: python -m unittest test_measurement_error.py
    """

    def test_01_dahlberg(self):
        """[TEM] sqrt(sum d^2 / 2n), third values add two pairs"""
        print("\nTEST 1: Dahlberg")
        self.assertAlmostEqual(MeasurementError.dahlberg([[10, 11], [20, 20]]), 0.5)
        self.assertAlmostEqual(MeasurementError.dahlberg([[10, 11, 12]]), 1.0)
        self.assertEqual(MeasurementError.dahlberg([[10]]), 0.0)

    def test_02_site_reliability(self):
        """[ISAK] Triceps within 2.5% is excellent, 12.9% must be re-measured"""
        print("\nTEST 2: Site Reliability")
        good = MeasurementError.site_tem([10, 10.1, 10], "triceps")
        self.assertEqual(good.reliability, "excellent")
        self.assertAlmostEqual(good.tem_percent, 0.58, places=2)
        self.assertTrue(good.reliable)

        bad = MeasurementError.site_tem([10, 12], "triceps")
        self.assertEqual(bad.reliability, "poor")
        self.assertAlmostEqual(bad.tem, 1.41, places=2)
        self.assertAlmostEqual(bad.tem_percent, 12.86, places=2)
        self.assertIn("Remedir", bad.message)

        single = MeasurementError.site_tem([10], "triceps")
        self.assertFalse(single.reliable)
        self.assertEqual(single.reliability, "poor")

    def test_03_girths_are_stricter(self):
        """[ISAK] The same 2% spread is poor for a girth"""
        print("\nTEST 3: Girth Limits")
        self.assertEqual(MeasurementError.site_tem([80, 80.2], "waist").reliability, "excellent")
        self.assertEqual(MeasurementError.site_tem([80, 82], "waist").reliability, "poor")
        # Inter-observer limits are looser
        self.assertEqual(MeasurementError.site_tem([80, 81], "waist").reliability, "acceptable")
        self.assertEqual(MeasurementError.site_tem([80, 81], "waist", inter_observer=True).reliability, "excellent")

    def test_04_session_rating(self):
        """[ISAK] One poor site fails the whole session"""
        print("\nTEST 4: Session Rating")
        report = MeasurementError.reliability({"triceps": [10, 10.1, 10], "waist": [80, 80.2]})
        self.assertTrue(report.meets_isak)
        self.assertEqual(report.rating, "excellent")
        self.assertAlmostEqual(report.tem, 0.10, places=2)

        report = MeasurementError.reliability({"triceps": [10, 12], "waist": [80, 80.2]})
        self.assertFalse(report.meets_isak)
        self.assertEqual(report.rating, "poor")

    def test_05_third_measurement_and_final_value(self):
        """[ISAK] Third value beyond the acceptable %, then median of three"""
        print("\nTEST 5: Final Value")
        self.assertTrue(MeasurementError.needs_third_measurement(10, 11, "triceps"))
        self.assertFalse(MeasurementError.needs_third_measurement(10, 10.1, "triceps"))

        self.assertEqual(MeasurementError.final_value([10, 12]), 11)
        self.assertEqual(MeasurementError.final_value([10, 14, 11]), 11)
        self.assertEqual(MeasurementError.final_value([7]), 7)
        with self.assertRaises(ValueError):
            MeasurementError.final_value([])


if __name__ == '__main__':
    unittest.main()
