import unittest
from growth_standards import GrowthStandards
from constants import Sex, GrowthIndicator


class TestGrowthStandards(unittest.TestCase):
    """
    WHO LMS z-scores checked against published reference points.
    Run with: python -m unittest test_growth_standards.py
    """

    def test_01_median_is_zero(self):
        """[LMS] Birth weight at the boys' median: z 0, P50"""
        print("\nTEST 1: Median Birth Weight")
        result = GrowthStandards.z_score(3.3464, 0, Sex.MALE, GrowthIndicator.WFA)
        self.assertEqual(result.z, 0.0)
        self.assertEqual(result.percentile, 50)
        self.assertEqual(result.diagnosis, "Normal")
        self.assertEqual(result.severity, "normal")

    def test_02_low_birth_weight(self):
        """[WFA] 2.0 kg and 2.5 kg newborn boys"""
        print("\nTEST 2: Low Birth Weight")
        severe = GrowthStandards.z_score(2.0, 0, Sex.MALE, GrowthIndicator.WFA)
        self.assertAlmostEqual(severe.z, -3.23, places=2)
        self.assertEqual(severe.diagnosis, "Bajo peso severo")
        self.assertEqual(severe.severity, "severe_negative")

        borderline = GrowthStandards.z_score(2.5, 0, Sex.MALE, GrowthIndicator.WFA)
        self.assertAlmostEqual(borderline.z, -1.90, places=2)
        self.assertEqual(borderline.diagnosis, "Normal")

    def test_03_length_for_age(self):
        """[LHFA] 71 cm boy at 12 months and 45.4 cm girl at birth sit near -2 SD"""
        print("\nTEST 3: Length for Age")
        boy = GrowthStandards.z_score(71.0, 12, Sex.MALE, GrowthIndicator.LHFA)
        self.assertAlmostEqual(boy.z, -2.04, places=2)
        self.assertEqual(boy.diagnosis, "Talla baja moderada")
        self.assertEqual(boy.percentile, 2)

        girl = GrowthStandards.z_score(45.4, 0, Sex.FEMALE, GrowthIndicator.LHFA)
        self.assertAlmostEqual(girl.z, -2.01, places=2)

    def test_04_interpolation(self):
        """[LMS] Month 7.5 lies halfway between the 6 and 9 month rows"""
        print("\nTEST 4: Interpolation")
        table = GrowthStandards.table_for(GrowthIndicator.WFA, Sex.MALE, 7.5)
        l, m, s = GrowthStandards.lms(table, 7.5)
        self.assertAlmostEqual(l, 0.11065, places=5)
        self.assertAlmostEqual(m, 8.4177, places=4)
        self.assertAlmostEqual(s, 0.10448, places=5)

        # Ends clamp to the first and last rows
        self.assertEqual(GrowthStandards.lms(table, -1), table[0])
        self.assertEqual(GrowthStandards.lms(table, 80), table[60])

    def test_05_log_branch(self):
        """[LMS] L close to zero switches to ln(X/M)/S"""
        print("\nTEST 5: Log Branch")
        self.assertEqual(GrowthStandards.raw_z(10, 0, 10, 0.1), 0.0)
        self.assertAlmostEqual(GrowthStandards.raw_z(11, 0.00005, 10, 0.1), 0.9531, places=4)
        self.assertAlmostEqual(GrowthStandards.raw_z(11, 1, 10, 0.1), 1.0, places=6)

    def test_06_clamp_with_warning(self):
        """[LMS] z beyond +/-5 SD is clamped and reported"""
        print("\nTEST 6: Clamp")
        warnings = []
        result = GrowthStandards.z_score(1.0, 0, Sex.MALE, GrowthIndicator.WFA, warnings)
        self.assertEqual(result.z, -5.0)
        self.assertEqual(result.percentile, 0)
        self.assertEqual(len(warnings), 1)
        self.assertTrue(warnings[0].startswith("Z-score Peso/Edad fuera de rango"))
        self.assertIn("limitado a -5 DE", warnings[0])

        with self.assertRaises(ValueError):
            GrowthStandards.z_score(0, 12, Sex.MALE, GrowthIndicator.WFA)

    def test_07_table_coverage(self):
        """[TABLES] Indicators return None outside their reference range"""
        print("\nTEST 7: Table Coverage")
        self.assertIsNone(GrowthStandards.z_score(20, 72, Sex.MALE, GrowthIndicator.WFA))
        self.assertIsNone(GrowthStandards.z_score(40, 72, Sex.MALE, GrowthIndicator.HCFA))
        self.assertIsNone(GrowthStandards.z_score(3, 30, Sex.MALE, GrowthIndicator.WFLH))
        self.assertIsNone(GrowthStandards.z_score(16, 36, Sex.MALE, GrowthIndicator.BFA))
        self.assertIsNone(GrowthStandards.z_score(170, 240, Sex.MALE, GrowthIndicator.LHFA))

        # From 61 months stature uses the 2007 reference
        school = GrowthStandards.z_score(138.4, 120, Sex.MALE, GrowthIndicator.LHFA)
        self.assertEqual(school.z, 0.0)

    def test_08_cutoffs(self):
        """[INTERPRET] WHO cut-offs are inclusive at -2 and exclusive at +2"""
        print("\nTEST 8: Cut-offs")
        self.assertEqual(GrowthStandards.interpret(-2.0, GrowthIndicator.LHFA)[0], "Normal")
        self.assertEqual(GrowthStandards.interpret(-3.5, GrowthIndicator.LHFA)[0], "Talla baja severa")
        self.assertEqual(GrowthStandards.interpret(2.0, GrowthIndicator.BFA)[0], "Riesgo de sobrepeso")
        self.assertEqual(GrowthStandards.interpret(2.5, GrowthIndicator.WFLH), ("Sobrepeso", "moderate_positive"))
        self.assertEqual(GrowthStandards.interpret(-2.5, GrowthIndicator.WFLH)[0], "Delgadez")
        self.assertEqual(GrowthStandards.interpret(-2.5, GrowthIndicator.HCFA), ("Bajo", "moderate_negative"))
        self.assertEqual(GrowthStandards.interpret(2.5, GrowthIndicator.WFA)[0], "Peso alto")

    def test_09_length_height_adjustment(self):
        """[WHO] 0.7 cm between recumbent length and standing height"""
        print("\nTEST 9: Length/Height Adjustment")
        self.assertAlmostEqual(GrowthStandards.adjusted_stature(80, 30, recumbent=True), 79.3)
        self.assertAlmostEqual(GrowthStandards.adjusted_stature(70, 12, recumbent=False), 70.7)
        self.assertEqual(GrowthStandards.adjusted_stature(70, 12, recumbent=True), 70)
        self.assertEqual(GrowthStandards.adjusted_stature(100, 40, recumbent=False), 100)

    def test_10_stunted_preschooler(self):
        """[ASSESS] 36-month boy at 88 cm standing: stunted, weight-for-height normal"""
        print("\nTEST 10: Stunted Preschooler")
        growth = GrowthStandards.assess(12.0, 88, None, 36, Sex.MALE)
        self.assertAlmostEqual(growth.lhfa.z, -2.81, places=2)
        self.assertAlmostEqual(growth.wflh.z, -0.44, places=2)
        self.assertTrue(growth.stunting)
        self.assertFalse(growth.wasting)
        self.assertIsNone(growth.bfa)
        self.assertIsNone(growth.hcfa)
        self.assertEqual(growth.nutritional_status, "Desnutrición crónica (Retardo del crecimiento)")

    def test_11_obese_infant(self):
        """[ASSESS] 13 kg at 75.7 cm is above +3 SD weight-for-length"""
        print("\nTEST 11: Obese Infant")
        growth = GrowthStandards.assess(13.0, 75.7, None, 12, Sex.MALE, recumbent=True)
        self.assertAlmostEqual(growth.wflh.z, 3.14, places=1)
        self.assertTrue(growth.overweight)
        self.assertFalse(growth.stunting)
        self.assertEqual(growth.nutritional_status, "Obesidad")

    def test_12_school_age_uses_bmi(self):
        """[ASSESS] Past five years acute status comes from BMI-for-age"""
        print("\nTEST 12: School Age")
        growth = GrowthStandards.assess(30.0, 138.6, None, 120, Sex.FEMALE)
        self.assertIsNone(growth.wfa)
        self.assertIsNone(growth.wflh)
        self.assertEqual(growth.lhfa.z, 0.0)
        self.assertAlmostEqual(growth.bfa.z, -0.18, places=2)
        self.assertEqual(growth.nutritional_status, "Normal")
        self.assertEqual(set(growth.indicators()), {GrowthIndicator.LHFA, GrowthIndicator.BFA})

    def test_13_weight_for_age_fallback(self):
        """[ASSESS] Length outside the WFL table falls back to weight-for-age"""
        print("\nTEST 13: WFA Fallback")
        warnings = []
        growth = GrowthStandards.assess(2.0, 42, None, 0, Sex.MALE, recumbent=True, warnings=warnings)
        self.assertIsNone(growth.wflh)
        self.assertTrue(growth.wasting)
        self.assertTrue(any(w.startswith("Longitud (42.0 cm) fuera de la tabla Peso/Talla OMS") for w in warnings))


if __name__ == '__main__':
    unittest.main()
