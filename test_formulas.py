import unittest
from core_formulas import AnthropometryEngine
from models import Skinfolds, Girths, Breadths, MissingRequiredFieldError, RiskLevel
from constants import Sex, MaturationStage, AmputationSegment


class TestFormulaPrimitives(unittest.TestCase):
    """
    Published equations checked against hand-computed values.
    Run with: python -m unittest test_formulas.py
    """

    def setUp(self):
        # Reference adult male used across the Kerr / Heath-Carter tests
        self.skinfolds = Skinfolds(triceps=10, subscapular=12, biceps=5, iliac_crest=15,
                                   supraspinale=8, abdominal=18, thigh=10, calf=6)
        self.girths = Girths(arm_relaxed=30, arm_flexed=32, waist=80, hip=95, thigh=55, calf=38)
        self.breadths = Breadths(humerus=7.0, femur=9.8)

    def test_01_bmi(self):
        """[BASIC] BMI = kg / m^2, zero height raises"""
        print("\nTEST 1: BMI")
        self.assertAlmostEqual(AnthropometryEngine.bmi(70, 175), 22.857, places=3)
        with self.assertRaises(ValueError):
            AnthropometryEngine.bmi(70, 0)

    def test_02_durnin_siri_adult(self):
        """[DENSITY] Durnin 20-29 male band + Siri"""
        print("\nTEST 2: Durnin & Womersley + Siri")
        density = AnthropometryEngine.density_durnin(5, 10, 12, 15, 25, Sex.MALE)
        fat = AnthropometryEngine.fat_percent_siri(density)
        print(f"  > Density: {density:.4f} | Fat: {fat:.2f}%")
        self.assertAlmostEqual(density, 1.0605, delta=0.0002)
        self.assertAlmostEqual(fat, 16.76, delta=0.05)

    def test_03_durnin_band_clamping(self):
        """[BANDS] Ages outside the table clamp to the nearest band"""
        print("\nTEST 3: Durnin Band Clamping")
        self.assertEqual(AnthropometryEngine.durnin_band(5, Sex.MALE).label, "6-12")
        self.assertEqual(AnthropometryEngine.durnin_band(6, Sex.FEMALE).label, "6-12")
        self.assertEqual(AnthropometryEngine.durnin_band(12.9, Sex.MALE).label, "6-12")
        self.assertEqual(AnthropometryEngine.durnin_band(13, Sex.MALE).label, "13-16")
        self.assertEqual(AnthropometryEngine.durnin_band(19, Sex.FEMALE).label, "17-19")
        self.assertEqual(AnthropometryEngine.durnin_band(25, Sex.MALE).label, "20-29")
        self.assertEqual(AnthropometryEngine.durnin_band(90, Sex.MALE).label, "50+")

    def test_04_durnin_zero_sum_raises(self):
        """[GUARD] log10 of a non-positive skinfold sum is structural absence"""
        print("\nTEST 4: Durnin Zero Sum")
        with self.assertRaises(ValueError):
            AnthropometryEngine.density_durnin(0, 0, 0, 0, 30, Sex.MALE)

    def test_05_siri_clamp_with_warning(self):
        """[CLAMP] Non-physiological density clamps to 3% and warns"""
        print("\nTEST 5: Siri Clamp")
        warnings = []
        fat = AnthropometryEngine.fat_percent_siri(1.2, warnings)
        self.assertEqual(fat, 3.0)
        self.assertEqual(len(warnings), 1)
        self.assertIn("fuera de rango fisiológico", warnings[0])

    def test_06_slaughter(self):
        """[PEDIATRIC] Slaughter quadratic, male puber"""
        print("\nTEST 6: Slaughter")
        fat = AnthropometryEngine.fat_percent_slaughter(10, 8, MaturationStage.PUBER, Sex.MALE)
        self.assertAlmostEqual(fat, 15.788, places=3)
        # Huge sum goes negative in the quadratic and is clamped
        self.assertEqual(AnthropometryEngine.fat_percent_slaughter(100, 100, MaturationStage.PUBER, Sex.MALE), 3.0)

    def test_07_weststrate_bounds(self):
        """[PEDIATRIC] Weststrate stays inside [3, 60]"""
        print("\nTEST 7: Weststrate")
        density = AnthropometryEngine.density_durnin(6, 8, 6, 7, 7, Sex.FEMALE)
        fat = AnthropometryEngine.fat_percent_weststrate(density, 7, Sex.FEMALE)
        self.assertTrue(3.0 <= fat <= 60.0)

    def test_08_kerr_mass_balance(self):
        """[KERR] Five masses add up to body weight within 0.5 kg"""
        print("\nTEST 8: Kerr Five-Component Sum")
        result = AnthropometryEngine.five_component_fractionation(
            75, 175, self.skinfolds, self.girths, self.breadths)
        print(f"  > Sum: {result.total_kg:.2f} kg | Raw: {result.raw_total_kg} kg | Dev: {result.deviation_pct}%")
        self.assertAlmostEqual(result.total_kg, 75.0, delta=0.5)
        for mass in (result.skin_kg, result.adipose_kg, result.muscle_kg, result.bone_kg, result.residual_kg):
            self.assertGreater(mass, 0)
        self.assertTrue(result.residual_estimated, "No trunk breadths: residual should be estimated")
        self.assertAlmostEqual(result.lipid_percent, round(result.adipose_percent * 0.8, 1), places=1)
        self.assertEqual(result.skinfold_sum, 69)

    def test_09_kerr_deviation_warning(self):
        """[KERR] Raw deviation above the configured percentage is reported"""
        print("\nTEST 9: Kerr Deviation Warning")
        result = AnthropometryEngine.five_component_fractionation(
            75, 175, self.skinfolds, self.girths, self.breadths, deviation_warning_pct=0.0)
        self.assertTrue(any("Desviación del modelo de Kerr" in w for w in result.warnings))

    def test_10_kerr_missing_inputs(self):
        """[KERR] Missing breadths raise with field identifiers"""
        print("\nTEST 10: Kerr Missing Inputs")
        with self.assertRaises(MissingRequiredFieldError) as ctx:
            AnthropometryEngine.five_component_fractionation(
                75, 175, self.skinfolds, self.girths, Breadths())
        self.assertIn("diametro_humerus", ctx.exception.missing_fields)
        self.assertIn("diametro_femur", ctx.exception.missing_fields)

        with self.assertRaises(MissingRequiredFieldError) as ctx:
            AnthropometryEngine.five_component_fractionation(
                75, 175, Skinfolds(triceps=10, subscapular=12), self.girths, self.breadths)
        self.assertIn("pliegue_supraspinale", ctx.exception.missing_fields)

    def test_11_somatotype(self):
        """[HEATH-CARTER] Reference adult male components"""
        print("\nTEST 11: Somatotype")
        s = AnthropometryEngine.somatotype(75, 175, self.skinfolds, self.girths, self.breadths)
        print(f"  > {s.endomorphy:.2f} - {s.mesomorphy:.2f} - {s.ectomorphy:.2f}")
        self.assertAlmostEqual(s.endomorphy, 2.97, delta=0.05)
        self.assertAlmostEqual(s.mesomorphy, 5.32, delta=0.05)
        self.assertAlmostEqual(s.ectomorphy, 1.80, delta=0.05)
        self.assertAlmostEqual(s.x, s.ectomorphy - s.endomorphy, places=9)
        self.assertAlmostEqual(s.y, 2 * s.mesomorphy - (s.endomorphy + s.ectomorphy), places=9)

    def test_12_somatotype_floors(self):
        """[HEATH-CARTER] Floors prevent non-positive components"""
        print("\nTEST 12: Somatotype Floors")
        self.assertEqual(AnthropometryEngine.endomorphy(1, 1, 1, 175), 0.1)
        self.assertEqual(AnthropometryEngine.mesomorphy(1, 1, 10, 10, 0, 0, 200), 0.5)
        # HWR well below 38.25
        self.assertEqual(AnthropometryEngine.ectomorphy(150, 120), 0.1)

    def test_13_stature_estimators(self):
        """[STATURE] Chumlea, Stevenson, LRM, half-armspan"""
        print("\nTEST 13: Stature Estimators")
        self.assertAlmostEqual(AnthropometryEngine.height_chumlea_knee(50, 70, Sex.MALE), 162.39, places=2)
        self.assertAlmostEqual(AnthropometryEngine.height_chumlea_knee(50, 70, Sex.FEMALE), 159.58, places=2)
        self.assertAlmostEqual(AnthropometryEngine.height_stevenson_tibia(30), 128.6, places=2)
        self.assertAlmostEqual(AnthropometryEngine.height_stevenson_upper_arm(20), 108.8, places=2)
        self.assertAlmostEqual(AnthropometryEngine.height_knee_malleolus(40, 70, Sex.MALE), 156.25, places=2)
        self.assertEqual(AnthropometryEngine.height_half_armspan(80), 160)

    def test_14_chumlea_weight(self):
        """[WEIGHT] Chumlea weight from calf, knee, arm and subscapular"""
        print("\nTEST 14: Chumlea Weight")
        self.assertAlmostEqual(AnthropometryEngine.weight_chumlea(35, 50, 28, 15, 70, Sex.MALE), 53.40, places=2)

    def test_15_amputee_weight(self):
        """[AMPUTEE] Measured weight restored to the whole-body equivalent"""
        print("\nTEST 15: Amputee Corrected Weight")
        segments = [AmputationSegment.PIERNA_COMPLETA_DER]
        self.assertAlmostEqual(AnthropometryEngine.amputation_fraction(segments), 0.16)
        self.assertAlmostEqual(AnthropometryEngine.corrected_weight_amputee(63, segments), 75.0, places=6)
        self.assertAlmostEqual(AnthropometryEngine.adjusted_ideal_weight_amputee(70, segments), 58.8, places=6)
        self.assertEqual(AnthropometryEngine.corrected_weight_amputee(63, []), 63)

    def test_16_lorentz_and_adequacy(self):
        """[IDEAL] Lorentz ideal weight and adequacy"""
        print("\nTEST 16: Lorentz")
        ideal = AnthropometryEngine.ideal_weight_lorentz(170, 20, Sex.MALE)
        self.assertAlmostEqual(ideal, 65.0, places=6)
        self.assertAlmostEqual(AnthropometryEngine.weight_adequacy_pct(52, ideal), 80.0, places=6)

    def test_17_arm_composition(self):
        """[ARM] CMB, AMB, AGB"""
        print("\nTEST 17: Arm Composition")
        comp = AnthropometryEngine.arm_composition(30, 10)
        self.assertAlmostEqual(comp["cmb"], 26.86, places=2)
        self.assertAlmostEqual(comp["amb"], 57.44, delta=0.01)
        self.assertAlmostEqual(comp["agb"], 14.21, delta=0.01)
        self.assertEqual(AnthropometryEngine.arm_composition(3, 20)["amb"], 0.0)

    def test_18_corrected_age(self):
        """[PREMATURE] Correction only under 37 weeks and up to 24 months"""
        print("\nTEST 18: Corrected Age")
        months, applied = AnthropometryEngine.corrected_age_months(6, 32)
        self.assertTrue(applied)
        self.assertAlmostEqual(months, 6 - 8 / 4.33, places=6)
        self.assertFalse(AnthropometryEngine.corrected_age_months(6, 38)[1])
        self.assertFalse(AnthropometryEngine.corrected_age_months(30, 30)[1])
        self.assertFalse(AnthropometryEngine.corrected_age_months(6, None)[1])

    def test_19_cardiometabolic_ratios(self):
        """[RISK] WHtR, WHR and abdominal obesity"""
        print("\nTEST 19: Cardiometabolic Ratios")
        self.assertEqual(AnthropometryEngine.waist_to_height_ratio(80, 175).risk, RiskLevel.MINIMO)
        self.assertEqual(AnthropometryEngine.waist_to_height_ratio(100, 170).risk, RiskLevel.MODERADO)
        self.assertEqual(AnthropometryEngine.waist_to_height_ratio(110, 170).risk, RiskLevel.ALTO)
        self.assertEqual(AnthropometryEngine.waist_to_hip_ratio(80, 95, 25, Sex.MALE).risk, RiskLevel.MODERADO)
        self.assertEqual(AnthropometryEngine.waist_to_hip_ratio(70, 100, 45, Sex.FEMALE).risk, RiskLevel.BAJO)
        self.assertTrue(AnthropometryEngine.has_abdominal_obesity(90, Sex.MALE))
        self.assertFalse(AnthropometryEngine.has_abdominal_obesity(89, Sex.MALE))
        self.assertTrue(AnthropometryEngine.has_abdominal_obesity(80, Sex.FEMALE))

    def test_20_cormic_index(self):
        """[PROPORTION] Sitting height over stature"""
        print("\nTEST 20: Cormic Index")
        self.assertAlmostEqual(AnthropometryEngine.cormic_index(91, 175), 52.0, places=6)

    def test_21_durnin_below_first_band_warns(self):
        """[BANDS] Ages under 6 reuse the 6-12 coefficients and say so"""
        print("\nTEST 21: Durnin Below First Band")
        warnings = []
        young = AnthropometryEngine.density_durnin(6, 8, 6, 7, 4, Sex.MALE, warnings)
        reference = AnthropometryEngine.density_durnin(6, 8, 6, 7, 6, Sex.MALE)
        self.assertEqual(young, reference)
        self.assertEqual(warnings, [
            "Edad (4 años) por debajo de las bandas de Durnin, usando coeficientes de la banda 6-12"
        ])

        warnings = []
        AnthropometryEngine.density_durnin(6, 8, 6, 7, 90, Sex.FEMALE, warnings)
        self.assertEqual(warnings, [])


if __name__ == '__main__':
    unittest.main()
