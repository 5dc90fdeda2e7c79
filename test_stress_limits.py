import unittest
from app import NutritionEngine
from models import PopulationCategory


class TestStressLimits(unittest.TestCase):

    def setUp(self):
        # Adult male with severe adiposity at the edge of ISAK ranges
        self.base_patient = {
            'sex': 'M', 'age_years': 45, 'weight_kg': 130.0, 'height_cm': 170.0,
            'skinfolds': {'triceps': 45, 'subscapular': 45, 'biceps': 45, 'iliac_crest': 45,
                          'supraspinale': 45, 'abdominal': 45, 'thigh': 45, 'calf': 45},
            'girths': {'arm_relaxed': 40, 'arm_flexed': 42, 'waist': 130, 'hip': 125,
                       'thigh': 70, 'calf': 45},
            'breadths': {'humerus': 7.5, 'femur': 10.5},
        }

    def test_01_extreme_adiposity_never_fails(self):
        """
        SCENARIO: Skinfold sum above 300 mm.
        Calipers lose accuracy on compressible tissue; the engine must still
        return numbers and flag the result as unreliable.
        """
        print("\nSTRESS TEST 1: Extreme Adiposity")
        outcome = NutritionEngine.evaluate_patient(self.base_patient)
        self.assertTrue(outcome.success, outcome.errors)
        result = outcome.result

        print(f"Fat: {result.value('porcentaje_grasa')}% | BMI: {result.value('imc')}")
        self.assertTrue(3.0 <= result.value("porcentaje_grasa") <= 50.0)
        self.assertTrue(any("extremadamente alta" in w for w in result.warnings))
        self.assertTrue(any("Pliegue Bíceps (45) excede el máximo ISAK (25)" == w for w in result.warnings))
        self.assertTrue(result.alerts.abdominal_obesity)
        self.assertIn("Obesidad abdominal (cintura 130 cm)", result.warnings)

    def test_02_missing_limb_girths_skip_kerr_only(self):
        """
        SCENARIO: Breadths measured but no muscle girths.
        Kerr cannot run; the rest of the evaluation must survive.
        """
        print("\nSTRESS TEST 2: Partial Kerr Inputs")
        data = dict(self.base_patient)
        data['girths'] = {'waist': 130}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        warnings = outcome.result.warnings
        self.assertTrue(any(w.startswith("Fraccionamiento de Kerr omitido") for w in warnings))
        self.assertTrue(any(w.startswith("Somatotipo omitido") for w in warnings))
        self.assertIsNone(outcome.result.value("masa_muscular"))
        self.assertIsNotNone(outcome.result.value("imc"))

    def test_03_extremely_premature_neonate(self):
        """SCENARIO: 800 g newborn at the lower bound of every infant field."""
        print("\nSTRESS TEST 3: Extremely Premature Neonate")
        data = {'sex': 'F', 'age_years': 0, 'weight_kg': 0.8, 'length_cm': 30,
                'head_circumference_cm': 25, 'birth_gestational_weeks': 25}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        self.assertEqual(outcome.category, PopulationCategory.LACTANTE)
        self.assertEqual(outcome.result.value("edad_corregida_meses"), 0.0)
        # 30 cm is below the weight-for-length table; weight-for-age decides the acute status
        result = outcome.result
        self.assertEqual(result.classification, "Desnutrición crónica y aguda")
        self.assertEqual(result.value("zscore_peso_edad"), -5.0)
        self.assertEqual(result.value("zscore_talla_edad"), -5.0)
        self.assertIsNone(result.value("zscore_peso_talla"))
        self.assertTrue(any(w.startswith("Z-score Peso/Edad fuera de rango") for w in result.warnings))
        self.assertTrue(any(w.startswith("Longitud (30.0 cm) fuera de la tabla Peso/Talla OMS") for w in result.warnings))

    def test_04_multiple_amputations(self):
        """SCENARIO: Bilateral above-knee amputee, corrected weight well above measured."""
        print("\nSTRESS TEST 4: Bilateral Amputation")
        data = {'sex': 'M', 'age_years': 35, 'weight_kg': 50, 'height_cm': 175,
                'amputations': ['pierna_completa_izq', 'pierna_completa_der']}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        print(f"Corrected: {outcome.result.value('peso_corregido')} kg")
        self.assertAlmostEqual(outcome.result.value("peso_corregido"), 73.5, delta=0.1)
        self.assertEqual(outcome.result.value("porcentaje_amputado"), 32.0)

    def test_05_out_of_range_weight_warns(self):
        """SCENARIO: 320 kg is outside the form bounds; it warns, it does not reject."""
        print("\nSTRESS TEST 5: Out-of-Range Weight")
        data = {'sex': 'F', 'age_years': 40, 'weight_kg': 320, 'height_cm': 165}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        self.assertEqual(outcome.result.warnings[0], "Peso (320 kg) fuera del rango permitido (0.5-300 kg)")
        self.assertEqual(outcome.result.classification, "Obesidad Grado III")

    def test_06_negative_chumlea_weight_discarded(self):
        """
        SCENARIO: Very old patient with tiny calf, arm and knee proxies.
        The Chumlea equation goes negative (-4.2 kg); the estimate must be
        discarded instead of feeding BMI and weight adequacy.
        """
        print("\nSTRESS TEST 6: Negative Chumlea Weight")
        data = {'sex': 'M', 'age_years': 85, 'knee_height_cm': 35, 'height_cm': 160,
                'girths': {'calf': 20, 'arm_relaxed': 17}, 'skinfolds': {'subscapular': 4}}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        result = outcome.result
        self.assertIsNone(result.value("peso"))
        self.assertIsNone(result.value("imc"))
        self.assertIsNone(result.value("adecuacion_peso"))
        self.assertIsNone(result.classification)
        self.assertIn("Peso estimado por Chumlea (-4.2 kg) fuera del rango permitido (0.5-300 kg): valor descartado",
                      result.warnings)
        self.assertFalse(any(w.startswith("Peso estimado por Chumlea:") for w in result.warnings))
        self.assertNotIn("Chumlea (peso estimado)", result.formulas)
        self.assertIn("No se pudo calcular IMC: faltan peso o talla", result.warnings)
        self.assertEqual(result.value("peso_ideal"), 73.8)

    def test_07_tiny_half_armspan_discards_stature(self):
        """
        SCENARIO: Half armspan of 10 cm estimates a 20 cm stature.
        The estimate gets the same bounds as a measured height and is
        discarded; ideal weight and adequacy are skipped, not raised.
        """
        print("\nSTRESS TEST 7: Tiny Half Armspan")
        data = {'sex': 'M', 'age_years': 70, 'weight_kg': 60, 'half_armspan_cm': 10}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        result = outcome.result
        self.assertIn("Talla estimada por media brazada: 20.0 cm", result.warnings)
        self.assertIn("Talla estimada (20.0 cm) fuera del rango permitido (30-250 cm): valor descartado",
                      result.warnings)
        self.assertIsNone(result.value("talla"))
        self.assertIsNone(result.value("imc"))
        self.assertIsNone(result.value("peso_ideal"))
        self.assertIsNone(result.value("adecuacion_peso"))
        self.assertEqual(result.value("peso"), 60)

    def test_08_non_positive_lorentz_ideal(self):
        """
        SCENARIO: Estimated stature of 32 cm is inside the bounds but the
        Lorentz ideal weight comes out at -26 kg.
        """
        print("\nSTRESS TEST 8: Non-positive Ideal Weight")
        data = {'sex': 'M', 'age_years': 70, 'weight_kg': 60, 'half_armspan_cm': 16}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        result = outcome.result
        self.assertEqual(result.value("talla"), 32.0)
        self.assertIsNone(result.value("peso_ideal"))
        self.assertIsNone(result.value("adecuacion_peso"))
        self.assertNotIn("Lorentz", result.formulas)
        self.assertIn("Peso ideal (Lorentz) no calculable para talla 32.0 cm", result.warnings)

    def test_09_oversized_tibia_in_neuro(self):
        """SCENARIO: Stevenson on a 75 cm tibia gives 275 cm; BMI is skipped."""
        print("\nSTRESS TEST 9: Oversized Tibia")
        data = {'sex': 'F', 'age_years': 30, 'is_neurological': True, 'gmfcs_level': 'V',
                'weight_kg': 40, 'tibia_length_cm': 75}
        outcome = NutritionEngine.evaluate_patient(data)
        self.assertTrue(outcome.success, outcome.errors)
        result = outcome.result
        self.assertEqual(outcome.category, PopulationCategory.NEURO)
        self.assertIsNone(result.value("talla"))
        self.assertIsNone(result.value("imc"))
        self.assertIn("Talla estimada (275.3 cm) fuera del rango permitido (30-250 cm): valor descartado",
                      result.warnings)
        self.assertTrue(result.alerts.gmfcs_high_risk)

    def test_10_ideal_weight_never_raises(self):
        """SCENARIO: Every half armspan from 1 to 130 cm evaluates without error."""
        print("\nSTRESS TEST 10: Half Armspan Sweep")
        for half_armspan in range(1, 131, 3):
            data = {'sex': 'F', 'age_years': 90, 'weight_kg': 45, 'half_armspan_cm': half_armspan}
            outcome = NutritionEngine.evaluate_patient(data)
            self.assertTrue(outcome.success, f"{half_armspan} cm: {outcome.errors}")
            ideal = outcome.result.value("peso_ideal")
            self.assertTrue(ideal is None or ideal > 0)


if __name__ == '__main__':
    unittest.main()
