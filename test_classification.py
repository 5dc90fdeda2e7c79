import unittest
from classification import ClassificationTables
from core_formulas import AnthropometryEngine
from models import GMFCSLevel, RiskLevel
from constants import Sex, ATALAH_TABLE, BMI_THRESHOLDS


class TestClassificationTables(unittest.TestCase):
    """
    Label and risk lookups.
    Run with: python -m unittest test_classification.py
    """

    def test_01_atalah_week_28(self):
        """[ATALAH] Strict ascending walk over the week-28 row (24.5 / 30.0 / 34.0)"""
        print("\nTEST 1: Atalah Week 28")
        self.assertEqual(ClassificationTables.atalah(24.0, 28), "Bajo Peso")
        self.assertEqual(ClassificationTables.atalah(24.5, 28), "Normal")
        self.assertEqual(ClassificationTables.atalah(29.5, 28), "Normal")
        self.assertEqual(ClassificationTables.atalah(30.5, 28), "Sobrepeso")
        self.assertEqual(ClassificationTables.atalah(34.0, 28), "Obesidad")

    def test_02_atalah_week_clamping(self):
        """[ATALAH] Weeks outside the table use the first/last row"""
        print("\nTEST 2: Atalah Clamping")
        self.assertEqual(ATALAH_TABLE.row(3), ATALAH_TABLE.row(6))
        self.assertEqual(ATALAH_TABLE.row(50), ATALAH_TABLE.row(42))
        self.assertEqual(ClassificationTables.atalah(19.0, 3), "Bajo Peso")
        self.assertEqual(ClassificationTables.atalah(37.5, 50), "Obesidad")

    def test_03_iom_goals_and_gain(self):
        """[IOM] Band goals and two-phase expected gain"""
        print("\nTEST 3: IOM Weight Gain")
        goals = ClassificationTables.iom_goals(22.0)
        self.assertEqual(goals["band"], "normal")
        self.assertEqual((goals["min_gain"], goals["max_gain"]), (11.5, 16.0))
        self.assertEqual(ClassificationTables.iom_goals(22.0, twin=True)["min_gain"], 16.7)

        low, high = ClassificationTables.expected_gain_range(13, goals)
        self.assertAlmostEqual(low, 0.5)
        self.assertAlmostEqual(high, 2.0)
        low, high = ClassificationTables.expected_gain_range(23, goals)
        self.assertAlmostEqual(low, 5.0)
        self.assertAlmostEqual(high, 6.5)

        self.assertEqual(ClassificationTables.pregnancy_weight_gain(66, 60, 23, 22.0)["status"], "adecuado")
        self.assertEqual(ClassificationTables.pregnancy_weight_gain(63, 60, 23, 22.0)["status"], "bajo")
        self.assertEqual(ClassificationTables.pregnancy_weight_gain(70, 60, 23, 22.0)["status"], "excesivo")

    def test_04_somatotype_categories(self):
        """[HEATH-CARTER] Central, dominant, balanced and mixed categories"""
        print("\nTEST 4: Somatotype Categories")
        cases = [
            ((4.0, 4.5, 3.8), "Central"),
            ((6.0, 3.0, 3.2), "Endomorfo Balanceado"),
            ((6.0, 4.0, 1.0), "Endo-Mesomórfico"),
            ((2.0, 5.0, 2.3), "Mesomorfo Balanceado"),
            ((3.5, 6.0, 1.5), "Meso-Endomórfico"),
            ((1.5, 5.0, 3.0), "Meso-Ectomórfico"),
            ((2.0, 2.2, 5.0), "Ectomorfo Balanceado"),
            ((5.0, 5.3, 2.0), "Mesomorfo-Endomorfo"),
        ]
        for (endo, meso, ecto), expected in cases:
            label = ClassificationTables.somatotype(endo, meso, ecto)
            print(f"  > {endo}-{meso}-{ecto}: {label}")
            self.assertEqual(label, expected, f"{endo}-{meso}-{ecto} misclassified")

    def test_05_component_levels(self):
        """[HEATH-CARTER] Component level bands"""
        print("\nTEST 5: Component Levels")
        self.assertEqual(ClassificationTables.component_level(2.9), "Bajo")
        self.assertEqual(ClassificationTables.component_level(3.0), "Moderado")
        self.assertEqual(ClassificationTables.component_level(5.5), "Moderado")
        self.assertEqual(ClassificationTables.component_level(7.5), "Alto")
        self.assertEqual(ClassificationTables.component_level(7.6), "Muy Alto")

    def test_06_bmi_adult_and_geriatric(self):
        """[BMI] WHO adult bands vs MINSA geriatric bands"""
        print("\nTEST 6: BMI Bands")
        self.assertEqual(ClassificationTables.bmi_adult(17.0), ("Bajo peso", "elevado"))
        self.assertEqual(ClassificationTables.bmi_adult(22.0), ("Normal", "normal"))
        self.assertEqual(ClassificationTables.bmi_adult(27.0)[0], "Sobrepeso")
        self.assertEqual(ClassificationTables.bmi_adult(32.0), ("Obesidad Grado I", "alto"))
        self.assertEqual(ClassificationTables.bmi_adult(37.0)[0], "Obesidad Grado II")
        self.assertEqual(ClassificationTables.bmi_adult(41.0)[0], "Obesidad Grado III")

        self.assertEqual(ClassificationTables.bmi_geriatric(22.9)[0], "Bajo peso")
        self.assertEqual(ClassificationTables.bmi_geriatric(23.0)[0], "Normal")
        self.assertEqual(ClassificationTables.bmi_geriatric(27.9)[0], "Normal")
        self.assertEqual(ClassificationTables.bmi_geriatric(28.0)[0], "Sobrepeso")
        self.assertEqual(ClassificationTables.bmi_geriatric(32.0), ("Obesidad", "alto"))

    def test_07_bmi_overrides(self):
        """[BMI] WHO BMI-for-age under 18, athlete triad and muscular overweight"""
        print("\nTEST 7: BMI Overrides")
        # Boys 120 months: L -0.5057, M 16.1171, S 0.11545 -> z 1.77
        school_age = ClassificationTables.bmi_by_age(20.0, 10, Sex.MALE)
        self.assertEqual(school_age["label"], "Riesgo de sobrepeso")
        self.assertEqual(school_age["risk"], "normal")
        self.assertEqual(ClassificationTables.bmi_by_age(16.0, 3, Sex.MALE)["label"],
                         BMI_THRESHOLDS.UNDER_FIVE_LABEL)

        triad = ClassificationTables.bmi_by_age(20.0, 25, Sex.FEMALE, body_fat_pct=10.0, intense_activity=True)
        self.assertTrue(triad["athlete_triad"])
        self.assertIn("TRIADA", triad["label"])

        # Same athlete without intense activity is a plain BMI reading
        plain = ClassificationTables.bmi_by_age(20.0, 25, Sex.FEMALE, body_fat_pct=10.0)
        self.assertEqual(plain["label"], "Normal")

        muscular = ClassificationTables.bmi_by_age(27.0, 30, Sex.MALE, body_fat_pct=12.0)
        self.assertEqual(muscular["label"], "Sobrepeso Muscular (Atleta)")
        self.assertEqual(muscular["risk"], "bajo")

        self.assertEqual(ClassificationTables.bmi_by_age(27.0, 30, Sex.MALE, body_fat_pct=22.0)["label"], "Sobrepeso")
        self.assertEqual(ClassificationTables.bmi_by_age(22.0, 70, Sex.MALE)["label"], "Bajo peso")

    def test_08_mna(self):
        """[MNA] BMI points, calf points and screening bands"""
        print("\nTEST 8: MNA")
        self.assertEqual(ClassificationTables.mna_bmi_score(18.0), (0, "Riesgo Alto"))
        self.assertEqual(ClassificationTables.mna_bmi_score(20.0), (1, "Riesgo Moderado"))
        self.assertEqual(ClassificationTables.mna_bmi_score(22.0), (2, "Riesgo Leve"))
        self.assertEqual(ClassificationTables.mna_bmi_score(23.0), (3, "Sin Riesgo"))
        self.assertEqual(ClassificationTables.mna_calf_score(31.0), 3)
        self.assertEqual(ClassificationTables.mna_calf_score(30.9), 0)
        self.assertEqual(ClassificationTables.mna_screening(12), "normal")
        self.assertEqual(ClassificationTables.mna_screening(10), "riesgo_desnutricion")
        self.assertEqual(ClassificationTables.mna_screening(7), "desnutricion")

    def test_09_arm_percentiles(self):
        """[ARM] p5 / p15 / p85 bands"""
        print("\nTEST 9: Arm Percentiles")
        self.assertEqual(ClassificationTables.arm_percentile("amb", 57.44, Sex.MALE), "Exceso / Aumentado")
        self.assertEqual(ClassificationTables.arm_percentile("cb", 24.0, Sex.MALE), "Riesgo de Déficit")
        self.assertEqual(ClassificationTables.arm_percentile("cb", 20.0, Sex.FEMALE), "Déficit / Disminuido")
        self.assertEqual(ClassificationTables.arm_percentile("pt", 16.0, Sex.FEMALE), "Normal")

    def test_10_body_fat_classes(self):
        """[FAT] Sex-specific body-fat classes"""
        print("\nTEST 10: Body Fat Classes")
        self.assertEqual(ClassificationTables.body_fat(7, Sex.MALE), "muy_bajo")
        self.assertEqual(ClassificationTables.body_fat(9, Sex.MALE), "bajo")
        self.assertEqual(ClassificationTables.body_fat(20, Sex.MALE), "normal")
        self.assertEqual(ClassificationTables.body_fat(22, Sex.MALE), "moderadamente_elevado")
        self.assertEqual(ClassificationTables.body_fat(25, Sex.MALE), "alto")
        self.assertEqual(ClassificationTables.body_fat(32.0, Sex.FEMALE), "moderadamente_elevado")
        self.assertEqual(ClassificationTables.body_fat(32.1, Sex.FEMALE), "alto")

    def test_11_tanner_and_gmfcs(self):
        """[MATURATION/NEURO] Tanner biological age and GMFCS risk percentile"""
        print("\nTEST 11: Tanner & GMFCS")
        self.assertEqual(ClassificationTables.tanner_biological_age(3, Sex.FEMALE), 12.0)
        self.assertEqual(ClassificationTables.tanner_biological_age(5, Sex.MALE), 16.0)
        self.assertEqual(ClassificationTables.gmfcs_risk_percentile(GMFCSLevel.I), 5)
        self.assertEqual(ClassificationTables.gmfcs_risk_percentile(GMFCSLevel.III), 20)
        self.assertTrue(ClassificationTables.gmfcs_nutritional_risk(GMFCSLevel.IV, 15))
        self.assertFalse(ClassificationTables.gmfcs_nutritional_risk(GMFCSLevel.II, 10))

    def test_12_cardiometabolic_and_cormic(self):
        """[RISK] Highest indicator wins; Cormic bands"""
        print("\nTEST 12: Cardiometabolic & Cormic")
        whtr = AnthropometryEngine.waist_to_height_ratio(80, 175)
        whr = AnthropometryEngine.waist_to_hip_ratio(80, 95, 25, Sex.MALE)
        self.assertEqual(ClassificationTables.cardiometabolic_risk(whtr, whr, False), RiskLevel.MODERADO)
        self.assertEqual(ClassificationTables.cardiometabolic_risk(whtr, whr, True), RiskLevel.ALTO)
        self.assertEqual(ClassificationTables.cardiometabolic_risk(), RiskLevel.MINIMO)

        self.assertTrue(ClassificationTables.cormic(50.0).startswith("Braquicórmico"))
        self.assertTrue(ClassificationTables.cormic(52.0).startswith("Metriocórmico"))
        self.assertTrue(ClassificationTables.cormic(53.0).startswith("Metriocórmico"))
        self.assertTrue(ClassificationTables.cormic(54.0).startswith("Macrocórmico"))


if __name__ == '__main__':
    unittest.main()
