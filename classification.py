"""
Kallpa: Classification Tables
=============================
Deterministic mappings from a computed value (BMI, ratio, score, somatotype
triple) plus context keys (week, sex, age band) to a label and risk tier.
"""

from typing import Dict, Optional, Tuple

from models import GMFCSLevel, RatioResult, RiskLevel
from constants import (
    Sex,
    GrowthIndicator,
    GROWTH_THRESHOLDS,
    ATALAH_TABLE,
    IOM_GOALS,
    SOMATOTYPE_CONSTANTS,
    BMI_THRESHOLDS,
    BODY_FAT_LIMITS,
    TANNER_BIOLOGICAL_AGE,
    GERIATRIC_THRESHOLDS,
    NEURO_THRESHOLDS,
    CORMIC_THRESHOLDS,
    AGE_THRESHOLDS,
)
from growth_standards import GrowthStandards


class ClassificationTables:

    # --- 1. PREGNANCY (Atalah / IOM) ---

    @staticmethod
    def atalah(bmi: float, weeks: float) -> str:
        """
        Atalah gestational BMI curve. Weeks outside [6, 42] clamp to the
        nearest tabulated row; the walk is strictly ascending.
        """
        under, normal, over = ATALAH_TABLE.row(weeks)
        if bmi < under:
            return ATALAH_TABLE.LABELS[0]
        if bmi < normal:
            return ATALAH_TABLE.LABELS[1]
        if bmi < over:
            return ATALAH_TABLE.LABELS[2]
        return ATALAH_TABLE.LABELS[3]

    @staticmethod
    def iom_band(pre_pregnancy_bmi: float) -> str:
        for cutoff, band in IOM_GOALS.BMI_BANDS:
            if pre_pregnancy_bmi < cutoff:
                return band
        return IOM_GOALS.TOP_BAND

    @staticmethod
    def iom_goals(pre_pregnancy_bmi: float, twin: bool = False) -> Dict[str, float]:
        band = ClassificationTables.iom_band(pre_pregnancy_bmi)
        table = IOM_GOALS.TWIN if twin else IOM_GOALS.SINGLETON
        total_min, total_max, weekly_min, weekly_max = table[band]
        return {
            "band": band,
            "min_gain": total_min,
            "max_gain": total_max,
            "weekly_min": weekly_min,
            "weekly_max": weekly_max,
        }

    @staticmethod
    def expected_gain_range(weeks: float, goals: Dict[str, float]) -> Tuple[float, float]:
        """
        Two-phase expectation: a linear ramp through the first trimester,
        then the IOM weekly rate on top of the first-trimester allowance.
        """
        if weeks <= IOM_GOALS.FIRST_TRIMESTER_WEEKS:
            fraction = weeks / IOM_GOALS.FIRST_TRIMESTER_WEEKS
            low, high = IOM_GOALS.FIRST_TRIMESTER_GAIN
            return low * fraction, high * fraction
        extra_weeks = weeks - IOM_GOALS.FIRST_TRIMESTER_WEEKS
        return (IOM_GOALS.FIRST_TRIMESTER_BASE + extra_weeks * goals["weekly_min"],
                IOM_GOALS.FIRST_TRIMESTER_BASE + extra_weeks * goals["weekly_max"])

    @staticmethod
    def pregnancy_weight_gain(current_kg: float, pre_pregnancy_kg: float, weeks: float,
                              pre_pregnancy_bmi: float, twin: bool = False) -> Dict[str, object]:
        goals = ClassificationTables.iom_goals(pre_pregnancy_bmi, twin)
        expected_min, expected_max = ClassificationTables.expected_gain_range(weeks, goals)
        gain = current_kg - pre_pregnancy_kg
        if gain < expected_min * IOM_GOALS.LOW_MARGIN:
            status = "bajo"
        elif gain > expected_max * IOM_GOALS.HIGH_MARGIN:
            status = "excesivo"
        else:
            status = "adecuado"
        return {
            "gain": gain,
            "expected_min": expected_min,
            "expected_max": expected_max,
            "status": status,
            "goals": goals,
        }

    # --- 2. SOMATOTYPE ---

    @staticmethod
    def somatotype(endo: float, meso: float, ecto: float) -> str:
        """
        13-category Heath-Carter classifier. Check order matters:
        central, single-dominant, mixed pairs, max-component fallback.
        """
        central = SOMATOTYPE_CONSTANTS.CENTRAL_TOLERANCE
        bal = SOMATOTYPE_CONSTANTS.BALANCE_TOLERANCE
        d_endo_meso = abs(endo - meso)
        d_meso_ecto = abs(meso - ecto)
        d_ecto_endo = abs(ecto - endo)

        if d_endo_meso <= central and d_meso_ecto <= central and d_ecto_endo <= central:
            return "Central"

        if endo > meso + bal and endo > ecto + bal:
            if d_meso_ecto <= bal:
                return "Endomorfo Balanceado"
            return "Endo-Mesomórfico" if meso > ecto else "Endo-Ectomórfico"

        if meso > endo + bal and meso > ecto + bal:
            if d_ecto_endo <= bal:
                return "Mesomorfo Balanceado"
            return "Meso-Endomórfico" if endo > ecto else "Meso-Ectomórfico"

        if ecto > endo + bal and ecto > meso + bal:
            if d_endo_meso <= bal:
                return "Ectomorfo Balanceado"
            return "Ecto-Mesomórfico" if meso > endo else "Ecto-Endomórfico"

        if d_endo_meso <= bal and endo > ecto and meso > ecto:
            return "Mesomorfo-Endomorfo"
        if d_meso_ecto <= bal and meso > endo and ecto > endo:
            return "Mesomorfo-Ectomorfo"
        if d_ecto_endo <= bal and endo > meso and ecto > meso:
            return "Endomorfo-Ectomorfo"

        if endo >= meso and endo >= ecto:
            return "Endomorfo"
        if meso >= endo and meso >= ecto:
            return "Mesomorfo"
        return "Ectomorfo"

    @staticmethod
    def component_level(value: float) -> str:
        (low, _), (moderate, _), (high, _) = SOMATOTYPE_CONSTANTS.LEVELS
        if value < low:
            return "Bajo"
        if value <= moderate:
            return "Moderado"
        if value <= high:
            return "Alto"
        return "Muy Alto"

    # --- 3. BMI ---

    @staticmethod
    def bmi_adult(bmi: float) -> Tuple[str, str]:
        for cutoff, label, risk in BMI_THRESHOLDS.ADULT:
            if bmi < cutoff:
                return label, risk
        return BMI_THRESHOLDS.ADULT_TOP

    @staticmethod
    def bmi_geriatric(bmi: float) -> Tuple[str, str]:
        """MINSA ranges for older adults: normal is 23.0 - 27.9."""
        for cutoff, label, risk in BMI_THRESHOLDS.GERIATRIC:
            if bmi < cutoff:
                return label, risk
        return BMI_THRESHOLDS.GERIATRIC_TOP

    @staticmethod
    def bmi_by_age(bmi: float, age: float, sex: Sex, body_fat_pct: Optional[float] = None,
                   intense_activity: bool = False, age_months: Optional[float] = None) -> Dict[str, object]:
        if age < AGE_THRESHOLDS.PEDIATRIC_MAX:
            # WHO BMI-for-age; under five the weight-for-length indicator applies instead
            months = age_months if age_months is not None else age * 12.0
            result = GrowthStandards.z_score(bmi, months, sex, GrowthIndicator.BFA)
            if result is None:
                return {"label": BMI_THRESHOLDS.UNDER_FIVE_LABEL, "risk": "normal", "athlete_triad": False}
            return {"label": result.diagnosis, "risk": GROWTH_THRESHOLDS.SEVERITY_RISK[result.severity],
                    "athlete_triad": False}

        # Body-composition overrides take precedence over the BMI bands
        if body_fat_pct is not None:
            if sex == Sex.FEMALE and body_fat_pct < BMI_THRESHOLDS.TRIAD_FAT_FEMALE and intense_activity:
                return {"label": BMI_THRESHOLDS.TRIAD_LABEL, "risk": "muy_alto", "athlete_triad": True}
            if bmi >= 25.0 and body_fat_pct < BMI_THRESHOLDS.ATHLETE_LEAN_FAT[sex]:
                return {"label": BMI_THRESHOLDS.MUSCULAR_LABEL, "risk": "bajo", "athlete_triad": False}

        if age >= AGE_THRESHOLDS.GERIATRIC_MIN:
            label, risk = ClassificationTables.bmi_geriatric(bmi)
        else:
            label, risk = ClassificationTables.bmi_adult(bmi)
        return {"label": label, "risk": risk, "athlete_triad": False}

    # --- 4. GERIATRIC SCREENING ---

    @staticmethod
    def mna_bmi_score(bmi: float) -> Tuple[int, str]:
        points = 3
        for cutoff, score in GERIATRIC_THRESHOLDS.MNA_BMI:
            if bmi < cutoff:
                points = score
                break
        return points, GERIATRIC_THRESHOLDS.MNA_BMI_LABELS[points]

    @staticmethod
    def mna_calf_score(calf_cm: float) -> int:
        return GERIATRIC_THRESHOLDS.MNA_CALF_POINTS if calf_cm >= GERIATRIC_THRESHOLDS.CALF_LOW_CM else 0

    @staticmethod
    def mna_screening(total_score: int) -> str:
        if total_score >= GERIATRIC_THRESHOLDS.MNA_SCREEN_NORMAL:
            return "normal"
        if total_score >= GERIATRIC_THRESHOLDS.MNA_SCREEN_RISK:
            return "riesgo_desnutricion"
        return "desnutricion"

    @staticmethod
    def arm_percentile(measure: str, value: float, sex: Sex) -> str:
        """Band against p5 / p15 / p85 for amb, pt or cb."""
        p5, p15, p85 = GERIATRIC_THRESHOLDS.ARM_PERCENTILES[measure][sex]
        labels = GERIATRIC_THRESHOLDS.ARM_LABELS
        if value < p5:
            return labels[0]
        if value < p15:
            return labels[1]
        if value < p85:
            return labels[2]
        return labels[3]

    # --- 5. BODY FAT & MATURATION ---

    @staticmethod
    def body_fat(pct: float, sex: Sex) -> str:
        very_low, low, normal, elevated = BODY_FAT_LIMITS.CLASSES[sex]
        labels = BODY_FAT_LIMITS.CLASS_LABELS
        if pct < very_low:
            return labels[0]
        if pct < low:
            return labels[1]
        if pct <= normal:
            return labels[2]
        if pct < elevated:
            return labels[3]
        return labels[4]

    @staticmethod
    def tanner_biological_age(stage: int, sex: Sex) -> float:
        return TANNER_BIOLOGICAL_AGE.TABLE[sex][stage]

    # --- 6. NEUROLOGICAL (GMFCS) ---

    @staticmethod
    def gmfcs_description(level: GMFCSLevel) -> str:
        return NEURO_THRESHOLDS.GMFCS_DESCRIPTIONS[level.value]

    @staticmethod
    def gmfcs_risk_percentile(level: GMFCSLevel) -> int:
        if level.value in NEURO_THRESHOLDS.AMBULATORY_LEVELS:
            return NEURO_THRESHOLDS.RISK_PERCENTILE_AMBULATORY
        return NEURO_THRESHOLDS.RISK_PERCENTILE_NON_AMBULATORY

    @staticmethod
    def gmfcs_nutritional_risk(level: GMFCSLevel, weight_percentile: float) -> bool:
        return weight_percentile < ClassificationTables.gmfcs_risk_percentile(level)

    # --- 7. CARDIOMETABOLIC & PROPORTIONS ---

    @staticmethod
    def cardiometabolic_risk(whtr: Optional[RatioResult] = None, whr: Optional[RatioResult] = None,
                             abdominal_obesity: Optional[bool] = None) -> RiskLevel:
        """Highest risk among the available indicators."""
        levels = [RiskLevel.MINIMO]
        if whtr is not None:
            levels.append(whtr.risk)
        if whr is not None:
            levels.append(whr.risk)
        if abdominal_obesity:
            levels.append(RiskLevel.ALTO)
        return max(levels, key=lambda level: level.rank)

    @staticmethod
    def cormic(index: float) -> str:
        if index < CORMIC_THRESHOLDS.BRACHY_MAX:
            return CORMIC_THRESHOLDS.LABELS[0]
        if index <= CORMIC_THRESHOLDS.METRIO_MAX:
            return CORMIC_THRESHOLDS.LABELS[1]
        return CORMIC_THRESHOLDS.LABELS[2]
