"""
Kallpa: Formula Primitives
==========================
Published anthropometric equations as pure functions of numeric inputs.
No knowledge of patient records or population categories lives here.

Out-of-range inputs are clamped to physiological bounds. Structurally absent
inputs (zero denominators, missing breadths for Kerr) raise.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Skinfolds,
    Girths,
    Breadths,
    RatioResult,
    RiskLevel,
    SomatotypeResult,
    FiveComponentResult,
    MissingRequiredFieldError,
)
from constants import (
    Sex,
    MaturationStage,
    AmputationSegment,
    AgeBand,
    DURNIN_COEFFICIENTS,
    SLAUGHTER_COEFFICIENTS,
    BODY_FAT_LIMITS,
    PHANTOM,
    KERR_LIMITS,
    FALLBACK_DEFAULTS,
    SOMATOTYPE_CONSTANTS,
    STATURE_EQUATIONS,
    CHUMLEA_WEIGHT,
    LORENTZ,
    AMPUTATION_TABLE,
    PEDIATRIC_CONSTANTS,
    CARDIOMETABOLIC_THRESHOLDS,
    resolve_band,
)

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float, label: str,
           warnings: Optional[List[str]] = None) -> float:
    if value < low or value > high:
        bounded = min(max(value, low), high)
        if warnings is not None:
            warnings.append(
                f"{label} calculado ({value:.1f}%) fuera de rango fisiológico, ajustado a {bounded:.1f}%"
            )
        return bounded
    return value


class AnthropometryEngine:
    """
    The Mathematical Core.
    Translates raw measurements -> densities, fractions, estimates and ratios.
    """

    # --- 1. BODY DENSITY & FAT PERCENTAGE ---

    @staticmethod
    def bmi(weight_kg: float, height_cm: float) -> float:
        if not height_cm or height_cm <= 0:
            raise ValueError("Height must be positive to compute BMI")
        meters = height_cm / 100.0
        return weight_kg / (meters * meters)

    @staticmethod
    def durnin_band(age: float, sex: Sex) -> AgeBand:
        band, _ = DURNIN_COEFFICIENTS.get(sex, age)
        return band

    @staticmethod
    def density_durnin(biceps: float, triceps: float, subscapular: float,
                       iliac_crest: float, age: float, sex: Sex,
                       warnings: Optional[List[str]] = None) -> float:
        """
        Durnin & Womersley (1974): D = c - m * log10(sum of 4 skinfolds).
        Ages below the first band use its coefficients, with a warning.
        """
        total = biceps + triceps + subscapular + iliac_crest
        if total <= 0:
            raise ValueError("Skinfold sum must be positive for Durnin density")
        band, (c, m) = DURNIN_COEFFICIENTS.get(sex, age)
        if math.floor(age) < band.lower and warnings is not None:
            warnings.append(
                f"Edad ({age:g} años) por debajo de las bandas de Durnin, "
                f"usando coeficientes de la banda {band.label}"
            )
        logger.debug(f"Durnin band {band.label} for age {age}")
        return c - m * math.log10(total)

    @staticmethod
    def fat_percent_siri(density: float, warnings: Optional[List[str]] = None) -> float:
        """Siri (1961): %fat = 495/D - 450, clamped to [3, 50]."""
        if density <= 0:
            raise ValueError("Body density must be positive")
        raw = 495.0 / density - 450.0
        return _clamp(raw, BODY_FAT_LIMITS.SIRI_MIN, BODY_FAT_LIMITS.SIRI_MAX, "% Grasa (Siri)", warnings)

    @staticmethod
    def fat_percent_slaughter(triceps: float, subscapular: float, stage: MaturationStage,
                              sex: Sex, warnings: Optional[List[str]] = None) -> float:
        """Slaughter (1988), quadratic in triceps + subscapular."""
        s = triceps + subscapular
        a, b, c = SLAUGHTER_COEFFICIENTS.TABLE[sex][stage]
        raw = a * s - b * s * s + c
        return _clamp(raw, BODY_FAT_LIMITS.SLAUGHTER_MIN, BODY_FAT_LIMITS.SLAUGHTER_MAX,
                      "% Grasa (Slaughter)", warnings)

    @staticmethod
    def fat_percent_weststrate(density: float, age: float, sex: Sex,
                               warnings: Optional[List[str]] = None) -> float:
        """Weststrate & Deurenberg (1989) age-adjusted Siri for children."""
        if density <= 0:
            raise ValueError("Body density must be positive")
        if sex == Sex.MALE:
            raw = (562 - 4.2 * (age - 2)) / density - (525 - 4.7 * (age - 2))
        elif age < 10:
            raw = (562 - 1.1 * (age - 2)) / density - (525 - 1.4 * (age - 2))
        else:
            raw = (533 - 7.3 * (age - 10)) / density - (514 - 8 * (age - 10))
        return _clamp(raw, BODY_FAT_LIMITS.WESTSTRATE_MIN, BODY_FAT_LIMITS.WESTSTRATE_MAX,
                      "% Grasa (Weststrate)", warnings)

    # --- 2. KERR FIVE-COMPONENT FRACTIONATION ---

    @staticmethod
    def _z_score(value: Optional[float], height_cm: float, p: float, s: float) -> Optional[float]:
        if not value or value <= 0:
            return None
        return (value * (PHANTOM.HEIGHT_CM / height_cm) - p) / s

    @staticmethod
    def _mean_z(scores: Iterable[Optional[float]]) -> float:
        valid = [z for z in scores if z is not None]
        if not valid:
            return 0.0
        return sum(valid) / len(valid)

    @staticmethod
    def _phantom_mass(z: float, component: str, height_cm: float) -> float:
        p, s = PHANTOM.MASSES[component]
        return max(0.0, (z * s + p) * (height_cm / PHANTOM.HEIGHT_CM) ** 3)

    @staticmethod
    def skin_mass_kg(weight_kg: float, height_cm: float) -> float:
        """Du Bois surface area (cm2) x skin thickness x skin density."""
        area = (weight_kg ** 0.425) * (height_cm ** 0.725) * 71.84
        return max(0.0, area * (PHANTOM.SKIN_THICKNESS_MM / 10.0) * PHANTOM.SKIN_DENSITY / 1000.0)

    @staticmethod
    def kerr_missing_inputs(weight_kg: Optional[float], height_cm: Optional[float],
                            skinfolds: Skinfolds, girths: Girths, breadths: Breadths) -> List[str]:
        missing = []
        if not weight_kg:
            missing.append("peso")
        if not height_cm:
            missing.append("talla")
        adipose_sites = [name for name in PHANTOM.SKINFOLDS if getattr(skinfolds, name)]
        if len(adipose_sites) < KERR_LIMITS.MIN_ADIPOSE_SKINFOLDS:
            for name in ("triceps", "subscapular", "supraspinale", "abdominal"):
                if not getattr(skinfolds, name):
                    missing.append(f"pliegue_{name}")
        muscle_sites = [g for g in (girths.arm_relaxed, girths.thigh, girths.calf) if g]
        if len(muscle_sites) < KERR_LIMITS.MIN_MUSCLE_GIRTHS:
            for name in ("arm_relaxed", "thigh", "calf"):
                if not getattr(girths, name):
                    missing.append(f"perimetro_{name}")
        if not breadths.humerus:
            missing.append("diametro_humerus")
        if not breadths.femur:
            missing.append("diametro_femur")
        return missing

    @staticmethod
    def five_component_fractionation(
        weight_kg: float,
        height_cm: float,
        skinfolds: Skinfolds,
        girths: Girths,
        breadths: Breadths,
        head_circumference_cm: Optional[float] = None,
        deviation_warning_pct: float = FALLBACK_DEFAULTS.KERR_DEVIATION_WARNING_PCT,
        tolerance_kg: float = FALLBACK_DEFAULTS.KERR_TOLERANCE_KG,
    ) -> FiveComponentResult:
        """
        Kerr (1988) phantom-based fractionation into skin, adipose, muscle,
        bone and residual mass.

        The raw component sum is compared against body weight, then every
        component is scaled proportionally so the masses add up to weight.
        """
        missing = AnthropometryEngine.kerr_missing_inputs(weight_kg, height_cm, skinfolds, girths, breadths)
        if missing:
            raise MissingRequiredFieldError(missing)

        h = height_cm
        z = AnthropometryEngine._z_score
        warnings: List[str] = []

        # Adipose: six skinfolds
        z_adipose = AnthropometryEngine._mean_z(
            z(getattr(skinfolds, name), h, p, s) for name, (p, s) in PHANTOM.SKINFOLDS.items()
        )

        # Muscle: girths corrected by pi * skinfold (cm)
        corrected = []
        for girth_name, fold in (("arm_relaxed", skinfolds.triceps),
                                 ("thigh", skinfolds.thigh),
                                 ("calf", skinfolds.calf)):
            girth = getattr(girths, girth_name)
            if girth and fold is not None:
                corrected.append((girth - math.pi * fold / 10.0, girth_name))
        muscle_scores = [z(value, h, *PHANTOM.GIRTHS[name]) for value, name in corrected]
        if girths.forearm:
            muscle_scores.append(z(girths.forearm, h, *PHANTOM.GIRTHS["forearm"]))
        z_muscle = AnthropometryEngine._mean_z(muscle_scores)

        # Bone: limb breadths plus optional trunk breadths
        bone_scores = [
            z(getattr(breadths, name), h, *PHANTOM.BREADTHS[name])
            for name in ("humerus", "femur", "wrist", "ankle", "biacromial", "biiliocristal")
        ]
        z_bone = AnthropometryEngine._mean_z(bone_scores)

        # Residual: trunk/head measures, else the mean of the other three
        trunk_scores = [z(head_circumference_cm, h, *PHANTOM.BREADTHS["head_circumference"])]
        trunk_scores += [
            z(getattr(breadths, name), h, *PHANTOM.BREADTHS[name]) for name in ("biacromial", "biiliocristal")
        ]
        residual_estimated = all(score is None for score in trunk_scores)
        if residual_estimated:
            z_residual = (z_adipose + z_muscle + z_bone) / 3.0
        else:
            z_residual = AnthropometryEngine._mean_z(trunk_scores)

        raw = {
            "skin": AnthropometryEngine.skin_mass_kg(weight_kg, h),
            "adipose": AnthropometryEngine._phantom_mass(z_adipose, "adipose", h),
            "muscle": AnthropometryEngine._phantom_mass(z_muscle, "muscle", h),
            "bone": AnthropometryEngine._phantom_mass(z_bone, "bone", h),
            "residual": AnthropometryEngine._phantom_mass(z_residual, "residual", h),
        }
        raw_total = sum(raw.values())
        scale = weight_kg / raw_total if raw_total > 0 else 1.0
        deviation = abs(1.0 - scale) * 100.0

        if deviation > deviation_warning_pct:
            warnings.append(
                f"Aviso: Desviación del modelo de Kerr elevada ({deviation:.1f}%). "
                "La suma de componentes difiere significativamente del peso total."
            )

        scaled = {name: round(mass * scale, 2) for name, mass in raw.items()}
        if abs(sum(scaled.values()) - weight_kg) > tolerance_kg:
            warnings.append(
                f"Suma de masas ({sum(scaled.values()):.1f} kg) difiere del peso ({weight_kg:.1f} kg) "
                f"en más de {tolerance_kg} kg. Revisar mediciones."
            )

        adipose_percent = round(scaled["adipose"] / weight_kg * 100.0, 1)
        lipid_percent = round(adipose_percent * PHANTOM.LIPID_FRACTION_OF_ADIPOSE, 1)
        density = round(495.0 / (lipid_percent + 450.0), 4) if lipid_percent > 0 else 1.0

        skinfold_sum = sum(
            getattr(skinfolds, name) or 0.0
            for name in ("triceps", "subscapular", "biceps", "supraspinale", "abdominal", "thigh", "calf")
        )
        if skinfold_sum > KERR_LIMITS.OBESITY_SKINFOLD_SUM_HIGH:
            warnings.append(
                f"Suma de pliegues alta ({skinfold_sum:g}mm). En pacientes con alta adiposidad, "
                "la compresibilidad del panículo puede afectar la precisión."
            )
        elif skinfold_sum > KERR_LIMITS.OBESITY_SKINFOLD_SUM_MODERATE:
            warnings.append(
                f"Suma de pliegues moderadamente alta ({skinfold_sum:g}mm). Verificar técnica de medición."
            )

        return FiveComponentResult(
            skin_kg=scaled["skin"],
            adipose_kg=scaled["adipose"],
            muscle_kg=scaled["muscle"],
            bone_kg=scaled["bone"],
            residual_kg=scaled["residual"],
            raw_total_kg=round(raw_total, 2),
            deviation_pct=round(deviation, 1),
            adipose_percent=adipose_percent,
            lipid_percent=lipid_percent,
            density=density,
            z_scores={
                "adipose": round(z_adipose, 2),
                "muscle": round(z_muscle, 2),
                "bone": round(z_bone, 2),
                "residual": round(z_residual, 2),
            },
            residual_estimated=residual_estimated,
            skinfold_sum=skinfold_sum,
            warnings=tuple(warnings),
        )

    # --- 3. SOMATOTYPE (Heath-Carter) ---

    @staticmethod
    def endomorphy(triceps: float, subscapular: float, supraspinale: float, height_cm: float) -> float:
        if height_cm <= 0:
            raise ValueError("Height must be positive")
        x = (triceps + subscapular + supraspinale) * (PHANTOM.HEIGHT_CM / height_cm)
        endo = -0.7182 + 0.1451 * x - 0.00068 * x ** 2 + 0.0000014 * x ** 3
        return max(SOMATOTYPE_CONSTANTS.ENDO_FLOOR, endo)

    @staticmethod
    def mesomorphy(humerus: float, femur: float, arm_flexed: float, calf_girth: float,
                   triceps: float, calf_skinfold: float, height_cm: float) -> float:
        arm_corrected = arm_flexed - triceps / 10.0
        calf_corrected = calf_girth - calf_skinfold / 10.0
        meso = (0.858 * humerus + 0.601 * femur + 0.188 * arm_corrected
                + 0.161 * calf_corrected - 0.131 * height_cm + 4.5)
        return max(SOMATOTYPE_CONSTANTS.MESO_FLOOR, meso)

    @staticmethod
    def ectomorphy(height_cm: float, weight_kg: float) -> float:
        if weight_kg <= 0:
            raise ValueError("Weight must be positive")
        hwr = height_cm / weight_kg ** (1.0 / 3.0)
        if hwr >= SOMATOTYPE_CONSTANTS.HWR_UPPER:
            ecto = 0.732 * hwr - 28.58
        elif hwr > SOMATOTYPE_CONSTANTS.HWR_LOWER:
            ecto = 0.463 * hwr - 17.63
        else:
            ecto = SOMATOTYPE_CONSTANTS.ECTO_FLOOR
        return max(SOMATOTYPE_CONSTANTS.ECTO_FLOOR, ecto)

    @staticmethod
    def somatotype(weight_kg: float, height_cm: float, skinfolds: Skinfolds,
                   girths: Girths, breadths: Breadths) -> SomatotypeResult:
        needed = {
            "pliegue_triceps": skinfolds.triceps,
            "pliegue_subscapular": skinfolds.subscapular,
            "pliegue_supraspinale": skinfolds.supraspinale,
            "pliegue_calf": skinfolds.calf,
            "perimetro_arm_flexed": girths.arm_flexed,
            "perimetro_calf": girths.calf,
            "diametro_humerus": breadths.humerus,
            "diametro_femur": breadths.femur,
        }
        missing = [name for name, value in needed.items() if not value]
        if missing:
            raise MissingRequiredFieldError(missing)

        endo = AnthropometryEngine.endomorphy(
            skinfolds.triceps, skinfolds.subscapular, skinfolds.supraspinale, height_cm)
        meso = AnthropometryEngine.mesomorphy(
            breadths.humerus, breadths.femur, girths.arm_flexed, girths.calf,
            skinfolds.triceps, skinfolds.calf, height_cm)
        ecto = AnthropometryEngine.ectomorphy(height_cm, weight_kg)
        return SomatotypeResult(
            endomorphy=endo,
            mesomorphy=meso,
            ectomorphy=ecto,
            x=ecto - endo,
            y=2 * meso - (endo + ecto),
        )

    # --- 4. STATURE & WEIGHT ESTIMATORS ---

    @staticmethod
    def height_chumlea_knee(knee_height_cm: float, age: float, sex: Sex) -> float:
        intercept, age_coef, knee_coef = STATURE_EQUATIONS.CHUMLEA_KNEE[sex]
        return intercept - age_coef * age + knee_coef * knee_height_cm

    @staticmethod
    def height_stevenson_tibia(tibia_cm: float) -> float:
        slope, intercept = STATURE_EQUATIONS.STEVENSON_TIBIA
        return slope * tibia_cm + intercept

    @staticmethod
    def height_stevenson_upper_arm(upper_arm_cm: float) -> float:
        slope, intercept = STATURE_EQUATIONS.STEVENSON_UPPER_ARM
        return slope * upper_arm_cm + intercept

    @staticmethod
    def height_knee_malleolus(length_cm: float, age: float, sex: Sex) -> float:
        length_coef, age_coef, intercept = STATURE_EQUATIONS.KNEE_MALLEOLUS[sex]
        return length_coef * length_cm - age_coef * age + intercept

    @staticmethod
    def height_half_armspan(half_armspan_cm: float) -> float:
        return half_armspan_cm * 2.0

    @staticmethod
    def height_forearm(forearm_cm: float, age: float, sex: Sex) -> float:
        base, factor = STATURE_EQUATIONS.FOREARM[sex]
        return forearm_cm * 4.5 * factor - age * 0.05 + base / 2.0

    @staticmethod
    def weight_chumlea(calf_cm: float, knee_height_cm: float, arm_cm: float,
                       subscapular_mm: float, age: float, sex: Sex) -> float:
        cp, ar, cb, sub, age_coef, intercept = CHUMLEA_WEIGHT.COEFFICIENTS[sex]
        return cp * calf_cm + ar * knee_height_cm + cb * arm_cm + sub * subscapular_mm - age_coef * age + intercept

    # --- 5. AMPUTATION & IDEAL WEIGHT ---

    @staticmethod
    def amputation_fraction(segments: Iterable[AmputationSegment]) -> float:
        return sum(AMPUTATION_TABLE.fraction(s) for s in segments)

    @staticmethod
    def corrected_weight_amputee(weight_kg: float, segments: Iterable[AmputationSegment]) -> float:
        """Estimated whole-body weight: measured / (1 - amputated fraction)."""
        fraction = AnthropometryEngine.amputation_fraction(segments)
        if fraction <= 0 or fraction >= 1:
            return weight_kg
        return weight_kg / (1.0 - fraction)

    @staticmethod
    def adjusted_ideal_weight_amputee(ideal_kg: float, segments: Iterable[AmputationSegment]) -> float:
        fraction = AnthropometryEngine.amputation_fraction(segments)
        return ideal_kg * (1.0 - min(fraction, 1.0))

    @staticmethod
    def ideal_weight_lorentz(height_cm: float, age: float, sex: Sex) -> float:
        k = LORENTZ.K[sex]
        return (height_cm - 100) - (height_cm - 150) / k + (age - 20) / k

    @staticmethod
    def weight_adequacy_pct(actual_kg: float, ideal_kg: float) -> float:
        if ideal_kg <= 0:
            raise ValueError("Ideal weight must be positive")
        return actual_kg / ideal_kg * 100.0

    # --- 6. ARM, PROPORTION & AGE HELPERS ---

    @staticmethod
    def arm_composition(arm_girth_cm: float, triceps_mm: float) -> Dict[str, float]:
        """Arm muscle circumference (CMB), muscle area (AMB) and fat area (AGB)."""
        cmb = arm_girth_cm - 0.314 * triceps_mm
        amb = cmb ** 2 / 12.56 if cmb > 0 else 0.0
        agb = arm_girth_cm ** 2 / 12.56 - amb
        return {"cmb": cmb, "amb": amb, "agb": agb}

    @staticmethod
    def cormic_index(sitting_height_cm: float, height_cm: float) -> float:
        if height_cm <= 0:
            raise ValueError("Height must be positive")
        return sitting_height_cm / height_cm * 100.0

    @staticmethod
    def corrected_age_months(age_months: float, birth_gestational_weeks: Optional[float]) -> Tuple[float, bool]:
        """Age corrected for prematurity. Applied only under 37 weeks and up to 24 months."""
        if (birth_gestational_weeks is None
                or birth_gestational_weeks >= PEDIATRIC_CONSTANTS.PRETERM_CUTOFF_WEEKS
                or age_months > PEDIATRIC_CONSTANTS.CORRECTION_MAX_MONTHS):
            return age_months, False
        weeks_early = PEDIATRIC_CONSTANTS.TERM_WEEKS - birth_gestational_weeks
        return max(0.0, age_months - weeks_early / PEDIATRIC_CONSTANTS.WEEKS_PER_MONTH), True

    # --- 7. CARDIOMETABOLIC RATIOS ---

    @staticmethod
    def waist_to_height_ratio(waist_cm: float, height_cm: float) -> RatioResult:
        if height_cm <= 0:
            raise ValueError("Height must be positive")
        ratio = waist_cm / height_cm
        for cutoff, risk, text in CARDIOMETABOLIC_THRESHOLDS.WHTR:
            if ratio < cutoff:
                return RatioResult(ratio, RiskLevel(risk), text)
        risk, text = CARDIOMETABOLIC_THRESHOLDS.WHTR_TOP
        return RatioResult(ratio, RiskLevel(risk), text)

    @staticmethod
    def waist_to_hip_ratio(waist_cm: float, hip_cm: float, age: float, sex: Sex) -> RatioResult:
        if hip_cm <= 0:
            raise ValueError("Hip circumference must be positive")
        ratio = waist_cm / hip_cm
        _, (low, moderate, high) = resolve_band(CARDIOMETABOLIC_THRESHOLDS.WHR[sex], age)
        if ratio < low:
            risk = "bajo"
        elif ratio < moderate:
            risk = "moderado"
        elif ratio < high:
            risk = "alto"
        else:
            risk = "muy_alto"
        return RatioResult(ratio, RiskLevel(risk), CARDIOMETABOLIC_THRESHOLDS.WHR_INTERPRETATIONS[risk])

    @staticmethod
    def has_abdominal_obesity(waist_cm: float, sex: Sex) -> bool:
        return waist_cm >= CARDIOMETABOLIC_THRESHOLDS.ABDOMINAL_WAIST[sex]
