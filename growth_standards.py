"""
Kallpa: WHO Growth Standards
============================
LMS z-scores for weight, length/height, BMI and head circumference.

Tables: WHO Child Growth Standards (0-60 months) and WHO Reference 2007
(61-228 months). Weight-for-length is keyed by length in cm.

    Z = ((X / M) ** L - 1) / (L * S)      L != 0
    Z = ln(X / M) / S                     L ~= 0
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from models import GrowthAssessment, ZScoreResult
from constants import Sex, GrowthIndicator, GROWTH_THRESHOLDS, WHO_GROWTH_LMS

logger = logging.getLogger(__name__)

LMS = Tuple[float, float, float]


class GrowthStandards:

    # --- 1. TABLE LOOKUP ---

    @staticmethod
    def table_for(indicator: GrowthIndicator, sex: Sex, x: float) -> Optional[Dict[float, LMS]]:
        """
        Reference table covering x (months, or cm for weight-for-length).
        None when the indicator has no reference at that point.
        """
        under_five = x <= GROWTH_THRESHOLDS.UNDER_FIVE_MAX_MONTHS
        in_reference = x <= GROWTH_THRESHOLDS.REFERENCE_MAX_MONTHS

        if indicator == GrowthIndicator.WFA:
            return WHO_GROWTH_LMS.WFA[sex] if under_five else None
        if indicator == GrowthIndicator.HCFA:
            return WHO_GROWTH_LMS.HCFA[sex] if under_five else None
        if indicator == GrowthIndicator.LHFA:
            if under_five:
                return WHO_GROWTH_LMS.LHFA[sex]
            return WHO_GROWTH_LMS.HFA_2007[sex] if in_reference else None
        if indicator == GrowthIndicator.BFA:
            if under_five or not in_reference:
                return None
            return WHO_GROWTH_LMS.BFA_2007[sex]
        if indicator == GrowthIndicator.WFLH:
            low, high = GROWTH_THRESHOLDS.WFL_RANGE_CM
            return WHO_GROWTH_LMS.WFL[sex] if low <= x <= high else None
        raise ValueError(f"Unknown growth indicator: {indicator}")

    @staticmethod
    def lms(table: Dict[float, LMS], x: float) -> LMS:
        """Linear interpolation between tabulated keys, clamped at both ends."""
        keys = sorted(table)
        if x <= keys[0]:
            return table[keys[0]]
        if x >= keys[-1]:
            return table[keys[-1]]
        if x in table:
            return table[x]

        for lower, upper in zip(keys, keys[1:]):
            if lower <= x <= upper:
                ratio = (x - lower) / (upper - lower)
                return tuple(a + ratio * (b - a) for a, b in zip(table[lower], table[upper]))
        return table[keys[-1]]

    # --- 2. Z-SCORE MATH ---

    @staticmethod
    def raw_z(value: float, l: float, m: float, s: float) -> float:
        if abs(l) < GROWTH_THRESHOLDS.L_LOG_EPSILON:
            return math.log(value / m) / s
        return ((value / m) ** l - 1.0) / (l * s)

    @staticmethod
    def percentile(z: float) -> int:
        """Standard normal CDF as a whole percentile."""
        return int(round(50.0 * (1.0 + math.erf(z / math.sqrt(2.0)))))

    @staticmethod
    def interpret(z: float, indicator: GrowthIndicator) -> Tuple[str, str]:
        """(diagnosis, severity) using WHO cut-offs for the indicator."""
        if indicator in (GrowthIndicator.WFLH, GrowthIndicator.BFA):
            if z > 3:
                return "Obesidad", "severe_positive"
            if z > 2:
                return "Sobrepeso", "moderate_positive"
            if z > 1:
                return "Riesgo de sobrepeso", "normal"
            if z >= -2:
                return "Normal", "normal"
            if z >= -3:
                return "Delgadez", "moderate_negative"
            return "Delgadez severa", "severe_negative"

        if indicator == GrowthIndicator.LHFA:
            if z > 3:
                return "Muy alto", "severe_positive"
            if z > 2:
                return "Alto", "moderate_positive"
            if z >= -2:
                return "Normal", "normal"
            if z >= -3:
                return "Talla baja moderada", "moderate_negative"
            return "Talla baja severa", "severe_negative"

        if indicator == GrowthIndicator.WFA:
            if z > 2:
                return "Peso alto", "moderate_positive"
            if z >= -2:
                return "Normal", "normal"
            if z >= -3:
                return "Bajo peso moderado", "moderate_negative"
            return "Bajo peso severo", "severe_negative"

        if z > 2:
            return "Alto", "moderate_positive"
        if z >= -2:
            return "Normal", "normal"
        return "Bajo", "moderate_negative"

    @staticmethod
    def z_score(value: float, x: float, sex: Sex, indicator: GrowthIndicator,
                warnings: Optional[List[str]] = None) -> Optional[ZScoreResult]:
        """
        z-score of value at x (age in months, or length in cm for WFLH).
        Returns None outside the table coverage. Results beyond +/-5 SD are
        clamped and reported in warnings.
        """
        if value <= 0:
            raise ValueError(f"Measurement must be positive for z-score: {value}")

        table = GrowthStandards.table_for(indicator, sex, x)
        if table is None:
            logger.debug(f"No {indicator.value} reference at {x:g}")
            return None

        l, m, s = GrowthStandards.lms(table, x)
        z = GrowthStandards.raw_z(value, l, m, s)

        limit = GROWTH_THRESHOLDS.Z_LIMIT
        if abs(z) > limit:
            clamped = math.copysign(limit, z)
            if warnings is not None:
                warnings.append(
                    f"Z-score {GROWTH_THRESHOLDS.INDICATOR_LABELS[indicator]} fuera de rango "
                    f"({z:.1f} DE), limitado a {clamped:+g} DE. Verificar medición."
                )
            z = clamped
        z = round(z, 2)

        diagnosis, severity = GrowthStandards.interpret(z, indicator)
        return ZScoreResult(indicator, z, GrowthStandards.percentile(z), diagnosis, severity)

    # --- 3. FULL ASSESSMENT ---

    @staticmethod
    def adjusted_stature(stature_cm: float, age_months: float, recumbent: bool) -> float:
        """Length below 24 months, standing height from 24 months on."""
        offset = GROWTH_THRESHOLDS.LENGTH_HEIGHT_OFFSET_CM
        if age_months >= GROWTH_THRESHOLDS.INFANT_MAX_MONTHS and recumbent:
            return stature_cm - offset
        if age_months < GROWTH_THRESHOLDS.INFANT_MAX_MONTHS and not recumbent:
            return stature_cm + offset
        return stature_cm

    @staticmethod
    def assess(weight_kg: float, stature_cm: float, head_circumference_cm: Optional[float],
               age_months: float, sex: Sex, recumbent: bool = False,
               warnings: Optional[List[str]] = None) -> GrowthAssessment:
        """
        Under five, acute status comes from weight-for-length/height (weight
        for age when the length is outside the table). From 61 months on it
        comes from BMI-for-age. Stunting is always length/height-for-age.
        """
        z_score = GrowthStandards.z_score
        under_five = age_months <= GROWTH_THRESHOLDS.UNDER_FIVE_MAX_MONTHS

        wfa = z_score(weight_kg, age_months, sex, GrowthIndicator.WFA, warnings)
        lhfa = z_score(GrowthStandards.adjusted_stature(stature_cm, age_months, recumbent),
                       age_months, sex, GrowthIndicator.LHFA, warnings)
        hcfa = None
        if head_circumference_cm:
            hcfa = z_score(head_circumference_cm, age_months, sex, GrowthIndicator.HCFA, warnings)

        wflh = bfa = None
        if under_five:
            # Weight-for-length table is measured recumbent
            length = stature_cm if recumbent else stature_cm + GROWTH_THRESHOLDS.LENGTH_HEIGHT_OFFSET_CM
            wflh = z_score(weight_kg, length, sex, GrowthIndicator.WFLH, warnings)
            if wflh is None and warnings is not None:
                low, high = GROWTH_THRESHOLDS.WFL_RANGE_CM
                warnings.append(
                    f"Longitud ({length:.1f} cm) fuera de la tabla Peso/Talla OMS ({low}-{high} cm): "
                    "se usa Peso/Edad para el estado agudo"
                )
            acute = wflh or wfa
        else:
            bmi = weight_kg / (stature_cm / 100.0) ** 2
            bfa = z_score(bmi, age_months, sex, GrowthIndicator.BFA, warnings)
            acute = bfa

        stunting = lhfa is not None and lhfa.z < -2
        wasting = acute is not None and acute.z < -2
        weight_for_size = acute if acute is not None and acute.indicator != GrowthIndicator.WFA else None
        overweight = weight_for_size is not None and weight_for_size.z > 2

        if stunting and wasting:
            status = "Desnutrición crónica y aguda"
        elif stunting:
            status = "Desnutrición crónica (Retardo del crecimiento)"
        elif wasting:
            status = "Desnutrición aguda (Emaciación)"
        elif overweight:
            status = "Obesidad" if weight_for_size.z > 3 else "Sobrepeso"
        else:
            status = "Normal"

        logger.info(f"Growth assessment at {age_months:.1f} months: {status}")
        return GrowthAssessment(
            wfa=wfa, lhfa=lhfa, wflh=wflh, bfa=bfa, hcfa=hcfa,
            nutritional_status=status,
            stunting=stunting, wasting=wasting, overweight=overweight,
        )
