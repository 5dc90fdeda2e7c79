"""
Kallpa: Energy Expenditure
==========================
Basal metabolic rate, total daily energy expenditure and protein targets.

Adults: BMR x activity factor, plus 10% thermic effect of food.
Ages 3-18: IOM 2005 estimated energy requirement, which already includes
growth and TEF.
"""

import logging
from typing import Optional

from models import EnergyExpenditureResult, ProteinTarget
from constants import (
    Sex,
    ActivityLevel,
    BMRFormula,
    ENERGY_EQUATIONS,
    PROTEIN_TARGETS,
)

logger = logging.getLogger(__name__)


def _check_weight(weight: float):
    if weight <= 0:
        raise ValueError(f"Weight must be positive for energy equations: {weight}")


def _fat_free_mass(weight: float, fat_percent: float) -> float:
    _check_weight(weight)
    if fat_percent < 0 or fat_percent > 100:
        raise ValueError(f"Body fat must be between 0 and 100%: {fat_percent}")
    return weight * (1.0 - fat_percent / 100.0)


def _age_band(bands, age: float):
    for upper, slope, intercept in bands:
        if upper is None or age < upper:
            return slope, intercept
    return bands[-1][1], bands[-1][2]


class EnergyExpenditure:

    # --- 1. BASAL METABOLIC RATE (kcal/day) ---

    @staticmethod
    def harris_benedict(weight: float, height: float, age: float, sex: Sex) -> float:
        """Harris-Benedict, Roza & Shizgal (1984) revision."""
        _check_weight(weight)
        intercept, w, h, a = ENERGY_EQUATIONS.HARRIS_BENEDICT[sex]
        return intercept + w * weight + h * height - a * age

    @staticmethod
    def mifflin_st_jeor(weight: float, height: float, age: float, sex: Sex) -> float:
        """Mifflin-St Jeor (1990)."""
        _check_weight(weight)
        return 10 * weight + 6.25 * height - 5 * age + ENERGY_EQUATIONS.MIFFLIN_SEX_OFFSET[sex]

    @staticmethod
    def fao_who(weight: float, age: float, sex: Sex) -> float:
        """FAO/WHO/UNU (Schofield) age-band equations."""
        _check_weight(weight)
        slope, intercept = _age_band(ENERGY_EQUATIONS.FAO_WHO[sex], age)
        return slope * weight + intercept

    @staticmethod
    def henry(weight: float, age: float, sex: Sex) -> float:
        """Henry / Oxford (2005)."""
        _check_weight(weight)
        slope, intercept = _age_band(ENERGY_EQUATIONS.HENRY[sex], age)
        return slope * weight + intercept

    @staticmethod
    def katch_mcardle(weight: float, fat_percent: float) -> float:
        intercept, slope = ENERGY_EQUATIONS.KATCH_MCARDLE
        return intercept + slope * _fat_free_mass(weight, fat_percent)

    @staticmethod
    def cunningham(weight: float, fat_percent: float) -> float:
        intercept, slope = ENERGY_EQUATIONS.CUNNINGHAM
        return intercept + slope * _fat_free_mass(weight, fat_percent)

    # --- 2. PEDIATRIC (3-18 years) ---

    @staticmethod
    def pediatric_eer(age: float, weight: float, height: float, sex: Sex,
                      activity: ActivityLevel,
                      method: Optional[BMRFormula] = None) -> EnergyExpenditureResult:
        """
        IOM 2005 EER by default. FAO or Henry methods scale their BMR by
        the adult activity factor instead.
        """
        _check_weight(weight)
        activity = ActivityLevel.parse(activity)

        if method in (BMRFormula.FAO, BMRFormula.HENRY):
            if method == BMRFormula.FAO:
                bmr, name = EnergyExpenditure.fao_who(weight, age, sex), "FAO/OMS (Schofield)"
            else:
                bmr, name = EnergyExpenditure.henry(weight, age, sex), "Henry (2005)"
            factor = ENERGY_EQUATIONS.ACTIVITY_FACTORS[activity]
            return EnergyExpenditureResult(round(bmr), factor, 0, round(bmr * factor), name)

        key = ENERGY_EQUATIONS.PEDIATRIC_PA_KEY.get(activity, activity)
        pa = ENERGY_EQUATIONS.PEDIATRIC_PA[sex][key]
        intercept, age_coef, w_coef, h_coef = ENERGY_EQUATIONS.PEDIATRIC_EER[sex]
        eer = (intercept - age_coef * age
               + pa * (w_coef * weight + h_coef * height / 100.0)
               + ENERGY_EQUATIONS.PEDIATRIC_EER_GROWTH_KCAL)
        eer = round(eer)
        return EnergyExpenditureResult(round(eer / ENERGY_EQUATIONS.PEDIATRIC_BMR_FROM_EER), pa, 0, eer, "IOM 2005")

    # --- 3. TOTAL DAILY ENERGY EXPENDITURE ---

    @staticmethod
    def bmr(weight: float, height: float, age: float, sex: Sex,
            formula: BMRFormula = BMRFormula.MIFFLIN,
            fat_percent: Optional[float] = None):
        """(kcal/day, formula name). Lean-mass equations fall back to Mifflin without a body fat %."""
        if formula in (BMRFormula.KATCH, BMRFormula.CUNNINGHAM) and fat_percent is None:
            logger.debug(f"{formula.value} requested without body fat, using Mifflin")
            return EnergyExpenditure.mifflin_st_jeor(weight, height, age, sex), "Mifflin-St Jeor (fallback)"
        if formula == BMRFormula.HARRIS:
            return EnergyExpenditure.harris_benedict(weight, height, age, sex), "Harris-Benedict"
        if formula == BMRFormula.FAO:
            return EnergyExpenditure.fao_who(weight, age, sex), "FAO/OMS"
        if formula == BMRFormula.HENRY:
            return EnergyExpenditure.henry(weight, age, sex), "Henry (2005)"
        if formula == BMRFormula.KATCH:
            return EnergyExpenditure.katch_mcardle(weight, fat_percent), "Katch-McArdle"
        if formula == BMRFormula.CUNNINGHAM:
            return EnergyExpenditure.cunningham(weight, fat_percent), "Cunningham"
        return EnergyExpenditure.mifflin_st_jeor(weight, height, age, sex), "Mifflin-St Jeor"

    @staticmethod
    def total(weight: float, height: float, age: float, sex: Sex, activity: ActivityLevel,
              formula: BMRFormula = BMRFormula.MIFFLIN, fat_percent: Optional[float] = None,
              include_tef: bool = True) -> EnergyExpenditureResult:
        activity = ActivityLevel.parse(activity)
        formula = BMRFormula(formula)

        low, high = ENERGY_EQUATIONS.PEDIATRIC_AGE_RANGE
        if low <= age <= high:
            return EnergyExpenditure.pediatric_eer(age, weight, height, sex, activity, formula)

        bmr, name = EnergyExpenditure.bmr(weight, height, age, sex, formula, fat_percent)
        factor = ENERGY_EQUATIONS.ACTIVITY_FACTORS[activity]
        base = bmr * factor
        tef = base * ENERGY_EQUATIONS.TEF_FACTOR if include_tef else 0.0
        logger.debug(f"TDEE via {name}: BMR {bmr:.0f} x {factor} + TEF {tef:.0f}")
        return EnergyExpenditureResult(round(bmr), factor, round(tef), round(base + tef), name)

    # --- 4. PROTEIN ---

    @staticmethod
    def protein_targets(weight: float, age: float,
                        activity: ActivityLevel = ActivityLevel.SEDENTARY) -> ProteinTarget:
        """Daily grams. From 65 years the floor rises to prevent sarcopenia."""
        _check_weight(weight)
        activity = ActivityLevel.parse(activity)

        if age >= PROTEIN_TARGETS.GERIATRIC_MIN_AGE:
            low, high = PROTEIN_TARGETS.GERIATRIC
            if activity in PROTEIN_TARGETS.GERIATRIC_ACTIVE_LEVELS:
                low, high = PROTEIN_TARGETS.GERIATRIC_ACTIVE
            return ProteinTarget(round(low * weight), round(high * weight), PROTEIN_TARGETS.GERIATRIC_WARNING)

        low, high = PROTEIN_TARGETS.ADULT[activity]
        return ProteinTarget(round(low * weight), round(high * weight))
