"""
Kallpa: Population Protocols
============================
One evaluator per population category. Each evaluator picks the formula
variant for its sub-condition (age band, can-stand, GMFCS tier), computes,
classifies and collects Spanish warnings in the order they were raised.

Evaluators are one-shot: no state survives between calls.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from models import (
    EvaluationResult,
    FallbackPolicy,
    MeasurementSet,
    MetricValue,
    MissingRequiredFieldError,
    PopulationCategory,
    SafetyAlerts,
    Skinfolds,
)
from constants import (
    Sex,
    MaturationStage,
    BMRFormula,
    AMPUTATION_TABLE,
    ENERGY_EQUATIONS,
    GROWTH_THRESHOLDS,
    GERIATRIC_THRESHOLDS,
    IOM_GOALS,
    NEURO_THRESHOLDS,
    PEDIATRIC_CONSTANTS,
    PHYSIOLOGICAL_BOUNDS,
)
from core_formulas import AnthropometryEngine as Engine
from classification import ClassificationTables as Tables
from energy import EnergyExpenditure
from growth_standards import GrowthStandards
from safety import SafetySupervisor

logger = logging.getLogger(__name__)


# --- 1. STATURE CASCADE ---

class StatureStep(NamedTuple):
    label: str
    applies: Callable[[MeasurementSet], bool]
    estimate: Callable[[MeasurementSet, float], float]
    warning: Optional[str] = None  # Format string, receives the estimate in cm


def _high_gmfcs(m: MeasurementSet) -> bool:
    return m.gmfcs_level is not None and m.gmfcs_level.value in NEURO_THRESHOLDS.HIGH_RISK_LEVELS


class StatureCascade:
    """
    Ordered (precondition, estimator) pairs. The first step whose
    precondition holds supplies the stature.
    """

    GERIATRIC = (
        StatureStep("Talla medida",
                    lambda m: bool(m.height_cm),
                    lambda m, age: m.height_cm),
        StatureStep("Chumlea (altura de rodilla)",
                    lambda m: bool(m.knee_height_cm),
                    lambda m, age: Engine.height_chumlea_knee(m.knee_height_cm, age, m.sex),
                    "Talla estimada por Chumlea: {:.1f} cm (Usada para IMC)"),
        StatureStep("Longitud rodilla-maléolo",
                    lambda m: bool(m.knee_malleolus_cm),
                    lambda m, age: Engine.height_knee_malleolus(m.knee_malleolus_cm, age, m.sex),
                    "Talla estimada por longitud rodilla-maléolo: {:.1f} cm"),
        StatureStep("Media brazada",
                    lambda m: bool(m.half_armspan_cm),
                    lambda m, age: Engine.height_half_armspan(m.half_armspan_cm),
                    "Talla estimada por media brazada: {:.1f} cm"),
        StatureStep("Longitud de antebrazo",
                    lambda m: bool(m.forearm_length_cm),
                    lambda m, age: Engine.height_forearm(m.forearm_length_cm, age, m.sex),
                    "Talla estimada por longitud de antebrazo: {:.1f} cm"),
    )

    # GMFCS IV-V never uses a direct stature measurement
    NEUROLOGICAL = (
        StatureStep("Talla medida",
                    lambda m: bool(m.height_cm) and not _high_gmfcs(m),
                    lambda m, age: m.height_cm),
        StatureStep("Stevenson (tibia)",
                    lambda m: bool(m.tibia_length_cm),
                    lambda m, age: Engine.height_stevenson_tibia(m.tibia_length_cm),
                    "Talla estimada por Stevenson: {:.1f} cm"),
        StatureStep("Stevenson (brazo superior)",
                    lambda m: bool(m.upper_arm_length_cm),
                    lambda m, age: Engine.height_stevenson_upper_arm(m.upper_arm_length_cm),
                    "Talla estimada por Stevenson (brazo superior): {:.1f} cm"),
    )

    @staticmethod
    def first_applicable(steps, m: MeasurementSet) -> Optional[StatureStep]:
        for step in steps:
            if step.applies(m):
                return step
        return None

    @staticmethod
    def estimate(steps, m: MeasurementSet, age: float) -> Tuple[Optional[float], Optional[StatureStep]]:
        step = StatureCascade.first_applicable(steps, m)
        if step is None:
            logger.debug("No stature estimator applicable")
            return None, None
        value = step.estimate(m, age)
        logger.debug(f"Stature from '{step.label}': {value:.1f} cm")
        return value, step


# --- 2. BODY FAT SELECTOR ---

class BodyFatSelector:
    """
    Slaughter for 8-18 years, Durnin + Siri above, Durnin + Weststrate
    below 8 when all four Durnin skinfolds were measured.
    """

    @staticmethod
    def durnin_skinfolds(skinfolds: Skinfolds, policy: FallbackPolicy,
                         warnings: List[str]) -> Tuple[float, float, float, float]:
        biceps = skinfolds.biceps
        iliac_crest = skinfolds.iliac_crest
        missing = []

        if not biceps:
            if policy.allow_skinfold_substitutes:
                biceps = skinfolds.triceps * policy.biceps_from_triceps
                warnings.append(
                    f"Pliegue bicipital no medido: estimado como {policy.biceps_from_triceps:g} x "
                    f"tricipital ({biceps:.1f} mm)"
                )
            else:
                missing.append("pliegue_biceps")

        if not iliac_crest:
            if policy.allow_skinfold_substitutes:
                iliac_crest = skinfolds.subscapular * policy.iliac_crest_from_subscapular
                warnings.append(
                    f"Pliegue suprailíaco no medido: estimado como {policy.iliac_crest_from_subscapular:g} x "
                    f"subescapular ({iliac_crest:.1f} mm)"
                )
            else:
                missing.append("pliegue_iliac_crest")

        if missing:
            raise MissingRequiredFieldError(missing)
        return biceps, skinfolds.triceps, skinfolds.subscapular, iliac_crest

    @staticmethod
    def estimate(skinfolds: Skinfolds, age: float, sex: Sex, stage: Optional[MaturationStage],
                 policy: FallbackPolicy, warnings: List[str]) -> Optional[Dict[str, object]]:
        """None when triceps and subscapular are not both measured."""
        if not (skinfolds.triceps and skinfolds.subscapular):
            return None

        low, high = PEDIATRIC_CONSTANTS.SLAUGHTER_AGE_RANGE
        if low <= age <= high:
            if stage is None:
                stage = policy.default_maturation_stage
                warnings.append(f"Estadio de maduración no especificado, usando '{stage.value}'")
            percent = Engine.fat_percent_slaughter(skinfolds.triceps, skinfolds.subscapular, stage, sex, warnings)
            logger.debug(f"Body fat via Slaughter ({stage.value})")
            return {"percent": percent, "method": "slaughter", "density": None,
                    "formula": f"Slaughter (1988) - {stage.value}"}

        if age < low:
            if not (skinfolds.biceps and skinfolds.iliac_crest):
                return None
            density = Engine.density_durnin(skinfolds.biceps, skinfolds.triceps, skinfolds.subscapular,
                                            skinfolds.iliac_crest, age, sex, warnings)
            percent = Engine.fat_percent_weststrate(density, age, sex, warnings)
            logger.debug("Body fat via Durnin + Weststrate")
            return {"percent": percent, "method": "weststrate", "density": density,
                    "formula": "Durnin & Womersley (1974) + Weststrate & Deurenberg (1989)"}

        folds = BodyFatSelector.durnin_skinfolds(skinfolds, policy, warnings)
        density = Engine.density_durnin(*folds, age, sex, warnings)
        percent = Engine.fat_percent_siri(density, warnings)
        logger.debug("Body fat via Durnin + Siri")
        return {"percent": percent, "method": "durnin_siri", "density": density,
                "formula": "Durnin & Womersley (1974) + Siri (1961)"}


# --- 3. SHARED ASSEMBLY ---

class _Draft:
    """Mutable scratch space while an evaluator runs; frozen by build()."""

    def __init__(self, category: PopulationCategory):
        self.category = category
        self.metrics: Dict[str, MetricValue] = {}
        self.warnings: List[str] = []
        self.formulas: List[str] = []
        self.classification: Optional[str] = None
        self.flags: Dict[str, bool] = {}
        self.fragility = None

    def metric(self, name, value, unit="", label=None, risk=None):
        self.metrics[name] = MetricValue(value, unit, label, risk)

    def flag(self, name: str):
        self.flags[name] = True

    def build(self) -> EvaluationResult:
        return EvaluationResult(
            category=self.category,
            metrics=self.metrics,
            classification=self.classification,
            warnings=tuple(self.warnings),
            formulas=tuple(self.formulas),
            alerts=SafetyAlerts(**self.flags),
            fragility=self.fragility,
        )


def _add_body_fat(draft: _Draft, m: MeasurementSet, age: float, policy: FallbackPolicy) -> Optional[float]:
    fat = BodyFatSelector.estimate(m.skinfolds, age, m.sex, m.maturation_stage, policy, draft.warnings)
    if fat is None:
        return None
    percent = fat["percent"]
    draft.metric("porcentaje_grasa", round(percent, 1), "%", label=Tables.body_fat(percent, m.sex))
    if fat["density"] is not None:
        draft.metric("densidad_corporal", round(fat["density"], 4), "g/cm³")
    draft.formulas.append(fat["formula"])
    return percent


def _add_stature_warning(draft: _Draft, step: Optional[StatureStep], height: Optional[float]):
    if step is None:
        return
    if step.warning:
        draft.warnings.append(step.warning.format(height))
        draft.formulas.append(step.label)


def _add_body_composition(draft: _Draft, m: MeasurementSet, weight: float, height: float,
                          policy: FallbackPolicy):
    """Kerr and Heath-Carter, attempted once the limb breadths exist."""
    if not (m.breadths.humerus and m.breadths.femur):
        return

    try:
        kerr = Engine.five_component_fractionation(
            weight, height, m.skinfolds, m.girths, m.breadths,
            head_circumference_cm=m.head_circumference_cm,
            deviation_warning_pct=policy.kerr_deviation_warning_pct,
            tolerance_kg=policy.kerr_tolerance_kg,
        )
    except MissingRequiredFieldError as e:
        draft.warnings.append(f"Fraccionamiento de Kerr omitido: faltan {', '.join(e.missing_fields)}")
    else:
        draft.metric("masa_piel", kerr.skin_kg, "kg")
        draft.metric("masa_adiposa", kerr.adipose_kg, "kg")
        draft.metric("masa_muscular", kerr.muscle_kg, "kg")
        draft.metric("masa_osea", kerr.bone_kg, "kg")
        draft.metric("masa_residual", kerr.residual_kg, "kg")
        draft.metric("porcentaje_adiposo", kerr.adipose_percent, "%")
        draft.metric("porcentaje_lipidos", kerr.lipid_percent, "%")
        draft.metric("desviacion_kerr", kerr.deviation_pct, "%")
        draft.formulas.append("Kerr (1988) - 5 componentes")
        draft.warnings.extend(kerr.warnings)
        draft.warnings.extend(SafetySupervisor.check_five_component(kerr, weight, m.sex))
        if kerr.deviation_pct > policy.kerr_deviation_warning_pct:
            draft.flag("kerr_mass_imbalance")

    try:
        somato = Engine.somatotype(weight, height, m.skinfolds, m.girths, m.breadths)
    except MissingRequiredFieldError as e:
        draft.warnings.append(f"Somatotipo omitido: faltan {', '.join(e.missing_fields)}")
    else:
        draft.metric("endomorfia", round(somato.endomorphy, 1), label=Tables.component_level(somato.endomorphy))
        draft.metric("mesomorfia", round(somato.mesomorphy, 1), label=Tables.component_level(somato.mesomorphy))
        draft.metric("ectomorfia", round(somato.ectomorphy, 1), label=Tables.component_level(somato.ectomorphy))
        draft.metric("somatocarta_x", round(somato.x, 1))
        draft.metric("somatocarta_y", round(somato.y, 1),
                     label=Tables.somatotype(somato.endomorphy, somato.mesomorphy, somato.ectomorphy))
        draft.formulas.append("Heath-Carter (1990)")


def _add_cardiometabolic(draft: _Draft, m: MeasurementSet, height: float, age: float):
    waist = m.girths.waist
    if not waist:
        return
    whtr = Engine.waist_to_height_ratio(waist, height)
    draft.metric("indice_cintura_talla", round(whtr.ratio, 2), label=whtr.interpretation, risk=whtr.risk.value)

    whr = None
    if m.girths.hip:
        whr = Engine.waist_to_hip_ratio(waist, m.girths.hip, age, m.sex)
        draft.metric("indice_cintura_cadera", round(whr.ratio, 2), label=whr.interpretation, risk=whr.risk.value)

    abdominal = Engine.has_abdominal_obesity(waist, m.sex)
    if abdominal:
        draft.flag("abdominal_obesity")
        draft.warnings.append(f"Obesidad abdominal (cintura {waist:g} cm)")

    risk = Tables.cardiometabolic_risk(whtr, whr, abdominal)
    draft.metric("riesgo_cardiometabolico", None, label=risk.value, risk=risk.value)


def _estimate_in_range(draft: _Draft, label: str, value: float, bounds: Tuple[float, float], unit: str) -> bool:
    """Estimated values get the same bounds as measured ones; out of range is discarded."""
    low, high = bounds
    if low <= value <= high:
        return True
    logger.warning(f"{label} {value:.1f} {unit} outside [{low:g}, {high:g}], discarded")
    draft.warnings.append(
        f"{label} ({value:.1f} {unit}) fuera del rango permitido ({low:g}-{high:g} {unit}): valor descartado"
    )
    return False


def _add_energy(draft: _Draft, m: MeasurementSet, weight: float, height: float, age: float,
                body_fat: Optional[float] = None):
    """Energy and protein targets, only when an activity level was recorded."""
    if m.activity_level is None:
        return
    if body_fat is not None:
        formula = BMRFormula.KATCH
    elif age < ENERGY_EQUATIONS.PEDIATRIC_AGE_RANGE[0]:
        formula = BMRFormula.FAO
    else:
        formula = BMRFormula.MIFFLIN

    result = EnergyExpenditure.total(weight, height, age, m.sex, m.activity_level, formula, body_fat)
    draft.metric("gasto_energetico_basal", result.bmr, "kcal/día", label=result.formula)
    draft.metric("gasto_energetico_total", result.tdee, "kcal/día",
                 label=f"Factor de actividad {result.activity_factor:g}")
    draft.formulas.append(f"Gasto energético: {result.formula}")

    protein = EnergyExpenditure.protein_targets(weight, age, m.activity_level)
    draft.metric("proteina_min", protein.min_g, "g/día")
    draft.metric("proteina_max", protein.max_g, "g/día")
    if protein.warning:
        draft.warnings.append(protein.warning)


# --- 4. EVALUATORS ---

class PediatricEvaluator:
    """Lactante (< 2 years) and pediatrico (2-17 years)."""

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy,
                 category: PopulationCategory = PopulationCategory.PEDIATRICO,
                 age_months: Optional[float] = None) -> EvaluationResult:
        draft = _Draft(category)
        stature = m.stature_cm
        if not stature or not m.weight_kg:
            raise MissingRequiredFieldError([f for f, v in (("peso", m.weight_kg), ("talla", stature)) if not v])

        months = age_months if age_months is not None else age * 12.0
        corrected, applied = Engine.corrected_age_months(months, m.birth_gestational_weeks)
        if applied:
            draft.metric("edad_corregida_meses", round(corrected, 1), "meses")
            draft.warnings.append(
                f"Edad corregida por prematuridad ({m.birth_gestational_weeks:g} semanas): {corrected:.1f} meses"
            )

        body_fat = _add_body_fat(draft, m, age, policy)
        bmi = Engine.bmi(m.weight_kg, stature)
        bmi_class = Tables.bmi_by_age(bmi, age, m.sex, body_fat, m.intense_activity, age_months=corrected)
        draft.metric("imc", round(bmi, 1), "kg/m²", label=bmi_class["label"], risk=bmi_class["risk"])

        recumbent = bool(m.length_cm and not m.height_cm)
        growth = GrowthStandards.assess(m.weight_kg, stature, m.head_circumference_cm, corrected, m.sex,
                                        recumbent=recumbent, warnings=draft.warnings)
        for indicator, result in growth.indicators().items():
            suffix = GROWTH_THRESHOLDS.METRIC_SUFFIX[indicator]
            draft.metric(f"zscore_{suffix}", result.z, "DE", label=result.diagnosis,
                         risk=GROWTH_THRESHOLDS.SEVERITY_RISK[result.severity])
            draft.metric(f"percentil_{suffix}", result.percentile, "P")
        draft.classification = growth.nutritional_status
        draft.formulas.append("OMS Patrones de Crecimiento (LMS)")

        if m.head_circumference_cm:
            draft.metric("perimetro_cefalico", m.head_circumference_cm, "cm")

        if m.tanner_stage:
            biological = Tables.tanner_biological_age(m.tanner_stage, m.sex)
            draft.metric("edad_biologica", biological, "años", label=f"Tanner {m.tanner_stage}")
            if m.tanner_stage > 1:
                if abs(biological - age) > 1:
                    direction = "adelantada" if biological > age else "retrasada"
                    draft.warnings.append(
                        f"⚠️ Maduración {direction}: Usando Edad Biológica ({biological:.1f} años) para evaluación."
                    )
                else:
                    draft.warnings.append(f"📊 Usando Edad Biológica ({biological:.1f} años) basada en Tanner.")
        elif 10 <= age <= 19:
            draft.warnings.append(
                "💡 Sugerencia Clínica: Evaluar Estadío de Tanner para confirmar maduración sexual "
                "y validar 'picos de crecimiento'."
            )

        _add_energy(draft, m, m.weight_kg, stature, age, body_fat)
        return draft.build()


class AdultEvaluator:
    """Adulto and general population."""

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy,
                 category: PopulationCategory = PopulationCategory.ADULTO) -> EvaluationResult:
        draft = _Draft(category)
        height = m.stature_cm
        weight = m.weight_kg
        if not height or not weight:
            raise MissingRequiredFieldError([f for f, v in (("peso", weight), ("talla", height)) if not v])

        draft.warnings.extend(
            SafetySupervisor.check_isak_ranges(weight, height, m.skinfolds, m.girths, m.breadths)
        )

        body_fat = _add_body_fat(draft, m, age, policy)
        bmi = Engine.bmi(weight, height)
        bmi_class = Tables.bmi_by_age(bmi, age, m.sex, body_fat, m.intense_activity)
        draft.metric("imc", round(bmi, 1), "kg/m²", label=bmi_class["label"], risk=bmi_class["risk"])
        draft.classification = bmi_class["label"]
        if bmi_class["athlete_triad"]:
            draft.flag("athlete_triad_risk")
            draft.warnings.append(bmi_class["label"])

        _add_cardiometabolic(draft, m, height, age)
        _add_body_composition(draft, m, weight, height, policy)

        if m.sitting_height_cm:
            index = Engine.cormic_index(m.sitting_height_cm, height)
            draft.metric("indice_cormico", round(index, 1), "%", label=Tables.cormic(index))

        _add_energy(draft, m, weight, height, age, body_fat)
        return draft.build()


class GeriatricEvaluator:
    """Adulto mayor (>= 65 years): MINSA BMI, MNA, arm composition, frailty."""

    @staticmethod
    def weight_proxy_available(m: MeasurementSet) -> bool:
        return bool(m.girths.calf and m.knee_height_cm and m.girths.arm_relaxed and m.skinfolds.subscapular)

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy) -> EvaluationResult:
        draft = _Draft(PopulationCategory.ADULTO_MAYOR)

        height, step = StatureCascade.estimate(StatureCascade.GERIATRIC, m, age)
        _add_stature_warning(draft, step, height)
        if height is not None and step.warning and not _estimate_in_range(
                draft, "Talla estimada", height, PHYSIOLOGICAL_BOUNDS.STATURE_CM, "cm"):
            height = None
        if height is not None:
            draft.metric("talla", round(height, 1), "cm", label=step.label)

        weight = m.weight_kg
        if not weight and GeriatricEvaluator.weight_proxy_available(m):
            weight = Engine.weight_chumlea(m.girths.calf, m.knee_height_cm, m.girths.arm_relaxed,
                                           m.skinfolds.subscapular, age, m.sex)
            if _estimate_in_range(draft, "Peso estimado por Chumlea", weight,
                                  PHYSIOLOGICAL_BOUNDS.WEIGHT_KG, "kg"):
                draft.warnings.append(f"Peso estimado por Chumlea: {weight:.1f} kg")
                draft.formulas.append("Chumlea (peso estimado)")
            else:
                weight = None
        if weight:
            draft.metric("peso", round(weight, 1), "kg")

        mna_bmi = None
        if weight and height:
            bmi = Engine.bmi(weight, height)
            label, risk = Tables.bmi_geriatric(bmi)
            draft.metric("imc", round(bmi, 1), "kg/m²", label=label, risk=risk)
            draft.classification = label
            draft.formulas.append("IMC MINSA Adulto Mayor")
            mna_bmi = Tables.mna_bmi_score(bmi)
            draft.metric("mna_imc", mna_bmi[0], "pts", label=mna_bmi[1])
        else:
            draft.warnings.append("No se pudo calcular IMC: faltan peso o talla")

        calf = m.girths.calf
        if calf:
            draft.metric("mna_pantorrilla", Tables.mna_calf_score(calf), "pts")

        # Arm composition: absent girth or skinfold count as zero
        arm = m.girths.arm_relaxed or 0.0
        triceps = m.skinfolds.triceps or 0.0
        if arm > 0:
            comp = Engine.arm_composition(arm, triceps)
            draft.metric("cmb", round(comp["cmb"], 1), "cm")
            draft.metric("amb", round(comp["amb"], 1), "cm²", label=Tables.arm_percentile("amb", comp["amb"], m.sex))
            draft.metric("agb", round(comp["agb"], 1), "cm²")
            draft.metric("cb", arm, "cm", label=Tables.arm_percentile("cb", arm, m.sex))
        if triceps > 0:
            draft.metric("pt", triceps, "mm", label=Tables.arm_percentile("pt", triceps, m.sex))

        if height:
            ideal = Engine.ideal_weight_lorentz(height, age, m.sex)
            if ideal > 0:
                draft.metric("peso_ideal", round(ideal, 1), "kg")
                draft.formulas.append("Lorentz")
                if weight:
                    draft.metric("adecuacion_peso", round(Engine.weight_adequacy_pct(weight, ideal), 1), "%")
            else:
                draft.warnings.append(f"Peso ideal (Lorentz) no calculable para talla {height:.1f} cm")

        grip = m.grip_strength_kg
        if grip is not None:
            low = grip <= GERIATRIC_THRESHOLDS.GRIP_LOW_KG[m.sex]
            draft.metric("fuerza_prension", grip, "kg",
                         label="Fuerza Disminuida (Probable Sarcopenia)" if low else "Fuerza Normal")
        tug = m.timed_up_and_go_s
        if tug is not None:
            risky = tug > GERIATRIC_THRESHOLDS.TUG_FALL_RISK_S
            draft.metric("timed_up_and_go", tug, "s",
                         label="Riesgo de Caída Elevado" if risky else "Movilidad Normal")

        if weight and height:
            _add_energy(draft, m, weight, height, age)

        alerts, diagnosis, messages = SafetySupervisor.check_geriatric(m.sex, calf, grip, tug, mna_bmi)
        draft.flags.update({name: True for name, raised in vars(alerts).items() if raised})
        draft.fragility = diagnosis
        draft.warnings.extend(messages)
        return draft.build()


class GestationalEvaluator:
    """Gestante: Atalah curve and IOM weight-gain adequacy."""

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy) -> EvaluationResult:
        draft = _Draft(PopulationCategory.GESTANTE)
        height = m.stature_cm
        weight = m.weight_kg
        if not height or not weight:
            raise MissingRequiredFieldError([f for f, v in (("peso", weight), ("talla", height)) if not v])

        weeks = m.gestational_weeks
        if not weeks:
            draft.warnings.append("No se especificaron semanas de gestación, usando semana 20")
            weeks = IOM_GOALS.DEFAULT_WEEKS

        bmi = Engine.bmi(weight, height)
        atalah = Tables.atalah(bmi, weeks)
        draft.metric("imc", round(bmi, 1), "kg/m²", label=atalah,
                     risk="normal" if atalah == "Normal" else "elevado")
        draft.metric("semanas_gestacion", weeks, "sem")
        draft.classification = atalah
        draft.formulas.append("Atalah (1997)")

        if m.pre_pregnancy_weight_kg:
            pre_bmi = Engine.bmi(m.pre_pregnancy_weight_kg, height)
            gain = Tables.pregnancy_weight_gain(weight, m.pre_pregnancy_weight_kg, weeks, pre_bmi,
                                                m.twin_pregnancy)
            goals = gain["goals"]
            draft.metric("imc_pregestacional", round(pre_bmi, 1), "kg/m²", label=goals["band"])
            draft.metric("ganancia_peso", round(gain["gain"], 1), "kg", label=gain["status"])
            draft.metric("ganancia_esperada_min", round(gain["expected_min"], 1), "kg")
            draft.metric("ganancia_esperada_max", round(gain["expected_max"], 1), "kg")
            draft.metric("ganancia_total_min", goals["min_gain"], "kg")
            draft.metric("ganancia_total_max", goals["max_gain"], "kg")
            draft.formulas.append("IOM (2009)" + (" - gemelar" if m.twin_pregnancy else ""))
            if gain["status"] == "bajo":
                draft.warnings.append(
                    f"Ganancia de peso insuficiente para la semana {weeks:g} "
                    f"({gain['gain']:.1f} kg, esperado {gain['expected_min']:.1f}-{gain['expected_max']:.1f} kg)"
                )
            elif gain["status"] == "excesivo":
                draft.warnings.append(
                    f"Ganancia de peso excesiva para la semana {weeks:g} "
                    f"({gain['gain']:.1f} kg, esperado {gain['expected_min']:.1f}-{gain['expected_max']:.1f} kg)"
                )

        return draft.build()


class AmputeeEvaluator:
    """Amputado: BMI on weight corrected for the missing segments."""

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy) -> EvaluationResult:
        draft = _Draft(PopulationCategory.AMPUTADO)
        height = m.stature_cm
        weight = m.weight_kg
        if not height or not weight:
            raise MissingRequiredFieldError([f for f, v in (("peso", weight), ("talla", height)) if not v])

        segments = m.amputations
        if not segments:
            draft.warnings.append("No se especificaron amputaciones")
            effective_weight = weight
        else:
            fraction = Engine.amputation_fraction(segments)
            effective_weight = Engine.corrected_weight_amputee(weight, segments)
            labels = ", ".join(AMPUTATION_TABLE.SEGMENTS[s][1] for s in segments)
            draft.metric("porcentaje_amputado", round(fraction * 100, 1), "%", label=labels)
            draft.metric("peso_corregido", round(effective_weight, 1), "kg")
            draft.formulas.append("Osterkamp (1995) - peso corregido por amputación")

            ideal = Engine.ideal_weight_lorentz(height, age, m.sex)
            if ideal > 0:
                draft.metric("peso_ideal_ajustado",
                             round(Engine.adjusted_ideal_weight_amputee(ideal, segments), 1), "kg")
            else:
                draft.warnings.append(f"Peso ideal (Lorentz) no calculable para talla {height:.1f} cm")

        bmi = Engine.bmi(effective_weight, height)
        bmi_class = Tables.bmi_by_age(bmi, age, m.sex)
        draft.metric("imc", round(bmi, 1), "kg/m²", label=bmi_class["label"], risk=bmi_class["risk"])
        draft.classification = bmi_class["label"]
        return draft.build()


class NeurologicalEvaluator:
    """Neuro / cerebral palsy: segmental stature and GMFCS risk thresholds."""

    @staticmethod
    def evaluate(m: MeasurementSet, age: float, policy: FallbackPolicy) -> EvaluationResult:
        draft = _Draft(PopulationCategory.NEURO)

        height, step = StatureCascade.estimate(StatureCascade.NEUROLOGICAL, m, age)
        if height is None:
            raise MissingRequiredFieldError(["longitudTibia"])
        if not m.weight_kg:
            raise MissingRequiredFieldError(["peso"])
        _add_stature_warning(draft, step, height)
        if step.warning and not _estimate_in_range(draft, "Talla estimada", height,
                                                   PHYSIOLOGICAL_BOUNDS.STATURE_CM, "cm"):
            draft.warnings.append("No se pudo calcular IMC: talla estimada no válida")
        else:
            draft.metric("talla", round(height, 1), "cm", label=step.label)
            bmi = Engine.bmi(m.weight_kg, height)
            bmi_class = Tables.bmi_by_age(bmi, age, m.sex)
            draft.metric("imc", round(bmi, 1), "kg/m²", label=bmi_class["label"], risk=bmi_class["risk"])
            draft.classification = bmi_class["label"]

        level = m.gmfcs_level
        if level is not None:
            threshold = Tables.gmfcs_risk_percentile(level)
            draft.metric("gmfcs", None, label=f"GMFCS {level.value}: {Tables.gmfcs_description(level)}")
            draft.metric("percentil_riesgo", threshold, "P")
            if level.value in NEURO_THRESHOLDS.HIGH_RISK_LEVELS:
                draft.flag("gmfcs_high_risk")
                draft.warnings.append("Alto riesgo nutricional por GMFCS IV-V")
            if m.weight_percentile is not None:
                at_risk = Tables.gmfcs_nutritional_risk(level, m.weight_percentile)
                draft.metric("percentil_peso", m.weight_percentile, "P",
                             label="Riesgo nutricional" if at_risk else "Sin riesgo nutricional")
                if at_risk:
                    draft.warnings.append(
                        f"Percentil de peso (P{m.weight_percentile:g}) bajo el umbral GMFCS {level.value} "
                        f"(P{threshold})"
                    )

        return draft.build()
