"""
Kallpa: Data Dictionary & Variable Definitions
==============================================
This module defines the raw measurement record, the clinical context used for
category resolution, and the immutable outputs returned to the UI layer.

NO FORMULAS are implemented here. Only input validation and shape.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from constants import (
    VERSION,
    Sex,
    MaturationStage,
    AmputationSegment,
    ActivityLevel,
    GrowthIndicator,
    FALLBACK_DEFAULTS,
)


class MissingRequiredFieldError(ValueError):
    """Raised when a field required by the active population category is absent."""

    def __init__(self, missing_fields, message: Optional[str] = None):
        self.missing_fields = list(missing_fields)
        super().__init__(message or f"Campos requeridos faltantes: {', '.join(self.missing_fields)}")


class DataTypeError(TypeError):
    """Raised when inputs are wrong python types (str instead of float)."""
    pass


# --- 1. ENUMS (Standardizing the Inputs) ---

class PopulationCategory(Enum):
    # Never resolved from a clinical context; callers dispatching directly
    # use it for the plain adult protocol without age-band semantics.
    GENERAL = "general"
    LACTANTE = "lactante"          # < 2 years
    PEDIATRICO = "pediatrico"      # 2-17 years
    ADULTO = "adulto"
    ADULTO_MAYOR = "adulto_mayor"  # >= 65 years
    GESTANTE = "gestante"
    AMPUTADO = "amputado"
    NEURO = "neuro"                # Cerebral palsy / GMFCS


class GMFCSLevel(Enum):
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"


class RiskLevel(Enum):
    MINIMO = "minimo"
    BAJO = "bajo"
    MODERADO = "moderado"
    ALTO = "alto"
    MUY_ALTO = "muy_alto"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class AlertColor(Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"


def _check_numeric(obj, names):
    for name in names:
        val = getattr(obj, name)
        if val is None:
            continue
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise DataTypeError(f"Field '{name}' must be numeric, got {type(val)}")
        if val < 0:
            raise ValueError(f"Field '{name}' cannot be negative: {val}")


def _coerce_sex(value) -> Sex:
    if isinstance(value, Sex):
        return value
    try:
        return Sex(value)
    except ValueError:
        raise ValueError(f"Sex must be 'M' or 'F', got {value!r}") from None


def _build_group(cls, values: dict):
    """Nested measurement group from a raw dict; unknown sites are rejected."""
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} fields: {', '.join(sorted(unknown))}")
    return cls(**values)


# --- 2. INPUT LAYER (What the Clinician Enters) ---

@dataclass
class Skinfolds:
    """Skinfold thicknesses in mm (ISAK sites)."""
    triceps: Optional[float] = None
    subscapular: Optional[float] = None
    biceps: Optional[float] = None
    iliac_crest: Optional[float] = None   # Durnin & Womersley site
    supraspinale: Optional[float] = None  # Kerr / Heath-Carter site
    abdominal: Optional[float] = None
    thigh: Optional[float] = None
    calf: Optional[float] = None

    def __post_init__(self):
        _check_numeric(self, [f.name for f in fields(self)])

    def provided(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}


@dataclass
class Girths:
    """Circumferences in cm."""
    arm_relaxed: Optional[float] = None
    arm_flexed: Optional[float] = None
    forearm: Optional[float] = None
    waist: Optional[float] = None
    hip: Optional[float] = None
    thigh: Optional[float] = None
    calf: Optional[float] = None

    def __post_init__(self):
        _check_numeric(self, [f.name for f in fields(self)])


@dataclass
class Breadths:
    """Bone breadths in cm."""
    humerus: Optional[float] = None
    femur: Optional[float] = None
    wrist: Optional[float] = None
    ankle: Optional[float] = None
    biacromial: Optional[float] = None
    biiliocristal: Optional[float] = None

    def __post_init__(self):
        _check_numeric(self, [f.name for f in fields(self)])


@dataclass
class MeasurementSet:
    """
    The raw anthropometric record for one visit. This is the only durable
    entity; every derived value is recomputed from it.
    """
    age_years: float
    sex: Sex
    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    length_cm: Optional[float] = None      # Recumbent length (infants)

    skinfolds: Skinfolds = field(default_factory=Skinfolds)
    girths: Girths = field(default_factory=Girths)
    breadths: Breadths = field(default_factory=Breadths)

    # Pregnancy
    gestational_weeks: Optional[float] = None
    pre_pregnancy_weight_kg: Optional[float] = None
    twin_pregnancy: bool = False

    # Stature proxies
    knee_height_cm: Optional[float] = None
    knee_malleolus_cm: Optional[float] = None
    tibia_length_cm: Optional[float] = None
    half_armspan_cm: Optional[float] = None
    forearm_length_cm: Optional[float] = None
    upper_arm_length_cm: Optional[float] = None
    sitting_height_cm: Optional[float] = None
    head_circumference_cm: Optional[float] = None

    # Population-specific
    amputations: List[AmputationSegment] = field(default_factory=list)
    gmfcs_level: Optional[GMFCSLevel] = None
    weight_percentile: Optional[float] = None
    maturation_stage: Optional[MaturationStage] = None
    tanner_stage: Optional[int] = None
    birth_gestational_weeks: Optional[float] = None

    # Functional (geriatric)
    grip_strength_kg: Optional[float] = None
    timed_up_and_go_s: Optional[float] = None
    intense_activity: bool = False
    activity_level: Optional[ActivityLevel] = None

    def __post_init__(self):
        # Accept raw API / persistence payloads
        self.sex = _coerce_sex(self.sex)
        if self.activity_level is not None:
            self.activity_level = ActivityLevel.parse(self.activity_level)
        if isinstance(self.skinfolds, dict):
            self.skinfolds = _build_group(Skinfolds, self.skinfolds)
        if isinstance(self.girths, dict):
            self.girths = _build_group(Girths, self.girths)
        if isinstance(self.breadths, dict):
            self.breadths = _build_group(Breadths, self.breadths)
        if isinstance(self.gmfcs_level, str):
            self.gmfcs_level = GMFCSLevel(self.gmfcs_level)
        if isinstance(self.maturation_stage, str):
            self.maturation_stage = MaturationStage(self.maturation_stage)
        self.amputations = [
            a if isinstance(a, AmputationSegment) else AmputationSegment(a) for a in self.amputations
        ]

        numeric_fields = [
            'age_years', 'weight_kg', 'height_cm', 'length_cm', 'gestational_weeks',
            'pre_pregnancy_weight_kg', 'knee_height_cm', 'knee_malleolus_cm', 'tibia_length_cm',
            'half_armspan_cm', 'forearm_length_cm', 'upper_arm_length_cm', 'sitting_height_cm',
            'head_circumference_cm', 'weight_percentile', 'birth_gestational_weeks',
            'grip_strength_kg', 'timed_up_and_go_s', 'tanner_stage',
        ]
        _check_numeric(self, numeric_fields)

        if self.weight_kg is not None and self.weight_kg == 0:
            raise ValueError("Weight must be greater than zero")
        if self.height_cm == 0 or self.length_cm == 0:
            raise ValueError("Height must be greater than zero")
        if self.tanner_stage is not None and self.tanner_stage not in (1, 2, 3, 4, 5):
            raise ValueError(f"Invalid Tanner stage: {self.tanner_stage}")

    @property
    def stature_cm(self) -> Optional[float]:
        """Measured height, or recumbent length for infants."""
        return self.height_cm if self.height_cm else self.length_cm


@dataclass
class ClinicalContext:
    """
    Per-patient flags. Derived from the current patient profile each time,
    never stored on its own.
    """
    sex: Sex
    age_years: Optional[float] = None
    birth_date: Optional[date] = None
    is_pregnant: bool = False
    has_amputations: bool = False
    amputations: List[AmputationSegment] = field(default_factory=list)
    is_neurological: bool = False
    gmfcs_level: Optional[GMFCSLevel] = None
    can_stand: bool = True

    def __post_init__(self):
        self.sex = _coerce_sex(self.sex)
        if isinstance(self.gmfcs_level, str):
            self.gmfcs_level = GMFCSLevel(self.gmfcs_level)
        if isinstance(self.birth_date, str):
            self.birth_date = date.fromisoformat(self.birth_date)
        self.amputations = [
            a if isinstance(a, AmputationSegment) else AmputationSegment(a) for a in self.amputations
        ]
        if self.age_years is None and self.birth_date is None:
            raise ValueError("Either age_years or birth_date is required")
        _check_numeric(self, ['age_years'])

    def age_on(self, today: Optional[date] = None) -> float:
        """Whole years elapsed since birth_date, or the declared age."""
        if self.birth_date is None:
            return float(self.age_years)
        today = today or date.today()
        years = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return float(max(years, 0))

    def age_months_on(self, today: Optional[date] = None) -> float:
        """Whole months since birth_date; declared age x 12 otherwise."""
        if self.birth_date is None:
            return float(self.age_years) * 12.0
        today = today or date.today()
        months = (today.year - self.birth_date.year) * 12 + (today.month - self.birth_date.month)
        if today.day < self.birth_date.day:
            months -= 1
        return float(max(months, 0))


@dataclass(frozen=True)
class FallbackPolicy:
    """Clinical approximations applied when optional inputs are missing."""
    default_maturation_stage: MaturationStage = FALLBACK_DEFAULTS.MATURATION_STAGE
    biceps_from_triceps: float = FALLBACK_DEFAULTS.BICEPS_FROM_TRICEPS
    iliac_crest_from_subscapular: float = FALLBACK_DEFAULTS.ILIAC_CREST_FROM_SUBSCAPULAR
    allow_skinfold_substitutes: bool = FALLBACK_DEFAULTS.ALLOW_SKINFOLD_SUBSTITUTES
    kerr_tolerance_kg: float = FALLBACK_DEFAULTS.KERR_TOLERANCE_KG
    kerr_deviation_warning_pct: float = FALLBACK_DEFAULTS.KERR_DEVIATION_WARNING_PCT

    def __post_init__(self):
        if isinstance(self.default_maturation_stage, str):
            object.__setattr__(self, "default_maturation_stage", MaturationStage(self.default_maturation_stage))
        _check_numeric(self, ['biceps_from_triceps', 'iliac_crest_from_subscapular',
                              'kerr_tolerance_kg', 'kerr_deviation_warning_pct'])


# --- 3. OUTPUT LAYER (What the UI Renders) ---

@dataclass(frozen=True)
class MetricValue:
    value: Optional[float]
    unit: str = ""
    label: Optional[str] = None
    risk: Optional[str] = None


@dataclass(frozen=True)
class RatioResult:
    ratio: float
    risk: RiskLevel
    interpretation: str


@dataclass(frozen=True)
class SomatotypeResult:
    endomorphy: float
    mesomorphy: float
    ectomorphy: float
    x: float  # Somatochart abscissa: ecto - endo
    y: float  # Somatochart ordinate: 2*meso - (endo + ecto)


@dataclass(frozen=True)
class FiveComponentResult:
    """Kerr fractionation. Masses are already scaled to total body weight."""
    skin_kg: float
    adipose_kg: float
    muscle_kg: float
    bone_kg: float
    residual_kg: float
    raw_total_kg: float
    deviation_pct: float
    adipose_percent: float
    lipid_percent: float
    density: float
    z_scores: Mapping[str, float]
    residual_estimated: bool
    skinfold_sum: float
    warnings: Tuple[str, ...] = ()

    @property
    def total_kg(self) -> float:
        return self.skin_kg + self.adipose_kg + self.muscle_kg + self.bone_kg + self.residual_kg


@dataclass(frozen=True)
class FragilityDiagnosis:
    """Grip strength x calf circumference cross-tabulation."""
    title: str
    description: str
    color: AlertColor

    @property
    def is_concerning(self) -> bool:
        return self.color in (AlertColor.RED, AlertColor.ORANGE)


@dataclass(frozen=True)
class ZScoreResult:
    indicator: GrowthIndicator
    z: float
    percentile: int
    diagnosis: str
    severity: str  # severe_negative | moderate_negative | normal | moderate_positive | severe_positive


@dataclass(frozen=True)
class GrowthAssessment:
    """WHO indicators for one visit. Indicators outside table coverage are None."""
    wfa: Optional[ZScoreResult] = None
    lhfa: Optional[ZScoreResult] = None
    wflh: Optional[ZScoreResult] = None
    bfa: Optional[ZScoreResult] = None
    hcfa: Optional[ZScoreResult] = None
    nutritional_status: str = "Normal"
    stunting: bool = False
    wasting: bool = False
    overweight: bool = False

    def indicators(self) -> Dict[GrowthIndicator, ZScoreResult]:
        found = (self.wfa, self.lhfa, self.wflh, self.bfa, self.hcfa)
        return {r.indicator: r for r in found if r is not None}


@dataclass(frozen=True)
class EnergyExpenditureResult:
    bmr: int
    activity_factor: float
    tef: int
    tdee: int
    formula: str


@dataclass(frozen=True)
class ProteinTarget:
    """Daily protein range in grams."""
    min_g: float
    max_g: float
    warning: Optional[str] = None


@dataclass(frozen=True)
class TEMResult:
    site: str
    tem: float
    tem_percent: float
    mean: float
    reliable: bool
    reliability: str  # excellent | acceptable | poor
    message: str


@dataclass(frozen=True)
class ReliabilityReport:
    tem: float
    tem_percent: float
    meets_isak: bool
    sites: Tuple[TEMResult, ...]
    rating: str


@dataclass(frozen=True)
class SafetyAlerts:
    """
    Boolean flags for the UI. Built once per evaluation from the raised flags.
    """
    low_calf_circumference: bool = False   # CP < 31 cm
    low_grip_strength: bool = False        # Dinamometry at or below sex threshold
    fall_risk: bool = False                # Timed Up & Go > 12 s
    frailty_composite: bool = False        # Red/orange matrix + fall risk
    mna_alert: bool = False                # MNA BMI score <= 1
    kerr_mass_imbalance: bool = False      # Raw five-component sum off by > tolerance
    gmfcs_high_risk: bool = False          # GMFCS IV-V
    abdominal_obesity: bool = False
    athlete_triad_risk: bool = False


@dataclass(frozen=True)
class EvaluationResult:
    """
    Immutable evaluation output. Produced fresh per computation.
    """
    category: PopulationCategory
    metrics: Mapping[str, MetricValue]
    classification: Optional[str] = None
    warnings: Tuple[str, ...] = ()
    formulas: Tuple[str, ...] = ()
    alerts: Optional[SafetyAlerts] = None
    fragility: Optional[FragilityDiagnosis] = None

    def __post_init__(self):
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        object.__setattr__(self, "formulas", tuple(self.formulas))

    def value(self, name: str) -> Optional[float]:
        metric = self.metrics.get(name)
        return metric.value if metric else None

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "classification": self.classification,
            "metrics": {
                name: {"value": m.value, "unit": m.unit, "label": m.label, "risk": m.risk}
                for name, m in self.metrics.items()
            },
            "warnings": list(self.warnings),
            "formulas": list(self.formulas),
            "alerts": vars(self.alerts) if self.alerts else None,
            "fragility": (
                {"title": self.fragility.title, "description": self.fragility.description,
                 "color": self.fragility.color.value}
                if self.fragility else None
            ),
        }


@dataclass(frozen=True)
class FieldConstraint:
    field_id: str
    label: str
    unit: str = ""
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    warning_below: Optional[float] = None
    warning_message: Optional[str] = None
    kind: str = "number"  # number | list | choice
    choices: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SpecialSection:
    """Field group rendered as its own panel. Not used for computation."""
    section_id: str
    title: str
    fields: Tuple[str, ...]


@dataclass(frozen=True)
class FieldRequirementSchema:
    category: PopulationCategory
    visible: Tuple[str, ...]
    required: Tuple[str, ...]
    hidden: Tuple[str, ...]
    constraints: Tuple[FieldConstraint, ...]
    sections: Tuple[SpecialSection, ...] = ()
    warnings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def constraint(self, field_id: str) -> Optional[FieldConstraint]:
        for c in self.constraints:
            if c.field_id == field_id:
                return c
        return None

    def is_required(self, field_id: str) -> bool:
        return field_id in self.required


@dataclass
class AuditLog:
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    action: str = "evaluation"
    inputs_hash: int = 0
    model_version: str = VERSION


@dataclass
class ValidationResult:
    """Standardized response format for API/UI."""
    success: bool
    category: Optional[PopulationCategory]
    result: Optional[EvaluationResult]
    schema: Optional[FieldRequirementSchema]
    errors: List[str]
    missing_fields: List[str] = field(default_factory=list)
    audit_log: Optional[AuditLog] = None
