# main.py

import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from constants import VERSION, AmputationSegment, BMRFormula, MaturationStage, Sex, ATALAH_TABLE
from models import GMFCSLevel
from classification import ClassificationTables
from energy import EnergyExpenditure
from growth_standards import GrowthStandards
from measurement_error import MeasurementError
from app import NutritionEngine

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("kallpa-api")

app = FastAPI(
    title="Kallpa Anthropometry API",
    version=VERSION,
    description="Clinical anthropometric and nutritional calculation engine. \n\n"
                "**WARNING**: Decision Support Tool Only. Results must be reviewed by a clinician.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"status": "active", "message": "Kallpa API is running successfully!"}


@app.get("/health")
def health_check():
    """Liveness check"""
    return {"status": "active", "version": VERSION, "module": "kallpa-anthropometry"}


# --- 2. INPUT SCHEMA ---
# Hard limits only reject impossible values. Clinical ranges are soft and
# come back as warnings from the context resolver.

class ContextRequest(BaseModel):
    sex: str = Field(..., pattern="^(M|F)$", description="'M' or 'F'")
    age_years: Optional[float] = Field(None, ge=0, le=130)
    birth_date: Optional[date] = None
    is_pregnant: bool = False
    has_amputations: Optional[bool] = None
    amputations: List[AmputationSegment] = Field(default_factory=list)
    is_neurological: bool = False
    gmfcs_level: Optional[GMFCSLevel] = None
    can_stand: bool = True


class SkinfoldsRequest(BaseModel):
    triceps: Optional[float] = Field(None, gt=0, le=100)
    subscapular: Optional[float] = Field(None, gt=0, le=100)
    biceps: Optional[float] = Field(None, gt=0, le=100)
    iliac_crest: Optional[float] = Field(None, gt=0, le=100)
    supraspinale: Optional[float] = Field(None, gt=0, le=100)
    abdominal: Optional[float] = Field(None, gt=0, le=100)
    thigh: Optional[float] = Field(None, gt=0, le=100)
    calf: Optional[float] = Field(None, gt=0, le=100)


class GirthsRequest(BaseModel):
    arm_relaxed: Optional[float] = Field(None, gt=0, le=100)
    arm_flexed: Optional[float] = Field(None, gt=0, le=100)
    forearm: Optional[float] = Field(None, gt=0, le=80)
    waist: Optional[float] = Field(None, gt=0, le=250)
    hip: Optional[float] = Field(None, gt=0, le=250)
    thigh: Optional[float] = Field(None, gt=0, le=150)
    calf: Optional[float] = Field(None, gt=0, le=100)


class BreadthsRequest(BaseModel):
    humerus: Optional[float] = Field(None, gt=0, le=20)
    femur: Optional[float] = Field(None, gt=0, le=25)
    wrist: Optional[float] = Field(None, gt=0, le=20)
    ankle: Optional[float] = Field(None, gt=0, le=20)
    biacromial: Optional[float] = Field(None, gt=0, le=70)
    biiliocristal: Optional[float] = Field(None, gt=0, le=60)


class FallbackPolicyRequest(BaseModel):
    default_maturation_stage: Optional[MaturationStage] = None
    biceps_from_triceps: Optional[float] = Field(None, gt=0, le=2)
    iliac_crest_from_subscapular: Optional[float] = Field(None, gt=0, le=3)
    allow_skinfold_substitutes: Optional[bool] = None
    kerr_tolerance_kg: Optional[float] = Field(None, gt=0, le=10)
    kerr_deviation_warning_pct: Optional[float] = Field(None, gt=0, le=100)


class EvaluationRequest(ContextRequest):
    weight_kg: Optional[float] = Field(None, gt=0, le=500, description="Weight in kg")
    height_cm: Optional[float] = Field(None, gt=0, le=260, description="Standing height in cm")
    length_cm: Optional[float] = Field(None, gt=0, le=150, description="Recumbent length in cm")

    skinfolds: Optional[SkinfoldsRequest] = None
    girths: Optional[GirthsRequest] = None
    breadths: Optional[BreadthsRequest] = None

    gestational_weeks: Optional[float] = Field(None, ge=0, le=45)
    pre_pregnancy_weight_kg: Optional[float] = Field(None, gt=0, le=300)
    twin_pregnancy: bool = False

    knee_height_cm: Optional[float] = Field(None, gt=0, le=80)
    knee_malleolus_cm: Optional[float] = Field(None, gt=0, le=80)
    tibia_length_cm: Optional[float] = Field(None, gt=0, le=60)
    half_armspan_cm: Optional[float] = Field(None, gt=0, le=130)
    forearm_length_cm: Optional[float] = Field(None, gt=0, le=50)
    upper_arm_length_cm: Optional[float] = Field(None, gt=0, le=50)
    sitting_height_cm: Optional[float] = Field(None, gt=0, le=150)
    head_circumference_cm: Optional[float] = Field(None, gt=0, le=80)

    weight_percentile: Optional[float] = Field(None, ge=0, le=100)
    maturation_stage: Optional[MaturationStage] = None
    tanner_stage: Optional[int] = Field(None, ge=1, le=5)
    birth_gestational_weeks: Optional[float] = Field(None, ge=20, le=45)

    grip_strength_kg: Optional[float] = Field(None, ge=0, le=100)
    timed_up_and_go_s: Optional[float] = Field(None, ge=0, le=300)
    intense_activity: bool = False
    activity_level: Optional[str] = Field(None, description="sedentary ... ultra, or the Spanish label")

    fallback_policy: Optional[FallbackPolicyRequest] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sex": "M", "age_years": 25, "weight_kg": 75.0, "height_cm": 175.0,
                "activity_level": "moderate",
                "skinfolds": {"triceps": 10, "subscapular": 12, "biceps": 5, "iliac_crest": 15,
                              "supraspinale": 8, "abdominal": 18, "thigh": 10, "calf": 6},
                "girths": {"arm_relaxed": 30, "arm_flexed": 32, "waist": 80, "hip": 95,
                           "thigh": 55, "calf": 38},
                "breadths": {"humerus": 7.0, "femur": 9.8},
            }
        }
    )


class SomatotypeRequest(BaseModel):
    endomorphy: float = Field(..., ge=0, le=20)
    mesomorphy: float = Field(..., ge=0, le=20)
    ectomorphy: float = Field(..., ge=0, le=20)


class AtalahRequest(BaseModel):
    bmi: float = Field(..., gt=0, le=80)
    gestational_weeks: float = Field(..., ge=0, le=45)


class GrowthRequest(BaseModel):
    sex: str = Field(..., pattern="^(M|F)$")
    age_months: float = Field(..., ge=0, le=228)
    weight_kg: float = Field(..., gt=0, le=150)
    stature_cm: float = Field(..., gt=0, le=220)
    head_circumference_cm: Optional[float] = Field(None, gt=0, le=80)
    recumbent: bool = False


class EnergyRequest(BaseModel):
    sex: str = Field(..., pattern="^(M|F)$")
    age_years: float = Field(..., ge=0, le=130)
    weight_kg: float = Field(..., gt=0, le=500)
    height_cm: float = Field(..., gt=0, le=260)
    activity_level: str = "sedentary"
    formula: BMRFormula = BMRFormula.MIFFLIN
    body_fat_percent: Optional[float] = Field(None, ge=0, le=100)
    include_tef: bool = True


class TEMRequest(BaseModel):
    measurements: Dict[str, List[float]] = Field(..., description="Site -> repeated values")


# --- 3. RESPONSE SCHEMA ---

class MetricResponse(BaseModel):
    value: Optional[float] = None
    unit: str = ""
    label: Optional[str] = None
    risk: Optional[str] = None


class FragilityResponse(BaseModel):
    title: str
    description: str
    color: str


class EvaluationResponse(BaseModel):
    category: str
    classification: Optional[str] = None
    metrics: Dict[str, MetricResponse]
    warnings: List[str]
    formulas: List[str]
    alerts: Optional[Dict[str, bool]] = None
    fragility: Optional[FragilityResponse] = None
    model_version: str


class FieldConstraintResponse(BaseModel):
    field_id: str
    label: str
    unit: str = ""
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    warning_below: Optional[float] = None
    warning_message: Optional[str] = None
    kind: str = "number"
    choices: List[str] = Field(default_factory=list)


class SectionResponse(BaseModel):
    section_id: str
    title: str
    fields: List[str]


class ContextResponse(BaseModel):
    category: str
    visible: List[str]
    required: List[str]
    hidden: List[str]
    constraints: List[FieldConstraintResponse]
    sections: List[SectionResponse]
    warnings: List[str]
    recommendations: List[str]


# --- 4. ENDPOINTS ---

@app.post("/context", response_model=ContextResponse)
def resolve_context(request: ContextRequest):
    """Population category and the field requirements for the form."""
    outcome = NutritionEngine.resolve_context(request.model_dump(exclude_none=True))
    if not outcome.success:
        logger.warning(f"Context Validation Error: {outcome.errors}")
        raise HTTPException(status_code=422, detail={"errors": outcome.errors})

    schema = outcome.schema
    return {
        "category": schema.category.value,
        "visible": list(schema.visible),
        "required": list(schema.required),
        "hidden": list(schema.hidden),
        "constraints": [
            {
                "field_id": c.field_id, "label": c.label, "unit": c.unit,
                "min_value": c.min_value, "max_value": c.max_value,
                "warning_below": c.warning_below, "warning_message": c.warning_message,
                "kind": c.kind, "choices": list(c.choices),
            }
            for c in schema.constraints
        ],
        "sections": [
            {"section_id": s.section_id, "title": s.title, "fields": list(s.fields)} for s in schema.sections
        ],
        "warnings": list(schema.warnings),
        "recommendations": list(schema.recommendations),
    }


@app.post("/evaluate", response_model=EvaluationResponse)
def evaluate(request: EvaluationRequest):
    """
    Full anthropometric evaluation. The category is resolved from the
    clinical flags; missing required fields come back as 422.
    """
    try:
        logger.info(f"Evaluating patient Age: {request.age_years}, Sex: {request.sex}, Wt: {request.weight_kg}kg")
        outcome = NutritionEngine.evaluate_patient(request.model_dump(exclude_none=True))

        if not outcome.success:
            logger.warning(f"Clinical Validation Error: {outcome.errors}")
            raise HTTPException(
                status_code=422,
                detail={
                    "errors": outcome.errors,
                    "missing_fields": outcome.missing_fields,
                    "category": outcome.category.value if outcome.category else None,
                },
            )

        body = outcome.result.to_dict()
        body["model_version"] = outcome.audit_log.model_version
        return body

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Internal Engine Failure: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Anthropometry Engine Error")


@app.post("/somatotype/classify")
def classify_somatotype(request: SomatotypeRequest):
    return {
        "classification": ClassificationTables.somatotype(
            request.endomorphy, request.mesomorphy, request.ectomorphy),
        "levels": {
            "endomorphy": ClassificationTables.component_level(request.endomorphy),
            "mesomorphy": ClassificationTables.component_level(request.mesomorphy),
            "ectomorphy": ClassificationTables.component_level(request.ectomorphy),
        },
    }


@app.post("/atalah/classify")
def classify_atalah(request: AtalahRequest):
    under, normal, over = ATALAH_TABLE.row(request.gestational_weeks)
    return {
        "classification": ClassificationTables.atalah(request.bmi, request.gestational_weeks),
        "cutoffs": {"bajo_peso": under, "normal": normal, "sobrepeso": over},
    }


@app.post("/growth/assess")
def assess_growth(request: GrowthRequest):
    """WHO z-scores and nutritional status for 0-19 years."""
    warnings: List[str] = []
    growth = GrowthStandards.assess(request.weight_kg, request.stature_cm, request.head_circumference_cm,
                                    request.age_months, Sex(request.sex), request.recumbent, warnings)
    return {
        "nutritional_status": growth.nutritional_status,
        "stunting": growth.stunting,
        "wasting": growth.wasting,
        "overweight": growth.overweight,
        "indicators": {
            indicator.value: {"z": r.z, "percentile": r.percentile, "diagnosis": r.diagnosis,
                              "severity": r.severity}
            for indicator, r in growth.indicators().items()
        },
        "warnings": warnings,
    }


@app.post("/energy")
def energy_expenditure(request: EnergyRequest):
    sex = Sex(request.sex)
    try:
        result = EnergyExpenditure.total(request.weight_kg, request.height_cm, request.age_years, sex,
                                         request.activity_level, request.formula,
                                         request.body_fat_percent, request.include_tef)
        protein = EnergyExpenditure.protein_targets(request.weight_kg, request.age_years,
                                                    request.activity_level)
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"errors": [str(e)]})
    return {
        "bmr": result.bmr,
        "activity_factor": result.activity_factor,
        "tef": result.tef,
        "tdee": result.tdee,
        "formula": result.formula,
        "protein": {"min_g": protein.min_g, "max_g": protein.max_g, "warning": protein.warning},
    }


@app.post("/tem")
def technical_error(request: TEMRequest):
    """Intra-observer TEM per site and the session rating."""
    report = MeasurementError.reliability(request.measurements)
    return {
        "tem": report.tem,
        "tem_percent": report.tem_percent,
        "meets_isak": report.meets_isak,
        "rating": report.rating,
        "sites": [
            {"site": s.site, "tem": s.tem, "tem_percent": s.tem_percent, "mean": s.mean,
             "reliability": s.reliability, "message": s.message}
            for s in report.sites
        ],
        "final_values": {
            site: MeasurementError.final_value(values)
            for site, values in request.measurements.items() if values
        },
    }
