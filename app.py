"""
Kallpa: Evaluation Orchestrator
===============================
SAFE FACTORY between raw payloads (UI / API / persistence) and the
population evaluators. Every call recomputes from the raw measurements;
nothing is cached.
"""

import logging
from dataclasses import fields, replace
from datetime import date
from typing import Optional, Tuple

from models import (
    AuditLog,
    ClinicalContext,
    DataTypeError,
    EvaluationResult,
    FallbackPolicy,
    MeasurementSet,
    MissingRequiredFieldError,
    PopulationCategory,
    ValidationResult,
)
from context_resolver import ContextResolver
from protocols import (
    AdultEvaluator,
    AmputeeEvaluator,
    GeriatricEvaluator,
    GestationalEvaluator,
    NeurologicalEvaluator,
    PediatricEvaluator,
    StatureCascade,
)

logger = logging.getLogger(__name__)

# Keys read by the clinical context only
CONTEXT_KEYS = {"birth_date", "is_pregnant", "has_amputations", "is_neurological", "can_stand"}
# Keys read by both the context and the measurement record
SHARED_KEYS = {"sex", "age_years", "amputations", "gmfcs_level"}
MEASUREMENT_KEYS = {f.name for f in fields(MeasurementSet)}


class NutritionEngine:

    @staticmethod
    def build_context(data: dict) -> ClinicalContext:
        amputations = data.get("amputations") or []
        return ClinicalContext(
            sex=data.get("sex"),
            age_years=data.get("age_years"),
            birth_date=data.get("birth_date"),
            is_pregnant=bool(data.get("is_pregnant", False)),
            has_amputations=bool(data.get("has_amputations", bool(amputations))),
            amputations=list(amputations),
            is_neurological=bool(data.get("is_neurological", False)),
            gmfcs_level=data.get("gmfcs_level"),
            can_stand=bool(data.get("can_stand", True)),
        )

    @staticmethod
    def build_inputs(data: dict, today: Optional[date] = None
                     ) -> Tuple[ClinicalContext, MeasurementSet, FallbackPolicy]:
        unknown = set(data) - CONTEXT_KEYS - MEASUREMENT_KEYS - {"fallback_policy"}
        if unknown:
            raise ValueError(f"Campos desconocidos: {', '.join(sorted(unknown))}")

        context = NutritionEngine.build_context(data)

        values = {k: v for k, v in data.items() if k in MEASUREMENT_KEYS and v is not None}
        values["age_years"] = context.age_on(today)
        values["sex"] = context.sex
        values.setdefault("gmfcs_level", context.gmfcs_level)
        measurements = MeasurementSet(**values)

        policy = FallbackPolicy(**(data.get("fallback_policy") or {}))
        return context, measurements, policy

    @staticmethod
    def covered_by_proxy(category: PopulationCategory, field_id: str, m: MeasurementSet) -> bool:
        """Required fields that an estimator can stand in for."""
        if category == PopulationCategory.ADULTO_MAYOR:
            if field_id == "peso":
                return GeriatricEvaluator.weight_proxy_available(m)
            if field_id in ("talla", "alturaRodilla"):
                return StatureCascade.first_applicable(StatureCascade.GERIATRIC, m) is not None
        if category == PopulationCategory.NEURO and field_id in ("talla", "longitudTibia"):
            return StatureCascade.first_applicable(StatureCascade.NEUROLOGICAL, m) is not None
        return False

    @staticmethod
    def dispatch(category: PopulationCategory, m: MeasurementSet, policy: FallbackPolicy,
                 age_months: Optional[float] = None) -> EvaluationResult:
        age = m.age_years
        logger.debug(f"Dispatching '{category.value}' evaluator")
        if category in (PopulationCategory.LACTANTE, PopulationCategory.PEDIATRICO):
            return PediatricEvaluator.evaluate(m, age, policy, category, age_months)
        if category == PopulationCategory.ADULTO_MAYOR:
            return GeriatricEvaluator.evaluate(m, age, policy)
        if category == PopulationCategory.GESTANTE:
            return GestationalEvaluator.evaluate(m, age, policy)
        if category == PopulationCategory.AMPUTADO:
            return AmputeeEvaluator.evaluate(m, age, policy)
        if category == PopulationCategory.NEURO:
            return NeurologicalEvaluator.evaluate(m, age, policy)
        return AdultEvaluator.evaluate(m, age, policy, category)

    @staticmethod
    def resolve_context(data: dict, today: Optional[date] = None) -> ValidationResult:
        """Category and field schema only, for form rendering."""
        try:
            context = NutritionEngine.build_context(data)
            category, schema = ContextResolver.resolve(context, today)
            return ValidationResult(success=True, category=category, result=None, schema=schema, errors=[])
        except (ValueError, DataTypeError) as e:
            return ValidationResult(success=False, category=None, result=None, schema=None, errors=[str(e)])

    @staticmethod
    def evaluate_patient(data: dict, today: Optional[date] = None) -> ValidationResult:
        """
        SAFE FACTORY: the main entry point for the UI/API.
        Missing required fields and bad values come back as a failed
        ValidationResult; only unexpected errors propagate.
        """
        audit = AuditLog(inputs_hash=hash(str(data)))
        category = None
        schema = None

        try:
            context, measurements, policy = NutritionEngine.build_inputs(data, today)
            category, schema = ContextResolver.resolve(context, today)

            missing = [
                f for f in ContextResolver.validate_required(schema, measurements)
                if not NutritionEngine.covered_by_proxy(category, f, measurements)
            ]
            if missing:
                raise MissingRequiredFieldError(missing)

            range_warnings = ContextResolver.range_warnings(schema, measurements)
            result = NutritionEngine.dispatch(category, measurements, policy, context.age_months_on(today))
            if range_warnings:
                result = replace(result, warnings=tuple(range_warnings) + result.warnings)

            return ValidationResult(
                success=True,
                category=category,
                result=result,
                schema=schema,
                errors=[],
                audit_log=audit,
            )

        except MissingRequiredFieldError as e:
            return ValidationResult(
                success=False,
                category=category,
                result=None,
                schema=schema,
                errors=[str(e)],
                missing_fields=e.missing_fields,
                audit_log=audit,
            )
        except (ValueError, DataTypeError) as e:
            return ValidationResult(
                success=False,
                category=category,
                result=None,
                schema=schema,
                errors=[str(e)],
                audit_log=audit,
            )
