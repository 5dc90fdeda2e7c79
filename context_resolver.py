"""
Kallpa: Context Resolver
========================
Pure function of (age, sex, clinical flags) -> population category and the
field requirement schema the form layer renders. Regenerated whenever a
clinical toggle changes; nothing is cached.
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from models import (
    ClinicalContext,
    FieldConstraint,
    FieldRequirementSchema,
    GMFCSLevel,
    MeasurementSet,
    MissingRequiredFieldError,
    PopulationCategory,
    SpecialSection,
)
from constants import (
    AGE_THRESHOLDS,
    AMPUTATION_TABLE,
    NEURO_THRESHOLDS,
    PHYSIOLOGICAL_BOUNDS,
)

logger = logging.getLogger(__name__)


# --- 1. FIELD DEFINITIONS ---

FIELD_CONSTRAINTS: Dict[str, FieldConstraint] = {
    c.field_id: c for c in (
        FieldConstraint("peso", "Peso", "kg", *PHYSIOLOGICAL_BOUNDS.WEIGHT_KG),
        FieldConstraint("talla", "Talla", "cm", *PHYSIOLOGICAL_BOUNDS.STATURE_CM),
        FieldConstraint("longitud", "Longitud (acostado)", "cm", 30, 120),
        FieldConstraint("perimetroCefalico", "Perímetro Cefálico", "cm", 25, 60),
        FieldConstraint("alturaRodilla", "Altura de Rodilla", "cm", 30, 65),
        FieldConstraint("circunferenciaPantorrilla", "Circ. Pantorrilla", "cm", 15, 60,
                        warning_below=31, warning_message="Riesgo de sarcopenia (< 31 cm)"),
        FieldConstraint("semanasGestacion", "Semanas de Gestación", "sem", 6, 42),
        FieldConstraint("pesoPregestacional", "Peso Pre-gestacional", "kg", 30, 200),
        FieldConstraint("longitudTibia", "Longitud de Tibia", "cm", 10, 50),
        FieldConstraint("longitudBrazo", "Longitud Brazo Superior", "cm", 10, 45),
        FieldConstraint("gmfcsLevel", "Nivel GMFCS", kind="choice",
                        choices=tuple(level.value for level in GMFCSLevel)),
        FieldConstraint("amputations", "Segmentos Amputados", kind="list",
                        choices=tuple(segment.value for segment in AMPUTATION_TABLE.SEGMENTS)),
    )
}

# Field identifier -> accessor on the raw measurement record
FIELD_SOURCES: Dict[str, Callable[[MeasurementSet], object]] = {
    "peso": lambda m: m.weight_kg,
    "talla": lambda m: m.height_cm,
    "longitud": lambda m: m.length_cm,
    "perimetroCefalico": lambda m: m.head_circumference_cm,
    "alturaRodilla": lambda m: m.knee_height_cm,
    "circunferenciaPantorrilla": lambda m: m.girths.calf,
    "semanasGestacion": lambda m: m.gestational_weeks,
    "pesoPregestacional": lambda m: m.pre_pregnancy_weight_kg,
    "longitudTibia": lambda m: m.tibia_length_cm,
    "longitudBrazo": lambda m: m.upper_arm_length_cm,
    "gmfcsLevel": lambda m: m.gmfcs_level,
    "amputations": lambda m: m.amputations,
}

SECTIONS = {
    "geriatric": SpecialSection("geriatric", "Evaluación Geriátrica",
                                ("alturaRodilla", "circunferenciaPantorrilla")),
    "pregnancy": SpecialSection("pregnancy", "Datos de Embarazo",
                                ("semanasGestacion", "pesoPregestacional")),
    "amputation": SpecialSection("amputation", "Información de Amputaciones", ("amputations",)),
    "neurological": SpecialSection("neurological", "Evaluación Neurológica",
                                   ("longitudTibia", "longitudBrazo", "gmfcsLevel")),
}


class ContextResolver:
    """
    Category selection and per-category field requirements.
    """

    @staticmethod
    def resolve_category(context: ClinicalContext, today: Optional[date] = None) -> PopulationCategory:
        """
        First match wins: pregnant > amputations > neurological/GMFCS >
        age < 2 > age < 18 > age >= 65 > adult.
        """
        age = context.age_on(today)
        if context.is_pregnant:
            return PopulationCategory.GESTANTE
        if context.has_amputations and context.amputations:
            return PopulationCategory.AMPUTADO
        if context.is_neurological or context.gmfcs_level is not None:
            return PopulationCategory.NEURO
        if age < AGE_THRESHOLDS.LACTANTE_MAX:
            return PopulationCategory.LACTANTE
        if age < AGE_THRESHOLDS.PEDIATRIC_MAX:
            return PopulationCategory.PEDIATRICO
        if age >= AGE_THRESHOLDS.GERIATRIC_MIN:
            return PopulationCategory.ADULTO_MAYOR
        return PopulationCategory.ADULTO

    @staticmethod
    def build_schema(category: PopulationCategory, context: ClinicalContext) -> FieldRequirementSchema:
        visible: List[str] = ["peso"]
        required: List[str] = ["peso"]
        hidden: List[str] = []
        sections: List[SpecialSection] = []
        warnings: List[str] = []
        recommendations: List[str] = []

        if category == PopulationCategory.LACTANTE:
            visible += ["longitud", "perimetroCefalico"]
            required += ["longitud", "perimetroCefalico"]
            hidden.append("talla")
            recommendations.append("Usar gráficas OMS Peso/Edad y Longitud/Edad")

        elif category == PopulationCategory.ADULTO_MAYOR:
            visible.append("circunferenciaPantorrilla")
            recommendations.append("IMC Normal geriátrico: 23.0 - 27.9")
            if not context.can_stand:
                visible.append("alturaRodilla")
                required.append("alturaRodilla")
                hidden.append("talla")
                warnings.append("Se usará ecuación de Chumlea para estimar talla")
            else:
                visible.append("talla")
                required.append("talla")
            sections.append(SECTIONS["geriatric"])

        elif category == PopulationCategory.GESTANTE:
            visible += ["talla", "semanasGestacion", "pesoPregestacional"]
            required += ["talla", "semanasGestacion"]
            recommendations.append("Se usará Curva de Atalah para clasificación")
            sections.append(SECTIONS["pregnancy"])

        elif category == PopulationCategory.AMPUTADO:
            visible += ["talla", "amputations"]
            required.append("talla")
            warnings.append("Se calculará peso corregido para IMC real")
            sections.append(SECTIONS["amputation"])

        elif category == PopulationCategory.NEURO:
            visible += ["longitudTibia", "gmfcsLevel"]
            level = context.gmfcs_level.value if context.gmfcs_level else None
            if level in NEURO_THRESHOLDS.HIGH_RISK_LEVELS:
                warnings.append("Alto riesgo nutricional por GMFCS IV-V")
                hidden.append("talla")
                required.append("longitudTibia")
            else:
                visible.append("talla")
                required.append("talla")
            sections.append(SECTIONS["neurological"])

        else:
            # pediatrico, adulto, general
            visible.append("talla")
            required.append("talla")

        ids = set(visible) | set(required)
        for section in sections:
            ids |= set(section.fields)
        constraints = tuple(FIELD_CONSTRAINTS[f] for f in FIELD_CONSTRAINTS if f in ids)

        return FieldRequirementSchema(
            category=category,
            visible=tuple(visible),
            required=tuple(required),
            hidden=tuple(hidden),
            constraints=constraints,
            sections=tuple(sections),
            warnings=tuple(warnings),
            recommendations=tuple(recommendations),
        )

    @staticmethod
    def resolve(context: ClinicalContext,
                today: Optional[date] = None) -> Tuple[PopulationCategory, FieldRequirementSchema]:
        category = ContextResolver.resolve_category(context, today)
        logger.info(f"Resolved category '{category.value}' for age {context.age_on(today)}")
        return category, ContextResolver.build_schema(category, context)

    # --- 2. VALIDATION AGAINST THE SCHEMA ---

    @staticmethod
    def validate_required(schema: FieldRequirementSchema, measurements: MeasurementSet) -> List[str]:
        missing = []
        for field_id in schema.required:
            value = FIELD_SOURCES[field_id](measurements)
            if value is None or value == [] or value == 0:
                missing.append(field_id)
        return missing

    @staticmethod
    def require(schema: FieldRequirementSchema, measurements: MeasurementSet) -> None:
        missing = ContextResolver.validate_required(schema, measurements)
        if missing:
            raise MissingRequiredFieldError(missing)

    @staticmethod
    def range_warnings(schema: FieldRequirementSchema, measurements: MeasurementSet) -> List[str]:
        """Values outside a visible field's bounds. Never fatal."""
        warnings = []
        for constraint in schema.constraints:
            if constraint.kind != "number" or constraint.field_id in schema.hidden:
                continue
            value = FIELD_SOURCES[constraint.field_id](measurements)
            if value is None:
                continue
            if ((constraint.min_value is not None and value < constraint.min_value)
                    or (constraint.max_value is not None and value > constraint.max_value)):
                warnings.append(
                    f"{constraint.label} ({value:g} {constraint.unit}) fuera del rango permitido "
                    f"({constraint.min_value:g}-{constraint.max_value:g} {constraint.unit})"
                )
            elif constraint.warning_below is not None and value < constraint.warning_below:
                warnings.append(constraint.warning_message)
        return warnings
