"""
Kallpa: Coefficient & Threshold Library
=======================================
Static tables consumed by the formula primitives, classifiers and the
context resolver. Nothing in this module is mutated at runtime.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, TypeVar

VERSION = "1.0.0"

T = TypeVar("T")


class Sex(Enum):
    MALE = "M"
    FEMALE = "F"


class MaturationStage(Enum):
    PRE_PUBER = "pre-puber"
    PUBER = "puber"
    POST_PUBER = "post-puber"


class AmputationSegment(Enum):
    MANO_IZQ = "mano_izq"
    MANO_DER = "mano_der"
    ANTEBRAZO_IZQ = "antebrazo_izq"
    ANTEBRAZO_DER = "antebrazo_der"
    BRAZO_IZQ = "brazo_izq"
    BRAZO_DER = "brazo_der"
    PIE_IZQ = "pie_izq"
    PIE_DER = "pie_der"
    PIERNA_BAJO_RODILLA_IZQ = "pierna_bajo_rodilla_izq"
    PIERNA_BAJO_RODILLA_DER = "pierna_bajo_rodilla_der"
    PIERNA_COMPLETA_IZQ = "pierna_completa_izq"
    PIERNA_COMPLETA_DER = "pierna_completa_der"


class GrowthIndicator(Enum):
    WFA = "wfa"    # Weight-for-age
    LHFA = "lhfa"  # Length/height-for-age
    WFLH = "wflh"  # Weight-for-length/height
    BFA = "bfa"    # BMI-for-age
    HCFA = "hcfa"  # Head circumference-for-age


class ActivityLevel(Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"
    ELITE = "elite"
    ULTRA = "ultra"

    @staticmethod
    def parse(label) -> "ActivityLevel":
        """English keys plus the Spanish labels used on the intake form."""
        if isinstance(label, ActivityLevel):
            return label
        key = str(label).strip().lower()
        if key.startswith("sedent"):
            return ActivityLevel.SEDENTARY
        if key in ("light", "ligera", "ligero"):
            return ActivityLevel.LIGHT
        if key.startswith("moderat") or key.startswith("moderad"):
            return ActivityLevel.MODERATE
        if key in ("active", "activa", "activo"):
            return ActivityLevel.ACTIVE
        if key in ("very_active", "muy_activa", "muy_activo") or "intensa" in key:
            return ActivityLevel.VERY_ACTIVE
        if key == "elite":
            return ActivityLevel.ELITE
        if key == "ultra":
            return ActivityLevel.ULTRA
        raise ValueError(f"Nivel de actividad desconocido: {label!r}")


class BMRFormula(Enum):
    MIFFLIN = "mifflin"
    HARRIS = "harris"
    FAO = "fao"
    HENRY = "henry"
    KATCH = "katch"
    CUNNINGHAM = "cunningham"


# --- 1. BAND RESOLUTION ---

@dataclass(frozen=True)
class AgeBand:
    """Closed age interval in whole years. upper=None means open-ended."""
    label: str
    lower: int
    upper: Optional[int] = None

    def contains(self, age: int) -> bool:
        if age < self.lower:
            return False
        return self.upper is None or age <= self.upper


def resolve_band(table: Sequence[Tuple[AgeBand, T]], age: float) -> Tuple[AgeBand, T]:
    """
    Linear scan over a band table sorted by lower bound.
    Age is floored to whole years; ages outside the table clamp to the
    first or last band.
    """
    years = int(math.floor(age))
    if years < table[0][0].lower:
        return table[0]
    for band, value in table:
        if band.contains(years):
            return band, value
    return table[-1]


# --- 2. BODY COMPOSITION COEFFICIENTS ---

class DURNIN_COEFFICIENTS:
    """(c, m) for density = c - m * log10(biceps + triceps + subscapular + iliac crest)."""
    TABLE = {
        Sex.MALE: (
            (AgeBand("6-12", 6, 12), (1.1533, 0.0643)),
            (AgeBand("13-16", 13, 16), (1.1369, 0.0594)),
            (AgeBand("17-19", 17, 19), (1.1620, 0.0630)),
            (AgeBand("20-29", 20, 29), (1.1631, 0.0632)),
            (AgeBand("30-39", 30, 39), (1.1422, 0.0544)),
            (AgeBand("40-49", 40, 49), (1.1620, 0.0700)),
            (AgeBand("50+", 50), (1.1715, 0.0779)),
        ),
        Sex.FEMALE: (
            (AgeBand("6-12", 6, 12), (1.1369, 0.0598)),
            (AgeBand("13-16", 13, 16), (1.1610, 0.0645)),
            (AgeBand("17-19", 17, 19), (1.1549, 0.0678)),
            (AgeBand("20-29", 20, 29), (1.1599, 0.0717)),
            (AgeBand("30-39", 30, 39), (1.1423, 0.0632)),
            (AgeBand("40-49", 40, 49), (1.1333, 0.0612)),
            (AgeBand("50+", 50), (1.1339, 0.0645)),
        ),
    }

    @staticmethod
    def get(sex: Sex, age: float) -> Tuple[AgeBand, Tuple[float, float]]:
        return resolve_band(DURNIN_COEFFICIENTS.TABLE[sex], age)


class SLAUGHTER_COEFFICIENTS:
    """(a, b, c) for %fat = a*S - b*S^2 + c, S = triceps + subscapular."""
    TABLE = {
        Sex.MALE: {
            MaturationStage.PRE_PUBER: (1.21, 0.008, -1.7),
            MaturationStage.PUBER: (1.21, 0.008, -3.4),
            MaturationStage.POST_PUBER: (1.21, 0.008, -5.5),
        },
        Sex.FEMALE: {
            MaturationStage.PRE_PUBER: (1.33, 0.013, -2.5),
            MaturationStage.PUBER: (1.33, 0.013, -3.0),
            MaturationStage.POST_PUBER: (1.33, 0.013, -3.0),
        },
    }


class BODY_FAT_LIMITS:
    SIRI_MIN = 3.0
    SIRI_MAX = 50.0
    SLAUGHTER_MIN = 3.0
    SLAUGHTER_MAX = 50.0
    WESTSTRATE_MIN = 3.0
    WESTSTRATE_MAX = 60.0

    # muy_bajo < a, bajo < b, normal <= c, moderadamente_elevado < d, else alto
    CLASSES = {
        Sex.MALE: (8.0, 10.0, 20.0, 25.0),
        Sex.FEMALE: (13.0, 18.0, 28.0, 32.1),
    }
    CLASS_LABELS = ("muy_bajo", "bajo", "normal", "moderadamente_elevado", "alto")


class TANNER_BIOLOGICAL_AGE:
    TABLE = {
        Sex.MALE: {1: 10.0, 2: 11.5, 3: 13.0, 4: 14.5, 5: 16.0},
        Sex.FEMALE: {1: 9.0, 2: 10.5, 3: 12.0, 4: 13.0, 5: 14.5},
    }


# --- 3. KERR FIVE-COMPONENT PHANTOM ---

class PHANTOM:
    """Ross & Wilson phantom (p, s) pairs, Kerr 1988."""
    HEIGHT_CM = 170.18

    SKINFOLDS = {
        "triceps": (15.4, 4.47),
        "subscapular": (17.2, 5.07),
        "supraspinale": (15.4, 4.47),
        "abdominal": (25.4, 7.78),
        "thigh": (27.0, 8.33),
        "calf": (16.0, 4.67),
    }
    GIRTHS = {
        "arm_relaxed": (26.89, 2.33),
        "arm_flexed": (29.41, 2.37),
        "forearm": (25.13, 1.41),
        "chest": (87.86, 5.18),
        "waist": (71.91, 4.45),
        "thigh": (55.82, 4.23),
        "calf": (35.25, 2.30),
    }
    BREADTHS = {
        "humerus": (6.48, 0.35),
        "femur": (9.52, 0.48),
        "wrist": (5.21, 0.28),
        "ankle": (6.68, 0.36),
        "biacromial": (38.04, 1.92),
        "biiliocristal": (28.84, 1.75),
        "head_circumference": (57.20, 1.52),
    }
    MASSES = {
        "skin": (2.07, 0.28),
        "adipose": (12.13, 3.25),
        "muscle": (25.55, 2.99),
        "bone": (6.68, 0.85),
        "residual": (6.35, 1.24),
    }

    SKIN_THICKNESS_MM = 2.07
    SKIN_DENSITY = 1.05
    LIPID_FRACTION_OF_ADIPOSE = 0.8


class KERR_LIMITS:
    MIN_ADIPOSE_SKINFOLDS = 4
    MIN_MUSCLE_GIRTHS = 2
    OBESITY_SKINFOLD_SUM_HIGH = 150.0
    OBESITY_SKINFOLD_SUM_MODERATE = 120.0

    # Sanity checks on the fractionated result
    MASS_BALANCE_PCT = (95.0, 105.0)
    BONE_PCT = (5.0, 20.0)
    MUSCLE_TO_BONE = (3.0, 8.0)
    SKINFOLD_SUM_WARNING = 200.0
    SKINFOLD_SUM_CRITICAL = 300.0


class ISAK_RANGES:
    """(min, max, warn) for physiologically possible adult measurements."""
    SKINFOLDS = {
        "triceps": (3, 45, 35),
        "subscapular": (4, 50, 40),
        "biceps": (2, 25, 20),
        "supraspinale": (3, 55, 45),
        "abdominal": (4, 70, 55),
        "thigh": (4, 60, 50),
        "calf": (2, 35, 28),
    }
    GIRTHS = {
        "arm_relaxed": (18, 55, 45),
        "arm_flexed": (20, 60, 50),
        "forearm": (18, 40, 35),
        "waist": (50, 180, 130),
        "thigh": (35, 90, 75),
        "calf": (25, 55, 48),
    }
    BREADTHS = {
        "humerus": (5.5, 12, 9),
        "femur": (8.0, 16, 13),
        "wrist": (4.5, 7.5, 6.5),
        "ankle": (6.0, 10, 8.5),
        "biacromial": (30, 60, 45),
        "biiliocristal": (22, 50, 38),
    }
    BASIC = {
        "weight": (30, 250, 180),
        "height": (120, 230, 210),
    }
    LABELS = {
        "triceps": "Pliegue Tríceps",
        "subscapular": "Pliegue Subescapular",
        "biceps": "Pliegue Bíceps",
        "supraspinale": "Pliegue Supraespinal",
        "abdominal": "Pliegue Abdominal",
        "thigh": "Pliegue Muslo",
        "calf": "Pliegue Pantorrilla",
        "arm_relaxed": "Perímetro Brazo Relajado",
        "arm_flexed": "Perímetro Brazo Flexionado",
        "forearm": "Perímetro Antebrazo",
        "waist": "Perímetro Cintura",
        "thigh_girth": "Perímetro Muslo",
        "calf_girth": "Perímetro Pantorrilla",
        "humerus": "Diámetro Húmero",
        "femur": "Diámetro Fémur",
        "wrist": "Diámetro Muñeca",
        "ankle": "Diámetro Tobillo",
        "biacromial": "Diámetro Biacromial",
        "biiliocristal": "Diámetro Biiliocrestídeo",
        "weight": "Peso",
        "height": "Talla",
    }


# --- 4. SOMATOTYPE (Heath-Carter) ---

class SOMATOTYPE_CONSTANTS:
    ENDO_FLOOR = 0.1
    MESO_FLOOR = 0.5
    ECTO_FLOOR = 0.1
    CENTRAL_TOLERANCE = 1.0
    BALANCE_TOLERANCE = 0.5
    HWR_UPPER = 40.75
    HWR_LOWER = 38.25
    # Upper bound (inclusive except the first) of each component level
    LEVELS = ((3.0, "Bajo"), (5.5, "Moderado"), (7.5, "Alto"))


# --- 5. STATURE & WEIGHT ESTIMATORS ---

class STATURE_EQUATIONS:
    # Chumlea knee height: intercept, age coefficient, knee coefficient
    CHUMLEA_KNEE = {Sex.MALE: (64.19, 0.04, 2.02), Sex.FEMALE: (84.88, 0.24, 1.83)}
    # Knee to lateral malleolus: length coefficient, age coefficient, intercept
    KNEE_MALLEOLUS = {Sex.MALE: (1.121, 0.117, 119.6), Sex.FEMALE: (1.263, 0.159, 107.7)}
    # Forearm lookup: base, factor
    FOREARM = {Sex.MALE: (140.0, 1.1), Sex.FEMALE: (130.0, 1.05)}
    STEVENSON_TIBIA = (3.26, 30.8)
    STEVENSON_UPPER_ARM = (4.35, 21.8)


class CHUMLEA_WEIGHT:
    # calf, knee height, arm girth, subscapular, age, intercept
    COEFFICIENTS = {
        Sex.MALE: (0.98, 1.16, 1.73, 0.37, 0.16, -81.69),
        Sex.FEMALE: (1.27, 0.87, 0.98, 0.40, 0.16, -62.35),
    }


class LORENTZ:
    K = {Sex.MALE: 4.0, Sex.FEMALE: 2.5}


class AMPUTATION_TABLE:
    """Fraction of total body mass per amputated segment (Osterkamp)."""
    SEGMENTS = {
        AmputationSegment.MANO_IZQ: (0.007, "Mano izquierda (0.7%)"),
        AmputationSegment.MANO_DER: (0.007, "Mano derecha (0.7%)"),
        AmputationSegment.ANTEBRAZO_IZQ: (0.016, "Antebrazo izquierdo (1.6%)"),
        AmputationSegment.ANTEBRAZO_DER: (0.016, "Antebrazo derecho (1.6%)"),
        AmputationSegment.BRAZO_IZQ: (0.05, "Brazo completo izquierdo (5.0%)"),
        AmputationSegment.BRAZO_DER: (0.05, "Brazo completo derecho (5.0%)"),
        AmputationSegment.PIE_IZQ: (0.015, "Pie izquierdo (1.5%)"),
        AmputationSegment.PIE_DER: (0.015, "Pie derecho (1.5%)"),
        AmputationSegment.PIERNA_BAJO_RODILLA_IZQ: (0.044, "Pierna bajo rodilla izquierda (4.4%)"),
        AmputationSegment.PIERNA_BAJO_RODILLA_DER: (0.044, "Pierna bajo rodilla derecha (4.4%)"),
        AmputationSegment.PIERNA_COMPLETA_IZQ: (0.16, "Pierna completa izquierda (16%)"),
        AmputationSegment.PIERNA_COMPLETA_DER: (0.16, "Pierna completa derecha (16%)"),
    }

    @staticmethod
    def fraction(segment: AmputationSegment) -> float:
        return AMPUTATION_TABLE.SEGMENTS[segment][0]


class PEDIATRIC_CONSTANTS:
    TERM_WEEKS = 40.0
    PRETERM_CUTOFF_WEEKS = 37.0
    WEEKS_PER_MONTH = 4.33
    CORRECTION_MAX_MONTHS = 24.0
    SLAUGHTER_AGE_RANGE = (8, 18)


# --- 6. CLASSIFICATION THRESHOLDS ---

class BMI_THRESHOLDS:
    # (upper bound exclusive, label, risk)
    ADULT = (
        (18.5, "Bajo peso", "elevado"),
        (25.0, "Normal", "normal"),
        (30.0, "Sobrepeso", "elevado"),
        (35.0, "Obesidad Grado I", "alto"),
        (40.0, "Obesidad Grado II", "muy_alto"),
    )
    ADULT_TOP = ("Obesidad Grado III", "muy_alto")

    # MINSA geriatric ranges
    GERIATRIC = (
        (23.0, "Bajo peso", "elevado"),
        (28.0, "Normal", "normal"),
        (32.0, "Sobrepeso", "elevado"),
    )
    GERIATRIC_TOP = ("Obesidad", "alto")

    UNDER_FIVE_LABEL = "Menor de 5 años: evaluar Peso/Talla (OMS)"
    TRIAD_LABEL = "🔴 RIESGO TRIADA ATLETA (Grasa <12%)"
    MUSCULAR_LABEL = "Sobrepeso Muscular (Atleta)"
    ATHLETE_LEAN_FAT = {Sex.MALE: 18.0, Sex.FEMALE: 25.0}
    TRIAD_FAT_FEMALE = 12.0


class ATALAH_TABLE:
    """Week -> (bajo peso cutoff, normal max, sobrepeso max). Atalah 1997."""
    FIRST_WEEK = 6
    LAST_WEEK = 42
    ROWS = {
        6: (20.0, 25.0, 30.0), 7: (20.0, 25.0, 30.0), 8: (20.0, 25.0, 30.0),
        9: (20.0, 25.0, 30.0), 10: (20.0, 25.5, 30.0), 11: (20.0, 25.5, 30.0),
        12: (20.5, 26.0, 30.0), 13: (20.5, 26.0, 30.5), 14: (21.0, 26.5, 30.5),
        15: (21.0, 26.5, 31.0), 16: (21.5, 27.0, 31.0), 17: (21.5, 27.0, 31.5),
        18: (22.0, 27.5, 31.5), 19: (22.0, 27.5, 32.0), 20: (22.5, 28.0, 32.0),
        21: (22.5, 28.0, 32.5), 22: (23.0, 28.5, 32.5), 23: (23.0, 28.5, 33.0),
        24: (23.5, 29.0, 33.0), 25: (23.5, 29.0, 33.5), 26: (24.0, 29.5, 33.5),
        27: (24.0, 29.5, 34.0), 28: (24.5, 30.0, 34.0), 29: (24.5, 30.0, 34.5),
        30: (25.0, 30.5, 34.5), 31: (25.0, 30.5, 35.0), 32: (25.0, 30.5, 35.0),
        33: (25.5, 31.0, 35.0), 34: (25.5, 31.0, 35.5), 35: (26.0, 31.5, 35.5),
        36: (26.0, 31.5, 36.0), 37: (26.0, 32.0, 36.0), 38: (26.5, 32.0, 36.5),
        39: (26.5, 32.0, 36.5), 40: (27.0, 32.5, 37.0), 41: (27.0, 32.5, 37.0),
        42: (27.0, 32.5, 37.0),
    }
    LABELS = ("Bajo Peso", "Normal", "Sobrepeso", "Obesidad")

    @staticmethod
    def row(week: float) -> Tuple[float, float, float]:
        # Half weeks round up
        w = int(math.floor(week + 0.5))
        w = min(max(w, ATALAH_TABLE.FIRST_WEEK), ATALAH_TABLE.LAST_WEEK)
        return ATALAH_TABLE.ROWS[w]


class IOM_GOALS:
    """(min, max, weekly min, weekly max) by pre-pregnancy BMI band."""
    BMI_BANDS = ((18.5, "bajo_peso"), (25.0, "normal"), (30.0, "sobrepeso"))
    TOP_BAND = "obesidad"
    SINGLETON = {
        "bajo_peso": (12.5, 18.0, 0.44, 0.58),
        "normal": (11.5, 16.0, 0.35, 0.50),
        "sobrepeso": (7.0, 11.5, 0.23, 0.33),
        "obesidad": (5.0, 9.0, 0.17, 0.27),
    }
    TWIN = {
        "bajo_peso": (22.7, 28.1, 0.57, 0.70),
        "normal": (16.7, 24.5, 0.42, 0.61),
        "sobrepeso": (14.0, 22.6, 0.35, 0.57),
        "obesidad": (11.3, 19.0, 0.28, 0.48),
    }
    FIRST_TRIMESTER_WEEKS = 13
    FIRST_TRIMESTER_GAIN = (0.5, 2.0)
    FIRST_TRIMESTER_BASE = 1.5
    LOW_MARGIN = 0.9
    HIGH_MARGIN = 1.1
    DEFAULT_WEEKS = 20


class CARDIOMETABOLIC_THRESHOLDS:
    WHTR = (
        (0.50, "minimo", "Sin riesgo cardiometabólico asociado a adiposidad central"),
        (0.55, "bajo", "Riesgo cardiometabólico ligeramente elevado"),
        (0.60, "moderado", "Riesgo cardiometabólico moderado - vigilar"),
    )
    WHTR_TOP = ("alto", "Riesgo cardiometabólico alto - intervención recomendada")

    ABDOMINAL_WAIST = {Sex.MALE: 90.0, Sex.FEMALE: 80.0}

    # (bajo, moderado, alto) cutoffs
    WHR = {
        Sex.MALE: (
            (AgeBand("20-29", 0, 29), (0.83, 0.88, 0.94)),
            (AgeBand("30-39", 30, 39), (0.84, 0.91, 0.96)),
            (AgeBand("40-49", 40, 49), (0.88, 0.95, 1.00)),
            (AgeBand("50-59", 50, 59), (0.90, 0.96, 1.02)),
            (AgeBand("60+", 60), (0.91, 0.98, 1.03)),
        ),
        Sex.FEMALE: (
            (AgeBand("20-29", 0, 29), (0.71, 0.77, 0.82)),
            (AgeBand("30-39", 30, 39), (0.72, 0.78, 0.84)),
            (AgeBand("40-49", 40, 49), (0.73, 0.79, 0.87)),
            (AgeBand("50-59", 50, 59), (0.74, 0.81, 0.88)),
            (AgeBand("60+", 60), (0.76, 0.83, 0.90)),
        ),
    }
    WHR_INTERPRETATIONS = {
        "bajo": "Distribución de grasa saludable",
        "moderado": "Riesgo moderado de enfermedad cardiovascular",
        "alto": "Riesgo alto de enfermedad cardiovascular",
        "muy_alto": "Riesgo muy alto - intervención urgente recomendada",
    }


class GERIATRIC_THRESHOLDS:
    CALF_LOW_CM = 31.0
    GRIP_LOW_KG = {Sex.MALE: 27.0, Sex.FEMALE: 16.0}
    TUG_FALL_RISK_S = 12.0

    MNA_BMI = ((19.0, 0), (21.0, 1), (23.0, 2))
    MNA_BMI_LABELS = {0: "Riesgo Alto", 1: "Riesgo Moderado", 2: "Riesgo Leve", 3: "Sin Riesgo"}
    MNA_CALF_POINTS = 3
    MNA_SCREEN_NORMAL = 12
    MNA_SCREEN_RISK = 8

    # p5, p15, p85 per arm measure
    ARM_PERCENTILES = {
        "amb": {Sex.MALE: (18.5, 22.0, 35.0), Sex.FEMALE: (14.5, 17.0, 28.0)},
        "pt": {Sex.MALE: (6.0, 8.0, 15.0), Sex.FEMALE: (10.0, 13.0, 24.0)},
        "cb": {Sex.MALE: (23.0, 25.0, 32.0), Sex.FEMALE: (21.0, 23.0, 30.0)},
    }
    ARM_LABELS = ("Déficit / Disminuido", "Riesgo de Déficit", "Normal", "Exceso / Aumentado")


class NEURO_THRESHOLDS:
    GMFCS_DESCRIPTIONS = {
        "I": "Camina sin limitaciones",
        "II": "Camina con limitaciones",
        "III": "Camina con dispositivo de apoyo manual",
        "IV": "Movilidad propia limitada, puede usar silla motorizada",
        "V": "Transportado en silla de ruedas manual",
    }
    AMBULATORY_LEVELS = ("I", "II")
    RISK_PERCENTILE_AMBULATORY = 5
    RISK_PERCENTILE_NON_AMBULATORY = 20
    HIGH_RISK_LEVELS = ("IV", "V")


class CORMIC_THRESHOLDS:
    BRACHY_MAX = 51.0
    METRIO_MAX = 53.0
    LABELS = (
        "Braquicórmico (Piernas largas/Tronco corto)",
        "Metriocórmico (Proporcional)",
        "Macrocórmico (Piernas cortas/Tronco largo)",
    )


class AGE_THRESHOLDS:
    LACTANTE_MAX = 2
    PEDIATRIC_MAX = 18
    GERIATRIC_MIN = 65


# --- 7. CONFIGURABLE FALLBACKS ---

class FALLBACK_DEFAULTS:
    MATURATION_STAGE = MaturationStage.PUBER
    BICEPS_FROM_TRICEPS = 0.6
    ILIAC_CREST_FROM_SUBSCAPULAR = 1.2
    ALLOW_SKINFOLD_SUBSTITUTES = True
    KERR_TOLERANCE_KG = 0.5
    KERR_DEVIATION_WARNING_PCT = 5.0


# --- 8. ESTIMATION BOUNDS ---

class PHYSIOLOGICAL_BOUNDS:
    # Measured and estimated values outside these are discarded
    WEIGHT_KG = (0.5, 300.0)
    STATURE_CM = (30.0, 250.0)


# --- 9. WHO GROWTH STANDARDS (LMS) ---

class WHO_GROWTH_LMS:
    """(L, M, S) triplets keyed by sex then month (or cm for WFL).

    0-60 months: WHO Child Growth Standards 2006.
    61-228 months: WHO Reference 2007.
    """
    # TODO: WFA rows past 12 months sit ~0.3 kg under the published medians;
    # replace with the full WHO expanded monthly tables.
    WFA = {
        Sex.MALE: {
            0: (0.3487, 3.3464, 0.14602),
            1: (0.2297, 4.4709, 0.13395),
            2: (0.1970, 5.5675, 0.12385),
            3: (0.1738, 6.3762, 0.11727),
            4: (0.1553, 7.0023, 0.11316),
            5: (0.1395, 7.5105, 0.10990),
            6: (0.1257, 7.9340, 0.10728),
            9: (0.0956, 8.9014, 0.10168),
            12: (0.0705, 9.6479, 0.09805),
            15: (0.0492, 10.2890, 0.09532),
            18: (0.0317, 10.8498, 0.09317),
            21: (0.0169, 11.3548, 0.09145),
            24: (0.0042, 11.8186, 0.09006),
            30: (-0.0158, 12.6304, 0.08792),
            36: (-0.0295, 13.3574, 0.08629),
            42: (-0.0390, 14.0222, 0.08506),
            48: (-0.0456, 14.6442, 0.08412),
            54: (-0.0504, 15.2347, 0.08340),
            60: (-0.0540, 15.8033, 0.08285),
        },
        Sex.FEMALE: {
            0: (0.3809, 3.2322, 0.14171),
            1: (0.1714, 4.1873, 0.13724),
            2: (0.0962, 5.1282, 0.12859),
            3: (0.0402, 5.8458, 0.12256),
            4: (-0.0050, 6.4237, 0.11835),
            5: (-0.0430, 6.8985, 0.11515),
            6: (-0.0758, 7.2970, 0.11266),
            9: (-0.1504, 8.2004, 0.10745),
            12: (-0.2064, 8.9418, 0.10407),
            15: (-0.2498, 9.5841, 0.10166),
            18: (-0.2843, 10.1598, 0.09981),
            21: (-0.3121, 10.6901, 0.09833),
            24: (-0.3350, 11.1858, 0.09714),
            30: (-0.3689, 12.0756, 0.09541),
            36: (-0.3922, 12.8713, 0.09420),
            42: (-0.4082, 13.6058, 0.09334),
            48: (-0.4194, 14.2983, 0.09273),
            54: (-0.4272, 14.9598, 0.09232),
            60: (-0.4326, 15.5981, 0.09205),
        },
    }

    LHFA = {
        Sex.MALE: {
            0: (1, 49.8842, 0.03795),
            1: (1, 54.7244, 0.03557),
            2: (1, 58.4249, 0.03424),
            3: (1, 61.4292, 0.03328),
            4: (1, 63.8860, 0.03257),
            5: (1, 65.9026, 0.03204),
            6: (1, 67.6236, 0.03165),
            9: (1, 71.7686, 0.03112),
            12: (1, 75.7488, 0.03080),
            15: (1, 79.1552, 0.03056),
            18: (1, 82.2614, 0.03038),
            21: (1, 85.1324, 0.03026),
            24: (1, 87.1161, 0.03015),
            30: (1, 91.9092, 0.03001),
            36: (1, 96.0683, 0.02991),
            42: (1, 99.8954, 0.02985),
            48: (1, 103.4732, 0.02981),
            54: (1, 106.8568, 0.02979),
            60: (1, 110.0749, 0.02979),
        },
        Sex.FEMALE: {
            0: (1, 49.1477, 0.03790),
            1: (1, 53.6872, 0.03614),
            2: (1, 57.0673, 0.03497),
            3: (1, 59.8029, 0.03411),
            4: (1, 62.0899, 0.03347),
            5: (1, 64.0301, 0.03298),
            6: (1, 65.7311, 0.03261),
            9: (1, 69.7236, 0.03194),
            12: (1, 73.4857, 0.03161),
            15: (1, 76.7972, 0.03141),
            18: (1, 79.8481, 0.03128),
            21: (1, 82.6846, 0.03119),
            24: (1, 84.9764, 0.03110),
            30: (1, 89.8090, 0.03099),
            36: (1, 94.0633, 0.03092),
            42: (1, 97.9627, 0.03088),
            48: (1, 101.5994, 0.03086),
            54: (1, 105.0466, 0.03085),
            60: (1, 108.3557, 0.03085),
        },
    }

    HCFA = {
        Sex.MALE: {
            0: (1, 34.4618, 0.03686),
            1: (1, 37.2759, 0.03133),
            2: (1, 39.1285, 0.02997),
            3: (1, 40.5135, 0.02918),
            6: (1, 43.2973, 0.02773),
            9: (1, 45.1858, 0.02703),
            12: (1, 46.4989, 0.02664),
            18: (1, 48.0073, 0.02619),
            24: (1, 49.0265, 0.02593),
            36: (1, 50.2246, 0.02562),
            48: (1, 51.0189, 0.02544),
            60: (1, 51.5825, 0.02533),
        },
        Sex.FEMALE: {
            0: (1, 33.8787, 0.03496),
            1: (1, 36.5463, 0.03178),
            2: (1, 38.2521, 0.03067),
            3: (1, 39.5328, 0.02997),
            6: (1, 42.0253, 0.02877),
            9: (1, 43.8037, 0.02817),
            12: (1, 45.0316, 0.02781),
            18: (1, 46.4183, 0.02741),
            24: (1, 47.3549, 0.02718),
            36: (1, 48.5148, 0.02689),
            48: (1, 49.3109, 0.02672),
            60: (1, 49.8979, 0.02660),
        },
    }

    WFL = {
        Sex.MALE: {
            45: (0.0381, 2.4549, 0.13327),
            50: (-0.0632, 3.3427, 0.11974),
            55: (-0.1384, 4.5423, 0.10698),
            60: (-0.1930, 5.9555, 0.09650),
            65: (-0.2281, 7.4098, 0.08861),
            70: (-0.2486, 8.7610, 0.08298),
            75: (-0.2598, 9.9238, 0.07920),
            80: (-0.2662, 10.8931, 0.07686),
            85: (-0.2709, 11.7516, 0.07567),
            90: (-0.2783, 12.6300, 0.07545),
            95: (-0.2921, 13.6335, 0.07593),
            100: (-0.3134, 14.8143, 0.07692),
            105: (-0.3423, 16.1950, 0.07842),
            110: (-0.3792, 17.8174, 0.08053),
        },
        Sex.FEMALE: {
            45: (-0.1293, 2.5029, 0.12959),
            50: (-0.1873, 3.3276, 0.12061),
            55: (-0.2307, 4.4101, 0.10986),
            60: (-0.2618, 5.6669, 0.10018),
            65: (-0.2825, 6.9922, 0.09218),
            70: (-0.2951, 8.2573, 0.08605),
            75: (-0.3016, 9.3905, 0.08174),
            80: (-0.3031, 10.3756, 0.07903),
            85: (-0.3015, 11.2392, 0.07764),
            90: (-0.3005, 12.0833, 0.07739),
            95: (-0.3048, 13.0180, 0.07802),
            100: (-0.3175, 14.1167, 0.07942),
            105: (-0.3411, 15.4246, 0.08149),
            110: (-0.3774, 16.9858, 0.08417),
        },
    }

    HFA_2007 = {
        Sex.MALE: {
            61: (1, 110.4, 0.0441),
            72: (1, 116.0, 0.0439),
            84: (1, 121.7, 0.0441),
            96: (1, 127.3, 0.0445),
            108: (1, 132.7, 0.0452),
            120: (1, 138.4, 0.0463),
            132: (1, 144.1, 0.0478),
            144: (1, 150.2, 0.0496),
            156: (1, 157.0, 0.0514),
            168: (1, 163.7, 0.0526),
            180: (1, 169.0, 0.0528),
            192: (1, 172.5, 0.0518),
            204: (1, 174.5, 0.0505),
            216: (1, 175.7, 0.0494),
            228: (1, 176.5, 0.0487),
        },
        Sex.FEMALE: {
            61: (1, 109.6, 0.0450),
            72: (1, 115.1, 0.0453),
            84: (1, 120.8, 0.0461),
            96: (1, 126.6, 0.0472),
            108: (1, 132.5, 0.0485),
            120: (1, 138.6, 0.0498),
            132: (1, 144.8, 0.0507),
            144: (1, 150.5, 0.0509),
            156: (1, 155.1, 0.0502),
            168: (1, 158.4, 0.0488),
            180: (1, 160.4, 0.0474),
            192: (1, 161.4, 0.0463),
            204: (1, 162.2, 0.0454),
            216: (1, 162.8, 0.0449),
            228: (1, 163.2, 0.0446),
        },
    }

    BFA_2007 = {
        Sex.MALE: {
            61: (-0.7684, 15.2952, 0.08805),
            72: (-0.7302, 15.3400, 0.09114),
            84: (-0.6868, 15.4290, 0.09553),
            96: (-0.6359, 15.5807, 0.10106),
            108: (-0.5750, 15.8080, 0.10773),
            120: (-0.5057, 16.1171, 0.11545),
            132: (-0.4287, 16.5101, 0.12384),
            144: (-0.3475, 17.0544, 0.13251),
            156: (-0.2662, 17.7801, 0.14083),
            168: (-0.1901, 18.5283, 0.14810),
            180: (-0.1232, 19.3516, 0.15396),
            192: (-0.0664, 20.2183, 0.15822),
            204: (-0.0199, 21.1121, 0.16091),
            216: (0.0177, 21.9213, 0.16223),
            228: (0.0473, 22.6582, 0.16244),
        },
        Sex.FEMALE: {
            61: (-1.1609, 15.1763, 0.09141),
            72: (-1.0964, 15.2285, 0.09520),
            84: (-1.0181, 15.3216, 0.10091),
            96: (-0.9256, 15.4649, 0.10803),
            108: (-0.8209, 15.6696, 0.11599),
            120: (-0.7077, 15.9610, 0.12455),
            132: (-0.5912, 16.3765, 0.13292),
            144: (-0.4782, 16.9458, 0.14067),
            156: (-0.3739, 17.6534, 0.14729),
            168: (-0.2831, 18.4418, 0.15234),
            180: (-0.2079, 19.2393, 0.15570),
            192: (-0.1485, 20.0003, 0.15777),
            204: (-0.1040, 20.7303, 0.15881),
            216: (-0.0722, 21.4111, 0.15926),
            228: (-0.0509, 22.0469, 0.15920),
        },
    }


class GROWTH_THRESHOLDS:
    INFANT_MAX_MONTHS = 24
    UNDER_FIVE_MAX_MONTHS = 60
    REFERENCE_MAX_MONTHS = 228
    # Recumbent length runs 0.7 cm above standing height
    LENGTH_HEIGHT_OFFSET_CM = 0.7
    Z_LIMIT = 5.0
    L_LOG_EPSILON = 0.0001
    WFL_RANGE_CM = (45, 110)

    SEVERITY_RISK = {
        "severe_negative": "muy_alto",
        "moderate_negative": "alto",
        "normal": "normal",
        "moderate_positive": "elevado",
        "severe_positive": "alto",
    }
    INDICATOR_LABELS = {
        GrowthIndicator.WFA: "Peso/Edad",
        GrowthIndicator.LHFA: "Talla/Edad",
        GrowthIndicator.WFLH: "Peso/Talla",
        GrowthIndicator.BFA: "IMC/Edad",
        GrowthIndicator.HCFA: "PC/Edad",
    }
    METRIC_SUFFIX = {
        GrowthIndicator.WFA: "peso_edad",
        GrowthIndicator.LHFA: "talla_edad",
        GrowthIndicator.WFLH: "peso_talla",
        GrowthIndicator.BFA: "imc_edad",
        GrowthIndicator.HCFA: "pc_edad",
    }


# --- 10. ENERGY EXPENDITURE ---

class ENERGY_EQUATIONS:
    ACTIVITY_FACTORS = {
        ActivityLevel.SEDENTARY: 1.2,
        ActivityLevel.LIGHT: 1.375,
        ActivityLevel.MODERATE: 1.55,
        ActivityLevel.ACTIVE: 1.725,
        ActivityLevel.VERY_ACTIVE: 1.9,
        ActivityLevel.ELITE: 2.2,
        ActivityLevel.ULTRA: 2.5,
    }
    TEF_FACTOR = 0.10

    # (intercept, weight, height, age)
    HARRIS_BENEDICT = {
        Sex.MALE: (88.362, 13.397, 4.799, 5.677),
        Sex.FEMALE: (447.593, 9.247, 3.098, 4.330),
    }
    MIFFLIN_SEX_OFFSET = {Sex.MALE: 5, Sex.FEMALE: -161}

    # (upper age exclusive, slope per kg, intercept); None closes the table
    FAO_WHO = {
        Sex.MALE: [
            (3, 60.9, -54), (10, 22.7, 495), (18, 17.5, 651),
            (30, 15.3, 679), (60, 11.6, 879), (None, 13.5, 487),
        ],
        Sex.FEMALE: [
            (3, 61.0, -51), (10, 22.5, 499), (18, 12.2, 746),
            (30, 14.7, 496), (60, 8.7, 829), (None, 10.5, 596),
        ],
    }
    HENRY = {
        Sex.MALE: [
            (3, 61.0, -33.7), (10, 23.3, 514), (18, 18.4, 581),
            (30, 16.0, 545), (60, 14.2, 593), (None, 13.5, 514),
        ],
        Sex.FEMALE: [
            (3, 58.3, -31.1), (10, 22.5, 499), (18, 12.2, 746),
            (30, 10.1, 569), (60, 11.0, 543), (None, 10.9, 514),
        ],
    }
    KATCH_MCARDLE = (370, 21.6)
    CUNNINGHAM = (500, 22)

    # IOM 2005 EER: intercept - age_coef*age + PA*(w_coef*kg + h_coef*m) + 20
    PEDIATRIC_EER = {
        Sex.MALE: (88.5, 61.9, 26.7, 903),
        Sex.FEMALE: (135.3, 30.8, 10.0, 934),
    }
    PEDIATRIC_EER_GROWTH_KCAL = 20
    PEDIATRIC_AGE_RANGE = (3, 18)
    PEDIATRIC_PA = {
        Sex.MALE: {
            ActivityLevel.SEDENTARY: 1.00,
            ActivityLevel.LIGHT: 1.13,
            ActivityLevel.MODERATE: 1.26,
            ActivityLevel.VERY_ACTIVE: 1.42,
        },
        Sex.FEMALE: {
            ActivityLevel.SEDENTARY: 1.00,
            ActivityLevel.LIGHT: 1.16,
            ActivityLevel.MODERATE: 1.31,
            ActivityLevel.VERY_ACTIVE: 1.56,
        },
    }
    PEDIATRIC_PA_KEY = {
        ActivityLevel.ACTIVE: ActivityLevel.MODERATE,
        ActivityLevel.ELITE: ActivityLevel.VERY_ACTIVE,
        ActivityLevel.ULTRA: ActivityLevel.VERY_ACTIVE,
    }
    PEDIATRIC_BMR_FROM_EER = 1.2


class PROTEIN_TARGETS:
    # g/kg/day
    GERIATRIC_MIN_AGE = 65
    GERIATRIC = (1.2, 1.5)
    GERIATRIC_ACTIVE = (1.5, 1.8)
    GERIATRIC_ACTIVE_LEVELS = (
        ActivityLevel.ACTIVE, ActivityLevel.VERY_ACTIVE, ActivityLevel.ELITE,
    )
    GERIATRIC_WARNING = (
        "Requerimiento proteico elevado (mínimo 1.2g/kg) para prevenir "
        "sarcopenia y fragilidad clínica."
    )
    ADULT = {
        ActivityLevel.SEDENTARY: (0.8, 1.2),
        ActivityLevel.LIGHT: (0.8, 1.2),
        ActivityLevel.MODERATE: (1.2, 1.5),
        ActivityLevel.ACTIVE: (1.6, 2.0),
        ActivityLevel.VERY_ACTIVE: (2.0, 2.5),
        ActivityLevel.ELITE: (2.0, 2.5),
        ActivityLevel.ULTRA: (2.0, 2.5),
    }


# --- 11. TECHNICAL ERROR OF MEASUREMENT (ISAK) ---

class TEM_THRESHOLDS:
    # % TEM: (intra excellent, intra acceptable, inter excellent, inter acceptable)
    LIMITS = {
        "skinfolds": (2.5, 5.0, 5.0, 7.5),
        "girths": (0.5, 1.0, 1.0, 1.5),
        "breadths": (0.5, 1.0, 1.0, 1.5),
        "basic": (0.2, 0.5, 0.5, 1.0),
    }
    SITE_CATEGORY = {
        "triceps": "skinfolds", "subscapular": "skinfolds",
        "biceps": "skinfolds", "supraspinale": "skinfolds",
        "iliac_crest": "skinfolds", "abdominal": "skinfolds",
        "thigh": "skinfolds", "calf": "skinfolds",
        "arm_relaxed": "girths", "arm_flexed": "girths",
        "forearm": "girths", "chest": "girths", "waist": "girths",
        "hip": "girths", "thigh_girth": "girths", "calf_girth": "girths",
        "humerus": "breadths", "femur": "breadths", "wrist": "breadths",
        "ankle": "breadths", "biacromial": "breadths",
        "biiliocristal": "breadths",
        "weight": "basic", "height": "basic", "sitting_height": "basic",
    }
    DEFAULT_CATEGORY = "skinfolds"
    LABELS = {
        "excellent": "Excelente",
        "acceptable": "Aceptable",
        "poor": "Insuficiente",
    }
