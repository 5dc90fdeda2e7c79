# safety.py
from typing import List, Optional, Tuple

from models import (
    AlertColor,
    Breadths,
    FiveComponentResult,
    FragilityDiagnosis,
    Girths,
    SafetyAlerts,
    Skinfolds,
)
from constants import Sex, GERIATRIC_THRESHOLDS, ISAK_RANGES, KERR_LIMITS

FRAILTY_COMPOSITE_ALERT = (
    "SÍNDROME DE FRAGILIDAD + ALTO RIESGO DE CAÍDAS (Requiere intervención kinésica urgente)"
)


class SafetySupervisor:
    """
    Clinical safety checks used by the population evaluators.
    Returns flags and Spanish alert strings; never raises on measured values.
    """

    # --- 1. GERIATRIC FUNCTION ---

    @staticmethod
    def fragility_matrix(low_grip: Optional[bool], low_calf: Optional[bool]) -> FragilityDiagnosis:
        """Cross-tabulates low grip strength x low calf circumference."""
        if low_grip is None or low_calf is None:
            return FragilityDiagnosis(
                "Esperando datos...",
                "Complete Fuerza y CP para ver diagnóstico.",
                AlertColor.BLUE,
            )
        if low_grip and low_calf:
            return FragilityDiagnosis(
                "SARCOPENIA SEVERA / DESNUTRICIÓN",
                "Baja masa muscular y baja fuerza. Estado de alta fragilidad y riesgo.",
                AlertColor.RED,
            )
        if low_grip:
            return FragilityDiagnosis(
                "DINAPENIA (Posible Obesidad Sarcopénica)",
                "Masa muscular normal pero sin fuerza. Músculo de mala calidad.",
                AlertColor.ORANGE,
            )
        if low_calf:
            return FragilityDiagnosis(
                "RIESGO DE DESNUTRICIÓN / PRE-SARCOPENIA",
                "Conserva funcionalidad pero reserva muscular agotada.",
                AlertColor.YELLOW,
            )
        return FragilityDiagnosis(
            "ESTADO NUTRICIONAL Y FUNCIONAL PRESERVADO",
            "Buena reserva de masa y buena función.",
            AlertColor.GREEN,
        )

    @staticmethod
    def check_geriatric(sex: Sex, calf_cm: Optional[float], grip_kg: Optional[float],
                        tug_s: Optional[float],
                        mna_bmi: Optional[Tuple[int, str]] = None
                        ) -> Tuple[SafetyAlerts, FragilityDiagnosis, List[str]]:
        """
        mna_bmi is the (points, label) pair of the MNA-SF BMI item, when BMI
        could be computed. Alerts are emitted in clinical reading order.
        """
        flags = {}
        messages: List[str] = []

        low_calf = None
        if calf_cm is not None:
            low_calf = calf_cm < GERIATRIC_THRESHOLDS.CALF_LOW_CM
            if low_calf:
                flags["low_calf_circumference"] = True
                messages.append("Desnutrición / Reserva Proteica Disminuida (CP < 31cm)")

        if mna_bmi is not None and mna_bmi[0] <= 1:
            flags["mna_alert"] = True
            messages.append(f"Alerta Nutricional: {mna_bmi[1]}")

        low_grip = None
        if grip_kg is not None:
            low_grip = grip_kg <= GERIATRIC_THRESHOLDS.GRIP_LOW_KG[sex]
            if low_grip:
                flags["low_grip_strength"] = True
                messages.append("Déficit de Fuerza Muscular (Dinamometría)")

        fall_risk = tug_s is not None and tug_s > GERIATRIC_THRESHOLDS.TUG_FALL_RISK_S
        if fall_risk:
            flags["fall_risk"] = True
            messages.append("Riesgo de Caída (Timed Up & Go > 12s)")

        diagnosis = SafetySupervisor.fragility_matrix(low_grip, low_calf)

        # Composite only when the matrix is concerning AND fall risk is present
        if diagnosis.is_concerning and fall_risk:
            flags["frailty_composite"] = True
            messages.append(FRAILTY_COMPOSITE_ALERT)

        return SafetyAlerts(**flags), diagnosis, messages

    # --- 2. KERR RESULT SANITY ---

    @staticmethod
    def check_five_component(result: FiveComponentResult, weight_kg: float, sex: Sex) -> List[str]:
        """Physiological plausibility of a fractionation result."""
        messages = []

        balance = result.total_kg / weight_kg * 100.0
        low, high = KERR_LIMITS.MASS_BALANCE_PCT
        if balance < low or balance > high:
            messages.append(
                f"Suma de masas ({balance:.1f}%) fuera de rango. Posible error de cálculo o medición."
            )

        for name, mass in (("piel", result.skin_kg), ("adiposa", result.adipose_kg),
                           ("muscular", result.muscle_kg), ("ósea", result.bone_kg),
                           ("residual", result.residual_kg)):
            if mass <= 0:
                messages.append(f"Masa {name} ({mass:.2f} kg) es negativa o cero. Error de cálculo.")

        bone_pct = result.bone_kg / weight_kg * 100.0
        low, high = KERR_LIMITS.BONE_PCT
        if bone_pct < low:
            messages.append(f"Masa ósea ({bone_pct:.1f}% del peso) inusualmente baja. Posible osteopenia.")
        elif bone_pct > high:
            messages.append(f"Masa ósea ({bone_pct:.1f}%) excesivamente alta. Verificar diámetros óseos.")

        if result.bone_kg > 0:
            ratio = result.muscle_kg / result.bone_kg
            low, high = KERR_LIMITS.MUSCLE_TO_BONE
            if ratio < low:
                messages.append(
                    f"Proporción músculo/hueso ({ratio:.1f}:1) baja. Posible sarcopenia o error en perímetros."
                )
            elif ratio > high:
                messages.append(
                    f"Proporción músculo/hueso ({ratio:.1f}:1) muy alta. Típico de culturistas o posible error."
                )

        if result.skinfold_sum > KERR_LIMITS.SKINFOLD_SUM_CRITICAL:
            messages.append(
                f"Suma de pliegues ({result.skinfold_sum:g}mm) extremadamente alta. Antropometría poco fiable."
            )
        elif result.skinfold_sum > KERR_LIMITS.SKINFOLD_SUM_WARNING:
            messages.append(
                f"Suma de pliegues ({result.skinfold_sum:g}mm) alta. "
                "Compresibilidad del tejido puede afectar precisión."
            )
        return messages

    # --- 3. ISAK INPUT RANGES ---

    @staticmethod
    def _range_message(label: str, value: float, limits) -> Optional[str]:
        low, high, warn = limits
        if value < low:
            return f"{label} ({value:g}) está por debajo del mínimo ISAK ({low:g})"
        if value > high:
            return f"{label} ({value:g}) excede el máximo ISAK ({high:g})"
        if value > warn:
            return f"{label} ({value:g}) es inusualmente alto - verificar medición"
        return None

    @staticmethod
    def check_isak_ranges(weight_kg: Optional[float], height_cm: Optional[float], skinfolds: Skinfolds,
                          girths: Girths, breadths: Breadths) -> List[str]:
        """Adult ISAK plausibility plus anatomical consistency."""
        messages = []
        labels = ISAK_RANGES.LABELS

        checks = [("weight", weight_kg, ISAK_RANGES.BASIC["weight"]),
                  ("height", height_cm, ISAK_RANGES.BASIC["height"])]
        checks += [(name, getattr(skinfolds, name), limits) for name, limits in ISAK_RANGES.SKINFOLDS.items()]
        for name, limits in ISAK_RANGES.GIRTHS.items():
            key = f"{name}_girth" if name in ("thigh", "calf") else name
            checks.append((key, getattr(girths, name), limits))
        checks += [(name, getattr(breadths, name), limits) for name, limits in ISAK_RANGES.BREADTHS.items()]

        for key, value, limits in checks:
            if not value:
                continue
            message = SafetySupervisor._range_message(labels[key], value, limits)
            if message:
                messages.append(message)

        if girths.waist and girths.arm_flexed and girths.waist < girths.arm_flexed:
            messages.append(
                f"Cintura ({girths.waist:g}cm) no puede ser menor que brazo flexionado ({girths.arm_flexed:g}cm)"
            )
        if girths.thigh and girths.calf and girths.thigh < girths.calf:
            messages.append(
                f"Muslo ({girths.thigh:g}cm) no puede ser menor que pantorrilla ({girths.calf:g}cm)"
            )
        if breadths.femur and breadths.humerus and breadths.femur < breadths.humerus:
            messages.append(
                f"Consistencia Anatómica: Diámetro de Fémur ({breadths.femur:g}cm) no puede ser menor "
                f"que Húmero ({breadths.humerus:g}cm). Verifique mediciones."
            )
        return messages
