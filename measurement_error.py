"""
Kallpa: Technical Error of Measurement
======================================
Dahlberg TEM over repeated anthropometric measurements and the ISAK
reliability thresholds used to decide when a site must be re-measured.

    TEM = sqrt(sum(d^2) / 2n)
    %TEM = TEM / mean * 100
"""

import logging
import math
from itertools import combinations
from typing import List, Mapping, Sequence

from models import ReliabilityReport, TEMResult
from constants import TEM_THRESHOLDS

logger = logging.getLogger(__name__)


def _limits(site: str):
    category = TEM_THRESHOLDS.SITE_CATEGORY.get(site, TEM_THRESHOLDS.DEFAULT_CATEGORY)
    return TEM_THRESHOLDS.LIMITS[category]


class MeasurementError:

    @staticmethod
    def dahlberg(series: Sequence[Sequence[float]]) -> float:
        """
        TEM across subjects or sessions. Each entry holds the repeated
        values of one measurement; a third value adds the 1-3 and 2-3 pairs.
        """
        squared = 0.0
        pairs = 0
        for values in series:
            if len(values) < 2:
                continue
            squared += (values[0] - values[1]) ** 2
            pairs += 1
            if len(values) >= 3:
                squared += (values[0] - values[2]) ** 2 + (values[1] - values[2]) ** 2
                pairs += 2
        if pairs == 0:
            return 0.0
        return math.sqrt(squared / (2 * pairs))

    @staticmethod
    def site_tem(values: Sequence[float], site: str, inter_observer: bool = False) -> TEMResult:
        if len(values) < 2:
            return TEMResult(site, 0.0, 0.0, values[0] if values else 0.0, False, "poor",
                             "Se requieren al menos 2 mediciones para calcular TEM")

        mean = sum(values) / len(values)
        diffs = [(a - b) ** 2 for a, b in combinations(values, 2)]
        tem = math.sqrt(sum(diffs) / (2 * len(diffs)))
        percent = tem / mean * 100.0 if mean > 0 else 0.0

        intra_exc, intra_acc, inter_exc, inter_acc = _limits(site)
        excellent, acceptable = (inter_exc, inter_acc) if inter_observer else (intra_exc, intra_acc)

        if percent <= excellent:
            reliability, message = "excellent", f"Excelente precisión (TEM {percent:.1f}%)"
        elif percent <= acceptable:
            reliability, message = "acceptable", f"Precisión aceptable (TEM {percent:.1f}%)"
        else:
            reliability, message = "poor", f"⚠️ Precisión insuficiente (TEM {percent:.1f}%) - Remedir"
            logger.warning(f"Poor TEM at {site}: {percent:.1f}%")

        return TEMResult(site, round(tem, 2), round(percent, 2), round(mean, 2),
                         reliability != "poor", reliability, message)

    @staticmethod
    def reliability(replications: Mapping[str, Sequence[float]]) -> ReliabilityReport:
        """Averages TEM over measured sites; any poor site makes the session poor."""
        sites: List[TEMResult] = [MeasurementError.site_tem(values, site)
                                  for site, values in replications.items()]
        measured = [r for r in sites if r.tem > 0]
        avg_tem = sum(r.tem for r in measured) / len(measured) if measured else 0.0
        avg_pct = sum(r.tem_percent for r in measured) / len(measured) if measured else 0.0

        poor = sum(1 for r in sites if r.reliability == "poor")
        acceptable = sum(1 for r in sites if r.reliability == "acceptable")
        if poor:
            rating = "poor"
        elif acceptable > len(sites) / 2:
            rating = "acceptable"
        else:
            rating = "excellent"

        return ReliabilityReport(round(avg_tem, 2), round(avg_pct, 2), poor == 0, tuple(sites), rating)

    @staticmethod
    def needs_third_measurement(first: float, second: float, site: str) -> bool:
        """ISAK: take a third value when the first two differ beyond the acceptable %TEM."""
        mean = (first + second) / 2.0
        percent = abs(first - second) / mean * 100.0 if mean > 0 else 0.0
        return percent > _limits(site)[1]

    @staticmethod
    def final_value(values: Sequence[float]) -> float:
        """Mean of two, median of three or more."""
        if not values:
            raise ValueError("At least one measurement is required")
        if len(values) <= 2:
            return sum(values) / len(values)
        ordered = sorted(values)
        mid = len(ordered) // 2
        if len(ordered) % 2 == 0:
            return (ordered[mid - 1] + ordered[mid]) / 2.0
        return ordered[mid]
