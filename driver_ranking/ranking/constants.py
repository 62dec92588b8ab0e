"""
Constants for the driver ranking engine (AHP + TOPSIS).
"""

from enum import Enum
from typing import Dict

# Random Index (RI) for AHP consistency check
# n: number of criteria
RANDOM_INDEX = {
    1: 0.00,
    2: 0.00,
    3: 0.58,
    4: 0.90,
    5: 1.12,
    6: 1.24,
    7: 1.32,
    8: 1.41,
    9: 1.45,
    10: 1.49,
}

MAX_MATRIX_SIZE = max(RANDOM_INDEX)

# Key of the top-level comparison group (criteria without a parent)
ROOT_GROUP = "root"


class Polarity(str, Enum):
    """Optimization direction of a criterion."""
    BENEFIT = "benefit"  # higher is better
    COST = "cost"        # lower is better
    UNKNOWN = "unknown"  # not a leaf, not found, or not configured


class DiagnosticKind(str, Enum):
    """Non-fatal signals attached to engine results."""
    CONSISTENCY_WARNING = "consistency_warning"
    DEGENERATE_INPUT_WARNING = "degenerate_input_warning"


class DiagnosticCode(str, Enum):
    INCONSISTENT_MATRIX = "inconsistent_matrix"
    ZERO_NORM_COLUMN = "zero_norm_column"
    MISSING_WEIGHT = "missing_weight"
    WEIGHTS_RENORMALIZED = "weights_renormalized"
    ZERO_DISTANCE_TIE = "zero_distance_tie"


# Alternative attributes used by the eligibility filter and the tiebreak
TRIP_COUNT_FIELD = "trip_count"
DISTANCE_FIELD = "distance_km"

# Spreadsheet headers for the identity / filter columns
ID_COLUMN = "SicilNo"
TRIP_COUNT_COLUMN = "Sefer Sayısı"
DISTANCE_COLUMN = "Yapılan Kilometre"

# Spreadsheet header -> leaf criterion id (current and legacy header spellings)
COLUMN_MAPPINGS: Dict[str, str] = {
    "Sağlık Sebebiyle Devamsızlık Durumu": "attendance",
    "Normal Fazla Mesai": "normal_overtime",
    "Hafta Tatili Mesaisi": "weekend_overtime",
    "Resmi Tatil Mesaisi": "holiday_overtime",
    "Ölümle Sonuçlanan Kaza": "fatal_accident",
    "Yaralanmalı Kaza": "injury_accident",
    "Maddi Hasarlı Kaza": "material_damage_accident",
    "1. Derece İhlal": "first_degree_dismissal",
    "2. Derece İhlal": "second_degree_dismissal",
    "3. Derece İhlal": "third_degree_dismissal",
    "4. Derece İhlal": "fourth_degree_dismissal",
    "1'nci Derece Disiplin İhlallerinden Sevk Sayısı Kilometreye Oranı": "first_degree_dismissal",
    "2'nci Derece Disiplin İhlallerinden Sevk Sayısı Kilometreye Oranı": "second_degree_dismissal",
    "3'ncü Derece Disiplin İhlallerinden Sevk Sayısı Kilometreye Oranı": "third_degree_dismissal",
    "4'ncü Derece Disiplin İhlallerinden Sevk Sayısı Kilometreye Oranı": "fourth_degree_dismissal",
    "Hatalı Hızlanma Sayısı": "acceleration",
    "Hız İhlal Sayısı": "speed",
    "Motor (KırmızıLamba) Uyarısı": "engine",
    "Motor (Kırmızı Lamba) Uyarısı": "engine",
    "Rölanti İhlal Sayısı": "idle",
}
