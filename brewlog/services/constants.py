"""Controlled vocabularies and limits shared by schemas and services."""
from enum import Enum


class CoffeeOrigin(str, Enum):
    """Coffee producing countries."""
    BRAZIL = "Brazil"
    COLOMBIA = "Colombia"
    PERU = "Peru"
    ECUADOR = "Ecuador"
    GUATEMALA = "Guatemala"
    MEXICO = "Mexico"
    HONDURAS = "Honduras"
    COSTA_RICA = "Costa Rica"
    NICARAGUA = "Nicaragua"
    ETHIOPIA = "Ethiopia"
    KENYA = "Kenya"
    RWANDA = "Rwanda"
    INDONESIA = "Indonesia"
    VIETNAM = "Vietnam"
    YEMEN = "Yemen"


class ProcessingMethod(str, Enum):
    WASHED = "Washed"
    NATURAL = "Natural"
    HONEY = "Honey"
    SEMI_WASHED = "Semi-Washed"
    ANAEROBIC = "Anaerobic"
    CARBONIC_MACERATION = "Carbonic Maceration"
    EXPERIMENTAL = "Experimental"


class RoastingLevel(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    DARK = "dark"
    CUSTOM = "custom"


class BrewingMethod(str, Enum):
    POUR_OVER = "pour-over"
    FRENCH_PRESS = "french-press"
    AEROPRESS = "aeropress"
    COLD_BREW = "cold-brew"


class EvaluationSystem(str, Enum):
    """Which tasting form a sensation record was filled with."""
    TRADITIONAL_SCA = "traditional-sca"
    CVA_DESCRIPTIVE = "cva-descriptive"
    CVA_AFFECTIVE = "cva-affective"
    QUICK_TASTING = "quick-tasting"
    LEGACY = "legacy"


class AcidityIntensity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class BodyLevel(str, Enum):
    HEAVY = "Heavy"
    MEDIUM = "Medium"
    THIN = "Thin"


class MainTaste(str, Enum):
    SALTY = "salty"
    SOUR = "sour"
    SWEET = "sweet"
    BITTER = "bitter"
    UMAMI = "umami"


class MouthfeelDescriptor(str, Enum):
    METALLIC = "metallic"
    ROUGH = "rough"
    OILY = "oily"
    SMOOTH = "smooth"
    MOUTH_DRYING = "mouth-drying"


class CollectionColor(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"
    PURPLE = "purple"
    TEAL = "teal"
    PINK = "pink"
    INDIGO = "indigo"
    GRAY = "gray"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    JSON = "json"
    HTML = "html"


TASTING_REQUIRED_MESSAGE = (
    "Please fill at least one field in any tasting evaluation tab "
    "(Quick Tasting, SCA Traditional, or CVA Descriptive)"
)

# Bounded history sizes for the key-value store
MAX_RECENT_CLONES = 10
MAX_BACKUP_HISTORY = 10
MAX_EXPORT_HISTORY = 50
MAX_DRAFTS = 10

# Concurrent detail fetches per batch in the API client
DETAIL_FETCH_BATCH_SIZE = 50

BACKUP_VERSION = "1.0"
EXPORT_VERSION = "1.0"
