"""Bilingual localization pak generator for Kingdom Come: Deliverance II."""

from .config import ENGLISH, MANAGED_FILES, GeneratorSettings, LanguagePair, load_bilingual_set
from .corpus import Corpus
from .errors import BilingualGeneratorError, GenerationFailed
from .generator import generate_bilingual_resources, process_pair
from .merge import merge_entry
from .tables import parse_text_table

__version__ = "0.1.0"

__all__ = [
    "ENGLISH",
    "MANAGED_FILES",
    "BilingualGeneratorError",
    "Corpus",
    "GenerationFailed",
    "GeneratorSettings",
    "LanguagePair",
    "generate_bilingual_resources",
    "load_bilingual_set",
    "merge_entry",
    "parse_text_table",
    "process_pair",
]
