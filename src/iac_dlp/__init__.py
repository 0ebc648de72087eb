"""
iac-dlp: anonymize infrastructure-as-code before it leaves your machine.

Aliases structural identifiers consistently, hard-redacts secrets and keeps
audit-relevant values such as ``0.0.0.0/0`` visible.
"""

from .anonymizer import AnonymizationResult, Anonymizer, anonymize_iac, create_anonymizer
from .categories import Category
from .config import AnonymizerConfig

__version__ = "0.1.0"

__all__ = [
    "AnonymizationResult",
    "Anonymizer",
    "AnonymizerConfig",
    "Category",
    "__version__",
    "anonymize_iac",
    "create_anonymizer",
]
