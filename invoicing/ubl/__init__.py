"""Simplified UBL 2.1 invoice export."""

from .generator import (
    GENERATOR_VERSION,
    UBL_CUSTOMIZATION_ID,
    UBL_PROFILE_ID,
    build_ubl_xml,
    version,
)
from .validator import UBLValidationResult, validate_ubl

__all__ = [
    "GENERATOR_VERSION",
    "UBL_CUSTOMIZATION_ID",
    "UBL_PROFILE_ID",
    "UBLValidationResult",
    "build_ubl_xml",
    "validate_ubl",
    "version",
]
