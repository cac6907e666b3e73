"""Phone normalization strategies."""

from .basic_normalizer import BasicPhoneNormalizer
from .libphone_normalizer import LibPhoneNumberNormalizer

__all__ = ["BasicPhoneNormalizer", "LibPhoneNumberNormalizer"]
