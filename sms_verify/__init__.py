"""SMS Verify: verification codes over AWS SNS with VoIP screening."""

__version__ = "1.0.0"

__all__ = ["__version__"]
