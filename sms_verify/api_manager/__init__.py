"""Phone normalization and VoIP classification providers."""
