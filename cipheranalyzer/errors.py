"""Exception taxonomy for Cipher Analyzer.

All errors derive from ValueError as well so callers that only know the
standard library semantics (bad argument value) can still catch them.
"""


class CipherAnalyzerError(Exception):
    """Base class for all Cipher Analyzer errors."""


class InvalidKeyError(CipherAnalyzerError, ValueError):
    """Key cannot be used by the cipher (e.g. affine multiplier not coprime with 26)."""


class EmptyInputError(CipherAnalyzerError, ValueError):
    """Input has no alphabetic characters to analyze."""


class DegenerateInputError(CipherAnalyzerError, ValueError):
    """Input too short for the requested statistic (e.g. normalized entropy of one letter)."""
