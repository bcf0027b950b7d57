"""
AuditLens: normalization engine for share-scanner and Group Policy audit output.
"""

__version__: str = "0.1.0"
