"""Student registration intake.

Dependent-field validation and normalization for the 11-step student
registration form: field schema, dependency rules, step navigation, and the
canonical record sent to the backend.

Usage:
    python -m intake validate draft.json
    python -m intake normalize draft.json --output record.json
"""

__version__ = "1.0.0"
