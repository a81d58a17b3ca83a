"""Construction-site payroll engine.

Turns site attendance into payroll records using scoped calculation rules.
"""

__version__ = "0.1.0"
