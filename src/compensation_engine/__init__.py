"""Employment compensation engine.

Converts hourly wages into monthly and annual salary, keeps per-contract
compensation profiles, estimates statutory deductions and assembles monthly
payroll statements.
"""

__version__ = "1.0.0"
