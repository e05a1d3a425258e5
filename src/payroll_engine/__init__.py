"""U.S. gross-to-net payroll engine with exactly-once payroll runs."""

__version__ = "0.1.0"
