"""HTTP API for payroll runs and pay period approval."""
