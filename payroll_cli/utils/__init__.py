"""Helper utilities for the payroll validation CLI."""
