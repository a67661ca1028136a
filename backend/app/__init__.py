"""Quantum ML Dashboard backend."""
