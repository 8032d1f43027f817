"""Arithmetic expansion: number parsing, operator ordering and evaluation."""