# tests/__init__.py
"""
PyTSX17 Test Package

Fixtures (simulated PLC station, fast driver configuration) live in
conftest.py.

License: LGPLv3.0
Copyright (C) 2025-2026 Kris Kirby, KE4AHR
"""
