"""Unit tests for TagCalc web route modules.

Each route module has a corresponding test file that mounts only that
router on a bare FastAPI app.
"""
