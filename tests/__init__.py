"""Test package for the Heraldry Quiz.

Core tests exercise question generation and the session state machine with
seeded RNGs and a fake clock. UI smoke tests run headlessly using pygame's
dummy video driver. To run these tests, execute ``pytest`` from the project
root.
"""
