"""
BoothGuard Verification Service.

Verifies a voter's eligibility token exactly once per election and
appends a tamper-evident audit entry for every scan attempt.
"""

__version__ = "0.1.0"
