"""
Deployment environment

ENVIRONMENT is one of production, development or test. Unknown values fall
back to development so that production-only guards stay armed only when
production is named explicitly.
"""
import os
import logging

VALID_ENVIRONMENTS = {"production", "development", "test"}

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").strip().lower()

if ENVIRONMENT not in VALID_ENVIRONMENTS:
    logging.warning(f"Unknown ENVIRONMENT '{ENVIRONMENT}', using 'development'")
    ENVIRONMENT = "development"


def is_production() -> bool:
    return ENVIRONMENT == "production"
