"""
Clinic Outcomes Backend Package.

Scoring and population analytics engine for the clinic outcomes platform.
Provides patient-reported outcome instrument scoring, score progress tracking,
and leadership rollups over episodes of care and their care targets.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, exceptions, and dependencies
    - models: Pydantic schemas and enums
    - services: Scoring, comparison, cohort filtering, and aggregation services

The two public entry points of the engine are re-exported by the services
package:

    from clinic_outcomes.services import calculate_score, compute_leadership_analytics
"""

__version__ = "1.0.0"
