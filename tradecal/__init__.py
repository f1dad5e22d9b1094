"""
TradeCal — Confidence calibration for AI trade recommendations.

Architecture:
    tradecal/
    ├── config.py        # Pydantic settings (env / .env)
    ├── exceptions.py    # Error taxonomy with recovery hints
    ├── db/              # SQLAlchemy engine handle, models, repositories, store
    ├── schemas/         # Pydantic models (records, curves, status, validation)
    ├── engine/          # Pure calibration math (outcomes, buckets, PAVA, curve, stats, health)
    ├── services/        # Calibration lifecycle + retroactive validation
    └── scripts/         # Thin entry points (calibrate, status, validate, reset_db)

Data Flow:
    trade_recommendations → Outcome Deriver → Bucketizer → PAVA → Curve
    → Statistics → confidence_calibrations → apply at inference time

Version: 1.0.0
"""

__version__ = "1.0.0"
