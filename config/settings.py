"""
Plinko Fair - Configuration

Runtime knobs read from the environment (and .env). Game constants such as
row count and bias precision live in sim_engine.plinko, not here: changing
them changes every published hash.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent


class FairConfig:

    # --- Logging ---
    LOG_LEVEL = os.getenv("PLINKO_LOG_LEVEL", "WARNING").upper()
    LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
    LOG_DATEFMT = "%H:%M:%S"

    # --- Monte Carlo defaults ---
    SIM_ROUNDS = int(os.getenv("PLINKO_SIM_ROUNDS", "10000"))
    SIM_SEED = os.getenv("PLINKO_SIM_SEED", "plinko-fair")

    # --- Audit output (verify --save) ---
    AUDIT_DIR = Path(os.getenv("PLINKO_AUDIT_DIR", "./audits"))

    @classmethod
    def log_level(cls) -> int:
        """Numeric level for LOG_LEVEL; unknown names fall back to WARNING."""
        level = logging.getLevelName(cls.LOG_LEVEL)
        return level if isinstance(level, int) else logging.WARNING


def setup_logging(name: str = "plinkofair", level: int = None) -> logging.Logger:
    """Attach one stream handler to the project logger (idempotent)."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter(FairConfig.LOG_FORMAT, datefmt=FairConfig.LOG_DATEFMT))
        logger.addHandler(_h)
    logger.setLevel(level if level is not None else FairConfig.log_level())
    return logger
