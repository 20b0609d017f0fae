import os
from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the restaurant catalogue seed pipeline.
    """

    seed_csv: Path = Path(os.getenv("SEED_CSV", str(_DATA_DIR / "restaurants.csv")))
    id_namespace: str = "lunchsquad.restaurants"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
