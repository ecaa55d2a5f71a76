"""
Data ingestion configuration for the Recipe Book service.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the recipe ingestion pipeline.
    """

    raw_path: Path = Path("recipebook/data/raw/recipes.csv")
    processed_data_dir: Path = Path("recipebook/data/processed")
    processed_filename: str = "recipes.csv"
    default_author_id: int = 1

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
