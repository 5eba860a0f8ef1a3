from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from covidseir.lib.io.keys import (
    DatasetKey,
    MetadataKey,
)


class CSVMarshall:
    """Marshalls DataFrames to/from CSV files."""

    @classmethod
    def dump(cls, data: pd.DataFrame, key: DatasetKey, strict: bool = True) -> None:
        path = cls._resolve_key(key)

        if strict and path.exists():
            msg = f"Cannot dump data for key {key} - would overwrite"
            raise LookupError(msg)

        data.to_csv(path, index=False)

    @classmethod
    def load(cls, key: DatasetKey) -> pd.DataFrame:
        path = cls._resolve_key(key)
        return pd.read_csv(path)

    @classmethod
    def exists(cls, key: DatasetKey) -> bool:
        path = cls._resolve_key(key)
        return path.exists()

    @classmethod
    def _resolve_key(cls, key: DatasetKey) -> Path:
        return (Path(key.root) / key.data_type).with_suffix(".csv")


class YamlMarshall:
    """Marshalls primitive python data structures to and from yaml."""

    @classmethod
    def dump(cls, data: Any, key: MetadataKey, strict: bool = True) -> None:
        path = cls._resolve_key(key)
        if strict and path.exists():
            msg = f"Cannot dump data for key {key} - would overwrite"
            raise LookupError(msg)

        with path.open('w') as file:
            yaml.dump(data, file, sort_keys=False)

    @classmethod
    def load(cls, key: MetadataKey) -> Any:
        path = cls._resolve_key(key)
        with path.open() as file:
            data = yaml.full_load(file)
        return data

    @classmethod
    def exists(cls, key: MetadataKey) -> bool:
        path = cls._resolve_key(key)
        return path.exists()

    @classmethod
    def _resolve_key(cls, key: MetadataKey) -> Path:
        return (Path(key.root) / key.data_type).with_suffix(".yaml")


DATA_STRATEGIES = {
    'csv': CSVMarshall,
}
METADATA_STRATEGIES = {
    'yaml': YamlMarshall,
}
STRATEGIES = {**DATA_STRATEGIES, **METADATA_STRATEGIES}
