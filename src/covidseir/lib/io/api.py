from typing import Any, Union

from covidseir.lib.io.data_roots import DataRoot
from covidseir.lib.io.keys import (
    DatasetKey,
    MetadataKey,
)
from covidseir.lib.io.marshall import STRATEGIES


def _get_strategy(key: Union[MetadataKey, DatasetKey]):
    if key.disk_format not in STRATEGIES:
        raise ValueError(f'Unknown disk format {key.disk_format} for key {key}. '
                         f'Valid formats are {list(STRATEGIES)}.')
    return STRATEGIES[key.disk_format]


def load(key: Union[MetadataKey, DatasetKey]) -> Any:
    return _get_strategy(key).load(key)


def dump(dataset: Any, key: Union[MetadataKey, DatasetKey], strict: bool = True):
    _get_strategy(key).dump(dataset, key, strict=strict)


def exists(key: Union[MetadataKey, DatasetKey]) -> bool:
    return _get_strategy(key).exists(key)


def touch(data_root: DataRoot, *extra_dirs: str) -> None:
    """Creates the root directory of a data root and any extra subdirectories."""
    data_root.root.mkdir(parents=True, exist_ok=True)
    for extra_dir in extra_dirs:
        (data_root.root / extra_dir).mkdir(parents=True, exist_ok=True)
