"""Concrete representations of on disk data sources."""
from pathlib import Path
from typing import List, Union

from covidseir.lib.io.keys import (
    DatasetType,
    MetadataType,
)
from covidseir.lib.io.marshall import (
    DATA_STRATEGIES,
    METADATA_STRATEGIES,
)


class DataRoot:
    """Representation of a version of data from a particular source or sink.

    Subclasses are responsible for declaring their structure by assigning
    :class:`DatasetType` and :class:`MetadataType` class variables. Instances
    of subclasses then serve as factories for generating keys pointing
    to particular data sets which can be used to transfer data and metadata
    to and from disk.

    Parameters
    ----------
    root
        An existing directory on disk where data will be read from or written
        to.
    data_format
        The on disk format for data sets in the data root.
    metadata_format
        The on disk format for metadata in the data root.

    """

    def __init__(self, root: Union[str, Path], data_format: str = 'csv', metadata_format: str = 'yaml'):
        self._root = Path(root)
        if data_format not in DATA_STRATEGIES:
            raise ValueError(f'Invalid data format {data_format} for {type(self).__name__}. '
                             f'Valid data formats are {list(DATA_STRATEGIES)}.')
        self._data_format = data_format
        if metadata_format not in METADATA_STRATEGIES:
            raise ValueError(f'Invalid metadata format {metadata_format} for {type(self).__name__}. '
                             f'Valid data formats are {list(METADATA_STRATEGIES)}.')
        self._metadata_format = metadata_format

    @property
    def root(self) -> Path:
        return self._root

    @property
    def dataset_types(self) -> List[str]:
        """A list of all named dataset types in the data root."""
        return [dataset_name for dataset_name, attr in type(self).__dict__.items()
                if isinstance(attr, DatasetType) and not isinstance(attr, MetadataType)]

    @property
    def metadata_types(self) -> List[str]:
        """A list of all named metadata types in the data root."""
        return [metadata_name for metadata_name, attr in type(self).__dict__.items()
                if isinstance(attr, MetadataType)]


########################
# Pipeline Stage Roots #
########################

class FitRoot(DataRoot):
    metadata = MetadataType('metadata')
    specification = MetadataType('fit_specification')
    settings = MetadataType('settings')

    cases = DatasetType('cases')
    model_data = DatasetType('model_data')
    posterior = DatasetType('posterior')
    diagnostics = DatasetType('diagnostics')


class ForecastRoot(DataRoot):
    metadata = MetadataType('metadata')
    specification = MetadataType('forecast_specification')

    projection = DatasetType('projection')
    projection_summary = DatasetType('projection_summary')
    rt = DatasetType('rt')
    rt_summary = DatasetType('rt_summary')
    threshold = DatasetType('threshold')
    doubling_time = DatasetType('doubling_time')
    residuals = DatasetType('residuals')

    @property
    def plot_dir(self) -> Path:
        return self._root / 'plots'
