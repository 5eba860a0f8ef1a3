"""Keys naming the files a pipeline stage reads and writes."""
from pathlib import Path
from typing import NamedTuple, TYPE_CHECKING

if TYPE_CHECKING:
    from covidseir.lib.io.data_roots import DataRoot


class DatasetKey(NamedTuple):
    """Location of a tabular output such as ``posterior`` or ``projection``.

    The file lives at ``root / data_type`` with the suffix of
    ``disk_format``.
    """
    root: Path
    disk_format: str
    data_type: str


class MetadataKey(NamedTuple):
    """Location of a metadata document such as a specification."""
    root: Path
    disk_format: str
    data_type: str


class DatasetType:
    """Class attribute of a :class:`DataRoot` that builds dataset keys.

    Accessed on a data root instance, it binds to the root's directory and
    data format. Calling the bound type gives the key.
    """
    key_type = DatasetKey

    def __init__(self, name: str, root: Path = None, disk_format: str = None):
        self.name = name
        self.root = root
        self.disk_format = disk_format

    def _bound_format(self, instance: 'DataRoot') -> str:
        return instance._data_format

    def __get__(self, instance: 'DataRoot', owner=None):
        if instance is None:
            return self
        return type(self)(self.name, instance.root, self._bound_format(instance))

    def __call__(self):
        if self.root is None:
            raise TypeError(f'{type(self).__name__} {self.name} is not bound to a data root.')
        return self.key_type(self.root, self.disk_format, self.name)

    def __repr__(self):
        return f'{type(self).__name__}(name={self.name}, root={self.root}, disk_format={self.disk_format})'


class MetadataType(DatasetType):
    key_type = MetadataKey

    def _bound_format(self, instance: 'DataRoot') -> str:
        return instance._metadata_format
