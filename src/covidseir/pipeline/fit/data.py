from pathlib import Path
from typing import Dict

import pandas as pd

from covidseir.lib import (
    io,
)
from covidseir.model import (
    SeirFit,
)
from covidseir.pipeline.fit.specification import (
    FitSpecification,
)


class FitDataInterface:

    def __init__(self,
                 cases_file: Path,
                 fit_root: io.FitRoot):
        self.cases_file = cases_file
        self.fit_root = fit_root

    @classmethod
    def from_specification(cls, specification: FitSpecification) -> 'FitDataInterface':
        if not specification.data.cases_file:
            raise ValueError('No cases_file was provided in the data section of the specification.')
        return cls(
            cases_file=Path(specification.data.cases_file),
            fit_root=io.FitRoot(specification.data.output_root,
                                data_format=specification.data.output_format),
        )

    def make_dirs(self) -> None:
        io.touch(self.fit_root)

    ##############
    # Input data #
    ##############

    def load_input_cases(self) -> pd.DataFrame:
        if not self.cases_file.exists():
            raise ValueError(f'Case data file {self.cases_file} does not exist.')
        return pd.read_csv(self.cases_file)

    ##########################
    # Fit data I/O methods #
    ##########################

    def save_metadata(self, metadata: Dict) -> None:
        io.dump(metadata, self.fit_root.metadata(), strict=False)

    def save_specification(self, specification: FitSpecification) -> None:
        io.dump(specification.to_dict(), self.fit_root.specification())

    def load_specification(self) -> FitSpecification:
        spec_dict = io.load(self.fit_root.specification())
        return FitSpecification.from_dict(spec_dict)

    def save_cases(self, cases: pd.DataFrame) -> None:
        cases = cases.assign(date=cases['date'].dt.strftime('%Y-%m-%d'))
        io.dump(cases, self.fit_root.cases())

    def load_cases(self) -> pd.DataFrame:
        cases = io.load(self.fit_root.cases())
        cases['date'] = pd.to_datetime(cases['date'])
        return cases

    def save_fit(self, fit: SeirFit) -> None:
        fit.save(self.fit_root)

    def load_fit(self) -> SeirFit:
        return SeirFit.load(self.fit_root)
