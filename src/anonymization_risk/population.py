"""
Population models for population-based re-identification risk.

A population model supplies the size of the population the sample was drawn
from, and hence the sampling fraction (sample size / population size) that the
uniqueness estimators extrapolate with.
"""

from enum import Enum

Region = Enum("Region", ["USA", "UK", "FRANCE", "GERMANY", "CANADA", "AUSTRALIA"])

# Population presets per region
_REGION_TO_POPULATION_SIZE: dict[Region, int] = {
    Region.USA: 318_857_056,
    Region.UK: 63_182_000,
    Region.FRANCE: 66_616_416,
    Region.GERMANY: 80_767_000,
    Region.CANADA: 35_540_400,
    Region.AUSTRALIA: 23_490_700,
}


class PopulationModel:
    """
    The population a dataset was sampled from.

    Parameters
    ----------
    population_size : float
        Estimated number of individuals in the population, must be positive.

    Raises
    ------
    ValueError
        If population_size is not positive.
    """

    def __init__(self, population_size: float) -> None:
        if not population_size > 0:
            raise ValueError(f"Population size must be positive, got {population_size}")
        self.population_size = float(population_size)

    @classmethod
    def from_region(cls, region: Region) -> "PopulationModel":
        """
        Create a population model from a region preset.

        Parameters
        ----------
        region : Region
            One of the preset regions.

        Returns
        -------
        PopulationModel
            Model whose population size is the region's population.
        """
        if region not in _REGION_TO_POPULATION_SIZE:
            raise ValueError(f"Unsupported region: {region!r}")
        return cls(_REGION_TO_POPULATION_SIZE[region])

    @classmethod
    def from_sampling_fraction(
        cls, sample_size: int, sampling_fraction: float
    ) -> "PopulationModel":
        """
        Create a population model implied by a known sampling fraction.

        Parameters
        ----------
        sample_size : int
            Number of records in the sample.
        sampling_fraction : float
            Fraction of the population that was sampled, in (0, 1].

        Returns
        -------
        PopulationModel
            Model with population size ``sample_size / sampling_fraction``.
        """
        _validate_sampling_fraction(sampling_fraction)
        return cls(sample_size / sampling_fraction)

    def get_sampling_fraction(self, sample_size: int) -> float:
        """
        Fraction of the population contained in a sample of the given size.

        Parameters
        ----------
        sample_size : int
            Number of records in the sample.

        Returns
        -------
        float
            ``sample_size / population_size``, in (0, 1].

        Raises
        ------
        ValueError
            If the sample is empty or larger than the population.
        """
        sampling_fraction = sample_size / self.population_size
        _validate_sampling_fraction(sampling_fraction)
        return sampling_fraction

    def __repr__(self) -> str:
        return f"PopulationModel(population_size={self.population_size})"


def _validate_sampling_fraction(sampling_fraction: float) -> None:
    if not 0.0 < sampling_fraction <= 1.0:
        raise ValueError(f"Sampling fraction must be in (0, 1], got {sampling_fraction}")
