"""Layer 1: Objects - Immutable data representations.

This layer contains only data structures: the geospatial data container and
the domains on which problems are solved. Only numpy and pandas.
"""

from geostats.objects.domain import Domain
from geostats.objects.geodataframe import GeoDataFrame, as_geodataframe
from geostats.objects.pointset import PointSet
from geostats.objects.regulargrid import RegularGrid

__all__ = [
    "Domain",
    "GeoDataFrame",
    "PointSet",
    "RegularGrid",
    "as_geodataframe",
]
