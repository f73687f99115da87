"""festgraph: dependency graphs for festival task trees."""

from festgraph.config import VERSION

__version__ = VERSION
