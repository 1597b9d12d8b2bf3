"""buildreview - CI build orchestration and issue aggregation for mobile apps."""

__version__ = "0.1.0"
