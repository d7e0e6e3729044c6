"""Ghost-item synchronization of mesh variables and Cartesian grid numbering."""

__version__ = "0.1.0"