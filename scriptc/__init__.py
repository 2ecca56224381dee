"""scriptc: compile scriptc programs to Go modules."""

__version__ = "0.1.0"
