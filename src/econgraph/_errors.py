"""Exception types raised while computing a graph."""


class ComputeError(Exception):
    """Base class for failures captured per node by the compute engine."""


class FormulaError(ComputeError):
    """A formula is malformed, references an unbound variable, or calls an unknown function."""


class NodeEvaluationError(ComputeError):
    """A node cannot be evaluated (missing field, missing input, bad configuration)."""
