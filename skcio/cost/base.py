"""Base class of per-point trajectory cost functions."""


class TrajectoryCost(object):
    """Cost evaluated independently at every trajectory point.

    The evaluation context passed to every method is the
    :class:`skcio.optimization.EvaluationManager` running the evaluation.
    It exposes the full trajectory, the dynamics state, torques, external
    forces and contact variables of every point.

    Parameters
    ----------
    name : str, optional
        Unique identifier. Defaults to the registered type name.
    weight : float
        Multiplier applied to the value returned by :meth:`evaluate`.
    enabled : bool
        Disabled costs are skipped when building the active list.
    config : dict, optional
        Cost-specific options.

    Attributes
    ----------
    invariant_sub_components : tuple
        Sub-components whose parameters never change the value of this
        cost. The default :meth:`is_invariant` uses it.
    """

    type_name = None
    invariant_sub_components = ()

    def __init__(self, name=None, weight=1.0, enabled=True, config=None):
        if name is None:
            name = self.type_name or self.__class__.__name__.lower()
        self.name = name
        self.weight = float(weight)
        self.enabled = enabled
        self.config = dict(config or {})

    def evaluate(self, context, point):
        """Unweighted cost at ``point``.

        Returns
        -------
        cost : float
        feasible : bool
        """
        raise NotImplementedError

    def is_invariant(self, context, index):
        """True if perturbing the parameter at ``index`` cannot change
        this cost. ``index`` is None for a full evaluation.
        """
        if index is None:
            return False
        return index.sub_component in self.invariant_sub_components

    def pre_evaluate(self, context):
        pass

    def post_evaluate(self, context):
        pass

    def __repr__(self):
        return '<{} name={} weight={}>'.format(
            self.__class__.__name__, self.name, self.weight)
