from logging import getLogger

import numpy as np


logger = getLogger(__name__)


class CostMatrixEvaluator(object):
    """Fill the ``(points, cost functions)`` cost matrix over a range.

    Parameters
    ----------
    cost_functions : skcio.cost.CostFunctionRegistry or list
        Active cost functions; the column of a cost is its position.
    discard_range_feasibility : bool
        If True, :meth:`evaluate` always reports infeasible.
    """

    def __init__(self, cost_functions, discard_range_feasibility=False):
        self.cost_functions = cost_functions
        self.discard_range_feasibility = discard_range_feasibility

    @property
    def num_cost_functions(self):
        return len(self.cost_functions)

    def evaluate(self, context, begin, end, cost_matrix, index=None):
        """Evaluate every cost function on points ``[begin, end)``.

        Parameters
        ----------
        context : skcio.optimization.EvaluationManager
            Evaluation context passed to the cost functions.
        begin, end : int
            Point range.
        cost_matrix : numpy.ndarray
            Written in place over the range, unless its column count does
            not match the number of cost functions, in which case a new
            zero matrix is allocated.
        index : skcio.trajectory.TrajectoryIndex, optional
            Perturbed parameter. Columns of costs invariant to it are set
            to zero over the range.

        Returns
        -------
        feasible : bool
            AND of the feasibility of every evaluated (point, cost) pair.
        cost_matrix : numpy.ndarray
            The written matrix.
        """
        num_cost_functions = self.num_cost_functions
        if cost_matrix.ndim != 2 or cost_matrix.shape[1] != num_cost_functions:
            logger.warning(
                'cost function count changed from %d to %d; '
                'resetting the cost matrix',
                cost_matrix.shape[1] if cost_matrix.ndim == 2 else 0,
                num_cost_functions)
            cost_matrix = np.zeros((len(cost_matrix), num_cost_functions))

        feasible = True
        for c, cost_function in enumerate(self.cost_functions):
            if cost_function.is_invariant(context, index):
                cost_matrix[begin:end, c] = 0.0
                continue
            for point in range(begin, end):
                cost, point_feasible = cost_function.evaluate(context, point)
                feasible = feasible and point_feasible
                cost_matrix[point, c] = cost_function.weight * cost
        if self.discard_range_feasibility:
            feasible = False
        return feasible, cost_matrix
