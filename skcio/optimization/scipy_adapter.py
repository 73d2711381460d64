"""Drive an evaluation manager with ``scipy.optimize.minimize``."""

from logging import getLogger

import numpy as np
from scipy.optimize import minimize

from skcio.optimization.gradient import GradientEstimator


logger = getLogger(__name__)


class OptimizationResult(object):
    """Result of :func:`minimize_trajectory`.

    Attributes
    ----------
    parameters : numpy.ndarray
        Optimized parameter values.
    success : bool
        Whether the optimizer converged.
    cost : float
        Total cost at ``parameters``.
    feasible : bool
        Feasibility of the trajectory at ``parameters``.
    iterations : int
        Number of optimizer iterations.
    message : str
        Optimizer status message.
    info : dict
        Additional information.
    """

    def __init__(self, parameters, success=True, cost=0.0, feasible=False,
                 iterations=0, message='', info=None):
        self.parameters = np.asarray(parameters)
        self.success = success
        self.cost = cost
        self.feasible = feasible
        self.iterations = iterations
        self.message = message
        self.info = info or {}


def minimize_trajectory(manager, max_iterations=100, method='L-BFGS-B',
                        eps=None, num_workers=1, history=None,
                        verbose=False):
    """Minimize the total cost of ``manager`` over its parameters.

    Cost and gradient come from the manager; the manager ends evaluated at
    the best parameters found. Its best-cost bookkeeping is reset at the
    start of every run.

    Parameters
    ----------
    manager : skcio.optimization.EvaluationManager
        Initialized canonical manager.
    max_iterations : int
        Maximum number of optimizer iterations.
    method : str
        ``scipy.optimize.minimize`` method using gradients.
    eps : float, optional
        Finite-difference step. Defaults to the planning parameters.
    num_workers : int
        Worker managers used for the gradient.
    history : skcio.optimization.CostHistory, optional
        Receives every best-cost improvement.
    verbose : bool
        Log every best-cost improvement with per-function costs.

    Returns
    -------
    OptimizationResult
    """
    iteration = [0]

    def callback(x):
        iteration[0] += 1
        manager.set_parameters(x)
        manager.evaluate()
        manager.print_trajectory_cost(iteration[0], details=verbose,
                                      history=history)
        manager.render()

    manager.reset_best_trajectory_cost()
    x_init = manager.get_parameters().values.copy()
    with GradientEstimator(manager, num_workers=num_workers) as estimator:

        def objective(x):
            gradient = estimator.gradient(x, eps=eps)
            return manager.get_trajectory_cost(), gradient

        result = minimize(objective, x_init, method=method, jac=True,
                          callback=callback,
                          options={'maxiter': max_iterations})

    manager.set_parameters(result.x)
    cost = manager.evaluate()
    logger.info('optimization finished after %d iterations: cost %f '
                '(feasible: %s)', result.nit, cost,
                manager.is_last_trajectory_feasible())
    return OptimizationResult(
        result.x,
        success=result.success,
        cost=cost,
        feasible=manager.is_last_trajectory_feasible(),
        iterations=result.nit,
        message=result.message if hasattr(result, 'message') else '',
        info={'scipy_result': result})
