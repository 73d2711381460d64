from concurrent.futures import ThreadPoolExecutor
from logging import getLogger

import numpy as np


logger = getLogger(__name__)


class GradientEstimator(object):
    """Finite-difference gradient split over worker managers.

    Each worker is a clone of the canonical manager that uses it as its
    reference. Parameter indices are split in contiguous chunks, one per
    worker, and every worker runs on its own thread.

    Parameters
    ----------
    manager : skcio.optimization.EvaluationManager
        Canonical, initialized manager.
    num_workers : int
        Number of worker managers and threads.

    Examples
    --------
    >>> with GradientEstimator(manager, num_workers=4) as estimator:
    ...     gradient = estimator.gradient(manager.get_parameters())
    """

    def __init__(self, manager, num_workers=1):
        if num_workers < 1:
            raise ValueError(
                'num_workers must be >= 1, got {}'.format(num_workers))
        self.manager = manager
        self.num_workers = num_workers
        self.workers = [manager.clone(reference=manager)
                        for _ in range(num_workers)]
        self._executor = ThreadPoolExecutor(max_workers=num_workers)

    def gradient(self, parameters, eps=None, per_cost=False):
        """Evaluate the canonical manager at ``parameters`` and return the
        gradient of its total cost.

        Returns
        -------
        gradient : numpy.ndarray
        cost_gradients : numpy.ndarray
            ``(cost functions, parameters)`` array, only if ``per_cost``.
        """
        manager = self.manager
        manager.set_parameters(parameters)
        manager.evaluate()
        values = manager.parameter_trajectory.values.copy()

        chunks = np.array_split(np.arange(len(values)), self.num_workers)
        futures = []
        for worker, chunk in zip(self.workers, chunks):
            if len(chunk) == 0:
                continue
            futures.append(self._executor.submit(
                worker.compute_derivatives, values, eps,
                chunk.tolist(), per_cost))

        gradient = np.zeros(len(values))
        cost_gradients = np.zeros((len(manager.cost_functions), len(values)))
        for future in futures:
            result = future.result()
            if per_cost:
                gradient += result[0]
                cost_gradients += result[1]
            else:
                gradient += result
        logger.debug('gradient norm %f over %d parameters',
                     np.linalg.norm(gradient), len(values))
        if per_cost:
            return gradient, cost_gradients
        return gradient

    def shutdown(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
