from logging import getLogger

import numpy as np


logger = getLogger(__name__)


class CostHistory(object):
    """Per-function cost of every best-cost improvement.

    Owned by the caller and passed to
    :meth:`EvaluationManager.print_trajectory_cost`. Records beyond
    ``capacity`` are dropped.

    Parameters
    ----------
    capacity : int
        Maximum number of records.
    """

    def __init__(self, capacity=15000):
        if capacity < 1:
            raise ValueError('capacity must be >= 1, got {}'.format(capacity))
        self.capacity = capacity
        self.iterations = []
        self.costs = []
        self.names = None

    def __len__(self):
        return len(self.iterations)

    @property
    def full(self):
        return len(self) >= self.capacity

    def append(self, iteration, cost_per_function, names=None):
        """Record one improvement.

        Returns
        -------
        filled : bool
            True if this record made the history reach its capacity.
        """
        if self.full:
            return False
        if names is not None:
            self.names = list(names)
        self.iterations.append(int(iteration))
        self.costs.append(np.array(cost_per_function, dtype=np.float64))
        return self.full

    def to_array(self):
        """``(records, cost functions)`` array of recorded costs."""
        if len(self) == 0:
            return np.zeros((0, 0))
        return np.vstack(self.costs)

    def log_table(self):
        if self.names is not None:
            logger.info('iteration : %s', ' '.join(self.names))
        for iteration, costs in zip(self.iterations, self.costs):
            logger.info('%d : %s', iteration,
                        ' '.join('{:.15f}'.format(c) for c in costs))

    def clear(self):
        self.iterations = []
        self.costs = []
