"""Registry of cost function types and of the active cost functions."""

from logging import getLogger


logger = getLogger(__name__)


class CostFunctionRegistry(object):
    """Ordered list of active cost functions.

    The class also keeps the table of registered cost types so that costs
    can be created from configuration by type name. The column of a cost
    function in the cost matrix is its position in the active list.

    Examples
    --------
    >>> from skcio.cost import CostFunctionRegistry, ConstantCost
    >>> registry = CostFunctionRegistry([ConstantCost(value=1.0)])
    >>> registry.names
    ['constant']
    """

    _types = {}

    def __init__(self, cost_functions=None):
        self._cost_functions = []
        for cost in cost_functions or []:
            self.add(cost)

    @classmethod
    def register(cls, name, cost_cls):
        """Register a cost function type."""
        if name in cls._types and cls._types[name] is not cost_cls:
            raise ValueError('cost type {} is already registered'.format(
                name))
        cls._types[name] = cost_cls

    @classmethod
    def get(cls, name):
        """Cost function type registered as ``name``."""
        if name not in cls._types:
            raise ValueError('Unknown cost type: {}. Available: {}'.format(
                name, sorted(cls._types.keys())))
        return cls._types[name]

    @classmethod
    def list_available(cls):
        return sorted(cls._types.keys())

    def add(self, cost):
        if cost.name in self.names:
            raise ValueError('cost function {} is already active'.format(
                cost.name))
        self._cost_functions.append(cost)

    @property
    def names(self):
        return [cost.name for cost in self._cost_functions]

    def index(self, name):
        return self.names.index(name)

    def __len__(self):
        return len(self._cost_functions)

    def __iter__(self):
        return iter(self._cost_functions)

    def __getitem__(self, i):
        return self._cost_functions[i]

    def __repr__(self):
        return '<CostFunctionRegistry {}>'.format(self.names)


def register_cost(name):
    """Decorator to register a cost function type."""

    def decorator(cls):
        cls.type_name = name
        CostFunctionRegistry.register(name, cls)
        return cls

    return decorator


def create_cost(config):
    """Create a cost function from a configuration dict.

    Expected config format::

        {
            "type": "torque",
            "name": "torque",  # optional
            "weight": 0.0001,
            "enabled": True,
            "config": {...},  # cost-specific config
        }
    """
    type_name = config['type']
    cost_cls = CostFunctionRegistry.get(type_name)
    return cost_cls(name=config.get('name', type_name),
                    weight=config.get('weight', 1.0),
                    enabled=config.get('enabled', True),
                    config=config.get('config', {}))


def build_active_cost_functions(parameters, configs=None):
    """Active cost functions of ``parameters``.

    Every cost whose weight in ``parameters.cost_weights`` is positive is
    instantiated, in the order of the weights.

    Parameters
    ----------
    parameters : skcio.config.PlanningParameters
        Holds the cost weights.
    configs : dict, optional
        Cost-specific options keyed by cost type name.

    Returns
    -------
    registry : CostFunctionRegistry
    """
    configs = configs or {}
    registry = CostFunctionRegistry()
    for name, weight in parameters.cost_weights.items():
        if weight <= 0.0:
            logger.debug('cost %s is disabled (weight %s)', name, weight)
            continue
        cost = create_cost({'type': name, 'weight': weight,
                            'config': configs.get(name, {})})
        if cost.enabled:
            registry.add(cost)
    logger.debug('active cost functions: %s', registry.names)
    return registry
