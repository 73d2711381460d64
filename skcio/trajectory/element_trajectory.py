"""Dense per-point storage of one trajectory sub-component."""

from collections import OrderedDict

import numpy as np

from skcio.interpolator import get_interpolation_function
from skcio.trajectory.index import ComponentType


def compute_keyframes(num_points, interval):
    """Keyframe points every ``interval`` points, always including the ends.

    Examples
    --------
    >>> from skcio.trajectory.element_trajectory import compute_keyframes
    >>> compute_keyframes(11, 5)
    array([ 0,  5, 10])
    >>> compute_keyframes(8, 5)
    array([0, 5, 7])
    >>> compute_keyframes(1, 5)
    array([0])
    """
    if num_points < 1:
        raise ValueError('num_points must be >= 1, got {}'.format(num_points))
    if interval < 1:
        raise ValueError('interval must be >= 1, got {}'.format(interval))
    keyframes = list(range(0, num_points, interval))
    if keyframes[-1] != num_points - 1:
        keyframes.append(num_points - 1)
    return np.array(keyframes, dtype=np.int64)


class ElementTrajectory(object):
    """Trajectory of one sub-component (joints, contact poses or forces).

    Values are held in one ``(num_points, num_elements)`` array per
    component. Samples between keyframes are always derived with the
    configured interpolation rule.

    Parameters
    ----------
    name : str
        Name used in messages.
    num_points : int
        Number of trajectory points.
    num_elements : int
        Number of columns.
    keyframes : array-like of int
        Sorted keyframe points. Must contain the first and last point.
    discretization : float
        Time between two consecutive points.
    components : sequence of ComponentType
        Components stored for this sub-component.
    interpolation : str
        ``'minjerk'`` or ``'linear'``.
    """

    def __init__(self, name, num_points, num_elements, keyframes,
                 discretization,
                 components=(ComponentType.POSITION,),
                 interpolation='linear'):
        keyframes = np.asarray(keyframes, dtype=np.int64)
        if len(keyframes) == 0 or keyframes[0] != 0 \
           or keyframes[-1] != num_points - 1:
            raise ValueError(
                'keyframes of {} must start at 0 and end at {}, got {}'
                .format(name, num_points - 1, keyframes))
        if np.any(np.diff(keyframes) <= 0):
            raise ValueError(
                'keyframes of {} must be strictly increasing'.format(name))
        self.name = name
        self.num_points = num_points
        self.num_elements = num_elements
        self.keyframes = keyframes
        self.discretization = discretization
        self.interpolation = interpolation
        self._interpolate_fn = get_interpolation_function(interpolation)
        self._keyframe_lookup = {
            int(point): i for i, point in enumerate(keyframes)}
        self.trajectories = OrderedDict(
            (ComponentType(c), np.zeros((num_points, num_elements)))
            for c in components)

    @property
    def components(self):
        return list(self.trajectories.keys())

    @property
    def num_keyframes(self):
        return len(self.keyframes)

    def has_component(self, component):
        return component in self.trajectories

    def get_trajectory(self, component=ComponentType.POSITION):
        try:
            return self.trajectories[component]
        except KeyError:
            raise ValueError('{} trajectory has no {} component'.format(
                self.name, ComponentType(component).name))

    def get_trajectory_point(self, point, component=ComponentType.POSITION):
        self._check_point(point)
        return self.get_trajectory(component)[point]

    def keyframe_index(self, point):
        """Index in ``keyframes`` of the keyframe at ``point``."""
        try:
            return self._keyframe_lookup[int(point)]
        except KeyError:
            raise IndexError('point {} is not a keyframe of {}'.format(
                point, self.name))

    def affected_range(self, keyframe_index):
        """Points whose samples depend on the value at one keyframe.

        Returns
        -------
        begin, end : int
            Inclusive-exclusive point range. It contains the keyframe and
            the interpolated samples of both adjacent segments, never the
            neighbouring keyframes.
        """
        point = int(self.keyframes[keyframe_index])
        if keyframe_index > 0:
            begin = int(self.keyframes[keyframe_index - 1]) + 1
        else:
            begin = point
        if keyframe_index < self.num_keyframes - 1:
            end = int(self.keyframes[keyframe_index + 1])
        else:
            end = point + 1
        return begin, end

    def interpolate(self, elements=None):
        """Recompute every interpolated sample of the given columns."""
        columns = self._columns(elements)
        for k in range(self.num_keyframes - 1):
            self._interpolate_segment(
                self.keyframes[k], self.keyframes[k + 1], columns)

    def interpolate_around(self, keyframe_index, elements=None):
        """Recompute the two segments adjacent to one keyframe."""
        columns = self._columns(elements)
        if keyframe_index > 0:
            self._interpolate_segment(
                self.keyframes[keyframe_index - 1],
                self.keyframes[keyframe_index], columns)
        if keyframe_index < self.num_keyframes - 1:
            self._interpolate_segment(
                self.keyframes[keyframe_index],
                self.keyframes[keyframe_index + 1], columns)

    def _interpolate_segment(self, begin, end, columns):
        begin = int(begin)
        end = int(end)
        if end - begin <= 1 or len(columns) == 0:
            return
        total_time = (end - begin) * self.discretization
        times = np.arange(1, end - begin) * self.discretization

        position = self.trajectories[ComponentType.POSITION]
        velocity = self.trajectories.get(ComponentType.VELOCITY)
        acceleration = self.trajectories.get(ComponentType.ACCELERATION)
        zeros = np.zeros(len(columns))

        xi = position[begin, columns]
        xf = position[end, columns]
        vi = velocity[begin, columns] if velocity is not None else zeros
        vf = velocity[end, columns] if velocity is not None else zeros
        ai = acceleration[begin, columns] \
            if acceleration is not None else zeros
        af = acceleration[end, columns] \
            if acceleration is not None else zeros

        p, v, a = self._interpolate_fn(xi, vi, ai, xf, vf, af,
                                       total_time, times)
        position[begin + 1:end, columns] = p
        if velocity is not None:
            velocity[begin + 1:end, columns] = v
        if acceleration is not None:
            acceleration[begin + 1:end, columns] = a

    def _columns(self, elements):
        if elements is None:
            return np.arange(self.num_elements)
        columns = np.atleast_1d(np.asarray(elements, dtype=np.int64))
        if len(columns) and (columns.min() < 0
                             or columns.max() >= self.num_elements):
            raise IndexError('element out of range [0, {}) in {}: {}'.format(
                self.num_elements, self.name, columns))
        return columns

    def _check_point(self, point):
        if not 0 <= point < self.num_points:
            raise IndexError('point {} out of range [0, {}) in {}'.format(
                point, self.num_points, self.name))

    def backup(self, begin, end, element):
        """Copy of one column over ``[begin, end)`` for every component."""
        return OrderedDict(
            (component, trajectory[begin:end, element].copy())
            for component, trajectory in self.trajectories.items())

    def restore(self, begin, end, element, backup):
        for component, values in backup.items():
            self.trajectories[component][begin:end, element] = values

    def clone(self):
        other = ElementTrajectory.__new__(ElementTrajectory)
        other.__dict__.update(self.__dict__)
        other.trajectories = OrderedDict(
            (component, trajectory.copy())
            for component, trajectory in self.trajectories.items())
        return other

    def __repr__(self):
        return '<{} {} points={} elements={} keyframes={}>'.format(
            self.__class__.__name__, self.name, self.num_points,
            self.num_elements, self.num_keyframes)
