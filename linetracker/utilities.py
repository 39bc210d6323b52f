import itertools

import numpy as np

from . import datatypes


class point:
    @staticmethod
    def add(a, b):
        return datatypes.Point(a.t + b.t, a.x + b.x, a.y + b.y, a.z + b.z)

    @staticmethod
    def subtract(a, b):
        return datatypes.Point(a.t - b.t, a.x - b.x, a.y - b.y, a.z - b.z)

    @staticmethod
    def r3(p):
        return np.array([p.x, p.y, p.z], dtype=float)

    @staticmethod
    def mean(points):
        """
        Component-wise average of a list of points.
        The zero point is returned for an empty list.
        """
        if len(points) == 0:
            return datatypes.Point(0.0, 0.0, 0.0, 0.0)
        return datatypes.Point(*(float(c) for c in np.mean(np.array(points, dtype=float), axis=0)))

    @staticmethod
    def time_normalize(points):
        """
        Sort the points by time and shift the time so that the earliest point
        is at t=0. Spatial coordinates are untouched.
        """
        if len(points) == 0:
            return []
        points_sorted = event.t_sort(points)
        origin = datatypes.Point(points_sorted[0].t, 0, 0, 0)
        return [point.subtract(p, origin) for p in points_sorted]

    @staticmethod
    def within_dr(a, b, ds):
        """Check if two points lie inside the box interval ds=(dt,dx,dy,dz) of each other"""
        return abs(a.t - b.t) <= ds.t \
           and abs(a.x - b.x) <= ds.x \
           and abs(a.y - b.y) <= ds.y \
           and abs(a.z - b.z) <= ds.z

    @staticmethod
    def point_line_distance(p, begin, end):
        """
        Spatial distance from point p to the line through begin and end

        TEST:
        ```
        Util.point.point_line_distance(Point(0,1,1,0), Point(0,0,0,0), Point(1,0,0,1))
        1.0
        ```
        """
        p = point.r3(p)
        begin = point.r3(begin)
        direction = point.r3(end) - begin
        norm = np.linalg.norm(direction)
        if norm == 0:
            return float(np.linalg.norm(p - begin))
        return float(np.linalg.norm(np.cross(p - begin, direction))/norm)


class event:
    @staticmethod
    def t_sort(points):
        return sorted(points, key=lambda p: p.t)

    @staticmethod
    def coordinate_sort(points, coordinate="t"):
        # sorted() is stable, points with equal coordinate keep their order
        return sorted(points, key=lambda p: getattr(p, coordinate))

    @staticmethod
    def collapse(points, ds):
        """
        Merge points that are within the interval ds=(dt,dx,dy,dz) of each other

        This is a single pass heuristic, not an optimal clustering:
        each unconsumed point (in time order) opens a cluster and absorbs every later
        unconsumed point that is inside its time window and within ds of it.
        The first point in the window that does not match is where the scan resumes
        once the cluster is closed.

        INPUT:
        ---
        points: list of Point
        ds: Point
            (dt, dx, dy, dz)

        RETURN:
        ---
        list of Point, one averaged point per cluster, in time order
        """
        size = len(points)
        if size == 0:
            return []
        ds = datatypes.Point(*ds)

        points_sorted = event.t_sort(points)
        points_normalized = point.time_normalize(points_sorted)

        consumed = [False]*size
        collapsed = []
        index = 0
        while index < size:
            if consumed[index]:
                index += 1
                continue

            start = points_normalized[index]
            consumed[index] = True
            cluster = [points_sorted[index]]
            time_interval = start.t + ds.t

            missed_index = None
            next_index = index + 1
            while next_index < size:
                if consumed[next_index]:
                    next_index += 1
                    continue
                candidate = points_normalized[next_index]
                if candidate.t > time_interval:
                    break
                if point.within_dr(start, candidate, ds):
                    consumed[next_index] = True
                    cluster.append(points_sorted[next_index])
                elif missed_index is None:
                    missed_index = next_index
                next_index += 1

            index = missed_index if missed_index is not None else next_index
            collapsed.append(point.mean(cluster))

        return collapsed

    @staticmethod
    def partition(points, interval, coordinate="z"):
        """
        Group points into layers along one coordinate

        A new layer is started at each point that is farther than interval
        from the first point of the current layer. Layers are time-sorted.

        RETURN:
        ---
        Partition(parts, coordinate)
        """
        parts = []
        if len(points) == 0:
            return datatypes.Partition(parts, coordinate)

        points_sorted = event.coordinate_sort(points, coordinate)
        layer = [points_sorted[0]]
        layer_start = getattr(points_sorted[0], coordinate)
        for p in points_sorted[1:]:
            value = getattr(p, coordinate)
            if value > layer_start + interval:
                parts.append(event.t_sort(layer))
                layer = []
                layer_start = value
            layer.append(p)
        parts.append(event.t_sort(layer))

        return datatypes.Partition(parts, coordinate)


class seed:
    @staticmethod
    def fast_line_check(points, threshold):
        """
        True if every interior point is within threshold of the line
        through the first and the last point
        """
        if len(points) < 3:
            return True
        begin, end = points[0], points[-1]
        distance_max = max(point.point_line_distance(p, begin, end) for p in points[1:-1])
        return distance_max <= threshold

    @staticmethod
    def order2_permutations(n, layers):
        """
        Lazily enumerate every choice of n layers, and of one point from each chosen layer

        Yields lists of points ordered by layer. Nothing is materialized upfront,
        and calling the function again restarts the sequence.
        """
        for chosen in itertools.combinations(range(len(layers)), n):
            for candidate in itertools.product(*(layers[i] for i in chosen)):
                yield list(candidate)

    @staticmethod
    def time_span(points):
        if len(points) == 0:
            return 0
        times = [p.t for p in points]
        return max(times) - min(times)


class stat:
    @staticmethod
    def uniform(width):
        """Standard deviation of a flat distribution of the given width"""
        return np.asarray(width, dtype=float)/np.sqrt(12)

    @staticmethod
    def weighted_average(values, errors):
        """
        Inverse-variance weighted average along the first axis

        RETURN:
        ---
        average, error of the average
        """
        values = np.asarray(values, dtype=float)
        weights = 1/np.asarray(errors, dtype=float)**2
        weight_sum = np.sum(weights, axis=0)
        average = np.sum(values*weights, axis=0)/weight_sum
        return average, 1/np.sqrt(weight_sum)
