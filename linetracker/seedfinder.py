import collections

# Internal modules
from . import utilities as Util
from . import datatypes


def seed(n, event, collapse_ds, layer_dz, line_dr, axis="z"):
    """
    Find all n-point seeds of an event

    Points are first collapsed with the window collapse_ds and partitioned into
    layers of width layer_dz along axis. Every way to pick one point from each of
    n distinct layers is tested, and the candidates whose interior points are within
    line_dr of the line through their first and last points are kept.

    RETURN:
    ---
    list of seeds, each a time-sorted list of Point
    """
    if n <= 2:
        return []

    points = Util.event.collapse(event, collapse_ds)
    if len(points) == 0:
        return []
    if len(points) <= n:
        return [points]

    layers = Util.event.partition(points, layer_dz, axis).parts
    if len(layers) < n:
        return []

    seeds = []
    for candidate in Util.seed.order2_permutations(n, layers):
        candidate = Util.event.t_sort(candidate)
        if Util.seed.fast_line_check(candidate, line_dr):
            seeds.append(candidate)
    return seeds


def seeds_compatible(first, second, overlap):
    """True if the last [overlap] points of first are the first [overlap] points of second"""
    if overlap <= 0 or overlap > len(first) or overlap > len(second):
        return False
    return list(first[len(first)-overlap:]) == list(second[:overlap])


def join(first, second, overlap):
    """
    Splice second onto first, the two sharing [overlap] points

    RETURN:
    ---
    first + second[overlap:] when compatible and second actually extends first,
    otherwise an empty list
    """
    if overlap >= len(second) or not seeds_compatible(first, second, overlap):
        return []
    return list(first) + list(second[overlap:])


def _join_secondaries(seed_index, difference, seed_buffer, indices, join_list, to_joined):
    first = seed_buffer[indices[seed_index]]
    # second has to line up with first from point [difference] on
    overlap = len(first) - difference
    for i in range(len(indices)):
        if i == seed_index:
            continue
        joined_seed = join(first, seed_buffer[indices[i]], overlap)
        if joined_seed:
            seed_buffer.append(joined_seed)
            to_joined.append(len(seed_buffer) - 1)
            join_list[i] = True
            join_list[seed_index] = True


def _partial_join(seed_buffer, indices, difference, joined, singular, seeds_out):
    """
    Try every pair of seeds in indices. Joined seeds go to the joined queue,
    seeds that took part in no join to the singular queue. If nothing joins,
    all seeds are final.
    """
    join_list = [False]*len(indices)
    to_joined = []
    for seed_index in range(len(indices)):
        _join_secondaries(seed_index, difference, seed_buffer, indices, join_list, to_joined)

    if to_joined:
        joined.append(to_joined)
        singular.append([indices[i] for i in range(len(indices)) if not join_list[i]])
        return True

    seeds_out.extend(seed_buffer[i] for i in indices)
    return False


def join_all(seeds, difference=1):
    """
    Merge seeds into the longest chains reachable by overlap matching

    Two queues of seed index lists are processed alternately. Lists of freshly
    joined seeds are tried at offset [difference], so that two seeds share all
    but [difference] of the points of the first one. Lists of seeds that found
    no partner are retried at offset [difference+1]. A list in which nothing
    joins is flushed to the output. Seeds are only ever appended to the buffer.
    """
    seed_buffer = [list(s) for s in seeds]
    seeds_out = []

    joined = collections.deque([list(range(len(seed_buffer)))])
    singular = collections.deque()
    while joined or singular:
        if joined:
            _partial_join(seed_buffer, joined.popleft(), difference, joined, singular, seeds_out)
        if singular:
            _partial_join(seed_buffer, singular.popleft(), difference + 1, joined, singular, seeds_out)

    return seeds_out


# ----------------------------------------------------------------------
class SeedFinder:
    def __init__(self, parameters=None, debug=False):
        self.debug = debug
        self.parameters={
            "seed_Size": 3,                     # Number of points per seed
            "seed_CollapseWindow": [1,1,1,1],   # [ns, cm, cm, cm], (dt, dx, dy, dz)
            "seed_LayerAxis": "z",
            "seed_LayerDepth": 10,              # [cm]
            "seed_LineWidth": 25,               # [cm]
        }
        if parameters is not None:
            for key in self.parameters:
                if key in parameters:
                    self.parameters[key] = parameters[key]

    def run(self, event):
        """
        Seed the event and join the seeds into chains
        """
        self.seeds = self.seeding(event)
        self.seeds_joined = join_all(self.seeds)
        if self.debug:
            print(f"  {len(self.seeds_joined)} seeds after joining")
            for s in self.seeds_joined:
                print("   ", [tuple(p) for p in s])
        return self.seeds_joined

    def seeding(self, event):
        seeds = seed(self.parameters["seed_Size"],
                     event,
                     datatypes.Point(*self.parameters["seed_CollapseWindow"]),
                     self.parameters["seed_LayerDepth"],
                     self.parameters["seed_LineWidth"],
                     self.parameters["seed_LayerAxis"])
        if self.debug:
            print(f"  {len(seeds)} seeds of size {self.parameters['seed_Size']} from {len(event)} points")
        return seeds
