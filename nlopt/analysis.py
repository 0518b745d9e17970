"""
Graph analyses of netlists.

Analyses are obtained from `Netlist.get_analysis` and are only valid until
the next mutation of the netlist.

Examples
--------
Build a three instance ring and look for feedback.

>>> from nlopt import Netlist, library
>>> from nlopt.analysis import MultiDiGraph, SimpleCombDepth
>>> n = Netlist()
>>> w = [n.add_net(f"w{i}") for i in range(3)]
>>> for i, name in enumerate("abc"):
...     _ = n.add_instance(library["BUF"], name, inputs=[w[i - 1]], outputs=[w[i]])
>>> g = n.get_analysis(MultiDiGraph)
>>> [len(c) for c in g.sccs()]
[3]
>>> [str(a.target().instance.name) for a in g.greedy_feedback_arcs()]
['a']
>>> print(n.get_analysis(SimpleCombDepth).get_max_depth())
None

"""
import heapq
import logging

import networkx as nx

from nlopt.netlist import Analysis, AnalysisUnavailable, Instance

log = logging.getLogger(__name__)


class Arc:
    """A connection from an output port of one instance to an input of another."""

    __slots__ = ("_source", "_target", "_net")

    def __init__(self, source, target, net):
        self._source = source
        self._target = target
        self._net = net

    def source(self):
        """Return the driving `OutputPort`."""
        return self._source

    def target(self):
        """Return the consuming `InputPort`."""
        return self._target

    def net(self):
        return self._net

    def src(self):
        """Return the driving `Instance`."""
        return self._source.instance

    def dst(self):
        """Return the consuming `Instance`."""
        return self._target.instance

    def __eq__(self, other):
        return (
            isinstance(other, Arc)
            and self._source == other._source
            and self._target == other._target
        )

    def __hash__(self):
        return hash((self._source, self._target))

    def __repr__(self):
        return f"Arc({self._source!r} -> {self._target!r})"


class MultiDiGraph(Analysis):
    """
    Directed multigraph of instance connectivity.

    Nodes are instance indices. There is one edge per connection from an
    instance output to an instance input, so parallel edges are kept when a
    cell drives several inputs of the same cell. Module inputs and outputs
    are not nodes.
    """

    def __init__(self, netlist):
        super().__init__(netlist)
        self.graph = nx.MultiDiGraph()
        self._arcs = []
        instances = netlist.instances()
        self.graph.add_nodes_from(i.index for i in instances)
        for consumer in instances:
            for port in consumer.inputs():
                net = port.net
                if net is None or net.driver is None:
                    continue
                arc = Arc(net.driver, port, net)
                self.graph.add_edge(
                    net.driver.instance_index,
                    consumer.index,
                    key=(consumer.index, port.index),
                    arc=arc,
                )
                self._arcs.append(arc)

    def instance(self, node):
        """Return the `Instance` for a graph node."""
        return Instance(self.netlist, node)

    def arcs(self):
        """Return every arc, ordered by consuming instance and port."""
        self._check()
        return list(self._arcs)

    def is_cyclic(self):
        self._check()
        return not nx.is_directed_acyclic_graph(self.graph)

    def sccs(self):
        """
        Partition the instances into strongly connected components.

        Every instance is in exactly one component. Instances are ordered by
        insertion within a component, and components by their first
        instance.

        Returns
        -------
        list of list of Instance
                The components, including single instance ones.

        """
        self._check()
        components = [sorted(c) for c in nx.strongly_connected_components(self.graph)]
        components.sort(key=lambda c: c[0])
        return [[self.instance(n) for n in c] for c in components]

    def nontrivial_sccs(self):
        """Return the components with more than one instance."""
        return [c for c in self.sccs() if len(c) > 1]

    def greedy_feedback_arcs(self):
        """
        Find a set of arcs whose removal leaves the graph acyclic.

        Uses the Eades-Lin-Smyth heuristic: instances are ordered by
        repeatedly taking sinks (placed last), then sources (placed first),
        and otherwise the instance with the largest out-degree minus
        in-degree. Ties are broken by instance name, then insertion order.
        Arcs that do not point forward in that order, including self loops,
        are returned. The set is not necessarily minimal.

        Returns
        -------
        list of Arc
                Feedback arcs, ordered as in `arcs`.

        """
        self._check()
        position = {n: i for i, n in enumerate(self._greedy_order())}
        arcs = []
        for arc in self._arcs:
            u = arc.source().instance_index
            v = arc.target().instance_index
            if position[u] >= position[v]:
                arcs.append(arc)
        log.debug("greedy feedback arc set has %d arcs", len(arcs))
        return arcs

    def _greedy_order(self):
        def key(n):
            return (str(self.instance(n).name), n)

        in_deg = {n: 0 for n in self.graph}
        out_deg = {n: 0 for n in self.graph}
        succs = {n: [] for n in self.graph}
        preds = {n: [] for n in self.graph}
        for u, v in self.graph.edges():
            if u == v:
                continue
            out_deg[u] += 1
            in_deg[v] += 1
            succs[u].append(v)
            preds[v].append(u)

        sinks = [key(n) for n in self.graph if out_deg[n] == 0]
        sources = [key(n) for n in self.graph if in_deg[n] == 0]
        deltas = [(in_deg[n] - out_deg[n], key(n)) for n in self.graph]
        for heap in (sinks, sources, deltas):
            heapq.heapify(heap)

        removed = set()
        head = []
        tail = []

        def remove(n):
            removed.add(n)
            for v in succs[n]:
                if v not in removed:
                    in_deg[v] -= 1
                    if in_deg[v] == 0:
                        heapq.heappush(sources, key(v))
                    heapq.heappush(deltas, (in_deg[v] - out_deg[v], key(v)))
            for u in preds[n]:
                if u not in removed:
                    out_deg[u] -= 1
                    if out_deg[u] == 0:
                        heapq.heappush(sinks, key(u))
                    heapq.heappush(deltas, (in_deg[u] - out_deg[u], key(u)))

        def pop(heap):
            while heap:
                _, n = heapq.heappop(heap)
                if n not in removed:
                    return n
            return None

        while len(removed) < len(self.graph):
            n = pop(sinks)
            if n is not None:
                tail.append(n)
                remove(n)
                continue
            n = pop(sources)
            if n is not None:
                head.append(n)
                remove(n)
                continue
            # entries are stale once the degrees of their node changed
            while True:
                delta, (_, n) = heapq.heappop(deltas)
                if n not in removed and delta == in_deg[n] - out_deg[n]:
                    break
            head.append(n)
            remove(n)

        return head + tail[::-1]


class SimpleCombDepth(Analysis):
    """
    Longest combinational path depth.

    Sequential instances break paths, and the depth of a path is the number
    of combinational instances on it. When the combinational instances form
    a cycle the depth is undefined.
    """

    def __init__(self, netlist):
        super().__init__(netlist)
        graph = netlist.get_analysis(MultiDiGraph).graph
        comb = [n for n in graph if not Instance(netlist, n).is_seq()]
        self.graph = nx.DiGraph(graph.subgraph(comb))
        self._depths = None

        cyclic = any(
            len(c) > 1 for c in nx.strongly_connected_components(self.graph)
        ) or any(True for _ in nx.selfloop_edges(self.graph))
        if cyclic:
            log.debug("combinational cycle found, depth is undefined")
            return

        self._depths = {}
        for n in nx.topological_sort(self.graph):
            self._depths[n] = 1 + max(
                (self._depths[p] for p in self.graph.predecessors(n)), default=0
            )

    def is_defined(self):
        self._check()
        return self._depths is not None

    def get_max_depth(self):
        """
        Return the maximum combinational depth.

        Returns
        -------
        int or None
                The depth, 0 without combinational instances, or None if a
                combinational cycle exists.

        """
        self._check()
        if self._depths is None:
            return None
        return max(self._depths.values(), default=0)

    def depth_of(self, instance):
        """
        Return the depth of the longest combinational path ending at
        `instance`. Sequential instances have depth 0.

        Raises
        ------
        AnalysisUnavailable
                If the depth is undefined.

        """
        self._check()
        if self._depths is None:
            raise AnalysisUnavailable("combinational cycle, depth is undefined")
        if instance.is_seq():
            return 0
        return self._depths[instance.index]

    def critical_path(self):
        """Return the instances of one longest combinational path."""
        self._check()
        if self._depths is None:
            raise AnalysisUnavailable("combinational cycle, depth is undefined")
        if not self._depths:
            return []
        n = max(self._depths, key=lambda n: (self._depths[n], -n))
        path = [n]
        while self._depths[n] > 1:
            n = min(
                p for p in self.graph.predecessors(n)
                if self._depths[p] == self._depths[n] - 1
            )
            path.append(n)
        return [Instance(self.netlist, n) for n in reversed(path)]
