"""
Class for netlists.

A `Netlist` owns every instance and net of a gate-level design. Instances and
nets live in flat arenas inside the netlist and refer to each other only by
index. The objects handed out to callers (`Instance`, `Net`, `InputPort`,
`OutputPort`) are lightweight views of an arena slot.

Examples
--------
Create a netlist with two inputs and an AND gate driving an output.

>>> from nlopt import Netlist, library
>>> n = Netlist("top")
>>> a = n.add_input("a")
>>> b = n.add_input("b")
>>> y = n.add_output("y")
>>> g = n.add_instance(library["AND"], "g0", inputs=[a, b], outputs=[y])
>>> [str(p.net.name) for p in g.inputs()]
['a', 'b']
>>> len(n)
4

Connections can be removed.

>>> n.disconnect(g.inputs()[1]).name
Identifier('b')
>>> n.disconnect(g.inputs()[1]) is None
True

Derived views are computed on demand and cached until the next mutation.

>>> from nlopt.analysis import MultiDiGraph
>>> n.get_analysis(MultiDiGraph) is n.get_analysis(MultiDiGraph)
True

"""
import logging
import re
from functools import total_ordering

log = logging.getLogger(__name__)

_simple_identifier = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")


class NetlistError(Exception):
    """Base class for netlist errors."""


class StructuralError(NetlistError, ValueError):
    """
    Raised on naming collisions, references to objects that do not exist,
    and arity mismatches.
    """


class VerificationError(NetlistError):
    """
    Raised when a netlist invariant does not hold.

    Attributes
    ----------
    obj : Identifier or str
            The object violating the invariant.
    invariant : str
            Short name of the violated invariant.

    """

    def __init__(self, message, obj=None, invariant=None):
        super().__init__(message)
        self.message = message
        self.obj = obj
        self.invariant = invariant

    def __str__(self):
        if self.invariant:
            return f"{self.invariant}: {self.message}"
        return self.message


class AnalysisUnavailable(NetlistError):
    """Raised when an analysis cannot be computed or has no value."""


@total_ordering
class Identifier:
    """
    A name made of an optional prefix and a base name.

    Equality, hashing and ordering use the full composed string, so an
    `Identifier` compares equal to the equivalent `str`.

    >>> arc = Identifier("arc_") + Identifier("u1")
    >>> arc == "arc_u1", arc.get_name()
    (True, 'u1')

    """

    __slots__ = ("_prefix", "_name")

    def __init__(self, name, prefix=""):
        if isinstance(name, Identifier):
            prefix = str(prefix) + name._prefix
            name = name._name
        self._name = str(name)
        self._prefix = str(prefix)

    def get_name(self):
        """Return the base name, without prefix."""
        return self._name

    def get_prefix(self):
        return self._prefix

    def is_simple(self):
        """Return True if the name is a plain Verilog identifier."""
        return bool(_simple_identifier.match(str(self)))

    def __add__(self, other):
        other = Identifier(other)
        return Identifier(other._name, str(self) + other._prefix)

    def __radd__(self, other):
        return Identifier(other) + self

    def __str__(self):
        return self._prefix + self._name

    def __repr__(self):
        return f"Identifier({str(self)!r})"

    def __eq__(self, other):
        if isinstance(other, (Identifier, str)):
            return str(self) == str(other)
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, (Identifier, str)):
            return str(self) < str(other)
        return NotImplemented

    def __hash__(self):
        return hash(str(self))


def format_id(pattern, *args, **kwargs):
    """
    Build an `Identifier` from a format string.

    >>> format_id("__{i}__", i=3)
    Identifier('__3__')

    """
    return Identifier(pattern.format(*args, **kwargs))


class Analysis:
    """
    Base class for read-only views derived from a netlist.

    An analysis remembers the netlist generation it was computed at. Once the
    netlist is mutated the analysis is stale and its methods refuse to run.
    """

    def __init__(self, netlist):
        self.netlist = netlist
        self.generation = netlist.generation

    def is_stale(self):
        return self.generation != self.netlist.generation

    def _check(self):
        if self.is_stale():
            raise StructuralError(
                f"{type(self).__name__} is stale: the netlist changed after it "
                "was computed"
            )


class AnalysisCache:
    """
    Map from analysis kind to a cached analysis and its freshness.

    Every mutation of the owning netlist calls `invalidate`, which marks all
    kinds stale and drops the cached objects.
    """

    def __init__(self):
        self._entries = {}
        self._fresh = {}

    def get(self, kind, netlist):
        """
        Return the cached analysis of `kind`, computing it if needed.

        Raises
        ------
        AnalysisUnavailable
                If `kind` is not an `Analysis` subclass.

        """
        if not (isinstance(kind, type) and issubclass(kind, Analysis)):
            raise AnalysisUnavailable(f"{kind!r} is not an analysis kind")
        if self._fresh.get(kind):
            return self._entries[kind]
        log.debug("computing %s", kind.__name__)
        analysis = kind(netlist)
        self._entries[kind] = analysis
        self._fresh[kind] = True
        return analysis

    def is_fresh(self, kind):
        return self._fresh.get(kind, False)

    def invalidate(self):
        for kind in self._fresh:
            self._fresh[kind] = False
        self._entries.clear()

    def __len__(self):
        return sum(self._fresh.values())


class _InstanceRecord:
    __slots__ = ("name", "cell", "inputs", "outputs", "params")

    def __init__(self, name, cell, params):
        self.name = name
        self.cell = cell
        # net index per port, None when unconnected
        self.inputs = [None] * len(cell.inputs())
        self.outputs = [None] * len(cell.outputs())
        self.params = params


class _NetRecord:
    __slots__ = ("name", "driver", "consumers", "is_input", "is_output")

    def __init__(self, name):
        self.name = name
        # (instance index, output port index)
        self.driver = None
        # [(instance index, input port index)]
        self.consumers = []
        self.is_input = False
        self.is_output = False


class Instance:
    """Handle to an instance of a netlist."""

    __slots__ = ("netlist", "index")

    def __init__(self, netlist, index):
        self.netlist = netlist
        self.index = index

    def _record(self):
        return self.netlist._instance_record(self.index)

    @property
    def name(self):
        return self._record().name

    def get_instance_name(self):
        return self._record().name

    def set_instance_name(self, name):
        self.netlist.set_instance_name(self, name)

    @property
    def cell(self):
        return self._record().cell

    @property
    def params(self):
        return dict(self._record().params)

    def is_seq(self):
        return self._record().cell.is_seq()

    def inputs(self):
        """Return the input ports, in primitive order."""
        rec = self._record()
        return [InputPort(self.netlist, self.index, i) for i in range(len(rec.inputs))]

    def outputs(self):
        """Return the output ports, in primitive order."""
        rec = self._record()
        return [
            OutputPort(self.netlist, self.index, i) for i in range(len(rec.outputs))
        ]

    def input(self, name):
        """Return the input port called `name`."""
        try:
            return InputPort(
                self.netlist, self.index, self.cell.inputs().index(str(name))
            )
        except ValueError as e:
            raise StructuralError(f"{self.name} has no input port {name}") from e

    def output(self, name):
        """Return the output port called `name`."""
        try:
            return OutputPort(
                self.netlist, self.index, self.cell.outputs().index(str(name))
            )
        except ValueError as e:
            raise StructuralError(f"{self.name} has no output port {name}") from e

    def fanin(self):
        """Return the instances driving this instance, in port order."""
        drivers = []
        for port in self.inputs():
            net = port.net
            if net is not None and net.driver is not None:
                drivers.append(net.driver.instance)
        return drivers

    def fanout(self):
        """Return the instances driven by this instance."""
        loads = []
        for port in self.outputs():
            net = port.net
            if net is not None:
                loads += [p.instance for p in net.consumers()]
        return loads

    def __eq__(self, other):
        return (
            isinstance(other, Instance)
            and self.netlist is other.netlist
            and self.index == other.index
        )

    def __hash__(self):
        return hash((id(self.netlist), self.index))

    def __repr__(self):
        rec = self.netlist._instances[self.index]
        if rec is None:
            return f"Instance(#{self.index}, removed)"
        return f"Instance({str(rec.name)!r}, {rec.cell.name})"


class Net:
    """Handle to a net of a netlist."""

    __slots__ = ("netlist", "index")

    def __init__(self, netlist, index):
        self.netlist = netlist
        self.index = index

    def _record(self):
        return self.netlist._net_record(self.index)

    @property
    def name(self):
        return self._record().name

    @property
    def driver(self):
        """The `OutputPort` driving the net, or None."""
        driver = self._record().driver
        if driver is None:
            return None
        return OutputPort(self.netlist, *driver)

    def consumers(self):
        """Return the `InputPort`s reading the net."""
        return [InputPort(self.netlist, i, p) for i, p in self._record().consumers]

    def is_input(self):
        return self._record().is_input

    def is_output(self):
        return self._record().is_output

    def __eq__(self, other):
        return (
            isinstance(other, Net)
            and self.netlist is other.netlist
            and self.index == other.index
        )

    def __hash__(self):
        return hash((id(self.netlist), self.index))

    def __repr__(self):
        rec = self.netlist._nets[self.index]
        if rec is None:
            return f"Net(#{self.index}, removed)"
        return f"Net({str(rec.name)!r})"


class _Port:
    __slots__ = ("netlist", "instance_index", "index")

    def __init__(self, netlist, instance_index, index):
        self.netlist = netlist
        self.instance_index = instance_index
        self.index = index

    @property
    def instance(self):
        return Instance(self.netlist, self.instance_index)

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.netlist is other.netlist
            and self.instance_index == other.instance_index
            and self.index == other.index
        )

    def __hash__(self):
        return hash((type(self), id(self.netlist), self.instance_index, self.index))

    def __repr__(self):
        return f"{type(self).__name__}({self.instance!r}, {self.name!r})"


class InputPort(_Port):
    """Handle to an input port of an instance."""

    __slots__ = ()

    @property
    def name(self):
        return self.instance.cell.inputs()[self.index]

    @property
    def net(self):
        """The net driving the port, or None when disconnected."""
        rec = self.netlist._instance_record(self.instance_index)
        if rec.inputs[self.index] is None:
            return None
        return Net(self.netlist, rec.inputs[self.index])

    def connect(self, net):
        self.netlist.connect(self, net)

    def disconnect(self):
        return self.netlist.disconnect(self)


class OutputPort(_Port):
    """Handle to an output port of an instance."""

    __slots__ = ()

    @property
    def name(self):
        return self.instance.cell.outputs()[self.index]

    @property
    def net(self):
        """The net driven by the port, or None."""
        rec = self.netlist._instance_record(self.instance_index)
        if rec.outputs[self.index] is None:
            return None
        return Net(self.netlist, rec.outputs[self.index])


class _Matches:
    """Restartable lazy sequence of the instances satisfying a predicate."""

    def __init__(self, netlist, predicate):
        self._netlist = netlist
        self._predicate = predicate

    def __iter__(self):
        for i, rec in enumerate(self._netlist._instances):
            if rec is None:
                continue
            instance = Instance(self._netlist, i)
            if self._predicate(instance):
                yield instance


class Netlist:
    """Class for representing gate-level netlists."""

    def __init__(self, name="top"):
        """
        Create a new empty `Netlist`.

        Parameters
        ----------
        name : str
                Module name.

        """
        self.name = name
        self._instances = []
        self._nets = []
        # name -> ("instance" | "net", index), one namespace for both kinds
        self._names = {}
        # (name, direction, msb, lsb) in declaration order
        self._ports = []
        self.analyses = AnalysisCache()
        self.generation = 0

    # construction

    def add_net(self, name):
        """
        Add an unconnected net.

        Parameters
        ----------
        name : str or Identifier
                Net name.

        Returns
        -------
        Net
                The new net.

        """
        name = Identifier(name)
        self._claim(name, "net", len(self._nets))
        self._nets.append(_NetRecord(name))
        self._invalidate()
        return Net(self, len(self._nets) - 1)

    def net_or_create(self, name):
        """Return the net called `name`, adding it if needed."""
        entry = self._names.get(str(name))
        if entry is None:
            return self.add_net(name)
        kind, index = entry
        if kind != "net":
            raise StructuralError(f"'{name}' is an instance, not a net")
        return Net(self, index)

    def add_input(self, name, msb=None, lsb=None):
        """
        Declare a module input port.

        Parameters
        ----------
        name : str
                Port name.
        msb, lsb : int
                Optional bus range. With a range one net per bit is created,
                named `name[i]`.

        Returns
        -------
        Net or list of Net
                The port net, or the bit nets from `msb` to `lsb`.

        """
        return self._add_port(name, "input", msb, lsb)

    def add_output(self, name, msb=None, lsb=None):
        """Declare a module output port. See `add_input`."""
        return self._add_port(name, "output", msb, lsb)

    def _add_port(self, name, direction, msb, lsb):
        name = str(name)
        if any(p[0] == name for p in self._ports):
            raise StructuralError(f"port '{name}' already declared")
        if msb is None:
            nets = [self._port_net(name, direction)]
        else:
            if lsb is None:
                lsb = 0
            step = -1 if msb >= lsb else 1
            nets = [
                self._port_net(f"{name}[{i}]", direction)
                for i in range(msb, lsb + step, step)
            ]
        self._ports.append((name, direction, msb, lsb))
        return nets[0] if msb is None else nets

    def _port_net(self, name, direction):
        net = self.net_or_create(name)
        rec = self._nets[net.index]
        if direction == "input":
            if rec.driver is not None:
                raise StructuralError(f"input '{name}' is driven by an instance")
            rec.is_input = True
        else:
            rec.is_output = True
        return net

    def add_instance(self, cell, name, inputs=None, outputs=None, params=None):
        """
        Add an instance of a primitive and connect it.

        Parameters
        ----------
        cell : Primitive
                Cell type.
        name : str or Identifier
                Instance name.
        inputs : seq or dict
                Nets (handles or names) for the input ports, either in port
                order or keyed by port name. None leaves a port unconnected.
        outputs : seq or dict
                Nets driven by the output ports, same format as `inputs`.
        params : dict of str:str
                Parameter overrides, carried through unchanged.

        Returns
        -------
        Instance
                The new instance.

        """
        name = Identifier(name)
        in_nets = self._resolve_ports(name, cell.inputs(), inputs)
        out_nets = self._resolve_ports(name, cell.outputs(), outputs)
        for port, net in zip(cell.outputs(), out_nets):
            if net is None:
                continue
            rec = self._nets[net]
            if rec.driver is not None or rec.is_input:
                raise StructuralError(
                    f"net '{rec.name}' driven by {name}.{port} already has a driver"
                )
        driven = [n for n in out_nets if n is not None]
        if len(set(driven)) < len(driven):
            raise StructuralError(f"{name} drives one net from several outputs")

        index = len(self._instances)
        self._claim(name, "instance", index)
        rec = _InstanceRecord(name, cell, dict(params or {}))
        self._instances.append(rec)
        for port, net in enumerate(in_nets):
            if net is not None:
                rec.inputs[port] = net
                self._nets[net].consumers.append((index, port))
        for port, net in enumerate(out_nets):
            if net is not None:
                rec.outputs[port] = net
                self._nets[net].driver = (index, port)
        self._invalidate()
        return Instance(self, index)

    def _resolve_ports(self, name, ports, connections):
        if connections is None:
            return [None] * len(ports)
        if isinstance(connections, dict):
            unknown = set(map(str, connections)) - set(ports)
            if unknown:
                raise StructuralError(f"{name} has no port {sorted(unknown)[0]}")
            connections = [connections.get(p) for p in ports]
        connections = list(connections)
        if len(connections) > len(ports):
            raise StructuralError(
                f"{name} has {len(ports)} ports but {len(connections)} "
                "connections were given"
            )
        connections += [None] * (len(ports) - len(connections))
        return [None if c is None else self._net_index(c) for c in connections]

    def connect(self, port, net):
        """
        Connect an unconnected input port to a net.

        Parameters
        ----------
        port : InputPort
                Port to connect.
        net : Net or str
                Net to read from.

        """
        rec = self._port_record(port)
        if rec.inputs[port.index] is not None:
            raise StructuralError(f"{port!r} is already connected")
        index = self._net_index(net)
        rec.inputs[port.index] = index
        self._nets[index].consumers.append((port.instance_index, port.index))
        self._invalidate()

    # queries

    def __len__(self):
        """Count live instances and nets."""
        return sum(r is not None for r in self._instances) + sum(
            r is not None for r in self._nets
        )

    def __contains__(self, name):
        return str(name) in self._names

    def __iter__(self):
        return iter(self.instances())

    def instances(self):
        """Return all live instances, in insertion order."""
        return [Instance(self, i) for i, r in enumerate(self._instances) if r]

    def nets(self):
        """Return all live nets, in insertion order."""
        return [Net(self, i) for i, r in enumerate(self._nets) if r]

    def matches(self, predicate):
        """
        Return the instances satisfying `predicate`.

        The result is lazy and can be iterated several times; each iteration
        reflects the netlist at that moment, in insertion order.

        >>> from nlopt import Netlist, library
        >>> n = Netlist()
        >>> _ = n.add_instance(library["DFF"], "r0")
        >>> [str(r.name) for r in n.matches(lambda i: i.is_seq())]
        ['r0']

        """
        return _Matches(self, predicate)

    def get_instance(self, name):
        kind, index = self._lookup(name)
        if kind != "instance":
            raise StructuralError(f"'{name}' is a net, not an instance")
        return Instance(self, index)

    def get_net(self, name):
        kind, index = self._lookup(name)
        if kind != "net":
            raise StructuralError(f"'{name}' is an instance, not a net")
        return Net(self, index)

    def inputs(self):
        """Return the module input nets, in declaration order."""
        return [n for n in self._port_nets() if n.is_input()]

    def outputs(self):
        """Return the module output nets, in declaration order."""
        return [n for n in self._port_nets() if n.is_output()]

    def module_ports(self):
        """Return the module ports as (name, direction, msb, lsb) tuples."""
        return list(self._ports)

    def order_ports(self, names):
        """Reorder the module ports to follow `names`."""
        if sorted(names) != sorted(p[0] for p in self._ports):
            raise StructuralError(f"{names} are not the ports of {self.name}")
        self._ports.sort(key=lambda p: names.index(p[0]))

    def port_bits(self, name, msb, lsb):
        """Return the net names of a declared port."""
        if msb is None:
            return [name]
        step = -1 if msb >= lsb else 1
        return [f"{name}[{i}]" for i in range(msb, lsb + step, step)]

    def _port_nets(self):
        nets = []
        for name, _, msb, lsb in self._ports:
            for bit in self.port_bits(name, msb, lsb):
                entry = self._names.get(bit)
                if entry is not None and entry[0] == "net":
                    nets.append(Net(self, entry[1]))
        return nets

    def uid(self, name):
        """
        Generate a name based on `name` that is unused in the netlist.

        Parameters
        ----------
        name : str
                Name to uniquify.

        Returns
        -------
        str
                Unique name.

        """
        name = str(name)
        if name not in self._names:
            return name
        i = 0
        while f"{name}_{i}" in self._names:
            i += 1
        return f"{name}_{i}"

    # mutations

    def disconnect(self, port):
        """
        Disconnect an input port from its net.

        Parameters
        ----------
        port : InputPort
                Port to disconnect.

        Returns
        -------
        Net or None
                The net the port was reading, or None if it was already
                disconnected. In that case nothing changes.

        """
        rec = self._port_record(port)
        index = rec.inputs[port.index]
        if index is None:
            return None
        self._nets[index].consumers.remove((port.instance_index, port.index))
        rec.inputs[port.index] = None
        self._invalidate()
        return Net(self, index)

    def remap_input(self, instance, index, name):
        """
        Rename an input port of an instance.

        Only the port name changes. Connectivity is untouched, so cached
        analyses stay valid.
        """
        rec = self._instance_record(instance.index)
        rec.cell = rec.cell.remap_input(index, name)

    def remap_output(self, instance, index, name):
        """Rename an output port of an instance. See `remap_input`."""
        rec = self._instance_record(instance.index)
        rec.cell = rec.cell.remap_output(index, name)

    def set_instance_name(self, instance, name):
        """
        Rename an instance.

        Raises
        ------
        StructuralError
                If another object already uses `name`.

        """
        rec = self._instance_record(instance.index)
        name = Identifier(name)
        if str(name) == str(rec.name):
            rec.name = name
            return
        self._claim(name, "instance", instance.index)
        del self._names[str(rec.name)]
        rec.name = name
        self._invalidate()

    def rename_nets(self, namer):
        """
        Rename every internal net, then every instance.

        Module port nets keep their names. Nothing is renamed if any new
        name collides with another.

        Parameters
        ----------
        namer : callable
                Called as `namer(old_identifier, ordinal)` for each renamed
                object, with one ordinal counting nets then instances.

        Returns
        -------
        int
                Number of renamed objects.

        """
        targets = [
            ("net", i, r)
            for i, r in enumerate(self._nets)
            if r is not None and not (r.is_input or r.is_output)
        ]
        targets += [("instance", i, r) for i, r in enumerate(self._instances) if r]
        renamed = {(kind, i) for kind, i, _ in targets}
        kept = {k: v for k, v in self._names.items() if v not in renamed}
        new_names = []
        for ordinal, (kind, index, rec) in enumerate(targets):
            name = Identifier(namer(rec.name, ordinal))
            if str(name) in kept:
                raise StructuralError(
                    f"renaming {kind} '{rec.name}' to '{name}' collides"
                )
            kept[str(name)] = (kind, index)
            new_names.append(name)

        for (_, _, rec), name in zip(targets, new_names):
            rec.name = name
        self._names = kept
        self._invalidate()
        log.debug("renamed %d objects", len(targets))
        return len(targets)

    def clean(self):
        """
        Remove logic that cannot reach a module output.

        Instances outside the transitive fan-in of the module outputs are
        removed, as are nets that are neither module ports, nor driven by a
        surviving instance, nor read by one.

        Returns
        -------
        list of Identifier
                Names of the removed instances, then of the removed nets.

        """
        live_instances = set()
        live_nets = {n.index for n in self._port_nets()}
        stack = [n.index for n in self.outputs()]
        while stack:
            rec = self._nets[stack.pop()]
            if rec.driver is None or rec.driver[0] in live_instances:
                continue
            inst = rec.driver[0]
            live_instances.add(inst)
            for net in self._instances[inst].inputs + self._instances[inst].outputs:
                if net is not None and net not in live_nets:
                    live_nets.add(net)
                    stack.append(net)

        removed = []
        for i, rec in enumerate(self._instances):
            if rec is None or i in live_instances:
                continue
            for port, net in enumerate(rec.inputs):
                if net is not None:
                    self._nets[net].consumers.remove((i, port))
            for net in rec.outputs:
                if net is not None:
                    self._nets[net].driver = None
            removed.append(rec.name)
            del self._names[str(rec.name)]
            self._instances[i] = None
        for i, rec in enumerate(self._nets):
            if rec is None or i in live_nets:
                continue
            removed.append(rec.name)
            del self._names[str(rec.name)]
            self._nets[i] = None

        if removed:
            self._invalidate()
        log.debug("clean removed %d objects", len(removed))
        return removed

    # derived views

    def get_analysis(self, kind):
        """
        Return the analysis of `kind` for the current netlist state.

        Parameters
        ----------
        kind : type
                An `Analysis` subclass, such as `nlopt.analysis.MultiDiGraph`.

        Returns
        -------
        Analysis
                Cached analysis, recomputed after any mutation.

        """
        return self.analyses.get(kind, self)

    def verify(self):
        """Check the netlist invariants, raising `VerificationError`."""
        from nlopt.utils import verify

        verify(self)

    def dot_string(self):
        """Return the netlist connectivity in Graphviz DOT format."""
        from nlopt.io import netlist_to_dot

        return netlist_to_dot(self)

    # internals

    def _invalidate(self):
        self.generation += 1
        self.analyses.invalidate()

    def _claim(self, name, kind, index):
        if str(name) in self._names:
            raise StructuralError(f"name '{name}' already in netlist {self.name}")
        self._names[str(name)] = (kind, index)

    def _lookup(self, name):
        try:
            return self._names[str(name)]
        except KeyError as e:
            raise StructuralError(f"'{name}' does not exist in {self.name}") from e

    def _net_index(self, net):
        if isinstance(net, Net):
            if net.netlist is not self:
                raise StructuralError(f"{net!r} belongs to another netlist")
            self._net_record(net.index)
            return net.index
        return self.get_net(net).index

    def _instance_record(self, index):
        if not 0 <= index < len(self._instances) or self._instances[index] is None:
            raise StructuralError(f"instance #{index} does not exist")
        return self._instances[index]

    def _net_record(self, index):
        if not 0 <= index < len(self._nets) or self._nets[index] is None:
            raise StructuralError(f"net #{index} does not exist")
        return self._nets[index]

    def _port_record(self, port):
        if not isinstance(port, InputPort):
            raise StructuralError(f"{port!r} is not an input port")
        if port.netlist is not self:
            raise StructuralError(f"{port!r} belongs to another netlist")
        rec = self._instance_record(port.instance_index)
        if not 0 <= port.index < len(rec.inputs):
            raise StructuralError(f"{rec.name} has no input port #{port.index}")
        return rec

    def __repr__(self):
        return (
            f"Netlist({self.name!r}, instances={len(self.instances())}, "
            f"nets={len(self.nets())})"
        )
