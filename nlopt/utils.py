"""
Netlist utilities.

Examples
--------
Verify a netlist after editing it

>>> from nlopt import Netlist, library, verify
>>> n = Netlist()
>>> a = n.add_input("a")
>>> y = n.add_output("y")
>>> _ = n.add_instance(library["NOT"], "g0", inputs=[a], outputs=[y])
>>> verify(n)

"""
import logging
from collections import Counter

from nlopt.netlist import VerificationError

log = logging.getLogger(__name__)


def verify(netlist):
    """
    Raise `VerificationError` if the netlist breaks one of its invariants.

    Checks stop at the first violation. In order:

    - arity: instance port lists match their primitive
    - dangling: every port refers to a net of this netlist
    - unique-names: no two live objects share a name
    - consumers: net consumer lists match the input ports reading the net
    - driver: net drivers and instance outputs agree
    - ports: module port nets exist with the right direction

    Parameters
    ----------
    netlist: Netlist
            The netlist to verify.

    """

    def fail(message, obj, invariant):
        raise VerificationError(message, obj, invariant)

    instances = [(i, r) for i, r in enumerate(netlist._instances) if r is not None]
    nets = [(i, r) for i, r in enumerate(netlist._nets) if r is not None]

    def live_instance(index):
        return 0 <= index < len(netlist._instances) and netlist._instances[index]

    def live_net(index):
        return 0 <= index < len(netlist._nets) and netlist._nets[index]

    def port_net(ports, index):
        return ports[index] if 0 <= index < len(ports) else None

    for _, rec in instances:
        ins, outs = rec.cell.inputs(), rec.cell.outputs()
        if len(rec.inputs) != len(ins) or len(rec.outputs) != len(outs):
            fail(
                f"instance '{rec.name}' has {len(rec.inputs)} inputs and "
                f"{len(rec.outputs)} outputs but {rec.cell.name} has "
                f"{len(ins)} and {len(outs)}",
                rec.name,
                "arity",
            )

    for _, rec in instances:
        ports = zip(rec.cell.inputs() + rec.cell.outputs(), rec.inputs + rec.outputs)
        for port, net in ports:
            if net is not None and not live_net(net):
                fail(
                    f"port '{rec.name}.{port}' refers to missing net #{net}",
                    rec.name,
                    "dangling",
                )

    objects = [("instance", i, r.name) for i, r in instances]
    objects += [("net", i, r.name) for i, r in nets]
    counts = Counter(str(name) for _, _, name in objects)
    for kind, index, name in objects:
        if counts[str(name)] > 1:
            fail(f"name '{name}' is used {counts[str(name)]} times", name, "unique-names")
        if netlist._names.get(str(name)) != (kind, index):
            fail(f"{kind} '{name}' is missing from the name table", name, "unique-names")
    if len(netlist._names) != len(objects):
        fail("name table refers to removed objects", netlist.name, "unique-names")

    for index, rec in nets:
        if len(set(rec.consumers)) != len(rec.consumers):
            fail(f"net '{rec.name}' lists a consumer twice", rec.name, "consumers")
        for inst, port in rec.consumers:
            rec_i = live_instance(inst)
            if not rec_i or port_net(rec_i.inputs, port) != index:
                fail(
                    f"net '{rec.name}' lists consumer #{inst}.{port} which does "
                    "not read it",
                    rec.name,
                    "consumers",
                )
    for i, rec in instances:
        for port, net in enumerate(rec.inputs):
            if net is not None and (i, port) not in netlist._nets[net].consumers:
                fail(
                    f"port '{rec.name}.{rec.cell.inputs()[port]}' is missing from "
                    f"the consumers of '{netlist._nets[net].name}'",
                    rec.name,
                    "consumers",
                )

    for index, rec in nets:
        if rec.driver is None:
            continue
        inst, port = rec.driver
        if rec.is_input:
            fail(f"module input '{rec.name}' has an instance driver", rec.name, "driver")
        rec_i = live_instance(inst)
        if not rec_i or port_net(rec_i.outputs, port) != index:
            fail(
                f"net '{rec.name}' names driver #{inst}.{port} which does not "
                "drive it",
                rec.name,
                "driver",
            )
    for i, rec in instances:
        for port, net in enumerate(rec.outputs):
            if net is not None and netlist._nets[net].driver != (i, port):
                fail(
                    f"port '{rec.name}.{rec.cell.outputs()[port]}' is not the "
                    f"driver of '{netlist._nets[net].name}'",
                    rec.name,
                    "driver",
                )

    for name, direction, msb, lsb in netlist.module_ports():
        for bit in netlist.port_bits(name, msb, lsb):
            entry = netlist._names.get(bit)
            if entry is None or entry[0] != "net":
                fail(f"{direction} port '{bit}' has no net", bit, "ports")
            rec = netlist._nets[entry[1]]
            if not (rec.is_input if direction == "input" else rec.is_output):
                fail(f"net '{bit}' is not marked as {direction}", bit, "ports")

    log.debug("verified netlist %s", netlist.name)
