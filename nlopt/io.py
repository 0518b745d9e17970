"""Functions for reading/writing Netlists."""
import logging
from pathlib import Path

from nlopt.netlist import Identifier
from nlopt.parsing import InputError, parse_verilog_netlist

log = logging.getLogger(__name__)


def xilinx_overrides(cell_name, cell):
    """
    Adapt library cells to Xilinx port names.

    Xilinx netlists instantiate `INV` with ports `I` and `O`.

    >>> from nlopt import Identifier, library
    >>> xilinx_overrides(Identifier("INV"), library["INV"]).ports()
    ['O', 'I']

    """
    if Identifier(cell_name).get_name() == "INV":
        return cell.remap_input(0, "I").remap_output(0, "O")
    return None


def from_file(path, xilinx=True, primitives=None, top=None):
    """
    Create a new `Netlist` from a verilog file.

    Parameters
    ----------
    path: str or pathlib.Path
            the path to the file to read from.
    xilinx: bool
            If True, parse with Xilinx-specific port names.
    primitives: seq of Primitive
            Cells used in the netlist besides the built in library.
    top: str
            the name of the module to read if the file has several.

    Returns
    -------
    Netlist
            the parsed netlist.

    """
    path = Path(path)
    try:
        with open(path) as f:
            netlist = f.read()
    except OSError as e:
        raise InputError(f"Could not read {path}: {e.strerror}") from e
    return from_verilog(netlist, xilinx, primitives, top)


def from_verilog(netlist, xilinx=True, primitives=None, top=None):
    """
    Create a new `Netlist` from Verilog code. See `from_file`.

    >>> n = from_verilog('''
    ... module top (a, y);
    ...   input a;
    ...   output y;
    ...   INV u0 (.I(a), .O(y));
    ... endmodule
    ... ''')
    >>> [str(i.name) for i in n.instances()]
    ['u0']

    """
    overrides = xilinx_overrides if xilinx else None
    n = parse_verilog_netlist(netlist, primitives, overrides, top)
    log.info("read %d instances and %d nets", len(n.instances()), len(n.nets()))
    return n


def to_file(n, path):
    """
    Write a `Netlist` to a Verilog file.

    Parameters
    ----------
    n: Netlist
            the netlist
    path: str
            the path to the file to write to.

    """
    with open(path, "w") as f:
        f.write(netlist_to_verilog(n))


def _verilog_name(name, buses):
    name = str(name)
    if Identifier(name).is_simple():
        return name
    base, _, bit = name.partition("[")
    if base in buses and bit[:-1].isdigit() and name.endswith("]"):
        return name
    return f"\\{name} "


def netlist_to_verilog(n):
    """
    Generate a `str` of structural Verilog from a `Netlist`.

    Names that are not plain identifiers are escaped, except the bits of
    declared bus ports. Unconnected ports are written as `.P()`.

    Parameters
    ----------
    n: Netlist
            the netlist to turn into Verilog.

    Returns
    -------
    str
        Verilog code.

    """
    ports = n.module_ports()
    buses = {name for name, _, msb, _ in ports if msb is not None}
    port_nets = {net.index for net in n.inputs() + n.outputs()}

    def vname(name):
        return _verilog_name(name, buses)

    def declaration(name, direction, msb, lsb):
        bounds = "" if msb is None else f" [{msb}:{lsb}]"
        return f"  {direction}{bounds} {vname(name)};\n"

    wires = [net for net in n.nets() if net.index not in port_nets]
    insts = []
    for inst in n.instances():
        params = ""
        if inst.params:
            params = " #(" + ", ".join(
                f".{k}({v})" for k, v in inst.params.items()
            ) + ")"
        io = []
        for port in inst.outputs() + inst.inputs():
            net = port.net
            io.append(f".{port.name}({'' if net is None else vname(net.name)})")
        io_def = ", ".join(io)
        insts.append(f"{inst.cell.name}{params} {vname(inst.name)} ({io_def})")

    verilog = f"module {vname(n.name)} ("
    verilog += ", ".join(vname(p[0]) for p in ports)
    verilog += ");\n"
    verilog += "".join(declaration(*p) for p in ports)
    verilog += "\n"
    verilog += "".join(f"  wire {vname(wire.name)};\n" for wire in wires)
    verilog += "\n"
    verilog += "".join(f"  {inst};\n" for inst in insts)
    verilog += "endmodule\n"

    return verilog


def netlist_to_dot(n):
    """
    Generate a Graphviz DOT `str` of the instance connectivity.

    Module ports are drawn as ellipses, instances as boxes labelled with
    their cell, and every net connection as an edge labelled with the net.
    """

    def escape(name):
        return str(name).replace("\\", "\\\\").replace('"', '\\"')

    lines = ["digraph netlist {", "  rankdir=LR;", "  node [shape=box];", ""]
    for net in n.inputs() + n.outputs():
        lines.append(f'  "{escape(net.name)}" [shape=ellipse];')
    for inst in n.instances():
        label = f"{escape(inst.name)}\\n{inst.cell.name}"
        color = "lightblue" if inst.is_seq() else "white"
        lines.append(
            f'  "{escape(inst.name)}" [label="{label}", fillcolor="{color}", '
            "style=filled];"
        )
    lines.append("")

    # Draw edges (net connections)
    for net in n.nets():
        if net.driver is not None:
            source = net.driver.instance.name
        elif net.is_input():
            source = net.name
        else:
            continue
        targets = [p.instance.name for p in net.consumers()]
        if net.is_output() and source != net.name:
            targets.append(net.name)
        for target in targets:
            lines.append(
                f'  "{escape(source)}" -> "{escape(target)}" '
                f'[label="{escape(net.name)}"];'
            )

    lines.append("}")
    return "\n".join(lines) + "\n"
