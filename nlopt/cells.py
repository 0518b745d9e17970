"""
Primitive cell library.

A `Primitive` describes a cell type: its name, its ordered input and output
port names, and whether it is sequential. Instances in a `Netlist` always
have exactly the ports of their primitive.

Examples
--------
>>> from nlopt.cells import Primitive, library
>>> lut = library["LUT2"]
>>> lut.inputs()
['I0', 'I1']
>>> lut.outputs()
['O']
>>> library["FDRE"].is_seq()
True

Ports can be renamed to adapt vendor specific naming.

>>> inv = library["INV"].remap_input(0, "I").remap_output(0, "O")
>>> inv.ports()
['O', 'I']

"""
from nlopt.netlist import StructuralError


class Primitive:
    """Class for representing primitive cell types."""

    def __init__(self, name, inputs=None, outputs=None, seq=False):
        """
        Create a new `Primitive`.

        Parameters
        ----------
        name : str
                Name of the cell type, as instantiated in Verilog.
        inputs : seq of str
                Ordered input port names.
        outputs : seq of str
                Ordered output port names.
        seq : bool
                If True, the cell is sequential (a register) and breaks
                combinational paths.

        """
        self.name = name
        self._inputs = list(inputs or [])
        self._outputs = list(outputs or [])
        self._seq = seq
        ports = self._inputs + self._outputs
        if len(set(ports)) != len(ports):
            raise StructuralError(f"duplicate port name in primitive {name}")

    def inputs(self):
        """Return the ordered input port names."""
        return list(self._inputs)

    def outputs(self):
        """Return the ordered output port names."""
        return list(self._outputs)

    def ports(self):
        """Return the ports in positional connection order (outputs first)."""
        return self._outputs + self._inputs

    def is_seq(self):
        return self._seq

    def remap_input(self, index, name):
        """
        Return a copy of the primitive with one input port renamed.

        Parameters
        ----------
        index : int
                Position of the input port.
        name : str
                New port name.

        Returns
        -------
        Primitive
                The remapped primitive.

        """
        inputs = self.inputs()
        inputs[self._check_index(inputs, index, "input")] = str(name)
        return Primitive(self.name, inputs, self._outputs, self._seq)

    def remap_output(self, index, name):
        """Return a copy of the primitive with one output port renamed."""
        outputs = self.outputs()
        outputs[self._check_index(outputs, index, "output")] = str(name)
        return Primitive(self.name, self._inputs, outputs, self._seq)

    def _check_index(self, ports, index, kind):
        if not 0 <= index < len(ports):
            raise StructuralError(
                f"{self.name} has no {kind} port at index {index}"
            )
        return index

    def __eq__(self, other):
        if not isinstance(other, Primitive):
            return NotImplemented
        return (
            self.name == other.name
            and self._inputs == other._inputs
            and self._outputs == other._outputs
            and self._seq == other._seq
        )

    def __hash__(self):
        return hash((self.name, tuple(self._inputs), tuple(self._outputs)))

    def __repr__(self):
        return (
            f"Primitive({self.name!r}, {self._inputs!r}, {self._outputs!r}, "
            f"seq={self._seq})"
        )


# gates use Y as output, matching the Verilog gate primitives
generic_gates = [
    Primitive("AND", ["A", "B"], ["Y"]),
    Primitive("NAND", ["A", "B"], ["Y"]),
    Primitive("OR", ["A", "B"], ["Y"]),
    Primitive("NOR", ["A", "B"], ["Y"]),
    Primitive("XOR", ["A", "B"], ["Y"]),
    Primitive("XNOR", ["A", "B"], ["Y"]),
    Primitive("NOT", ["A"], ["Y"]),
    Primitive("INV", ["A"], ["Y"]),
    Primitive("BUF", ["A"], ["Y"]),
    Primitive("MUX", ["A", "B", "S"], ["Y"]),
    Primitive("DFF", ["C", "D"], ["Q"], seq=True),
]

xilinx_cells = [
    Primitive(f"LUT{n}", [f"I{i}" for i in range(n)], ["O"]) for n in range(1, 7)
] + [
    Primitive("FDRE", ["C", "CE", "D", "R"], ["Q"], seq=True),
    Primitive("FDSE", ["C", "CE", "D", "S"], ["Q"], seq=True),
    Primitive("FDCE", ["C", "CE", "CLR", "D"], ["Q"], seq=True),
    Primitive("FDPE", ["C", "CE", "D", "PRE"], ["Q"], seq=True),
    Primitive("MUXF7", ["I0", "I1", "S"], ["O"]),
    Primitive("MUXF8", ["I0", "I1", "S"], ["O"]),
]

tie_cells = [
    Primitive("GND", [], ["G"]),
    Primitive("VCC", [], ["P"]),
]

library = {p.name: p for p in generic_gates + xilinx_cells + tie_cells}

# Verilog gate primitives and the library cell each one maps to
verilog_gates = {
    "and": "AND",
    "nand": "NAND",
    "or": "OR",
    "nor": "NOR",
    "xor": "XOR",
    "xnor": "XNOR",
    "not": "NOT",
    "buf": "BUF",
}
