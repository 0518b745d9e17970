import logging
import re
from pathlib import Path

from lark import Lark, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, VisitError

from nlopt.cells import library, verilog_gates
from nlopt.netlist import Identifier, Netlist, NetlistError

log = logging.getLogger(__name__)

_sized_number = re.compile(r"(\d*)'[sS]?([bBoOdDhH])([0-9a-fA-FxXzZ_?]+)")
_bases = {"b": 2, "o": 8, "d": 10, "h": 16}


def get_context_window(text, index):
    """
    Return the source line around a character offset.

    Parameters
    ----------
    text : str
            Netlist text.
    index : int
            Character offset into `text`.

    Returns
    -------
    str
            The line holding `index`, followed by a line with a caret
            under the offending column.
    """
    previous_newline = text.rfind("\n", 0, index) + 1
    next_newline = text.find("\n", index)
    if next_newline < 0:
        next_newline = len(text)
    context = text[previous_newline:next_newline]
    context += "\n" + " " * (index - previous_newline) + "^"
    return context


class InputError(NetlistError):
    """
    Raised if a netlist cannot be read or parsed.
    """

    def __init__(self, message, line=None, column=None, context=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.context = context

    @classmethod
    def from_token(cls, message, token, text):
        """Build an error located at a `lark.Token`."""
        index = getattr(token, "start_pos", None)
        context = None
        if index is not None and text:
            context = get_context_window(text, index)
        return cls(
            message,
            getattr(token, "line", None),
            getattr(token, "column", None),
            context,
        )

    def __str__(self):
        message = self.message
        if self.line is not None:
            message += f" (line {self.line}, column {self.column})"
        if self.context:
            message += ":\n" + self.context
        return message


class VerilogNetlistTransformer(Transformer):
    """
    A lark.Transformer that builds a `Netlist` from a parsed structural
    Verilog module.
    """

    def __init__(self, text, primitives=None, overrides=None):
        """
        Initializes a new transformer.

        Parameters
        ----------
        text: str
                The netlist that the transformer will be used on, used for
                error messages.
        primitives: seq of Primitive
                Cells available in addition to `nlopt.cells.library`.
        overrides: callable
                Called as `overrides(cell_name, primitive)` for each cell type
                used; a returned `Primitive` replaces the library one.
        """
        super().__init__()
        self.text = text
        self.primitives = dict(library)
        for p in primitives or []:
            self.primitives[p.name] = p
        self.overrides = overrides
        self._new_module()

    def _new_module(self):
        self.n = Netlist()
        self.header = []
        self.declared = {}
        self.ansi = None
        self.ties = {}
        self.cells = {}

    # Helper functions
    def error(self, message, token):
        return InputError.from_token(message, token, self.text)

    def ident(self, token):
        """Strip the escape of escaped identifiers."""
        name = str(token)
        if name.startswith("\\"):
            name = name[1:]
        return name

    def lookup(self, name, token):
        if name not in self.cells:
            try:
                cell = self.primitives[name]
            except KeyError:
                raise self.error(f"Cell {name} not in the primitive library", token)
            if self.overrides:
                cell = self.overrides(Identifier(name), cell) or cell
            self.cells[name] = cell
        return self.cells[name]

    def net(self, expression):
        kind, value, token = expression
        try:
            if kind == "const":
                return self.tie(value)
            return self.n.net_or_create(value)
        except NetlistError as e:
            raise self.error(str(e), token) from e

    def tie(self, value):
        if value not in self.ties:
            cell = self.primitives["VCC" if value else "GND"]
            net = self.n.add_net(self.n.uid(f"const{value}"))
            self.n.add_instance(cell, self.n.uid(cell.name.lower()), outputs=[net])
            self.ties[value] = net
        return self.ties[value]

    def declare(self, direction, bounds, token):
        name = self.ident(token)
        if name in self.declared:
            raise self.error(f"{name} declared twice", token)
        self.declared[name] = token
        msb, lsb = bounds or (None, None)
        try:
            if direction == "input":
                self.n.add_input(name, msb, lsb)
            else:
                self.n.add_output(name, msb, lsb)
        except NetlistError as e:
            raise self.error(str(e), token) from e

    def check_for_warnings(self):
        for net in self.n.nets():
            if net.driver is None and not net.is_input() and net.consumers():
                log.warning("%s is read but has no driver", net.name)

    # 1. Source text
    def start(self, modules):
        return modules

    def module(self, items):
        token = items[0]
        self.n.name = self.ident(token)

        # Check if ports list matches with inputs and outputs
        if self.ansi is None:
            header = {self.ident(t): t for t in self.header}
            for name, t in header.items():
                if name not in self.declared:
                    raise self.error(
                        f"{name} in port list but was not declared as input or output",
                        t,
                    )
            for name, t in self.declared.items():
                if name not in header:
                    raise self.error(f"{name} declared as a port but not in port list", t)
            self.n.order_ports(list(header))

        self.check_for_warnings()
        netlist = self.n
        log.debug("parsed module %s: %r", netlist.name, netlist)
        self._new_module()
        return netlist

    def ansi_port(self, items):
        direction, bounds, token = items[0], None, items[-1]
        if len(items) == 3:
            bounds = items[1]
        self.ansi = (direction, bounds)
        self.declare(direction, bounds, token)

    def port_name(self, items):
        [token] = items
        if self.ansi is not None:
            self.declare(*self.ansi, token)
        else:
            self.header.append(token)

    def direction(self, items):
        return str(items[0])

    def range(self, items):
        msb, lsb = items
        return int(msb), int(lsb)

    # 2. Declarations
    def io_declaration(self, items):
        direction, identifiers = items[0], items[-1]
        bounds = items[1] if len(items) == 3 else None
        for token in identifiers:
            self.declare(direction, bounds, token)

    def net_declaration(self, items):
        identifiers = items[-1]
        bounds = items[0] if len(items) == 2 else None
        for token in identifiers:
            name = self.ident(token)
            bits = self.n.port_bits(name, *bounds) if bounds else [name]
            for bit in bits:
                self.net(("net", bit, token))

    def identifiers(self, tokens):
        return tokens

    # 3. Assignments
    def assignment(self, items):
        (_, lhs, token), rhs = items
        target = self.net(("net", lhs, token))
        try:
            if rhs[0] == "const":
                cell = self.primitives["VCC" if rhs[1] else "GND"]
                name = self.n.uid(f"{cell.name.lower()}_{lhs}")
                self.n.add_instance(cell, name, outputs=[target])
            else:
                source = self.net(rhs)
                name = self.n.uid(f"assign_{lhs}")
                self.n.add_instance(
                    self.primitives["BUF"], name, inputs=[source], outputs=[target]
                )
        except NetlistError as e:
            raise self.error(str(e), token) from e

    # 4. Module Instantiations
    def instantiation(self, items):
        token, instances = items[0], items[1:]
        params = {}
        if isinstance(instances[0], dict):
            params, instances = instances[0], instances[1:]
        gate = str(token) in verilog_gates
        if gate:
            cell = self.lookup(verilog_gates[str(token)], token)
        else:
            cell = self.lookup(self.ident(token), token)

        for name_token, connections in instances:
            inputs, outputs = {}, {}
            if isinstance(connections, dict):
                if gate:
                    raise self.error(
                        "Primitive gates cannot use named port connections",
                        name_token,
                    )
                connections = list(connections.items())
            else:
                ports = cell.ports()
                if len(connections) > len(ports):
                    raise self.error(
                        f"{cell.name} has {len(ports)} ports but "
                        f"{len(connections)} connections were given",
                        name_token,
                    )
                if gate and len(connections) != len(ports):
                    raise self.error(
                        f"{token} gate needs {len(ports)} connections", name_token
                    )
                connections = list(zip(ports, connections))

            for port, expression in connections:
                if port in cell.inputs():
                    inputs[port] = None if expression is None else self.net(expression)
                elif port in cell.outputs():
                    if expression is not None and expression[0] == "const":
                        raise self.error(
                            f"output {port} cannot drive a constant", expression[2]
                        )
                    outputs[port] = None if expression is None else self.net(expression)
                else:
                    raise self.error(f"{cell.name} has no port {port}", name_token)

            try:
                self.n.add_instance(
                    cell, self.ident(name_token), inputs, outputs, params=params
                )
            except NetlistError as e:
                raise self.error(str(e), name_token) from e

    def parameters(self, items):
        return dict(items)

    def parameter(self, items):
        return (str(items[0]), str(items[1]) if len(items) > 1 else "")

    def instance(self, items):
        return (items[0], items[1] if len(items) > 1 else [])

    def named_connections(self, items):
        return dict(items)

    def ordered_connections(self, items):
        return list(items)

    def named_connection(self, items):
        return (str(items[0]), items[1] if len(items) > 1 else None)

    # 5. Expressions
    def signal(self, items):
        name = self.ident(items[0])
        if len(items) > 1:
            name = f"{name}[{int(items[1])}]"
        return ("net", name, items[0])

    def constant(self, items):
        [token] = items
        m = _sized_number.fullmatch(str(token))
        digits = m.group(3).replace("_", "")
        try:
            value = int(digits, _bases[m.group(2).lower()])
        except ValueError:
            raise self.error(f"Unsupported constant {token}", token)
        if value not in (0, 1):
            raise self.error(f"Only single bit constants are supported: {token}", token)
        return ("const", value, token)


def parse_verilog_netlist(netlist, primitives=None, overrides=None, top=None):
    """
    Parses a structural verilog netlist into a `Netlist`.

    Parameters
    ----------
    netlist: str
            The verilog netlist to parse.
    primitives: seq of Primitive
            Cells available in addition to the built in library.
    overrides: callable
            Called as `overrides(cell_name, primitive)`; a returned
            `Primitive` replaces the library cell, e.g. to adapt vendor port
            names.
    top: str
            Module to return when the text holds several modules.

    Returns
    -------
    nlopt.Netlist
            The parsed netlist.

    Raises
    ------
    InputError
            If the text cannot be parsed or does not describe a valid
            netlist.
    """
    transformer = VerilogNetlistTransformer(netlist, primitives, overrides)
    with open(Path(__file__).parent.absolute() / "verilog.lark") as f:
        parser = Lark(f, parser="lalr", transformer=transformer)
    try:
        modules = parser.parse(netlist)
    except VisitError as e:
        if isinstance(e.orig_exc, NetlistError):
            raise e.orig_exc from e
        raise
    except UnexpectedInput as e:
        if isinstance(e, UnexpectedCharacters):
            message = f"Unexpected character {netlist[e.pos_in_stream]!r}"
        else:
            message = f"Unexpected token {getattr(e, 'token', '')!s}"
        raise InputError(message, e.line, e.column, e.get_context(netlist)) from e

    if top is not None:
        try:
            [module] = [m for m in modules if m.name == top]
        except ValueError:
            raise InputError(f"Module {top} not found") from None
        return module
    if len(modules) > 1:
        names = ", ".join(m.name for m in modules)
        raise InputError(f"Several modules found ({names}), select one with top")
    return modules[0]
