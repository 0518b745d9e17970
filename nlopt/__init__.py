"""
Tools for analyzing and transforming gate-level netlists.

Python package `nlopt` provides a mutable netlist of primitive cells, graph
analyses derived from it, and passes that run on it. It is meant for
debugging and experimenting with netlist optimizations.

Features include:

- parsing of structural verilog netlists, with Xilinx cell support
- strongly connected components and a greedy feedback arc set
- combinational depth
- netlist verification after every mutation
- the `nl-opt` command line tool

Look at the examples in `nlopt.netlist` for a quickstart guide.

"""
from nlopt.netlist import (
    AnalysisUnavailable,
    Identifier,
    Netlist,
    NetlistError,
    StructuralError,
    VerificationError,
    format_id,
)
from nlopt.cells import Primitive, library
from nlopt.utils import verify
from nlopt.parsing import InputError
from nlopt.io import from_file, from_verilog, netlist_to_verilog, to_file
from nlopt.analysis import MultiDiGraph, SimpleCombDepth
from nlopt.passes import Passes, Pipeline
