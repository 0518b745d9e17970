"""Utilities for parsing netlists."""
from nlopt.parsing.verilog import InputError, parse_verilog_netlist
