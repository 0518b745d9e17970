"""
Netlist passes and the pipeline that runs them.

A pass takes the netlist, possibly mutates it, and returns a short report.

Examples
--------
>>> from nlopt import Netlist, library
>>> from nlopt.passes import Pipeline
>>> n = Netlist()
>>> w = [n.add_net(f"w{i}") for i in range(3)]
>>> for i, name in enumerate("abc"):
...     _ = n.add_instance(library["BUF"], name, inputs=[w[i - 1]], outputs=[w[i]])
>>> Pipeline(n, ["report-sccs"]).run()
'Netlist contains 1 non-trivial strongly connected components (1 total)'
>>> Pipeline(n, ["disconnect-arc-set", "report-depth"]).run()
'Maximum combinational depth: 3'

"""
import logging
from enum import Enum, auto

from nlopt.analysis import MultiDiGraph, SimpleCombDepth
from nlopt.io import netlist_to_verilog
from nlopt.netlist import Identifier, format_id

log = logging.getLogger(__name__)


class Pass:
    """Base class for passes."""

    name = None

    def run(self, netlist):
        """
        Run the pass.

        Parameters
        ----------
        netlist: Netlist
                The netlist to analyze or transform.

        Returns
        -------
        str
                The report of the pass.

        """
        raise NotImplementedError


class PrintVerilog(Pass):
    """Print the netlist as Verilog."""

    name = "print"

    def run(self, netlist):
        return netlist_to_verilog(netlist)


class DotGraph(Pass):
    """Print the netlist as a Graphviz graph."""

    name = "dot-graph"

    def run(self, netlist):
        return netlist.dot_string()


class Clean(Pass):
    """Remove logic that does not reach an output."""

    name = "clean"

    def run(self, netlist):
        cleaned = netlist.clean()
        return f"Cleaned {len(cleaned)} objects. {len(netlist)} remain."


class DisconnectRegisters(Pass):
    """Disconnect all register inputs."""

    name = "disconnect-registers"

    def run(self, netlist):
        i = 0
        for reg in netlist.matches(lambda inst: inst.is_seq()):
            disconnected = False
            for port in reg.inputs():
                disconnected |= netlist.disconnect(port) is not None
            if disconnected:
                i += 1
        return f"Disconnected {i} registers"


class DisconnectArcSet(Pass):
    """Disconnect the feedback arcs found by the greedy heuristic."""

    name = "disconnect-arc-set"

    def run(self, netlist):
        arcs = netlist.get_analysis(MultiDiGraph).greedy_feedback_arcs()
        for arc in arcs:
            netlist.disconnect(arc.target())
        return f"Disconnected {len(arcs)} arcs"


class MarkArcSet(Pass):
    """
    Prefix the instances driving a feedback arc with `arc_`.

    An instance driving several feedback arcs is renamed once, but every arc
    is counted.
    """

    name = "mark-arc-set"

    def run(self, netlist):
        arcs = netlist.get_analysis(MultiDiGraph).greedy_feedback_arcs()
        marked = set()
        for arc in arcs:
            src = arc.src()
            if src in marked:
                continue
            src.set_instance_name(Identifier("arc_") + src.get_instance_name())
            marked.add(src)
        return f"Marked {len(arcs)} arcs"


class RenameNets(Pass):
    """Rename nets and instances sequentially __0__, __1__, ..."""

    name = "rename-nets"

    def run(self, netlist):
        netlist.rename_nets(lambda _, i: format_id("__{i}__", i=i))
        return f"Renamed {len(netlist)} cells"


class ReportSccs(Pass):
    """Report the number of strongly connected components."""

    name = "report-sccs"

    def run(self, netlist):
        sccs = netlist.get_analysis(MultiDiGraph).sccs()
        nontrivial = sum(len(scc) > 1 for scc in sccs)
        return (
            f"Netlist contains {nontrivial} non-trivial strongly connected "
            f"components ({len(sccs)} total)"
        )


class ReportDepth(Pass):
    """Report the longest combinational path."""

    name = "report-depth"

    def run(self, netlist):
        depth = netlist.get_analysis(SimpleCombDepth).get_max_depth()
        if depth is None:
            return "Maximum combinational depth: undefined"
        return f"Maximum combinational depth: {depth}"


class Passes(Enum):
    """The available passes, by name."""

    PRINT = PrintVerilog.name
    DOT_GRAPH = DotGraph.name
    CLEAN = Clean.name
    DISCONNECT_REGISTERS = DisconnectRegisters.name
    DISCONNECT_ARC_SET = DisconnectArcSet.name
    MARK_ARC_SET = MarkArcSet.name
    RENAME_NETS = RenameNets.name
    REPORT_SCCS = ReportSccs.name
    REPORT_DEPTH = ReportDepth.name

    def get_pass(self):
        """Return a new instance of the pass."""
        return _pass_classes[self]()

    def __str__(self):
        return self.value


_pass_classes = {
    Passes.PRINT: PrintVerilog,
    Passes.DOT_GRAPH: DotGraph,
    Passes.CLEAN: Clean,
    Passes.DISCONNECT_REGISTERS: DisconnectRegisters,
    Passes.DISCONNECT_ARC_SET: DisconnectArcSet,
    Passes.MARK_ARC_SET: MarkArcSet,
    Passes.RENAME_NETS: RenameNets,
    Passes.REPORT_SCCS: ReportSccs,
    Passes.REPORT_DEPTH: ReportDepth,
}


class PipelineState(Enum):
    IDLE = auto()
    RUNNING = auto()
    DONE = auto()
    FAILED = auto()


class Pipeline:
    """
    Runs passes in order on one netlist.

    The netlist is verified after the last pass, and after every pass when
    `verify_each` is set. The first failing pass or verification stops the
    pipeline.

    Attributes
    ----------
    state : PipelineState
            Current state.
    index : int
            Index of the running (or failed) pass, None before the first.
    reports : list of str
            Reports of the passes that completed.
    error : Exception
            The error that failed the pipeline.

    """

    def __init__(self, netlist, passes, verify_each=False):
        """
        Create a new `Pipeline`.

        Parameters
        ----------
        netlist: Netlist
                The netlist to run on.
        passes: seq of Passes or str
                Passes to run, in order.
        verify_each: bool
                If True, verify after every pass, not just the last.

        """
        self.netlist = netlist
        self.passes = [Passes(p) for p in passes]
        self.verify_each = verify_each
        self.state = PipelineState.IDLE
        self.index = None
        self.reports = []
        self.error = None

    def run(self):
        """
        Run every pass.

        Returns
        -------
        str or None
                The report of the last pass, None without passes.

        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"pipeline already ran ({self.state.name})")
        self.state = PipelineState.RUNNING
        try:
            report = self._run()
        except Exception as e:
            self.state = PipelineState.FAILED
            self.error = e
            log.debug("pass %s failed: %s", self.index, e)
            raise
        self.state = PipelineState.DONE
        return report

    def _run(self):
        if not self.passes:
            self.netlist.verify()
            return None

        last = len(self.passes) - 1
        for i, p in enumerate(self.passes):
            self.index = i
            log.info("Running pass %d (%s)...", i, p)
            report = p.get_pass().run(self.netlist)
            self.reports.append(report)
            if i == last or self.verify_each:
                self.netlist.verify()
            if i != last:
                log.info("%s: %s", p, report)
        return self.reports[-1]
